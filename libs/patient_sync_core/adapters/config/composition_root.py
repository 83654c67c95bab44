import structlog
from dependency_injector import containers, providers

container = None

def setup_di_container_from_settings(settings):
    """Inicializa o DI container após o Django já estar com settings carregados."""
    global container  # noqa: PLW0603
    if container is not None:
        structlog.get_logger().debug("DI container já inicializado.")
        return container

    # ------- IMPORTS QUE USAM DJANGO MODELS -------
    from patient_sync_core.adapters.observability.audit_sinks import StructlogAuditSink
    from patient_sync_core.adapters.repositories.patient_repo_impl import PatientRepoImpl

    # Commands
    from patient_sync_core.core.application.commands.sync_commands import (
        CreatePatientLeadCommand,
        SyncPatientCommand,
    )

    # CQRS bus
    from patient_sync_core.core.application.cqrs import CommandBus
    from patient_sync_core.core.application.handlers.sync_handlers import (
        CreatePatientLeadHandler,
        SyncPatientHandler,
    )

    # Serviços de domínio / aplicação
    from patient_sync_core.core.application.services.acf_validator import ACFValidator
    from patient_sync_core.core.application.services.discrepancy_detector import DiscrepancyDetector
    from patient_sync_core.core.application.services.patient_sync_service import PatientSyncService
    from patient_sync_core.core.application.services.sync_audit_logger import SyncAuditLogger
    from patient_sync_core.core.domain.mappers.wordpress_payload_mapper import WordPressPayloadMapper

    # ─────────────────────────────────────────────────────────
    # Construção do container DI
    # ─────────────────────────────────────────────────────────
    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()

        # Infra & observabilidade
        event_dispatcher = providers.Singleton(
            'patient_sync_core.core.domain.services.event_dispatcher.EventDispatcher'
        )
        audit_sink       = providers.Singleton(StructlogAuditSink)
        audit_logger     = providers.Singleton(SyncAuditLogger, sink=audit_sink)

        # CQRS
        command_bus = providers.Singleton(CommandBus)

        # Repositórios
        patient_repo = providers.Singleton(PatientRepoImpl)

        # Pipeline de sincronização
        acf_validator        = providers.Singleton(ACFValidator)
        wordpress_mapper     = providers.Singleton(
            WordPressPayloadMapper,
            fallback_name_prefix=config.sync.fallback_name_prefix,
        )
        discrepancy_detector = providers.Singleton(DiscrepancyDetector)
        patient_sync_service = providers.Singleton(
            PatientSyncService,
            patient_repo=patient_repo,
            audit_logger=audit_logger,
            validator=acf_validator,
            mapper=wordpress_mapper,
            detector=discrepancy_detector,
        )

        # Handlers
        sync_patient_handler = providers.Factory(
            SyncPatientHandler,
            sync_service=patient_sync_service,
            dispatcher=event_dispatcher,
        )
        create_patient_lead_handler = providers.Factory(
            CreatePatientLeadHandler,
            sync_service=patient_sync_service,
            dispatcher=event_dispatcher,
        )

        def init(self):
            cmd_bus = self.command_bus()
            cmd_bus.register(SyncPatientCommand, self.sync_patient_handler())
            cmd_bus.register(CreatePatientLeadCommand, self.create_patient_lead_handler())

    # ------- INSTANCIAÇÃO E CONFIG -------
    container = Container()
    container.config.sync.fallback_name_prefix.from_value(settings.PATIENT_SYNC_FALLBACK_NAME_PREFIX)
    Container.init(container)
    return container
