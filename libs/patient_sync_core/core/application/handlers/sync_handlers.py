from __future__ import annotations

from patient_sync_core.adapters.observability.metrics import (
    PATIENT_SYNC_COUNT,
    PATIENT_SYNC_DISCREPANCIES,
    PATIENT_SYNC_DURATION,
)
from patient_sync_core.core.application.commands.sync_commands import (
    CreatePatientLeadCommand,
    SyncPatientCommand,
)
from patient_sync_core.core.application.cqrs import CommandHandler
from patient_sync_core.core.application.dtos.sync_dtos import SyncResult
from patient_sync_core.core.application.services.patient_sync_service import PatientSyncService
from patient_sync_core.core.domain.events.events import PatientLeadCreatedEvent, PatientSyncedEvent
from patient_sync_core.core.domain.services.event_dispatcher import EventDispatcher


def _record_metrics(result: SyncResult) -> None:
    meta = result.sync_metadata
    PATIENT_SYNC_COUNT.labels(operation=meta.operation.value).inc()
    for item in meta.discrepancies:
        PATIENT_SYNC_DISCREPANCIES.labels(severity=item.severity.value).inc()


class SyncPatientHandler(CommandHandler[SyncPatientCommand]):
    """Sincroniza um paciente com o payload ACF já obtido do WordPress."""

    def __init__(self, sync_service: PatientSyncService, dispatcher: EventDispatcher) -> None:
        self.sync_service = sync_service
        self.dispatcher = dispatcher

    def handle(self, cmd: SyncPatientCommand) -> SyncResult:
        with PATIENT_SYNC_DURATION.labels(command="sync_patient").time():
            result = self.sync_service.reconcile(cmd.phone, cmd.payload, cmd.tenant_id)
        _record_metrics(result)

        if result.success and result.record is not None:
            self.dispatcher.dispatch(
                PatientSyncedEvent(
                    patient_id=result.record.id,
                    tenant_id=cmd.tenant_id,
                    external_id=result.record.external_id,
                    operation=result.sync_metadata.operation.value,
                    discrepancies_found=result.sync_metadata.discrepancies_found,
                )
            )
        return result


class CreatePatientLeadHandler(CommandHandler[CreatePatientLeadCommand]):
    def __init__(self, sync_service: PatientSyncService, dispatcher: EventDispatcher) -> None:
        self.sync_service = sync_service
        self.dispatcher = dispatcher

    def handle(self, cmd: CreatePatientLeadCommand) -> SyncResult:
        with PATIENT_SYNC_DURATION.labels(command="create_lead").time():
            result = self.sync_service.create_lead(cmd.phone, cmd.name, cmd.national_id, cmd.tenant_id)
        _record_metrics(result)

        if result.success and result.record is not None:
            self.dispatcher.dispatch(
                PatientLeadCreatedEvent(
                    patient_id=result.record.id,
                    tenant_id=cmd.tenant_id,
                    name=result.record.name,
                )
            )
        return result
