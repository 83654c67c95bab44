from __future__ import annotations

import traceback
import uuid
from typing import Any

import structlog

from patient_sync_core.core.application.dtos.sync_dtos import (
    Discrepancy,
    SyncMetadata,
    SyncOperation,
    SyncResult,
    ValidationResult,
)
from patient_sync_core.core.application.dtos.wordpress_dtos import WordPressUserDTO
from patient_sync_core.core.application.services.acf_validator import ACFValidator
from patient_sync_core.core.application.services.discrepancy_detector import DiscrepancyDetector
from patient_sync_core.core.application.services.sync_audit_logger import (
    ACF_VALIDATION_FAILED,
    DATA_DISCREPANCY_DETECTED,
    RECORD_VANISHED,
    SYNC_CONFLICT,
    SYNC_EXCEPTION,
    SyncAuditLogger,
)
from patient_sync_core.core.domain.entities.patient_entity import MembershipStatus, PatientEntity
from patient_sync_core.core.domain.events.exceptions import (
    ConflictError,
    NotFoundOnUpdate,
    PatientSyncError,
    SyncException,
)
from patient_sync_core.core.domain.mappers.wordpress_payload_mapper import WordPressPayloadMapper
from patient_sync_core.core.domain.repositories.patient_repository import PatientRepository
from patient_sync_core.core.utils.acf_fields import is_responsible_scenario
from patient_sync_core.core.utils.normalizers import is_valid_national_id, normalize_national_id, normalize_phone

logger = structlog.get_logger(__name__)

GENERIC_SYNC_ERROR = "Enhanced ACF Sync falhou ao processar o paciente"


class PatientSyncService:
    """
    Reconcilia o cadastro local de pacientes com o perfil do WordPress.

    Fluxo de `reconcile`:
      1. valida o bloco ACF (nunca bloqueia)
      2. mapeia os campos, mesmo com validação reprovada
      3. busca o paciente por (associação, telefone normalizado)
      4. existente → detecta discrepâncias e atualiza; ausente → cria
      5. qualquer falha vira `SyncResult(success=False)`; nada é propagado
    """

    def __init__(
        self,
        patient_repo: PatientRepository,
        audit_logger: SyncAuditLogger,
        validator: ACFValidator | None = None,
        mapper: WordPressPayloadMapper | None = None,
        detector: DiscrepancyDetector | None = None,
    ) -> None:
        self.patient_repo = patient_repo
        self.audit = audit_logger
        self.validator = validator or ACFValidator()
        self.mapper = mapper or WordPressPayloadMapper()
        self.detector = detector or DiscrepancyDetector()

    # ────────────────────────── reconcile ──────────────────────────
    def reconcile(self, phone: str, payload: Any, tenant_id: str) -> SyncResult:
        normalized_phone = normalize_phone(phone)
        state: dict[str, Any] = {"operation": SyncOperation.FAILED}
        log = logger.bind(tenant_id=tenant_id, phone=normalized_phone)

        try:
            self._require_scope(tenant_id, normalized_phone)
            dto = WordPressUserDTO.model_validate(payload)
            state["external_id"] = dto.id

            validation = self.validator.validate(dto)
            self._record_validation(state, validation)
            log.info("patient_sync.validated", valid=validation.valid, warnings=len(validation.warnings))
            if not validation.valid:
                self.audit.log(
                    ACF_VALIDATION_FAILED,
                    {
                        "tenant_id": tenant_id,
                        "phone": normalized_phone,
                        "external_id": dto.id,
                        "errors": validation.errors,
                        "warnings": validation.warnings,
                    },
                )

            mapped = self.mapper.map_patient(dto)
            state["acf_fields_count"] = mapped.acf_fields_count

            existing = self.patient_repo.find_by_phone(tenant_id, normalized_phone)
            if existing is not None:
                discrepancies = self.detector.detect(existing, mapped)
                state["discrepancies"] = discrepancies
                state["previous_data"] = existing.to_dict()
                for item in discrepancies:
                    self._log_discrepancy(tenant_id, normalized_phone, existing, item)

                fields = {k: v for k, v in mapped.patient_fields().items() if v is not None}
                if mapped.association_type is not None and not is_responsible_scenario(mapped.association_type):
                    # paciente direto não guarda dados de responsável
                    fields["responsible_party_name"] = None
                    fields["responsible_party_national_id"] = None
                fields["active"] = True
                record = self.patient_repo.update(tenant_id, existing.id, fields)
                state["operation"] = SyncOperation.UPDATE
            else:
                record = self.patient_repo.create(
                    PatientEntity(
                        id=str(uuid.uuid4()),
                        tenant_id=tenant_id,
                        phone=normalized_phone,
                        **mapped.patient_fields(),
                    )
                )
                state["operation"] = SyncOperation.CREATE

            log.info(
                "patient_sync.done",
                operation=state["operation"].value,
                patient_id=record.id,
                discrepancies=len(state.get("discrepancies", [])),
            )
            return SyncResult(success=True, record=record, sync_metadata=self._metadata(state))

        except PatientSyncError as exc:
            return self._domain_failure(exc, state, tenant_id, normalized_phone)
        except Exception as exc:
            return self._unexpected_failure(exc, state, tenant_id, normalized_phone, payload)

    # ────────────────────────── lead ──────────────────────────
    def create_lead(
        self,
        phone: str,
        name: str,
        national_id: str | None,
        tenant_id: str,
    ) -> SyncResult:
        """
        Cadastra um LEAD (telefone não encontrado no WordPress).
        Telefone já cadastrado na associação resulta em ConflictError;
        um MEMBRO existente nunca é rebaixado.
        """
        normalized_phone = normalize_phone(phone)
        state: dict[str, Any] = {"operation": SyncOperation.FAILED}

        try:
            self._require_scope(tenant_id, normalized_phone)
            clean_name = (name or "").strip()
            if not clean_name:
                raise SyncException("Nome é obrigatório para criar lead")

            warnings: list[str] = []
            digits = normalize_national_id(national_id)
            if digits is not None and not is_valid_national_id(digits):
                warnings.append(f"cpf com {len(digits)} dígitos (esperado 11); será descartado")
                digits = None
            self._record_validation(state, ValidationResult(valid=True, warnings=warnings))

            record = self.patient_repo.create(
                PatientEntity(
                    id=str(uuid.uuid4()),
                    tenant_id=tenant_id,
                    name=clean_name,
                    phone=normalized_phone,
                    national_id=digits or None,
                    membership_status=MembershipStatus.LEAD.value,
                )
            )
            state["operation"] = SyncOperation.CREATE
            logger.info("patient_lead.created", tenant_id=tenant_id, patient_id=record.id)
            return SyncResult(success=True, record=record, sync_metadata=self._metadata(state))

        except PatientSyncError as exc:
            return self._domain_failure(exc, state, tenant_id, normalized_phone)
        except Exception as exc:
            return self._unexpected_failure(
                exc, state, tenant_id, normalized_phone, {"name": name, "national_id": national_id}
            )

    # ────────────────────────── helpers ──────────────────────────
    @staticmethod
    def _require_scope(tenant_id: str, phone: str) -> None:
        if not tenant_id:
            raise SyncException("Associação (tenant) é obrigatória")
        if not phone:
            raise SyncException("Telefone é obrigatório")

    @staticmethod
    def _record_validation(state: dict[str, Any], validation: ValidationResult) -> None:
        state["validation_passed"] = validation.valid
        state["validation_errors"] = list(validation.errors)
        state["validation_warnings"] = list(validation.warnings)

    @staticmethod
    def _metadata(state: dict[str, Any]) -> SyncMetadata:
        discrepancies: list[Discrepancy] = state.get("discrepancies", [])
        return SyncMetadata(
            operation=state["operation"],
            validation_passed=state.get("validation_passed", False),
            validation_errors=state.get("validation_errors", []),
            validation_warnings=state.get("validation_warnings", []),
            acf_fields_count=state.get("acf_fields_count", 0),
            discrepancies=discrepancies,
            discrepancies_found=len(discrepancies),
            external_id=state.get("external_id"),
            previous_data=state.get("previous_data"),
        )

    def _log_discrepancy(
        self,
        tenant_id: str,
        phone: str,
        existing: PatientEntity,
        item: Discrepancy,
    ) -> None:
        self.audit.log(
            DATA_DISCREPANCY_DETECTED,
            {
                "tenant_id": tenant_id,
                "phone": phone,
                "patient_id": existing.id,
                "field": item.field,
                "previous_value": item.previous_value,
                "new_value": item.new_value,
                "severity": item.severity.value,
            },
        )

    def _domain_failure(
        self,
        exc: PatientSyncError,
        state: dict[str, Any],
        tenant_id: str,
        phone: str,
    ) -> SyncResult:
        state["operation"] = SyncOperation.FAILED
        if isinstance(exc, ConflictError):
            self.audit.log(SYNC_CONFLICT, {"tenant_id": tenant_id, "phone": phone})
        elif isinstance(exc, NotFoundOnUpdate):
            self.audit.log(
                RECORD_VANISHED,
                {"tenant_id": tenant_id, "phone": phone, "patient_id": exc.patient_id},
            )
        else:
            self.audit.log(
                SYNC_EXCEPTION,
                {"tenant_id": tenant_id, "phone": phone, "error": str(exc)},
            )
        logger.warning(
            "patient_sync.failed",
            tenant_id=tenant_id,
            phone=phone,
            error_code=exc.error_code,
            error=str(exc),
        )
        return SyncResult(
            success=False,
            error=str(exc),
            error_code=exc.error_code,
            retryable=exc.retryable,
            sync_metadata=self._metadata(state),
        )

    def _unexpected_failure(
        self,
        exc: Exception,
        state: dict[str, Any],
        tenant_id: str,
        phone: str,
        payload: Any,
    ) -> SyncResult:
        state["operation"] = SyncOperation.FAILED
        wrapped = SyncException(f"{GENERIC_SYNC_ERROR}: {exc}")
        logger.error(
            "patient_sync.exception",
            tenant_id=tenant_id,
            phone=phone,
            error=str(exc),
            exc_info=True,
        )
        self.audit.log(
            SYNC_EXCEPTION,
            {
                "tenant_id": tenant_id,
                "phone": phone,
                "payload": payload,
                "error": str(exc),
                "error_type": type(exc).__name__,
                "stack": "".join(traceback.format_exception(exc)),
            },
        )
        return SyncResult(
            success=False,
            error=str(wrapped),
            error_code=wrapped.error_code,
            retryable=wrapped.retryable,
            sync_metadata=self._metadata(state),
        )
