from __future__ import annotations

import copy

import structlog

from patient_sync_core.core.application.dtos.sync_dtos import MappedPatientFields
from patient_sync_core.core.application.dtos.wordpress_dtos import WordPressUserDTO
from patient_sync_core.core.domain.entities.patient_entity import MembershipStatus
from patient_sync_core.core.domain.events.exceptions import MappingError
from patient_sync_core.core.utils import acf_fields as acf
from patient_sync_core.core.utils.normalizers import is_valid_national_id, normalize_national_id

logger = structlog.get_logger(__name__)

DEFAULT_FALLBACK_NAME_PREFIX = "Cliente"


class WordPressPayloadMapper:
    def __init__(self, fallback_name_prefix: str = DEFAULT_FALLBACK_NAME_PREFIX) -> None:
        self.fallback_name_prefix = fallback_name_prefix

    # ───────────────────────── helpers ──────────────────────────
    @staticmethod
    def _preserve_acf(dto: WordPressUserDTO) -> dict:
        """Cópia profunda do ACF; nada do payload original é compartilhado."""
        preserved = copy.deepcopy(dto.acf_fields)
        logger.info(
            "acf.preserved",
            field_count=len(preserved),
            fields=sorted(preserved.keys()),
        )
        return preserved

    def _resolve_name(self, dto: WordPressUserDTO, fields: dict) -> str:
        full_name = acf.resolve_text(fields, acf.FULL_NAME_KEYS)
        if full_name:
            return full_name
        if dto.name:
            return dto.name
        if dto.display_name:
            return dto.display_name
        parts = f"{dto.first_name or ''} {dto.last_name or ''}".strip()
        if parts:
            return parts
        return f"{self.fallback_name_prefix} {dto.id or 'sem-id'}"

    @staticmethod
    def _resolve_national_id(fields: dict, keys: tuple[str, ...], label: str) -> str | None:
        raw = acf.resolve_text(fields, keys)
        if raw is None:
            return None
        digits = normalize_national_id(raw)
        if not is_valid_national_id(digits):
            logger.warning("acf.invalid_national_id", field=label, digits=len(digits or ""))
            return None
        return digits

    # ───────────────────────── paciente ─────────────────────────
    def map_patient(self, dto: WordPressUserDTO) -> MappedPatientFields:
        try:
            fields = self._preserve_acf(dto)
            association_type = acf.resolve_text(fields, acf.ASSOCIATION_TYPE_KEYS)

            responsible_name: str | None = None
            responsible_national_id: str | None = None
            if acf.is_responsible_scenario(association_type):
                responsible_name = acf.resolve_text(fields, acf.RESPONSIBLE_NAME_KEYS)
                responsible_national_id = self._resolve_national_id(
                    fields, acf.RESPONSIBLE_NATIONAL_ID_KEYS, "cpf_responsavel"
                )

            return MappedPatientFields(
                name=self._resolve_name(dto, fields),
                email=dto.email or dto.user_email,
                national_id=self._resolve_national_id(fields, acf.NATIONAL_ID_KEYS, "cpf"),
                association_type=association_type,
                responsible_party_name=responsible_name,
                responsible_party_national_id=responsible_national_id,
                membership_status=MembershipStatus.MEMBRO,
                external_id=dto.id,
                acf=fields,
                acf_fields_count=len(fields),
            )
        except Exception as exc:
            logger.error("map_patient", error=str(exc), external_id=dto.id)
            raise MappingError(exc) from exc
