from __future__ import annotations

import structlog

from patient_sync_core.core.application.dtos.sync_dtos import ValidationResult
from patient_sync_core.core.application.dtos.wordpress_dtos import WordPressUserDTO
from patient_sync_core.core.utils import acf_fields as acf
from patient_sync_core.core.utils.normalizers import (
    NATIONAL_ID_LENGTH,
    PHONE_MAX_DIGITS,
    PHONE_MIN_DIGITS,
    normalize_national_id,
    normalize_phone,
)

logger = structlog.get_logger(__name__)


class ACFValidator:
    """
    Verifica a integridade estrutural do bloco ACF.

    Nunca levanta exceção: devolve `ValidationResult` com erros (que marcam
    a sincronização como não validada) e avisos (informativos).
    """

    def validate(self, dto: WordPressUserDTO) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if dto.acf is None:
            errors.append("Bloco ACF ausente no payload")
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        if not dto.has_acf_object:
            errors.append(
                f"Bloco ACF deveria ser um objeto, recebido {type(dto.acf).__name__}"
            )
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        fields = dto.acf_fields

        if acf.resolve_text(fields, acf.FULL_NAME_KEYS) is None:
            errors.append("Campo obrigatório ausente: nome_completo")

        raw_phone = acf.resolve_text(fields, acf.PHONE_KEYS)
        if raw_phone is None:
            errors.append("Campo obrigatório ausente: telefone")
        else:
            digits = normalize_phone(raw_phone)
            if not PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
                warnings.append(
                    f"Telefone com {len(digits)} dígitos (esperado {PHONE_MIN_DIGITS}-{PHONE_MAX_DIGITS})"
                )

        for label, keys in (("cpf", acf.NATIONAL_ID_KEYS), ("cpf_responsavel", acf.RESPONSIBLE_NATIONAL_ID_KEYS)):
            raw = acf.resolve_text(fields, keys)
            if raw is None:
                continue
            digits = normalize_national_id(raw) or ""
            if len(digits) != NATIONAL_ID_LENGTH:
                warnings.append(
                    f"{label} com {len(digits)} dígitos (esperado {NATIONAL_ID_LENGTH}); será descartado"
                )

        association_type = acf.resolve_text(fields, acf.ASSOCIATION_TYPE_KEYS)
        if acf.is_responsible_scenario(association_type):
            if acf.resolve_text(fields, acf.RESPONSIBLE_NAME_KEYS) is None:
                warnings.append("Associação por responsável sem nome do responsável")
            if acf.resolve_text(fields, acf.RESPONSIBLE_NATIONAL_ID_KEYS) is None:
                warnings.append("Associação por responsável sem CPF do responsável")

        result = ValidationResult(valid=not errors, errors=errors, warnings=warnings)
        logger.debug(
            "acf.validated",
            valid=result.valid,
            errors=len(errors),
            warnings=len(warnings),
        )
        return result
