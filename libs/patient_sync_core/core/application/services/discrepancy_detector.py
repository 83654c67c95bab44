from __future__ import annotations

from patient_sync_core.core.application.dtos.sync_dtos import (
    Discrepancy,
    MappedPatientFields,
    Severity,
)
from patient_sync_core.core.domain.entities.patient_entity import PatientEntity

# ordem fixa: o resultado é determinístico para o mesmo par de entradas
TRACKED_FIELDS: tuple[str, ...] = (
    "name",
    "email",
    "national_id",
    "association_type",
    "responsible_party_name",
    "responsible_party_national_id",
)

FIELD_SEVERITY: dict[str, Severity] = {
    "name": Severity.HIGH,
    "national_id": Severity.HIGH,
    "association_type": Severity.HIGH,
    "responsible_party_name": Severity.MEDIUM,
    "responsible_party_national_id": Severity.MEDIUM,
    "email": Severity.MEDIUM,
}


def classify(field: str) -> Severity:
    return FIELD_SEVERITY.get(field, Severity.LOW)


class DiscrepancyDetector:
    """
    Compara o registro armazenado com os campos recém-mapeados.
    Valor novo nulo nunca gera discrepância (ausência de dado não é mudança).
    """

    def detect(self, existing: PatientEntity, mapped: MappedPatientFields) -> list[Discrepancy]:
        found: list[Discrepancy] = []
        for field in TRACKED_FIELDS:
            new_value = getattr(mapped, field, None)
            if new_value is None:
                continue
            previous_value = getattr(existing, field, None)
            if new_value != previous_value:
                found.append(
                    Discrepancy(
                        field=field,
                        previous_value=previous_value,
                        new_value=new_value,
                        severity=classify(field),
                    )
                )
        return found
