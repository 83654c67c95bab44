from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from patient_sync_core.core.domain.entities.patient_entity import MembershipStatus, PatientEntity

# ───────────────────────────────────────────────
# DTOs de resultado da sincronização
# ───────────────────────────────────────────────

class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SyncOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    FAILED = "failed"


class ValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class Discrepancy(BaseModel):
    field: str
    previous_value: Any = None
    new_value: Any = None
    severity: Severity


class MappedPatientFields(BaseModel):
    """Campos internos derivados do payload externo (sem valores indefinidos)."""
    name: str
    email: str | None = None
    national_id: str | None = None
    association_type: str | None = None
    responsible_party_name: str | None = None
    responsible_party_national_id: str | None = None
    membership_status: MembershipStatus = MembershipStatus.MEMBRO
    external_id: str | None = None
    acf: dict[str, Any] = Field(default_factory=dict)
    acf_fields_count: int = 0

    def patient_fields(self) -> dict[str, Any]:
        """Somente os campos persistidos no registro do paciente."""
        data = self.model_dump(exclude={"acf", "acf_fields_count"})
        data["membership_status"] = self.membership_status.value
        return data


class SyncMetadata(BaseModel):
    operation: SyncOperation
    validation_passed: bool = False
    validation_errors: list[str] = Field(default_factory=list)
    validation_warnings: list[str] = Field(default_factory=list)
    acf_fields_count: int = 0
    discrepancies: list[Discrepancy] = Field(default_factory=list)
    discrepancies_found: int = 0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    external_id: str | None = None
    previous_data: dict[str, Any] | None = None


@dataclass
class SyncResult:
    success: bool
    sync_metadata: SyncMetadata
    record: PatientEntity | None = None
    error: str | None = None
    error_code: str | None = None
    retryable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "record": self.record.to_dict() if self.record else None,
            "error": self.error,
            "error_code": self.error_code,
            "retryable": self.retryable,
            "sync_metadata": self.sync_metadata.model_dump(mode="json"),
        }
