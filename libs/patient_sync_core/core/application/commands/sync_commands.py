from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from patient_sync_core.core.application.cqrs import CommandDTO


@dataclass(frozen=True)
class SyncPatientCommand(CommandDTO):
    phone: str
    tenant_id: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CreatePatientLeadCommand(CommandDTO):
    phone: str
    tenant_id: str
    name: str
    national_id: str | None = None
