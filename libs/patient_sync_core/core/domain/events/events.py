from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime


# ───────────────────────────────────────────────
# Event Base e Domain Events
# ───────────────────────────────────────────────
@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

# ╭──────────────────────────────────────────────╮
# │ 1. Pacientes                                │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class PatientSyncedEvent(DomainEvent):
    patient_id: str
    tenant_id: str
    external_id: str | None
    operation: str
    discrepancies_found: int

@dataclass(frozen=True)
class PatientLeadCreatedEvent(DomainEvent):
    patient_id: str
    tenant_id: str
    name: str
