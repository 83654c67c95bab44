from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from patient_sync_core.core.domain.entities._base import EntityMixin


class MembershipStatus(str, Enum):
    LEAD = "LEAD"
    MEMBRO = "MEMBRO"


@dataclass(slots=True)
class PatientEntity(EntityMixin):
    id: str
    tenant_id: str
    name: str
    phone: str
    email: str | None = None
    national_id: str | None = None
    association_type: str | None = None
    responsible_party_name: str | None = None
    responsible_party_national_id: str | None = None
    membership_status: str = MembershipStatus.LEAD.value
    external_id: str | None = None
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "national_id": self.national_id,
            "association_type": self.association_type,
            "responsible_party_name": self.responsible_party_name,
            "responsible_party_national_id": self.responsible_party_national_id,
            "membership_status": self.membership_status,
            "external_id": self.external_id,
            "active": self.active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
