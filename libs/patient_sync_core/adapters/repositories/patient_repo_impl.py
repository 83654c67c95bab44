from __future__ import annotations

from typing import Any

import structlog
from django.db import IntegrityError, transaction

from patient_sync_core.core.domain.entities.patient_entity import PatientEntity
from patient_sync_core.core.domain.events.exceptions import ConflictError, NotFoundOnUpdate
from patient_sync_core.core.domain.repositories.patient_repository import PatientRepository
from plugins.django_interface.models import Patient as PatientModel

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = (
    "name",
    "email",
    "national_id",
    "association_type",
    "responsible_party_name",
    "responsible_party_national_id",
    "membership_status",
    "external_id",
    "active",
)


def _to_entity(model: PatientModel) -> PatientEntity:
    data = {f.attname: getattr(model, f.attname) for f in PatientModel._meta.concrete_fields}
    data.update(id=str(model.id), tenant_id=str(model.association_id))
    return PatientEntity.from_dict(data)


class PatientRepoImpl(PatientRepository):
    """
    Implementação Django do repositório de pacientes.

    • lookup        → (association_id, phone); nunca sem associação
    • create        → IntegrityError da UK (associação, telefone) vira ConflictError
    • update        → somente campos mutáveis; registro sumido vira NotFoundOnUpdate
    • last-writer-wins entre updates concorrentes (sem token de versão)
    """

    # ────────────────────────── consultas ──────────────────────────
    def find_by_phone(self, tenant_id: str, phone: str) -> PatientEntity | None:
        model = PatientModel.objects.filter(association_id=tenant_id, phone=phone).first()
        return _to_entity(model) if model else None

    # ─────────────────────────── create ────────────────────────────
    def create(self, patient: PatientEntity) -> PatientEntity:
        try:
            with transaction.atomic():
                model = PatientModel.objects.create(
                    id=patient.id,
                    association_id=patient.tenant_id,
                    name=patient.name,
                    phone=patient.phone,
                    email=patient.email,
                    national_id=patient.national_id,
                    association_type=patient.association_type,
                    responsible_party_name=patient.responsible_party_name,
                    responsible_party_national_id=patient.responsible_party_national_id,
                    membership_status=patient.membership_status,
                    external_id=patient.external_id,
                    active=patient.active,
                )
        except IntegrityError as exc:
            # só a UK de telefone é conflito; FK inválida etc. seguem como erro
            if PatientModel.objects.filter(
                association_id=patient.tenant_id, phone=patient.phone
            ).exists():
                logger.warning(
                    "patient.create_conflict",
                    tenant_id=patient.tenant_id,
                    phone=patient.phone,
                )
                raise ConflictError(patient.tenant_id, patient.phone) from exc
            raise
        return _to_entity(model)

    # ─────────────────────────── update ────────────────────────────
    def update(self, tenant_id: str, patient_id: str, fields: dict[str, Any]) -> PatientEntity:
        with transaction.atomic():
            model = (
                PatientModel.objects.select_for_update()
                .filter(association_id=tenant_id, id=patient_id)
                .first()
            )
            if model is None:
                raise NotFoundOnUpdate(tenant_id, patient_id)

            changed: list[str] = []
            for field in UPDATABLE_FIELDS:
                if field not in fields:
                    continue
                new_val = fields[field]
                if getattr(model, field) != new_val:
                    setattr(model, field, new_val)
                    changed.append(field)

            if changed:
                model.save(update_fields=[*changed, "updated_at"])

        return _to_entity(model)
