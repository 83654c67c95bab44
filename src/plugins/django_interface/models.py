"""
Dominio → ORM do cadastro de pacientes por associação.

⚑ Toda consulta de paciente é escopada pela associação (tenant)
⚑ Unicidade (associação, telefone) garantida no banco: é ela que resolve
  a corrida create/create da sincronização
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import Index, UniqueConstraint


# ╭──────────────────────────────────────────────╮
# │ 1. Associações (tenants)                    │
# ╰──────────────────────────────────────────────╯
class Association(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    subdomain = models.SlugField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "associations"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


# ╭──────────────────────────────────────────────╮
# │ 2. Pacientes                                │
# ╰──────────────────────────────────────────────╯
class Patient(models.Model):
    class MembershipStatus(models.TextChoices):
        LEAD = "LEAD", "Lead"
        MEMBRO = "MEMBRO", "Membro"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    association = models.ForeignKey(
        Association, on_delete=models.CASCADE, related_name="patients"
    )
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20)
    email = models.CharField(max_length=254, blank=True, null=True)
    national_id = models.CharField(max_length=11, blank=True, null=True)
    association_type = models.CharField(max_length=50, blank=True, null=True)
    responsible_party_name = models.CharField(max_length=200, blank=True, null=True)
    responsible_party_national_id = models.CharField(max_length=11, blank=True, null=True)
    membership_status = models.CharField(
        max_length=10,
        choices=MembershipStatus.choices,
        default=MembershipStatus.LEAD,
    )
    external_id = models.CharField(max_length=64, blank=True, null=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "patients"
        constraints = [
            UniqueConstraint(
                fields=["association", "phone"],
                name="uniq_patient_phone_per_association",
            ),
        ]
        indexes = [
            Index(fields=["association", "external_id"], name="patients_associa_4f1c2e_idx"),
        ]

    def __str__(self) -> str:
        return self.name
