import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Association",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("subdomain", models.SlugField(max_length=100, unique=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "associations",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Patient",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(max_length=20)),
                ("email", models.CharField(blank=True, max_length=254, null=True)),
                ("national_id", models.CharField(blank=True, max_length=11, null=True)),
                ("association_type", models.CharField(blank=True, max_length=50, null=True)),
                ("responsible_party_name", models.CharField(blank=True, max_length=200, null=True)),
                ("responsible_party_national_id", models.CharField(blank=True, max_length=11, null=True)),
                (
                    "membership_status",
                    models.CharField(
                        choices=[("LEAD", "Lead"), ("MEMBRO", "Membro")],
                        default="LEAD",
                        max_length=10,
                    ),
                ),
                ("external_id", models.CharField(blank=True, max_length=64, null=True)),
                ("active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "association",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="patients",
                        to="django_interface.association",
                    ),
                ),
            ],
            options={
                "db_table": "patients",
                "indexes": [
                    models.Index(fields=["association", "external_id"], name="patients_associa_4f1c2e_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("association", "phone"),
                        name="uniq_patient_phone_per_association",
                    ),
                ],
            },
        ),
    ]
