"""
Reconciliação de pacientes (PatientSyncService) contra repositório em memória.

• cenários concretos: criação, responsável, discrepância, ACF malformado, corrida
• garantias: idempotência, isolamento por associação, nunca propaga exceção
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from django.test import SimpleTestCase

from patient_sync_core.core.application.dtos.sync_dtos import Severity, SyncOperation
from patient_sync_core.core.application.services.patient_sync_service import (
    GENERIC_SYNC_ERROR,
    PatientSyncService,
)
from patient_sync_core.core.application.services.sync_audit_logger import (
    ACF_VALIDATION_FAILED,
    DATA_DISCREPANCY_DETECTED,
    RECORD_VANISHED,
    SYNC_CONFLICT,
    SYNC_EXCEPTION,
    SyncAuditLogger,
)
from patient_sync_core.core.domain.entities.patient_entity import MembershipStatus
from patient_sync_core.core.domain.mappers.wordpress_payload_mapper import WordPressPayloadMapper
from tests.helpers.audit_sink_spy import AuditSinkSpy
from tests.helpers.in_memory_patient_repo import InMemoryPatientRepo
from tests.helpers.payloads import TENANT_A, TENANT_B, member_payload


def _maria(**name_override) -> dict:
    acf = {
        "telefone": "11999999999",
        "nome_completo": "Maria Silva",
        "cpf": "98765432100",
        "tipo_associacao": "assoc_paciente",
    }
    acf.update(name_override)
    return {"id": 456, "name": acf["nome_completo"], "customFields": acf}


class PatientSyncServiceTests(SimpleTestCase):
    def setUp(self) -> None:
        self.repo = InMemoryPatientRepo()
        self.sink = AuditSinkSpy()
        self.service = PatientSyncService(self.repo, SyncAuditLogger(self.sink))

    # ────────────────────────── cenários ──────────────────────────
    def test_creates_direct_patient(self) -> None:
        result = self.service.reconcile("11999999999", _maria(), TENANT_A)

        self.assertTrue(result.success)
        meta = result.sync_metadata
        self.assertEqual(meta.operation, SyncOperation.CREATE)
        self.assertTrue(meta.validation_passed)
        self.assertEqual(meta.acf_fields_count, 4)

        record = result.record
        self.assertEqual(record.name, "Maria Silva")
        self.assertEqual(record.phone, "11999999999")
        self.assertEqual(record.national_id, "98765432100")
        self.assertEqual(record.association_type, "assoc_paciente")
        self.assertIsNone(record.responsible_party_name)
        self.assertIsNone(record.responsible_party_national_id)
        self.assertEqual(record.membership_status, MembershipStatus.MEMBRO.value)
        self.assertEqual(record.external_id, "456")
        self.assertEqual(record.tenant_id, TENANT_A)

    def test_creates_responsible_party_patient(self) -> None:
        payload = {
            "id": 789,
            "customFields": {
                "nome_completo": "Lucas Santos",
                "tipo_associacao": "assoc_respon",
                "nome_responsavel": "Carolina Santos",
                "cpf_responsavel": "22222222222",
            },
        }
        result = self.service.reconcile("11777777777", payload, TENANT_A)

        self.assertTrue(result.success)
        self.assertEqual(result.record.name, "Lucas Santos")
        self.assertEqual(result.record.responsible_party_name, "Carolina Santos")
        self.assertEqual(result.record.responsible_party_national_id, "22222222222")
        # telefone ausente no ACF: erro de validação, sincronização segue
        self.assertFalse(result.sync_metadata.validation_passed)
        self.assertEqual(len(self.sink.of_type(ACF_VALIDATION_FAILED)), 1)

    def test_name_change_is_reported_as_high_discrepancy(self) -> None:
        self.service.reconcile("11999999999", _maria(), TENANT_A)
        result = self.service.reconcile(
            "11999999999", _maria(nome_completo="Maria S. Silva"), TENANT_A
        )

        self.assertTrue(result.success)
        meta = result.sync_metadata
        self.assertEqual(meta.operation, SyncOperation.UPDATE)
        self.assertEqual(meta.discrepancies_found, 1)
        self.assertEqual(meta.discrepancies[0].field, "name")
        self.assertEqual(meta.discrepancies[0].severity, Severity.HIGH)
        self.assertEqual(meta.previous_data["name"], "Maria Silva")
        self.assertEqual(result.record.name, "Maria S. Silva")

        logged = self.sink.of_type(DATA_DISCREPANCY_DETECTED)
        self.assertEqual(len(logged), 1)
        self.assertEqual(logged[0]["field"], "name")
        self.assertEqual(logged[0]["previous_value"], "Maria Silva")

    def test_malformed_custom_fields_fail_soft(self) -> None:
        result = self.service.reconcile("11988887777", {"id": 999, "customFields": []}, TENANT_A)

        self.assertTrue(result.success)
        meta = result.sync_metadata
        self.assertFalse(meta.validation_passed)
        self.assertEqual(meta.acf_fields_count, 0)
        self.assertEqual(meta.operation, SyncOperation.CREATE)
        self.assertIn("999", result.record.name)
        self.assertEqual(len(self.sink.of_type(ACF_VALIDATION_FAILED)), 1)

    def test_concurrent_creates_yield_one_conflict(self) -> None:
        self.repo.lookup_barrier = threading.Barrier(2)

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(self.service.reconcile, "11999999999", _maria(), TENANT_A)
                for _ in range(2)
            ]
            results = [f.result(timeout=10) for f in futures]

        ok = [r for r in results if r.success]
        failed = [r for r in results if not r.success]
        self.assertEqual(len(ok), 1)
        self.assertEqual(ok[0].sync_metadata.operation, SyncOperation.CREATE)
        self.assertEqual(len(failed), 1)
        self.assertEqual(failed[0].error_code, "conflict")
        self.assertFalse(failed[0].retryable)
        self.assertEqual(failed[0].sync_metadata.operation, SyncOperation.FAILED)
        self.assertEqual(len(self.repo.all()), 1)
        self.assertEqual(len(self.sink.of_type(SYNC_CONFLICT)), 1)

    # ────────────────────────── propriedades ──────────────────────────
    def test_identical_resync_is_idempotent(self) -> None:
        first = self.service.reconcile("(11) 99999-9999", _maria(), TENANT_A)
        second = self.service.reconcile("11999999999", _maria(), TENANT_A)

        self.assertEqual(first.sync_metadata.operation, SyncOperation.CREATE)
        self.assertEqual(second.sync_metadata.operation, SyncOperation.UPDATE)
        self.assertEqual(second.sync_metadata.discrepancies, [])
        self.assertEqual(second.record.id, first.record.id)
        self.assertEqual(self.sink.of_type(DATA_DISCREPANCY_DETECTED), [])

    def test_name_and_association_type_change(self) -> None:
        self.service.reconcile("11999999999", _maria(), TENANT_A)
        payload = _maria(nome_completo="Maria S. Silva", tipo_associacao="assoc_outro")
        result = self.service.reconcile("11999999999", payload, TENANT_A)

        found = result.sync_metadata.discrepancies
        self.assertEqual([d.field for d in found], ["name", "association_type"])
        self.assertTrue(all(d.severity == Severity.HIGH for d in found))
        self.assertEqual(len(self.sink.of_type(DATA_DISCREPANCY_DETECTED)), 2)

    def test_invalid_cpf_is_stored_as_null(self) -> None:
        result = self.service.reconcile("11999999999", _maria(cpf="123"), TENANT_A)

        self.assertTrue(result.success)
        self.assertIsNone(result.record.national_id)
        self.assertTrue(result.sync_metadata.validation_passed)
        self.assertTrue(any("cpf" in w for w in result.sync_metadata.validation_warnings))

    def test_tenants_are_isolated(self) -> None:
        a = self.service.reconcile("11999999999", _maria(), TENANT_A)
        b = self.service.reconcile("11999999999", _maria(), TENANT_B)

        self.assertEqual(b.sync_metadata.operation, SyncOperation.CREATE)
        self.assertNotEqual(a.record.id, b.record.id)
        self.assertEqual(len(self.repo.all()), 2)

    def test_lead_is_promoted_and_reactivated(self) -> None:
        lead = self.service.create_lead("11999999999", "Maria", None, TENANT_A)
        self.repo.update(TENANT_A, lead.record.id, {"active": False})

        result = self.service.reconcile("11999999999", _maria(), TENANT_A)

        self.assertEqual(result.sync_metadata.operation, SyncOperation.UPDATE)
        self.assertEqual(result.record.membership_status, MembershipStatus.MEMBRO.value)
        self.assertTrue(result.record.active)
        self.assertEqual(result.record.external_id, "456")

    def test_null_mapped_fields_do_not_clear_stored_values(self) -> None:
        self.service.reconcile("11999999999", _maria(), TENANT_A)
        result = self.service.reconcile("11999999999", _maria(cpf=None), TENANT_A)

        self.assertEqual(result.record.national_id, "98765432100")
        self.assertEqual(result.sync_metadata.discrepancies, [])

    def test_switch_to_direct_patient_clears_responsible_party(self) -> None:
        responsible = {
            "id": 789,
            "customFields": {
                "nome_completo": "Lucas Santos",
                "tipo_associacao": "assoc_respon",
                "nome_responsavel": "Carolina Santos",
                "cpf_responsavel": "22222222222",
            },
        }
        self.service.reconcile("11777777777", responsible, TENANT_A)

        direct = {
            "id": 789,
            "customFields": {"nome_completo": "Lucas Santos", "tipo_associacao": "assoc_paciente"},
        }
        result = self.service.reconcile("11777777777", direct, TENANT_A)

        self.assertTrue(result.success)
        self.assertEqual(result.record.association_type, "assoc_paciente")
        self.assertIsNone(result.record.responsible_party_name)
        self.assertIsNone(result.record.responsible_party_national_id)
        stored = self.repo.all()[0]
        self.assertIsNone(stored.responsible_party_name)
        self.assertIsNone(stored.responsible_party_national_id)

    def test_missing_association_type_keeps_responsible_party(self) -> None:
        responsible = {
            "id": 789,
            "customFields": {
                "nome_completo": "Lucas Santos",
                "tipo_associacao": "assoc_respon",
                "nome_responsavel": "Carolina Santos",
                "cpf_responsavel": "22222222222",
            },
        }
        self.service.reconcile("11777777777", responsible, TENANT_A)

        result = self.service.reconcile(
            "11777777777", {"id": 789, "customFields": {"nome_completo": "Lucas Santos"}}, TENANT_A
        )

        self.assertEqual(result.record.association_type, "assoc_respon")
        self.assertEqual(result.record.responsible_party_name, "Carolina Santos")

    # ────────────────────────── falhas ──────────────────────────
    def test_storage_failure_becomes_sync_exception(self) -> None:
        self.repo.fail_with = TimeoutError("database timeout")

        result = self.service.reconcile("11999999999", _maria(), TENANT_A)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "sync_exception")
        self.assertTrue(result.error.startswith(GENERIC_SYNC_ERROR))
        self.assertIsNone(result.record)
        self.assertEqual(result.sync_metadata.operation, SyncOperation.FAILED)

        logged = self.sink.of_type(SYNC_EXCEPTION)
        self.assertEqual(len(logged), 1)
        self.assertEqual(logged[0]["tenant_id"], TENANT_A)
        self.assertEqual(logged[0]["phone"], "11999999999")
        self.assertEqual(logged[0]["error_type"], "TimeoutError")
        self.assertIn("database timeout", logged[0]["stack"])
        self.assertEqual(logged[0]["payload"]["id"], 456)

    def test_vanished_record_is_retryable(self) -> None:
        self.service.reconcile("11999999999", _maria(), TENANT_A)
        self.repo.vanish_before_update = True

        result = self.service.reconcile("11999999999", _maria(), TENANT_A)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "not_found_on_update")
        self.assertTrue(result.retryable)
        self.assertEqual(len(self.sink.of_type(RECORD_VANISHED)), 1)

    def test_non_dict_payload_never_raises(self) -> None:
        result = self.service.reconcile("11999999999", "not-a-payload", TENANT_A)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "sync_exception")
        self.assertEqual(self.repo.creates, 0)

    def test_missing_tenant_is_rejected(self) -> None:
        result = self.service.reconcile("11999999999", _maria(), "")

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "sync_exception")
        self.assertEqual(self.repo.all(), [])

    def test_broken_audit_sink_does_not_fail_sync(self) -> None:
        service = PatientSyncService(self.repo, SyncAuditLogger(AuditSinkSpy(broken=True)))

        result = service.reconcile("11988887777", {"id": 999, "customFields": []}, TENANT_A)

        self.assertTrue(result.success)
        self.assertEqual(result.sync_metadata.operation, SyncOperation.CREATE)

    def test_mapper_crash_is_absorbed(self) -> None:
        class ExplodingMapper(WordPressPayloadMapper):
            def _resolve_name(self, dto, fields):
                raise KeyError("nome_completo")

        service = PatientSyncService(
            self.repo, SyncAuditLogger(self.sink), mapper=ExplodingMapper()
        )
        result = service.reconcile("11999999999", _maria(), TENANT_A)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "sync_exception")
        self.assertEqual(len(self.sink.of_type(SYNC_EXCEPTION)), 1)
        self.assertEqual(self.sink.of_type(SYNC_EXCEPTION)[0]["error_type"], "MappingError")


class CreateLeadTests(SimpleTestCase):
    def setUp(self) -> None:
        self.repo = InMemoryPatientRepo()
        self.sink = AuditSinkSpy()
        self.service = PatientSyncService(self.repo, SyncAuditLogger(self.sink))

    def test_creates_lead(self) -> None:
        result = self.service.create_lead("(11) 98888-7777", " Ana Souza ", "123.456.789-01", TENANT_A)

        self.assertTrue(result.success)
        self.assertEqual(result.record.membership_status, MembershipStatus.LEAD.value)
        self.assertEqual(result.record.name, "Ana Souza")
        self.assertEqual(result.record.phone, "11988887777")
        self.assertEqual(result.record.national_id, "12345678901")
        self.assertIsNone(result.record.external_id)
        self.assertEqual(result.sync_metadata.operation, SyncOperation.CREATE)

    def test_invalid_cpf_is_dropped_with_warning(self) -> None:
        result = self.service.create_lead("11988887777", "Ana", "123", TENANT_A)

        self.assertTrue(result.success)
        self.assertIsNone(result.record.national_id)
        self.assertEqual(len(result.sync_metadata.validation_warnings), 1)

    def test_blank_name_fails(self) -> None:
        result = self.service.create_lead("11988887777", "  ", None, TENANT_A)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "sync_exception")
        self.assertEqual(self.repo.all(), [])

    def test_existing_member_is_never_demoted(self) -> None:
        self.service.reconcile("11988887777", member_payload(), TENANT_A)

        result = self.service.create_lead("11988887777", "Maria", None, TENANT_A)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "conflict")
        stored = self.repo.all()
        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0].membership_status, MembershipStatus.MEMBRO.value)
