"""Rota POST /api/patients/sync-wordpress/ (WordPress ➜ cadastro local)."""

from unittest.mock import patch

from django.urls import reverse
from rest_framework.test import APIClient, APITestCase

from patient_sync_core.adapters.repositories.patient_repo_impl import PatientRepoImpl
from plugins.django_interface.models import Association, Patient
from tests.helpers.payloads import member_payload


class WordPressSyncViewTests(APITestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.url = reverse("patients-sync-wordpress")
        self.assoc = Association.objects.create(name="Associação Verde", subdomain="verde")

    def _post(self, body: dict, **headers):
        headers.setdefault("HTTP_X_TENANT_ID", str(self.assoc.id))
        return self.client.post(self.url, body, format="json", **headers)

    def test_sync_member(self) -> None:
        resp = self._post({"whatsapp": "(11) 99999-8888", "wordpressData": member_payload()})

        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["syncType"], "wordpress_member")
        self.assertEqual(data["patient"]["whatsapp"], "11999998888")
        self.assertEqual(data["patient"]["cpf"], "12345678901")
        self.assertEqual(data["patient"]["status"], "MEMBRO")
        self.assertEqual(data["patient"]["wordpress_id"], "42")
        self.assertEqual(data["syncMetadata"]["operation"], "create")
        self.assertNotIn("previous_data", data["syncMetadata"])
        self.assertEqual(data["association"]["subdomain"], "verde")

    def test_tenant_by_slug(self) -> None:
        resp = self.client.post(
            f"{self.url}?slug=verde",
            {"whatsapp": "11999998888", "wordpressData": member_payload()},
            format="json",
        )

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(Patient.objects.filter(association=self.assoc).exists())

    def test_lead_capture(self) -> None:
        resp = self._post({"whatsapp": "11988887777", "leadData": {"name": "Ana", "cpf": "12345678901"}})

        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["syncType"], "lead_created")
        self.assertEqual(data["patient"]["status"], "LEAD")

    def test_lead_for_existing_phone_conflicts(self) -> None:
        self._post({"whatsapp": "11999998888", "wordpressData": member_payload()})

        resp = self._post({"whatsapp": "11999998888", "leadData": {"name": "Ana", "cpf": "12345678901"}})

        self.assertEqual(resp.status_code, 409)
        self.assertEqual(Patient.objects.get(phone="11999998888").membership_status, "MEMBRO")

    def test_unknown_association(self) -> None:
        resp = self._post(
            {"whatsapp": "11999998888", "wordpressData": member_payload()},
            HTTP_X_TENANT_ID="nao-e-uuid",
        )
        self.assertEqual(resp.status_code, 400)

    def test_inactive_association(self) -> None:
        self.assoc.is_active = False
        self.assoc.save()

        resp = self._post({"whatsapp": "11999998888", "wordpressData": member_payload()})
        self.assertEqual(resp.status_code, 400)

    def test_request_validation(self) -> None:
        cases = [
            {"wordpressData": member_payload()},
            {"whatsapp": "9999", "wordpressData": member_payload()},
            {"whatsapp": "11999998888"},
            {"whatsapp": "11999998888", "leadData": {"name": "Ana"}},
        ]
        for body in cases:
            with self.subTest(body=body):
                self.assertEqual(self._post(body).status_code, 400)
        self.assertEqual(Patient.objects.count(), 0)

    def test_storage_failure_returns_generic_error(self) -> None:
        with patch.object(PatientRepoImpl, "find_by_phone", side_effect=ConnectionError("db down")):
            resp = self._post({"whatsapp": "11999998888", "wordpressData": member_payload()})

        self.assertEqual(resp.status_code, 500)
        body = resp.json()
        self.assertNotIn("db down", body["error"])
        self.assertFalse(body["retryable"])


class OpsEndpointsTests(APITestCase):
    def test_healthz(self) -> None:
        resp = self.client.get(reverse("healthz"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_metrics(self) -> None:
        resp = self.client.get(reverse("metrics"))
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b"patient_sync_total", resp.content)
