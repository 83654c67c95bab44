from __future__ import annotations

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from patient_sync_core.adapters.config.composition_root import setup_di_container_from_settings
from patient_sync_core.adapters.observability.metrics import render_latest
from patient_sync_core.core.application.commands.sync_commands import (
    CreatePatientLeadCommand,
    SyncPatientCommand,
)
from patient_sync_core.core.domain.events.exceptions import ConflictError
from patient_sync_core.core.utils.normalizers import PHONE_MIN_DIGITS, normalize_phone
from plugins.django_interface.models import Association

from ..serializers.sync_serializers import PatientSyncSerializer, WordPressSyncRequestSerializer

logger = structlog.get_logger(__name__)


def _command_bus():
    return setup_di_container_from_settings(settings).command_bus()


def _resolve_association(request) -> Association | None:
    """Associação ativa via header X-Tenant-ID ou ?slug=<subdomínio>."""
    tenant_id = request.headers.get("X-Tenant-ID")
    slug = request.query_params.get("slug")
    qs = Association.objects.filter(is_active=True)
    if tenant_id:
        try:
            return qs.filter(id=tenant_id).first()
        except ValidationError:  # UUID malformado
            return None
    if slug:
        return qs.filter(subdomain=slug).first()
    return None


class WordPressSyncView(APIView):
    """
    POST /api/patients/sync-wordpress/

    • wordpressData → paciente encontrado no WordPress (sincronização completa)
    • leadData      → paciente não encontrado (captura de LEAD)
    """
    permission_classes = []
    authentication_classes = []

    def post(self, request):
        association = _resolve_association(request)
        if association is None:
            return Response({"error": "Associação não encontrada"}, status=status.HTTP_400_BAD_REQUEST)

        body = WordPressSyncRequestSerializer(data=request.data)
        if not body.is_valid():
            return Response({"error": "Payload inválido"}, status=status.HTTP_400_BAD_REQUEST)
        data = body.validated_data

        whatsapp = data.get("whatsapp") or ""
        if not whatsapp:
            return Response({"error": "WhatsApp é obrigatório"}, status=status.HTTP_400_BAD_REQUEST)
        clean_whatsapp = normalize_phone(whatsapp)
        if len(clean_whatsapp) < PHONE_MIN_DIGITS:
            return Response(
                {"error": f"WhatsApp deve ter pelo menos {PHONE_MIN_DIGITS} dígitos"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        tenant_id = str(association.id)
        wordpress_data = data.get("wordpressData")
        lead_data = data.get("leadData")

        if wordpress_data:
            sync_type = "wordpress_member"
            message = "Paciente sincronizado com dados completos do WordPress"
            cmd = SyncPatientCommand(phone=clean_whatsapp, tenant_id=tenant_id, payload=wordpress_data)
        elif lead_data:
            if not lead_data.get("name", "").strip() or not lead_data.get("cpf", "").strip():
                return Response(
                    {"error": "Nome e CPF são obrigatórios para criar lead"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            sync_type = "lead_created"
            message = (
                "Lead capturado com dados básicos. "
                "Informações adicionais serão coletadas durante a conversa."
            )
            cmd = CreatePatientLeadCommand(
                phone=clean_whatsapp,
                tenant_id=tenant_id,
                name=lead_data["name"].strip(),
                national_id=lead_data["cpf"],
            )
        else:
            return Response(
                {"error": "Dados do WordPress ou dados do lead são obrigatórios"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        logger.info("sync_wordpress.request", tenant_id=tenant_id, sync_type=sync_type)
        result = _command_bus().dispatch(cmd)

        if not result.success:
            if result.error_code == ConflictError.error_code:
                return Response(
                    {"error": "WhatsApp já cadastrado nesta associação"},
                    status=status.HTTP_409_CONFLICT,
                )
            return Response(
                {"error": "Erro ao processar sincronização", "retryable": result.retryable},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(
            {
                "success": True,
                "patient": PatientSyncSerializer(result.record).data,
                "syncType": sync_type,
                "message": message,
                "syncMetadata": result.sync_metadata.model_dump(mode="json", exclude={"previous_data"}),
                "association": {
                    "id": tenant_id,
                    "name": association.name,
                    "subdomain": association.subdomain,
                },
            },
            status=status.HTTP_200_OK,
        )


class HealthCheckView(APIView):
    """
    Rota GET /api/healthz/: retorna status 200 se a API estiver viva.
    """
    permission_classes = []
    authentication_classes = []

    def get(self, request):
        return Response({"status": "ok"}, status=status.HTTP_200_OK)


class MetricsView(APIView):
    permission_classes = []
    authentication_classes = []

    def get(self, request):
        data, content_type = render_latest()
        return HttpResponse(data, content_type=content_type)
