from rest_framework import serializers


class LeadDataSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True, required=False, default="")
    cpf = serializers.CharField(allow_blank=True, required=False, default="")


class WordPressSyncRequestSerializer(serializers.Serializer):
    whatsapp = serializers.CharField(allow_blank=True, required=False, default="")
    wordpressData = serializers.DictField(required=False, allow_null=True)
    leadData = LeadDataSerializer(required=False, allow_null=True)


class PatientSyncSerializer(serializers.Serializer):
    """Representação do PatientEntity devolvida pela rota de sincronização."""
    id = serializers.CharField()
    name = serializers.CharField()
    whatsapp = serializers.CharField(source="phone")
    email = serializers.CharField(allow_null=True)
    cpf = serializers.CharField(source="national_id", allow_null=True)
    tipo_associacao = serializers.CharField(source="association_type", allow_null=True)
    nome_responsavel = serializers.CharField(source="responsible_party_name", allow_null=True)
    cpf_responsavel = serializers.CharField(source="responsible_party_national_id", allow_null=True)
    status = serializers.CharField(source="membership_status")
    wordpress_id = serializers.CharField(source="external_id", allow_null=True)
    isActive = serializers.BooleanField(source="active")
