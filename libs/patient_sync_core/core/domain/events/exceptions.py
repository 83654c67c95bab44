class PatientSyncError(Exception):
    """Classe base para as falhas de domínio da sincronização de pacientes."""
    error_code = "sync_error"
    retryable = False


class ConflictError(PatientSyncError):
    """
    Violação da unicidade (associação, telefone) na criação.
    Ocorre quando outra chamada concorrente cadastrou o mesmo telefone antes.
    Não é retentada automaticamente.
    """
    error_code = "conflict"

    def __init__(self, tenant_id: str, phone: str) -> None:
        super().__init__("Telefone já cadastrado para esta associação")
        self.tenant_id = tenant_id
        self.phone = phone


class NotFoundOnUpdate(PatientSyncError):
    """
    O registro encontrado no lookup desapareceu antes da escrita.
    Pode ser retentado pelo chamador.
    """
    error_code = "not_found_on_update"
    retryable = True

    def __init__(self, tenant_id: str, patient_id: str) -> None:
        super().__init__(f"Paciente {patient_id} não encontrado para atualização")
        self.tenant_id = tenant_id
        self.patient_id = patient_id


class SyncException(PatientSyncError):
    """Falha inesperada (storage indisponível, timeout, payload que quebra o mapper)."""
    error_code = "sync_exception"


class MappingError(Exception):
    """Erro no mapeamento payload ➜ campos internos."""
