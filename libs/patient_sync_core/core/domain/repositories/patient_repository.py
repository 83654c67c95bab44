from abc import ABC, abstractmethod
from typing import Any

from patient_sync_core.core.domain.entities.patient_entity import PatientEntity


class PatientRepository(ABC):
    """
    Porta de persistência de pacientes.
    Toda leitura e escrita é escopada pela associação (tenant); a
    implementação deve garantir índice único em (tenant_id, phone).
    """

    @abstractmethod
    def find_by_phone(self, tenant_id: str, phone: str) -> PatientEntity | None:
        """Retorna o paciente da associação com o telefone normalizado."""
        ...

    @abstractmethod
    def create(self, patient: PatientEntity) -> PatientEntity:
        """
        Insere um novo paciente.
        Levanta ConflictError se o telefone já existir na associação.
        """
        ...

    @abstractmethod
    def update(self, tenant_id: str, patient_id: str, fields: dict[str, Any]) -> PatientEntity:
        """
        Atualiza campos de um paciente existente. Nunca cria registro novo.
        Levanta NotFoundOnUpdate se o registro não existir mais.
        """
        ...
