"""
Chaves conhecidas do bloco ACF do WordPress.

O bloco não tem schema fixo e os nomes variam entre instalações; cada campo
lógico é resolvido por uma lista ordenada de aliases.
"""
from __future__ import annotations

from typing import Any

PHONE_KEYS = ("telefone",)
FULL_NAME_KEYS = ("nome_completo",)
NATIONAL_ID_KEYS = ("cpf",)
ASSOCIATION_TYPE_KEYS = ("tipo_associacao",)
RESPONSIBLE_NAME_KEYS = (
    "nome_responsavel",
    "nome_completo_responc",
    "nome_completo_responsavel",
)
RESPONSIBLE_NATIONAL_ID_KEYS = ("cpf_responsavel",)

RESPONSIBLE_ASSOCIATION_TYPES = frozenset({"assoc_respon", "responsavel"})


def resolve_alias(fields: dict[str, Any], aliases: tuple[str, ...]) -> Any:
    """Primeiro valor não vazio entre os aliases, na ordem de prioridade."""
    for key in aliases:
        value = fields.get(key)
        if isinstance(value, str):
            value = value.strip()
        if value not in (None, ""):
            return value
    return None


def resolve_text(fields: dict[str, Any], aliases: tuple[str, ...]) -> str | None:
    value = resolve_alias(fields, aliases)
    if value is None or isinstance(value, dict | list):
        return None
    return str(value)


def is_responsible_scenario(association_type: str | None) -> bool:
    return association_type in RESPONSIBLE_ASSOCIATION_TYPES
