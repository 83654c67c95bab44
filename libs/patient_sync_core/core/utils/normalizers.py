from __future__ import annotations

import re
from typing import Any

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 11
NATIONAL_ID_LENGTH = 11

_NON_DIGITS = re.compile(r"\D+")


def only_digits(value: Any) -> str:
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def normalize_phone(raw: Any) -> str:
    """
    Telefone canônico: somente dígitos (DDD + número).
    Entrada vazia ou None devolve string vazia.
    """
    return only_digits(raw)


def normalize_national_id(raw: Any) -> str | None:
    """
    CPF canônico: somente dígitos.
    None devolve None; string sem dígitos devolve "".
    """
    if raw is None:
        return None
    return only_digits(raw)


def is_valid_phone(phone: str) -> bool:
    return PHONE_MIN_DIGITS <= len(normalize_phone(phone)) <= PHONE_MAX_DIGITS


def is_valid_national_id(national_id: str | None) -> bool:
    return bool(national_id) and len(only_digits(national_id)) == NATIONAL_ID_LENGTH
