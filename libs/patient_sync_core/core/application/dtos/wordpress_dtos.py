from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ───────────────────────────────────────────────
# DTOs para o payload do WordPress (usuário + ACF)
# ───────────────────────────────────────────────

class WordPressUserDTO(BaseModel):
    """
    Usuário retornado pela API do WordPress.
    O bloco `acf` não tem schema fixo: deveria ser um objeto, mas pode
    chegar como lista (ex.: `[]`) ou ausente.
    """
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    name: str | None = None
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    user_email: str | None = None
    acf: dict[str, Any] | list[Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def custom_fields_alias(cls, data: Any) -> Any:
        # alguns endpoints expõem o bloco como `customFields`
        if isinstance(data, dict) and "acf" not in data and "customFields" in data:
            data = {**data, "acf": data["customFields"]}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator(
        "name", "display_name", "first_name", "last_name", "email", "user_email",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("acf", mode="before")
    @classmethod
    def acf_shape(cls, v: Any) -> dict[str, Any] | list[Any] | None:
        # formatos inesperados (string, número) são tratados como lista vazia
        if v is None or isinstance(v, dict | list):
            return v
        return []

    @property
    def has_acf_object(self) -> bool:
        return isinstance(self.acf, dict)

    @property
    def acf_fields(self) -> dict[str, Any]:
        return self.acf if isinstance(self.acf, dict) else {}
