import logging
import sys

import structlog
from decouple import config
from structlog.processors import CallsiteParameter, CallsiteParameterAdder

# chaves que carregam CPF nos eventos de log / auditoria
_NATIONAL_ID_KEYS = frozenset({
    "cpf",
    "cpf_responsavel",
    "national_id",
    "responsible_party_national_id",
})

_NOISY_LOGGERS = ("django.db.backends", "django.utils.autoreload")


def _mask(value):
    if not isinstance(value, str) or len(value) < 3:  # noqa: PLR2004
        return value
    return f"***{value[-2:]}"


def _mask_nested(value):
    if isinstance(value, dict):
        return {
            k: _mask(v) if k in _NATIONAL_ID_KEYS else _mask_nested(v)
            for k, v in value.items()
        }
    if isinstance(value, list | tuple):
        return [_mask_nested(v) for v in value]
    return value


def mask_national_ids(_, __, event_dict):
    """Nunca escreve CPF completo: mascara campos (inclusive aninhados) e discrepâncias de CPF."""
    for key, value in list(event_dict.items()):
        if key in _NATIONAL_ID_KEYS:
            event_dict[key] = _mask(value)
        elif isinstance(value, dict | list | tuple):
            event_dict[key] = _mask_nested(value)
    if event_dict.get("field") in _NATIONAL_ID_KEYS:
        for key in ("previous_value", "new_value"):
            if key in event_dict:
                event_dict[key] = _mask(event_dict[key])
    return event_dict


def configure_logging(
    level: str = config("LOG_LEVEL", default="INFO"),
    json_logs: bool = config("JSON_LOGS", default=False, cast=bool),
) -> None:
    """
    Liga structlog ao logging da stdlib (uma linha por evento em stdout).
     - `json_logs` → JSONRenderer (produção / coleta de auditoria)
     - caso contrário → ConsoleRenderer colorido
    Chamar antes do setup do Django (manage.py, wsgi, asgi).
    """
    pre_chain = [
        structlog.contextvars.merge_contextvars,     # tenant_id, request_id etc.
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        mask_national_ids,
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[
            *pre_chain,
            CallsiteParameterAdder(
                parameters=[CallsiteParameter.MODULE, CallsiteParameter.LINENO]
            ),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.captureWarnings(True)
