from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

# ───────────────────────────────────────────────
# Tipos de evento de auditoria
# ───────────────────────────────────────────────
ACF_VALIDATION_FAILED = "ACF_VALIDATION_FAILED"
DATA_DISCREPANCY_DETECTED = "DATA_DISCREPANCY_DETECTED"
SYNC_CONFLICT = "SYNC_CONFLICT"
RECORD_VANISHED = "RECORD_VANISHED"
SYNC_EXCEPTION = "SYNC_EXCEPTION"


class AuditSink(ABC):
    """Destino dos eventos de auditoria (fire-and-forget)."""

    @abstractmethod
    def emit(self, event_type: str, payload: dict[str, Any]) -> None:
        ...


class SyncAuditLogger:
    """
    Emite eventos estruturados de auditoria da sincronização.
    Falhas do sink são registradas e engolidas: auditoria nunca derruba
    a sincronização.
    """

    def __init__(self, sink: AuditSink) -> None:
        self._sink = sink

    def log(self, event_type: str, details: dict[str, Any]) -> None:
        try:
            self._sink.emit(event_type, details)
        except Exception as exc:
            logger.error(
                "audit.sink_error",
                event_type=event_type,
                sink=type(self._sink).__name__,
                error=str(exc),
                exc_info=True,
            )
