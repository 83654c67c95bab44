from __future__ import annotations

from typing import Any

import structlog

from patient_sync_core.core.application.services.sync_audit_logger import (
    SYNC_EXCEPTION,
    AuditSink,
)

_ERROR_EVENTS = frozenset({SYNC_EXCEPTION})


class StructlogAuditSink(AuditSink):
    """Uma linha estruturada por evento, no logger `patient_sync.audit`."""

    def __init__(self, logger_name: str = "patient_sync.audit") -> None:
        self._logger = structlog.get_logger(logger_name)

    def emit(self, event_type: str, payload: dict[str, Any]) -> None:
        log = self._logger.error if event_type in _ERROR_EVENTS else self._logger.warning
        log("sync.audit", event_type=event_type, **payload)
