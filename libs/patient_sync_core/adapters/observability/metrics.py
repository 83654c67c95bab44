import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)

# Registry exclusivo; coleta multiprocess apenas quando configurada
registry = CollectorRegistry()
if os.getenv("PROMETHEUS_MULTIPROC_DIR"):
    multiprocess.MultiProcessCollector(registry)

# Sincronização de pacientes
PATIENT_SYNC_COUNT = Counter(
    "patient_sync_total",
    "Execucoes de sincronizacao de pacientes",
    ["operation"],
    registry=registry,
)

PATIENT_SYNC_DISCREPANCIES = Counter(
    "patient_sync_discrepancies_total",
    "Discrepancias detectadas durante a sincronizacao",
    ["severity"],
    registry=registry,
)

PATIENT_SYNC_DURATION = Histogram(
    "patient_sync_duration_seconds",
    "Duracao da sincronizacao de pacientes",
    ["command"],
    registry=registry,
)


def render_latest() -> tuple[bytes, str]:
    return generate_latest(registry), CONTENT_TYPE_LATEST
