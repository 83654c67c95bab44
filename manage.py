#!/usr/bin/env python
import os
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
for extra in ("libs", "src"):
    sys.path.insert(0, str(BASE_DIR / extra))

from config.structlog_config import configure_logging  # noqa: E402

configure_logging()
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

def main():
    """Função principal para a execução das tasks de gerenciamento do Django."""
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Não foi possível importar Django. Verifique se está instalado e no seu PYTHONPATH."
        ) from exc

    execute_from_command_line(sys.argv)

if __name__ == '__main__':
    main()
