"""
Точка входа для запуска модуля.

Позволяет запускать утилиту как:
    python -m registry_collector [команда] [опции]

Примеры:
    python -m registry_collector stages
    python -m registry_collector services qa --format json
    python -m registry_collector serve
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
