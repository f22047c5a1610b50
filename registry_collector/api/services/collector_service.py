"""
Общий MicroserviceCollector для API.

Создаётся лениво из конфигурации процесса, один на процесс:
кэш stage'ей живёт вместе с ним.
"""

import threading
from typing import Optional

from registry_collector.collectors import MicroserviceCollector
from registry_collector.config import get_config

_collector: Optional[MicroserviceCollector] = None
_lock = threading.Lock()


def get_collector() -> MicroserviceCollector:
    """FastAPI dependency: коллектор процесса."""
    global _collector
    if _collector is None:
        with _lock:
            if _collector is None:
                _collector = MicroserviceCollector.from_config(get_config())
    return _collector


def set_collector(collector: Optional[MicroserviceCollector]) -> None:
    """Подменяет коллектор процесса. None сбрасывает (пересоздастся из конфигурации)."""
    global _collector
    with _lock:
        _collector = collector
