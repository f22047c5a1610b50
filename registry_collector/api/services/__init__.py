"""Сервисы API."""

from .collector_service import get_collector, set_collector

__all__ = [
    "get_collector",
    "set_collector",
]
