"""
Коллекторы данных Registry Collector.

- MicroserviceCollector: микросервисы stage из реестра (с кэшем)
"""

from .microservices import MicroserviceCollector

__all__ = [
    "MicroserviceCollector",
]
