"""
Registry - клиент реестра сервисов.

Пример использования:
    from registry_collector.registry import RegistryClient

    client = RegistryClient(timeout=10)
    payload = client.fetch("http://eureka-qa:8761/eureka/apps")
"""

from .client import RegistryClient, DEFAULT_TIMEOUT

__all__ = [
    "RegistryClient",
    "DEFAULT_TIMEOUT",
]
