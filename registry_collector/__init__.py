"""
Registry Collector - агрегатор реестра сервисов по stage'ам.

Модуль предоставляет:
- Получение документа реестра (Eureka REST API) для stage
- Нормализацию приложений: хосты/порты, consumes, поля metadata
- Кэширование результата по stage
- Web API (FastAPI) и CLI

Примеры использования:
    # CLI
    python -m registry_collector stages
    python -m registry_collector services qa --format json
    python -m registry_collector serve --port 8080

    # Python API
    from registry_collector import MicroserviceCollector, load_config

    collector = MicroserviceCollector.from_config(load_config())
    services = collector.get_all_microservices("qa")
"""

__version__ = "1.0.0"

from .config import load_config, get_config
from .collectors import MicroserviceCollector
from .core.stages import StageRegistry
from .core.cache import StageCache
from .core.domain import MicroserviceNormalizer
from .core.models import Microservice, HostInfo, Consumer
from .registry import RegistryClient
from .core.exceptions import (
    RegistryCollectorError,
    UnknownStageError,
    TransportError,
    MalformedDocumentError,
    ConfigError,
)

__all__ = [
    "__version__",
    # Config
    "load_config",
    "get_config",
    # Service
    "MicroserviceCollector",
    "StageRegistry",
    "StageCache",
    "MicroserviceNormalizer",
    "RegistryClient",
    # Models
    "Microservice",
    "HostInfo",
    "Consumer",
    # Exceptions
    "RegistryCollectorError",
    "UnknownStageError",
    "TransportError",
    "MalformedDocumentError",
    "ConfigError",
]
