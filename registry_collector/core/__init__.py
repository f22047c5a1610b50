"""
Core модули Registry Collector.

Содержит:
- exceptions: типизированные исключения
- logging: Structured Logging (JSON/Human-readable)
- config_schema: Pydantic валидация config.yaml
- models: сырые и нормализованные модели
- stages: StageRegistry (stage -> URL)
- cache: StageCache (get-or-compute по stage)
- domain: MicroserviceNormalizer
"""

from .exceptions import (
    RegistryCollectorError,
    UnknownStageError,
    TransportError,
    MalformedDocumentError,
    ConfigError,
    format_error_for_log,
    is_retryable,
)
from .logging import (
    get_logger,
    setup_logging,
    setup_logging_from_config,
    StructuredLogger,
    JSONFormatter,
    HumanFormatter,
    LogConfig,
    RotationType,
)
from .models import (
    RawRegistryDocument,
    RawApplication,
    InstanceRecord,
    PortEntry,
    HostInfo,
    Consumer,
    Microservice,
    microservices_to_dicts,
)
from .stages import StageRegistry
from .cache import StageCache, NotCached
from .domain import MicroserviceNormalizer, METADATA_FIELDS

__all__ = [
    # Exceptions
    "RegistryCollectorError",
    "UnknownStageError",
    "TransportError",
    "MalformedDocumentError",
    "ConfigError",
    "format_error_for_log",
    "is_retryable",
    # Structured Logging
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    "StructuredLogger",
    "JSONFormatter",
    "HumanFormatter",
    "LogConfig",
    "RotationType",
    # Data Models
    "RawRegistryDocument",
    "RawApplication",
    "InstanceRecord",
    "PortEntry",
    "HostInfo",
    "Consumer",
    "Microservice",
    "microservices_to_dicts",
    # Stages & Cache
    "StageRegistry",
    "StageCache",
    "NotCached",
    # Domain Layer
    "MicroserviceNormalizer",
    "METADATA_FIELDS",
]
