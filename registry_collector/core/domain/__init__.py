"""
Domain Layer для Registry Collector.

Бизнес-логика отделена от получения данных (registry client).
Клиент только забирает сырой JSON, Domain его нормализует.

Normalizers:
- MicroserviceNormalizer: хосты/порты, consumes, разрешённые поля metadata

Использование:
    from registry_collector.core.domain import MicroserviceNormalizer

    normalizer = MicroserviceNormalizer()
    services = normalizer.normalize_payload(raw_json)  # Dict[str, Microservice]
"""

from .microservice import (
    MicroserviceNormalizer,
    METADATA_FIELDS,
    parse_consumers,
    split_entries,
)

__all__ = [
    "MicroserviceNormalizer",
    "METADATA_FIELDS",
    "parse_consumers",
    "split_entries",
]
