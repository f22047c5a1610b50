"""
Коллектор микросервисов по stage.

Цепочка: stage -> URL реестра -> GET -> разбор -> нормализация -> кэш.

Политика ошибок:
    - offline_mode: пустой результат, без сети и без кэша
    - TransportError: warning в лог, пустой результат (не кэшируется)
    - нет обёрток applications/application: пустой результат (кэшируется)
    - UnknownStageError, MalformedDocumentError: пробрасываются

Пример использования:
    collector = MicroserviceCollector.from_config(load_config())

    collector.get_all_stage_names()          # {"dev", "qa", "prod"}
    services = collector.get_all_microservices("qa")
    services["BILLING"].consumes             # [Consumer("INVENTORY", "rest")]
"""

from typing import Dict, Optional, Set

from ..core.cache import StageCache, NotCached
from ..core.config_schema import AppConfig
from ..core.domain import MicroserviceNormalizer
from ..core.exceptions import TransportError, format_error_for_log, is_retryable
from ..core.logging import get_logger
from ..core.models import Microservice, RawRegistryDocument
from ..core.stages import StageRegistry
from ..registry.client import RegistryClient

logger = get_logger(__name__)


class MicroserviceCollector:
    """
    Точка входа для получения микросервисов stage.

    Attributes:
        stages: Реестр stage -> URL
        client: HTTP клиент реестра
        normalizer: Нормализатор документа
        cache: Кэш результатов по stage
        offline_mode: Не ходить в реестр (локальная разработка)
    """

    def __init__(
        self,
        stages: StageRegistry,
        client: RegistryClient,
        normalizer: Optional[MicroserviceNormalizer] = None,
        cache: Optional[StageCache] = None,
        offline_mode: bool = False,
    ):
        self.stages = stages
        self.client = client
        self.normalizer = normalizer or MicroserviceNormalizer()
        self.cache = cache if cache is not None else StageCache()
        self.offline_mode = offline_mode

    @classmethod
    def from_config(cls, app_config: AppConfig) -> "MicroserviceCollector":
        """Собирает коллектор из конфигурации."""
        return cls(
            stages=StageRegistry.from_config(app_config),
            client=RegistryClient(
                timeout=app_config.registry.timeout,
                verify_ssl=app_config.registry.verify_ssl,
            ),
            cache=StageCache(ttl=app_config.cache.ttl),
            offline_mode=app_config.development.offline_mode,
        )

    def get_all_microservices(self, stage: str) -> Dict[str, Microservice]:
        """
        Возвращает микросервисы stage по имени приложения.

        Raises:
            UnknownStageError: stage нет в конфигурации
            MalformedDocumentError: Документ реестра повреждён
        """
        if self.offline_mode:
            logger.info(
                "Dev mode: not fetching microservices from registry, returning empty map",
                stage=stage,
            )
            return {}

        # Неизвестный stage отсекается до кэша: ключи кэша только из конфигурации
        url = self.stages.resolve_url(stage)
        return self.cache.get_or_compute(stage, lambda: self._load(stage, url))

    def get_all_stage_names(self) -> Set[str]:
        """Все stage'и из конфигурации. Сеть не используется."""
        return self.stages.list_stages()

    def invalidate(self, stage: Optional[str] = None) -> None:
        """Сбрасывает кэш stage (или всех stage'ей)."""
        self.cache.invalidate(stage)
        logger.info("Cache invalidated", stage=stage or "*")

    def _load(self, stage: str, url: str) -> Dict[str, Microservice]:
        """Загружает и нормализует документ реестра (вызывается кэшем)."""
        stage_logger = logger.bind(stage=stage, url=url)
        stage_logger.info("Load services from registry")

        try:
            payload = self.client.fetch(url)
        except TransportError as e:
            stage_logger.warning(
                f"Error fetching microservices from registry, returning empty map: "
                f"{format_error_for_log(e)}",
                status_code=e.status_code,
                retryable=is_retryable(e),
            )
            # Недоступность реестра не должна закрепляться в кэше
            raise NotCached({}) from e

        document = RawRegistryDocument.from_dict(payload)
        if document.is_empty:
            stage_logger.info("Registry has no applications")
            return {}

        services = self.normalizer.normalize(document)
        stage_logger.info("Loaded microservices", count=len(services))
        return services
