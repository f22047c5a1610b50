"""
Реестр stage'ей: имя stage -> URL реестра сервисов.

Загружается один раз из конфигурации и дальше не меняется.
"""

from types import MappingProxyType
from typing import Mapping, Set

from .config_schema import AppConfig
from .exceptions import UnknownStageError


class StageRegistry:
    """
    Статический маппинг stage -> URL реестра.

    Example:
        stages = StageRegistry({"dev": "http://eureka-dev/apps"})
        stages.resolve_url("dev")   # "http://eureka-dev/apps"
        stages.resolve_url("prod")  # UnknownStageError
    """

    def __init__(self, urls: Mapping[str, str]):
        self._urls = MappingProxyType(dict(urls))

    @classmethod
    def from_config(cls, app_config: AppConfig) -> "StageRegistry":
        """Создаёт реестр из секции registry конфигурации."""
        return cls(app_config.registry.urls)

    def resolve_url(self, stage: str) -> str:
        """
        Возвращает URL реестра для stage.

        Raises:
            UnknownStageError: stage нет в конфигурации
        """
        try:
            return self._urls[stage]
        except KeyError:
            raise UnknownStageError(stage, known_stages=self._urls.keys()) from None

    def list_stages(self) -> Set[str]:
        """Все stage'и из конфигурации (может быть пусто)."""
        return set(self._urls)

    def __contains__(self, stage: object) -> bool:
        return stage in self._urls

    def __len__(self) -> int:
        return len(self._urls)
