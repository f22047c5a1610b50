"""
Типизированные исключения для Registry Collector.

Иерархия:
    RegistryCollectorError (базовый)
    ├── UnknownStageError (stage нет в конфигурации)
    ├── TransportError (сеть / HTTP / тело ответа)
    ├── MalformedDocumentError (битая структура документа реестра)
    └── ConfigError (конфигурация)

Политика:
    UnknownStageError и MalformedDocumentError пробрасываются вызывающему.
    TransportError гасится в MicroserviceCollector (пустой результат + warning).

Пример использования:
    from registry_collector.core.exceptions import UnknownStageError

    try:
        services = collector.get_all_microservices("qa")
    except UnknownStageError as e:
        logger.error(f"Неизвестный stage: {e.stage}")
"""

from typing import Optional, Any, Iterable


class RegistryCollectorError(Exception):
    """
    Базовое исключение для всех ошибок Registry Collector.

    Attributes:
        message: Описание ошибки
        details: Дополнительные детали (dict)
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> dict:
        """Сериализация для логов/ответов API."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class UnknownStageError(RegistryCollectorError):
    """
    Stage не найден в конфигурации реестров.

    Attributes:
        stage: Запрошенный stage
        known_stages: Stage'и из конфигурации (отсортированы)

    Пример:
        raise UnknownStageError(stage="nosuchstage", known_stages={"dev", "prod"})
    """

    def __init__(
        self,
        stage: str,
        known_stages: Optional[Iterable[str]] = None,
        details: Optional[dict] = None,
    ):
        self.stage = stage
        self.known_stages = sorted(known_stages or [])
        details = details or {}
        details["stage"] = stage
        if self.known_stages:
            details["known_stages"] = self.known_stages
        super().__init__(f'Invalid stage name "{stage}"', details)


class TransportError(RegistryCollectorError):
    """
    Ошибка получения документа из реестра.

    Сетевая ошибка, таймаут, не-2xx ответ или тело, которое не является
    JSON-объектом.

    Attributes:
        url: URL реестра
        status_code: HTTP код ответа (если ответ был)

    Пример:
        raise TransportError("Service Unavailable", url="http://eureka/apps", status_code=503)
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        self.url = url
        self.status_code = status_code
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details)


class MalformedDocumentError(RegistryCollectorError):
    """
    Документ реестра получен, но его структура повреждена.

    Например: приложение без instance или без name.
    Не гасится, т.к. может скрывать изменение схемы реестра.

    Attributes:
        field: Поле с ошибкой
        application: Имя приложения (если известно)

    Пример:
        raise MalformedDocumentError("Application has no instances",
                                     field="instance", application="BILLING")
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        application: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[dict] = None,
    ):
        self.field = field
        self.application = application
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if application:
            details["application"] = application
        if value is not None:
            details["value"] = str(value)[:100]  # Ограничиваем размер
        super().__init__(message, details)


class ConfigError(RegistryCollectorError):
    """
    Ошибка конфигурации.

    Attributes:
        config_file: Путь к файлу конфигурации
        key: Ключ конфигурации с ошибкой

    Пример:
        raise ConfigError("Invalid URL", config_file="config.yaml", key="registry.urls.dev")
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        key: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.config_file = config_file
        self.key = key
        details = details or {}
        if config_file:
            details["config_file"] = config_file
        if key:
            details["key"] = key
        super().__init__(message, details)


def format_error_for_log(error: Exception) -> str:
    """
    Форматирует ошибку для вывода в лог.

    Args:
        error: Исключение

    Returns:
        str: Отформатированная строка ошибки
    """
    if isinstance(error, RegistryCollectorError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"


def is_retryable(error: Exception) -> bool:
    """
    Проверяет, можно ли повторить операцию после ошибки.

    Повторять имеет смысл только транспортные ошибки: неизвестный stage
    и битый документ при повторе не исправятся.
    """
    return isinstance(error, TransportError)
