"""
Pydantic схемы для валидации config.yaml.

Валидация происходит при загрузке конфигурации.
Ошибки валидации выбрасывают ConfigError.

Пример использования:
    from registry_collector.core.config_schema import validate_config

    config_dict = yaml.safe_load(open("config.yaml"))
    validated = validate_config(config_dict)  # raises ConfigError on failure
    validated.registry.urls["prod"]
"""

from typing import Dict, Optional, Union
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

from .exceptions import ConfigError


class RegistryConfig(BaseModel):
    """Настройки реестров: stage -> URL."""
    urls: Dict[str, str] = Field(default_factory=dict)
    timeout: int = Field(default=10, ge=1, le=300)
    verify_ssl: Union[bool, str] = True  # True, False или путь к CA bundle

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Проверяет что все URL реестров валидные."""
        for stage, url in v.items():
            if not stage:
                raise PydanticCustomError(
                    "invalid_stage",
                    "Имя stage не может быть пустым",
                )
            if not url.startswith(("http://", "https://")):
                raise PydanticCustomError(
                    "invalid_url",
                    "URL реестра для stage '{stage}' должен начинаться с http:// или https://",
                    {"stage": stage},
                )
        return v

    @field_validator("verify_ssl")
    @classmethod
    def validate_verify_ssl(cls, v: Union[bool, str]) -> Union[bool, str]:
        """Путь к CA bundle не может быть пустым."""
        if isinstance(v, str) and not v.strip():
            raise PydanticCustomError(
                "invalid_ca_bundle",
                "verify_ssl: укажите true, false или путь к CA bundle",
            )
        return v


class CacheConfig(BaseModel):
    """Настройки кэша сервисов по stage."""
    ttl: Optional[int] = Field(default=None, ge=1)  # None = без истечения


class DevelopmentConfig(BaseModel):
    """Настройки локальной разработки."""
    offline_mode: bool = False


class LoggingConfig(BaseModel):
    """Настройки логирования."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_format: bool = False
    console: bool = True
    file_path: Optional[str] = None
    rotation: str = Field(default="size", pattern="^(size|time)$")
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)  # min 1KB
    backup_count: int = Field(default=5, ge=1, le=100)
    when: str = "midnight"
    interval: int = Field(default=1, ge=1)


class ApiConfig(BaseModel):
    """Настройки Web API."""
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)


class AppConfig(BaseModel):
    """Полная конфигурация приложения."""
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    development: DevelopmentConfig = Field(default_factory=DevelopmentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)


def validate_config(config_dict: dict, config_file: Optional[str] = None) -> AppConfig:
    """
    Валидирует словарь конфигурации.

    Args:
        config_dict: Словарь из YAML (уже смерженный с дефолтами и env)
        config_file: Путь к файлу (для сообщения об ошибке)

    Returns:
        AppConfig: Валидированная конфигурация

    Raises:
        ConfigError: При ошибке валидации
    """
    try:
        return AppConfig(**config_dict)
    except Exception as e:
        # Форматируем ошибку Pydantic в читаемый вид
        error_msg = str(e)
        key = None
        if hasattr(e, "errors"):
            errors = e.errors()
            if errors:
                first_error = errors[0]
                key = ".".join(str(x) for x in first_error.get("loc", []))
                msg = first_error.get("msg", "Unknown error")
                error_msg = f"{key}: {msg}"

        raise ConfigError(
            message=f"Ошибка валидации конфигурации: {error_msg}",
            config_file=config_file or "config.yaml",
            key=key,
        ) from e


def get_default_config() -> AppConfig:
    """Возвращает конфигурацию по умолчанию."""
    return AppConfig()
