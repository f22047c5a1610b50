"""
Загрузчик конфигурации из config.yaml.

Порядок применения настроек:
    1. Значения по умолчанию
    2. config.yaml (мержится поверх дефолтов)
    3. Переменные окружения
    4. Валидация через Pydantic (core/config_schema.py)

Переменные окружения:
    REGISTRY_OFFLINE_MODE=true       - не ходить в реестр (локальная разработка)
    REGISTRY_URL_<STAGE>=http://...  - добавить/переопределить URL для stage
    REGISTRY_TIMEOUT=10              - таймаут запроса к реестру (сек)

Пример config.yaml:
    registry:
      urls:
        dev: http://eureka-dev:8761/eureka/apps
        prod: http://eureka-prod:8761/eureka/apps
    development:
      offline_mode: false
"""

import os
import logging
from typing import Any, Dict, Optional

import yaml

from .core.config_schema import AppConfig, validate_config
from .core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Путь к файлу конфигурации рядом с пакетом
CONFIG_FILE = os.path.join(os.path.dirname(__file__), "config.yaml")

ENV_OFFLINE_MODE = "REGISTRY_OFFLINE_MODE"
ENV_TIMEOUT = "REGISTRY_TIMEOUT"
ENV_URL_PREFIX = "REGISTRY_URL_"


def _get_defaults() -> Dict[str, Any]:
    """Значения по умолчанию."""
    return {
        "registry": {
            "urls": {},
            "timeout": 10,
            "verify_ssl": True,
        },
        "cache": {
            "ttl": None,
        },
        "development": {
            "offline_mode": False,
        },
        "logging": {
            "level": "INFO",
            "json_format": False,
            "console": True,
            "file_path": None,
        },
        "api": {
            "host": "0.0.0.0",
            "port": 8080,
        },
    }


def _find_config_file() -> Optional[str]:
    """Ищет config.yaml рядом с пакетом и в текущей директории."""
    search_paths = [
        CONFIG_FILE,
        "config.yaml",
        "config.yml",
        ".registry_collector.yaml",
    ]
    for path in search_paths:
        if os.path.exists(path):
            return path
    return None


def _load_yaml(config_file: str) -> Dict[str, Any]:
    """
    Загружает настройки из YAML файла.

    Raises:
        ConfigError: Файл не является корректным YAML-словарём
    """
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Ошибка разбора YAML: {e}", config_file=config_file) from e
    except OSError as e:
        logger.warning(f"Ошибка чтения {config_file}: {e}")
        return {}

    if not isinstance(yaml_data, dict):
        raise ConfigError("Корень конфигурации должен быть словарём", config_file=config_file)

    logger.debug(f"Конфигурация загружена из {config_file}")
    return yaml_data


def _merge_dict(base: dict, override: dict) -> None:
    """Рекурсивно мержит словари."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value


def _load_env(data: Dict[str, Any]) -> None:
    """Применяет переменные окружения поверх конфигурации."""
    offline = os.getenv(ENV_OFFLINE_MODE)
    if offline is not None and isinstance(data["development"], dict):
        # Включает только строка "true" (без учёта регистра)
        data["development"]["offline_mode"] = offline.strip().lower() == "true"

    timeout = os.getenv(ENV_TIMEOUT)
    if timeout:
        data["registry"]["timeout"] = timeout

    for key, value in os.environ.items():
        if key.startswith(ENV_URL_PREFIX) and len(key) > len(ENV_URL_PREFIX):
            stage = key[len(ENV_URL_PREFIX):].lower()
            data["registry"]["urls"][stage] = value


def load_config(config_file: Optional[str] = None) -> AppConfig:
    """
    Загружает и валидирует конфигурацию.

    Args:
        config_file: Путь к YAML файлу (опционально, иначе ищется config.yaml)

    Returns:
        AppConfig: Валидированная конфигурация

    Raises:
        ConfigError: Файл не найден, не разбирается или не проходит валидацию
    """
    if config_file and not os.path.exists(config_file):
        raise ConfigError("Файл конфигурации не найден", config_file=config_file)

    data = _get_defaults()
    path = config_file or _find_config_file()
    if path:
        _merge_dict(data, _load_yaml(path))

    # Пустые секции в YAML (registry: / urls:) приходят как None
    for section, default in _get_defaults().items():
        if data.get(section) is None:
            data[section] = default
    registry = data["registry"]
    if isinstance(registry, dict) and registry.get("urls") is None:
        registry["urls"] = {}

    if isinstance(registry, dict) and isinstance(registry["urls"], dict):
        _load_env(data)
    return validate_config(data, config_file=path)


# Глобальный экземпляр (загружается лениво)
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Возвращает конфигурацию процесса, загружая её при первом обращении."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(app_config: Optional[AppConfig]) -> None:
    """Подменяет конфигурацию процесса (CLI --config, тесты). None сбрасывает."""
    global _config
    _config = app_config
