"""
Data Models для Registry Collector.

Типизированные dataclasses вместо обхода сырого JSON-дерева.

Сырые данные (из ответа реестра):
- RawRegistryDocument: список приложений
- RawApplication: имя + instances
- InstanceRecord: hostName, ipAddr, homePageUrl, port/securePort, metadata
- PortEntry: номер порта + флаг @enabled

Нормализованные данные (для UI и API):
- Microservice: сервис с hosts, consumes и разрешёнными полями metadata
- HostInfo: хост сервиса с включёнными портами
- Consumer: сервис, от которого зависит данный (target + type)

Использование:
    from registry_collector.core.models import RawRegistryDocument

    document = RawRegistryDocument.from_dict(response_json)
    for app in document.applications:
        print(app.name, len(app.instances))
"""

import json
from dataclasses import dataclass, field
from typing import Optional, List, Any, Dict

from .exceptions import MalformedDocumentError


# Поля JSON документа реестра
APPLICATIONS = "applications"
APPLICATION = "application"
NAME = "name"
INSTANCE = "instance"
HOST_NAME = "hostName"
IP_ADDR = "ipAddr"
HOME_PAGE_URL = "homePageUrl"
PORT = "port"
SECURE_PORT = "securePort"
METADATA = "metadata"
AT_ENABLED = "@enabled"
PORT_VALUE = "$"


def _as_list(value: Any) -> List[Any]:
    """
    Приводит узел к списку.

    При конвертации XML -> JSON реестр отдаёт единственный элемент
    объектом, а не списком из одного элемента.
    """
    if isinstance(value, list):
        return value
    return [value]


def _as_text(value: Any) -> Optional[str]:
    """Текстовое представление скалярного значения (None остаётся None)."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def _as_port_number(value: Any) -> Optional[int]:
    """Номер порта из payload "$": число или строка из цифр."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


# =============================================================================
# Raw registry document
# =============================================================================


@dataclass(frozen=True)
class PortEntry:
    """
    Порт instance из реестра.

    Attributes:
        number: Номер порта (payload "$")
        enabled: Значение "@enabled" как есть ("true", "false", "")
    """
    number: Optional[int]
    enabled: str = ""

    @property
    def is_enabled(self) -> bool:
        """Порт включён только при @enabled == "true" (строго)."""
        return self.enabled == "true"

    @classmethod
    def from_dict(cls, data: Any, application: str = "") -> "PortEntry":
        """
        Создаёт PortEntry из узла port/securePort.

        Raises:
            MalformedDocumentError: Включённый порт без числового значения
        """
        if not isinstance(data, dict):
            # Порт без флага @enabled не считается включённым
            return cls(number=_as_port_number(data), enabled="")

        enabled = data.get(AT_ENABLED)
        entry = cls(
            number=_as_port_number(data.get(PORT_VALUE)),
            enabled=enabled if isinstance(enabled, str) else "",
        )
        if entry.is_enabled and entry.number is None:
            raise MalformedDocumentError(
                "Enabled port has no numeric value",
                field=PORT_VALUE,
                application=application,
                value=data.get(PORT_VALUE),
            )
        return entry


@dataclass
class InstanceRecord:
    """
    Один запущенный экземпляр приложения.

    Attributes:
        host_name: hostName
        ip_addr: ipAddr
        home_page_url: homePageUrl
        port: Обычный порт
        secure_port: HTTPS порт
        metadata: Произвольные пары ключ-значение из реестра
    """
    host_name: Optional[str] = None
    ip_addr: Optional[str] = None
    home_page_url: Optional[str] = None
    port: Optional[PortEntry] = None
    secure_port: Optional[PortEntry] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, application: str = "") -> "InstanceRecord":
        """Создаёт InstanceRecord из элемента массива instance."""
        if not isinstance(data, dict):
            raise MalformedDocumentError(
                "Instance entry is not an object",
                field=INSTANCE,
                application=application,
                value=data,
            )

        metadata = data.get(METADATA)
        if metadata is None:
            metadata = {}
        elif not isinstance(metadata, dict):
            raise MalformedDocumentError(
                "Instance metadata is not an object",
                field=METADATA,
                application=application,
                value=metadata,
            )

        port = data.get(PORT)
        secure_port = data.get(SECURE_PORT)
        return cls(
            host_name=_as_text(data.get(HOST_NAME)),
            ip_addr=_as_text(data.get(IP_ADDR)),
            home_page_url=_as_text(data.get(HOME_PAGE_URL)),
            port=PortEntry.from_dict(port, application) if port is not None else None,
            secure_port=(
                PortEntry.from_dict(secure_port, application)
                if secure_port is not None else None
            ),
            metadata=dict(metadata),
        )


@dataclass
class RawApplication:
    """
    Приложение из реестра.

    Attributes:
        name: Имя приложения (ключ в результате)
        instances: Экземпляры в порядке документа (не пустой список)
    """
    name: str
    instances: List[InstanceRecord]

    @classmethod
    def from_dict(cls, data: Any) -> "RawApplication":
        """
        Создаёт RawApplication из элемента массива application.

        Raises:
            MalformedDocumentError: Нет name или нет ни одного instance
        """
        if not isinstance(data, dict):
            raise MalformedDocumentError(
                "Application entry is not an object",
                field=APPLICATION,
                value=data,
            )

        name = data.get(NAME)
        if not isinstance(name, str):
            raise MalformedDocumentError(
                "Application has no name",
                field=NAME,
                value=name,
            )

        raw_instances = data.get(INSTANCE)
        instances = [] if raw_instances is None else _as_list(raw_instances)
        if not instances:
            raise MalformedDocumentError(
                "Application has no instances",
                field=INSTANCE,
                application=name,
            )

        return cls(
            name=name,
            instances=[InstanceRecord.from_dict(item, name) for item in instances],
        )


@dataclass
class RawRegistryDocument:
    """
    Документ реестра целиком.

    Attributes:
        applications: Приложения в порядке документа
    """
    applications: List[RawApplication] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Реестру нечего сообщить."""
        return not self.applications

    @classmethod
    def from_dict(cls, payload: Any) -> "RawRegistryDocument":
        """
        Разбирает JSON ответа реестра.

        Отсутствие обёрток applications/application (или null) означает
        пустой реестр, а не ошибку.

        Raises:
            MalformedDocumentError: Структура приложений повреждена
        """
        if not isinstance(payload, dict):
            raise MalformedDocumentError(
                "Registry document is not an object",
                value=payload,
            )

        root = payload.get(APPLICATIONS)
        if not isinstance(root, dict):
            return cls()

        raw_applications = root.get(APPLICATION)
        if raw_applications is None:
            return cls()

        return cls(
            applications=[RawApplication.from_dict(item) for item in _as_list(raw_applications)],
        )


# =============================================================================
# Normalized models
# =============================================================================


@dataclass
class HostInfo:
    """
    Хост, на котором запущен экземпляр сервиса.

    Attributes:
        host_name: hostName
        ip_addr: ipAddr
        home_page_url: homePageUrl
        ports: Включённые порты (port, затем securePort)
    """
    host_name: Optional[str] = None
    ip_addr: Optional[str] = None
    home_page_url: Optional[str] = None
    ports: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Конвертирует в словарь (только заполненные текстовые поля)."""
        result: Dict[str, Any] = {}
        if self.host_name is not None:
            result[HOST_NAME] = self.host_name
        if self.ip_addr is not None:
            result[IP_ADDR] = self.ip_addr
        if self.home_page_url is not None:
            result[HOME_PAGE_URL] = self.home_page_url
        result["ports"] = list(self.ports)
        return result


@dataclass(frozen=True)
class Consumer:
    """
    Сервис, который потребляет данный микросервис.

    Attributes:
        target: Имя сервиса (в верхнем регистре)
        type: Тип взаимодействия (rest, kafka, ...) или None
    """
    target: str
    type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Конвертирует в словарь."""
        if self.type is None:
            return {"target": self.target}
        return {"target": self.target, "type": self.type}


@dataclass
class Microservice:
    """
    Нормализованное приложение одного stage.

    Attributes:
        name: Имя приложения
        hosts: Хосты (по одному на instance)
        consumes: Потребляемые сервисы
        metadata: Разрешённые поля metadata, только присутствующие в источнике
    """
    name: str
    hosts: List[HostInfo] = field(default_factory=list)
    consumes: List[Consumer] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Значение поля metadata."""
        return self.metadata.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """
        Конвертирует в словарь для JSON.

        Поля metadata выносятся на верхний уровень рядом с name/hosts/consumes.
        """
        result: Dict[str, Any] = {
            "name": self.name,
            "hosts": [host.to_dict() for host in self.hosts],
            "consumes": [consumer.to_dict() for consumer in self.consumes],
        }
        result.update(self.metadata)
        return result


def microservices_to_dicts(services: Dict[str, Microservice]) -> Dict[str, Dict[str, Any]]:
    """Конвертирует результат stage в словарь словарей."""
    return {name: service.to_dict() for name, service in services.items()}
