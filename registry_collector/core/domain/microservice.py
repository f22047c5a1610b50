"""
Domain logic для микросервисов из реестра.

Нормализация хостов/портов, разбор поля consumes и перенос разрешённых
полей metadata. Не зависит от HTTP - работает с разобранным документом.
"""

from typing import List, Dict, Any, Optional, Tuple

from ..exceptions import MalformedDocumentError
from ..models import (
    RawRegistryDocument,
    RawApplication,
    InstanceRecord,
    HostInfo,
    Consumer,
    Microservice,
    INSTANCE,
)


CONSUMES = "consumes"
CONSUMER_SEPARATOR = ","
TYPE_SEPARATOR = ":"

# Поля metadata, которые попадают в Microservice (остальные отбрасываются)
METADATA_FIELDS: Tuple[str, ...] = (
    "description",
    "bitbucketUrl",        # URL репозитория
    "ignoredCommitters",
    "fdOwner",             # владелец сервиса
    "tags",
    "microserviceUrl",
    "ipAddress",
    "networkZone",
    "documentationLink",
    "buildMonitorLink",
    "monitoringLink",
)


def split_entries(value: str, separator: str) -> List[str]:
    """
    Делит строку по разделителю.

    Если разделитель встречается, пустые хвостовые части отбрасываются:
        "a,b," -> ["a", "b"], ":" -> [], "a:" -> ["a"]
    Если не встречается, строка целиком - единственная часть:
        "" -> [""]
    """
    parts = value.split(separator)
    if len(parts) == 1:
        return parts
    while parts and parts[-1] == "":
        parts.pop()
    return parts


def parse_consumers(value: Optional[Any]) -> List[Consumer]:
    """
    Разбирает поле consumes.

    Формат: "target[:type],target[:type],..."
    target приводится к верхнему регистру, type необязателен.

    Example:
        parse_consumers("billing:rest,inventory")
        # [Consumer("BILLING", "rest"), Consumer("INVENTORY")]
    """
    if value is None:
        return []

    result = []
    for entry in split_entries(str(value), CONSUMER_SEPARATOR):
        parts = split_entries(entry, TYPE_SEPARATOR)
        if not parts:
            continue
        consumer_type = parts[1] if len(parts) == 2 else None
        result.append(Consumer(target=parts[0].upper(), type=consumer_type))
    return result


class MicroserviceNormalizer:
    """
    Нормализация документа реестра в микросервисы.

    Чистая функция от документа: без I/O и без состояния.

    Example:
        normalizer = MicroserviceNormalizer()
        services = normalizer.normalize_payload(response_json)
        services["BILLING"].hosts[0].ports  # [8080]
    """

    def __init__(self, metadata_fields: Tuple[str, ...] = METADATA_FIELDS):
        self.metadata_fields = tuple(metadata_fields)

    def normalize_payload(self, payload: Dict[str, Any]) -> Dict[str, Microservice]:
        """
        Разбирает и нормализует сырой JSON реестра.

        Raises:
            MalformedDocumentError: Структура приложений повреждена
        """
        return self.normalize(RawRegistryDocument.from_dict(payload))

    def normalize(self, document: RawRegistryDocument) -> Dict[str, Microservice]:
        """
        Нормализует документ реестра.

        Args:
            document: Разобранный документ

        Returns:
            Dict[str, Microservice]: По одному сервису на имя приложения.
            При повторе имени побеждает последнее приложение.
        """
        result: Dict[str, Microservice] = {}
        for application in document.applications:
            result[application.name] = self.normalize_application(application)
        return result

    def normalize_application(self, application: RawApplication) -> Microservice:
        """
        Нормализует одно приложение.

        Metadata берётся только из первого instance: считается, что
        все экземпляры приложения регистрируются с одинаковой metadata.
        Это не проверяется.

        Raises:
            MalformedDocumentError: У приложения нет instance
        """
        if not application.instances:
            raise MalformedDocumentError(
                "Application has no instances",
                field=INSTANCE,
                application=application.name,
            )

        metadata = application.instances[0].metadata
        return Microservice(
            name=application.name,
            hosts=[self.read_host(instance) for instance in application.instances],
            consumes=parse_consumers(metadata.get(CONSUMES)),
            metadata=self.promote_metadata(metadata),
        )

    def read_host(self, instance: InstanceRecord) -> HostInfo:
        """Хост instance с включёнными портами (port, затем securePort)."""
        ports = []
        for port in (instance.port, instance.secure_port):
            if port is not None and port.is_enabled:
                ports.append(port.number)

        return HostInfo(
            host_name=instance.host_name,
            ip_addr=instance.ip_addr,
            home_page_url=instance.home_page_url,
            ports=ports,
        )

    def promote_metadata(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Копирует разрешённые поля metadata как есть (включая null); отсутствующие пропускает."""
        return {
            key: metadata[key]
            for key in self.metadata_fields
            if key in metadata
        }
