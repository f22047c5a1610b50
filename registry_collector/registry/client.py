"""
HTTP клиент реестра сервисов (Eureka REST API).

Один GET на вызов fetch(), без retry и без кэширования:
политика повторов и кэш - забота вызывающего.

Пример использования:
    client = RegistryClient(timeout=10)
    payload = client.fetch("http://eureka-qa:8761/eureka/apps")
"""

from typing import Any, Dict, Optional, Union

import requests

from ..core.exceptions import TransportError
from ..core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10


class RegistryClient:
    """
    Забирает документ реестра по URL.

    Attributes:
        timeout: Таймаут запроса в секундах (connect и read)
        verify_ssl: True - проверять системный CA,
                    False - не проверять,
                    "/path/to/cert.pem" - путь к сертификату
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: Union[bool, str] = True,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
        })
        self._session.verify = self.verify_ssl

        if self.verify_ssl is False:
            import urllib3
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def fetch(self, url: str) -> Dict[str, Any]:
        """
        Выполняет GET и возвращает разобранный JSON-объект.

        Args:
            url: URL реестра stage

        Returns:
            dict: Тело ответа

        Raises:
            TransportError: Сетевая ошибка, таймаут, не-2xx ответ,
                            тело не JSON или не JSON-объект
        """
        logger.debug("GET registry", url=url)
        try:
            resp = self._session.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(f"Registry request timed out after {self.timeout}s", url=url) from e
        except requests.RequestException as e:
            raise TransportError(f"Registry request failed: {e}", url=url) from e

        if not 200 <= resp.status_code < 300:
            raise TransportError(
                f"Registry responded with HTTP {resp.status_code}",
                url=url,
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise TransportError(
                "Registry response is not valid JSON",
                url=url,
                status_code=resp.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise TransportError(
                "Registry response is not a JSON object",
                url=url,
                status_code=resp.status_code,
            )
        return payload

    def close(self) -> None:
        """Закрывает HTTP сессию."""
        self._session.close()
