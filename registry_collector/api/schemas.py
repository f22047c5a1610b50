"""Pydantic schemas для API."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Ответ health check."""

    status: str = "ok"
    version: str
    uptime: float
    offline_mode: bool = False


class ErrorResponse(BaseModel):
    """Ответ с ошибкой."""

    success: bool = False
    error: str
    detail: Optional[str] = None
    details: Dict[str, Any] = {}


class StagesResponse(BaseModel):
    """Список stage'ей из конфигурации."""

    stages: List[str]


class MicroservicesResponse(BaseModel):
    """Микросервисы одного stage."""

    stage: str
    count: int
    microservices: Dict[str, Dict[str, Any]]


class RefreshResponse(BaseModel):
    """Результат сброса кэша stage."""

    stage: str
    invalidated: bool = True
