"""Stages routes - микросервисы из реестра по stage."""

from fastapi import APIRouter, Depends, HTTPException

from ...collectors import MicroserviceCollector
from ...core.models import microservices_to_dicts
from ..schemas import (
    StagesResponse,
    MicroservicesResponse,
    RefreshResponse,
)
from ..services import get_collector

router = APIRouter()


@router.get(
    "",
    response_model=StagesResponse,
    summary="Список stage'ей",
)
def list_stages(collector: MicroserviceCollector = Depends(get_collector)):
    """Возвращает stage'и из конфигурации. В реестр не ходит."""
    return StagesResponse(stages=sorted(collector.get_all_stage_names()))


@router.get(
    "/{stage}/microservices",
    response_model=MicroservicesResponse,
    summary="Микросервисы stage",
)
def get_microservices(
    stage: str,
    collector: MicroserviceCollector = Depends(get_collector),
):
    """
    Возвращает нормализованные микросервисы stage.

    Если реестр недоступен - пустой список (ошибка только в логе).
    Неизвестный stage - 404, повреждённый документ реестра - 502.
    """
    services = collector.get_all_microservices(stage)
    return MicroservicesResponse(
        stage=stage,
        count=len(services),
        microservices=microservices_to_dicts(services),
    )


@router.get(
    "/{stage}/microservices/{name}",
    summary="Один микросервис stage",
)
def get_microservice(
    stage: str,
    name: str,
    collector: MicroserviceCollector = Depends(get_collector),
):
    """Возвращает микросервис по имени приложения."""
    services = collector.get_all_microservices(stage)
    service = services.get(name)
    if service is None:
        raise HTTPException(status_code=404, detail=f'Microservice "{name}" not found in stage "{stage}"')
    return service.to_dict()


@router.post(
    "/{stage}/refresh",
    response_model=RefreshResponse,
    summary="Сбросить кэш stage",
)
def refresh_stage(
    stage: str,
    collector: MicroserviceCollector = Depends(get_collector),
):
    """Сбрасывает кэш stage: следующий запрос заново сходит в реестр."""
    collector.stages.resolve_url(stage)
    collector.invalidate(stage)
    return RefreshResponse(stage=stage)
