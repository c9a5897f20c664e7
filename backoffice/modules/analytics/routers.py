# backoffice/modules/analytics/routers.py

from typing import List

from fastapi import APIRouter, Depends

from backoffice.models.analytics import BusinessMetrics, ProductProfitability
from .services import AnalyticsService, get_analytics_service

analytics_router = APIRouter(prefix="/analytics", tags=["Analytics"])


@analytics_router.get("/metricas", response_model=BusinessMetrics, summary="Métricas de negócio (pedidos entregues)")
async def get_business_metrics_endpoint(service: AnalyticsService = Depends(get_analytics_service)):
    return await service.get_business_metrics()


@analytics_router.get(
    "/lucratividade",
    response_model=List[ProductProfitability],
    summary="Lucratividade por produto (todos os pedidos)",
)
async def get_profitability_endpoint(service: AnalyticsService = Depends(get_analytics_service)):
    return await service.get_profitability()
