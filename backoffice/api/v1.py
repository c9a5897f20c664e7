# backoffice/api/v1.py
from fastapi import APIRouter

from backoffice.api.endpoints import status
from backoffice.modules.analytics.routers import analytics_router
from backoffice.modules.integrations.routers import integrations_router
from backoffice.modules.pedidos.routers import pedidos_router

api_router = APIRouter()

api_router.include_router(status.router)
api_router.include_router(pedidos_router)
api_router.include_router(analytics_router)
api_router.include_router(integrations_router)
