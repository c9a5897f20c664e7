# backoffice/api/endpoints/status.py
from typing import Literal

from fastapi import APIRouter
from loguru import logger
from pydantic import BaseModel

from backoffice.core.logging_config import trace_id_var


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["Status & Health"], summary="Liveness check")
async def get_health():
    logger.bind(trace_id=trace_id_var.get()).debug("Health check")
    return HealthResponse()
