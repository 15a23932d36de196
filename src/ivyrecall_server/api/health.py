"""Liveness and readiness endpoints."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from scitrera_app_framework import Plugin, Variables

from ..lifecycle.fastapi import get_logger, get_variables_dep
from ..services.storage import get_storage_backend
from . import EXT_MULTI_API_ROUTERS

router = APIRouter(tags=['health'])


@router.get("/health")
async def health_check() -> dict:
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(
        v: Variables = Depends(get_variables_dep),
        logger: logging.Logger = Depends(get_logger),
) -> JSONResponse:
    """Ready once the memory store answers; 503 otherwise."""
    try:
        connected = await get_storage_backend(v).health_check()
    except Exception as e:
        logger.error("Storage readiness check failed: %s", e)
        connected = False

    return JSONResponse(
        status_code=200 if connected else 503,
        content={
            "status": "ready" if connected else "not_ready",
            "services": {"storage": "connected" if connected else "disconnected"},
        },
    )


class HealthAPIPlugin(Plugin):
    def extension_point_name(self, v: Variables) -> str:
        return EXT_MULTI_API_ROUTERS

    def is_enabled(self, v: Variables) -> bool:
        return False  # multi-extension only

    def initialize(self, v: Variables, logger: logging.Logger) -> object | None:
        return router

    def is_multi_extension(self, v: Variables) -> bool:
        return True
