"""
Recall API endpoint.

Endpoints:
- POST /v1/recall - Integrity-aware multi-stream recall
"""
import logging

from fastapi import APIRouter, HTTPException, Depends, Request, status
from scitrera_app_framework import Plugin, Variables

from .. import EXT_MULTI_API_ROUTERS
from ...lifecycle.fastapi import get_logger, get_variables_dep
from ...models.recall import RecallResult
from ...services.recall import get_recall_service as _get_recall_service, RecallService

from .schemas import RecallRequest, ErrorResponse

router = APIRouter(prefix="/v1", tags=["recall"])


def get_recall_service(v: Variables = Depends(get_variables_dep)) -> RecallService:
    """FastAPI dependency wrapper for recall service."""
    return _get_recall_service(v)


@router.post(
    "/recall",
    response_model=RecallResult,
    response_model_by_alias=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing user_id or query"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def recall(
        http_request: Request,
        request: RecallRequest,
        recall_service: RecallService = Depends(get_recall_service),
        logger: logging.Logger = Depends(get_logger),
) -> RecallResult:
    """
    Recall memories relevant to a query.

    The active session may be given in the body or via the X-Session-ID header.

    Args:
        http_request: FastAPI request (for headers)
        request: Recall request
        recall_service: Recall service instance

    Returns:
        Recall result with selected memories, clusters and synthesis

    Raises:
        HTTPException: 400 when user_id or query is missing, 500 on unexpected failure
    """
    try:
        recall_input = request.to_input(session_id=http_request.headers.get("X-Session-ID"))
        logger.debug(
            "(API) Recall for user: %s, session: %s, query: %s",
            recall_input.user_id,
            recall_input.session_id,
            (recall_input.query or "")[:50],
        )

        result = await recall_service.recall(recall_input)

        logger.debug(
            "Recalled %d memories in %d ms (status: %s)",
            len(result.memories),
            result.diagnostics.latency_ms,
            result.status,
        )
        return result

    except ValueError as e:
        logger.warning("Invalid recall request: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error("Failed to recall memories: %s", e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to recall memories"
        )


class RecallAPIPlugin(Plugin):
    """Plugin to register recall API routes."""

    def extension_point_name(self, v: Variables) -> str:
        return EXT_MULTI_API_ROUTERS

    def is_enabled(self, v: Variables) -> bool:
        return False  # disable "single" extension for a multi-extension plugin

    def initialize(self, v: Variables, logger: logging.Logger) -> object | None:
        return router

    def is_multi_extension(self, v: Variables) -> bool:
        return True
