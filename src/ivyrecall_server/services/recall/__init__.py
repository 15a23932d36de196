"""Recall service package."""
from .base import (
    RecallServicePluginBase,
    RecallValidationError,
    EXT_RECALL_SERVICE,
)
from .default import DefaultRecallServicePlugin, RecallService

from scitrera_app_framework import Variables, get_extension


def get_recall_service(v: Variables = None) -> RecallService:
    """Get the recall service instance."""
    return get_extension(EXT_RECALL_SERVICE, v)


__all__ = (
    'RecallService',
    'RecallServicePluginBase',
    'RecallValidationError',
    'get_recall_service',
    'EXT_RECALL_SERVICE',
    'DefaultRecallServicePlugin',
)
