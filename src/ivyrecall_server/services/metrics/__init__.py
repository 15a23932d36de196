"""Metrics service package."""
from .base import (
    MetricsService,
    MetricsServicePluginBase,
    EXT_METRICS_SERVICE,
)

from scitrera_app_framework import Variables, get_extension


def get_metrics_service(v: Variables = None) -> MetricsService:
    """Get the metrics service instance."""
    return get_extension(EXT_METRICS_SERVICE, v)


__all__ = (
    'MetricsService',
    'MetricsServicePluginBase',
    'get_metrics_service',
    'EXT_METRICS_SERVICE',
)
