"""No-op metrics service - discards every counter."""
from logging import Logger

from scitrera_app_framework.api import Variables

from .base import MetricsService, MetricsServicePluginBase


class NoOpMetricsService(MetricsService):
    """Discards all counters."""

    def increment(self, name: str, value: int = 1) -> None:
        return


class NoOpMetricsServicePlugin(MetricsServicePluginBase):
    """Plugin for no metrics."""
    PROVIDER_NAME = 'noop'

    def initialize(self, v: Variables, logger: Logger) -> MetricsService:
        return NoOpMetricsService()
