"""In-process counter metrics."""
from collections import defaultdict
from logging import Logger
from threading import Lock

from scitrera_app_framework.api import Variables

from .base import MetricsService, MetricsServicePluginBase


class InMemoryMetricsService(MetricsService):
    """Counters kept on the service instance for the life of the process."""

    def __init__(self):
        self._counters: dict[str, int] = defaultdict(int)
        self._lock = Lock()

    def increment(self, name: str, value: int = 1) -> None:
        with self._lock:
            self._counters[name] += value

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counters)


class InMemoryMetricsServicePlugin(MetricsServicePluginBase):
    """Plugin for in-memory metrics."""
    PROVIDER_NAME = 'in-memory'

    def initialize(self, v: Variables, logger: Logger) -> MetricsService:
        return InMemoryMetricsService()
