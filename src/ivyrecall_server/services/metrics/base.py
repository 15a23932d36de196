"""Metrics Service Base - counter interface for per-process recall metrics."""
from abc import ABC, abstractmethod

from scitrera_app_framework.api import Plugin, Variables, enabled_option_pattern

from ...config import IVYRECALL_METRICS_SERVICE, DEFAULT_IVYRECALL_METRICS_SERVICE
from .._constants import EXT_METRICS_SERVICE


class MetricsService(ABC):
    """Counter sink. Implementations must be safe to call from any stage of a recall."""

    @abstractmethod
    def increment(self, name: str, value: int = 1) -> None:
        """Add `value` to the named counter."""
        pass

    def get(self, name: str) -> int:
        """Current counter value (0 when untracked)."""
        return 0

    def snapshot(self) -> dict[str, int]:
        """All counters."""
        return {}


# noinspection PyAbstractClass
class MetricsServicePluginBase(Plugin):
    """Base plugin for metrics service."""
    PROVIDER_NAME: str = None

    def name(self) -> str:
        return f"{EXT_METRICS_SERVICE}|{self.PROVIDER_NAME}"

    def extension_point_name(self, v: Variables) -> str:
        return EXT_METRICS_SERVICE

    def is_enabled(self, v: Variables) -> bool:
        return enabled_option_pattern(self, v, IVYRECALL_METRICS_SERVICE, self_attr='PROVIDER_NAME')

    def on_registration(self, v: Variables) -> None:
        v.set_default_value(IVYRECALL_METRICS_SERVICE, DEFAULT_IVYRECALL_METRICS_SERVICE)
