from scitrera_app_framework.api import Plugin, Variables, enabled_option_pattern

from ...config import (
    IVYRECALL_RECALL_SERVICE, DEFAULT_IVYRECALL_RECALL_SERVICE,
    IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS, DEFAULT_IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS,
    IVYRECALL_RECALL_DEFAULT_MAX_DEPTH, DEFAULT_IVYRECALL_RECALL_DEFAULT_MAX_DEPTH,
)
from .._constants import (
    EXT_RECALL_SERVICE,
    EXT_STORAGE_BACKEND,
    EXT_EMBEDDING_SERVICE,
    EXT_INTEGRITY_PROVIDER,
    EXT_GRAVITY_FIELD_STORE,
    EXT_METRICS_SERVICE,
)


class RecallValidationError(ValueError):
    """Raised before any retrieval when a recall request lacks required fields."""
    pass


# noinspection PyAbstractClass
class RecallServicePluginBase(Plugin):
    """Base plugin for recall service - extensible for custom implementations."""
    PROVIDER_NAME: str = None

    def name(self) -> str:
        return f"{EXT_RECALL_SERVICE}|{self.PROVIDER_NAME}"

    def extension_point_name(self, v: Variables) -> str:
        return EXT_RECALL_SERVICE

    def is_enabled(self, v: Variables) -> bool:
        return enabled_option_pattern(self, v, IVYRECALL_RECALL_SERVICE, self_attr='PROVIDER_NAME')

    def on_registration(self, v: Variables) -> None:
        v.set_default_value(IVYRECALL_RECALL_SERVICE, DEFAULT_IVYRECALL_RECALL_SERVICE)
        v.set_default_value(IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS, DEFAULT_IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS)
        v.set_default_value(IVYRECALL_RECALL_DEFAULT_MAX_DEPTH, DEFAULT_IVYRECALL_RECALL_DEFAULT_MAX_DEPTH)

    def get_dependencies(self, v: Variables):
        return (
            EXT_STORAGE_BACKEND,
            EXT_EMBEDDING_SERVICE,
            EXT_INTEGRITY_PROVIDER,
            EXT_GRAVITY_FIELD_STORE,
            EXT_METRICS_SERVICE,
        )
