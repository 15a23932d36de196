"""Static integrity provider - a fixed, configured integrity state for every user."""
from logging import Logger
from typing import Optional

from scitrera_app_framework.api import Variables

from ...models.integrity import IntegrityState, IntegrityStatus
from .base import IntegrityProvider, IntegrityProviderPluginBase

IVYRECALL_INTEGRITY_STATIC_RISK = 'IVYRECALL_INTEGRITY_STATIC_RISK'
DEFAULT_IVYRECALL_INTEGRITY_STATIC_RISK = 0.1
IVYRECALL_INTEGRITY_STATIC_STATUS = 'IVYRECALL_INTEGRITY_STATIC_STATUS'
DEFAULT_IVYRECALL_INTEGRITY_STATIC_STATUS = IntegrityStatus.ACTIVE.value


class StaticIntegrityProvider(IntegrityProvider):
    """Returns the same integrity state regardless of user or session."""

    def __init__(self, v: Variables = None, state: IntegrityState = None):
        super().__init__(v)
        self.state = state or IntegrityState()

    async def get_state(self, user_id: str, session_id: Optional[str] = None) -> Optional[IntegrityState]:
        return self.state.model_copy(deep=True)


class StaticIntegrityProviderPlugin(IntegrityProviderPluginBase):
    PROVIDER_NAME = 'static'

    def initialize(self, v: Variables, logger: Logger) -> IntegrityProvider:
        risk = v.environ(IVYRECALL_INTEGRITY_STATIC_RISK, default=DEFAULT_IVYRECALL_INTEGRITY_STATIC_RISK,
                         type_fn=float)
        status = v.environ(IVYRECALL_INTEGRITY_STATIC_STATUS, default=DEFAULT_IVYRECALL_INTEGRITY_STATIC_STATUS)
        return StaticIntegrityProvider(
            v=v,
            state=IntegrityState(risk=risk, status=IntegrityStatus(str(status).upper())),
        )
