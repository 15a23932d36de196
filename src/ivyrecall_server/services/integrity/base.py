"""
Integrity Provider Base - source of the integrity state consulted by recall.

The integrity state is computed elsewhere; recall treats it as an opaque set of scalars.
"""
from abc import ABC, abstractmethod
from typing import Optional

from scitrera_app_framework import get_logger
from scitrera_app_framework.api import Variables, Plugin, enabled_option_pattern

from ...config import IVYRECALL_INTEGRITY_PROVIDER, DEFAULT_IVYRECALL_INTEGRITY_PROVIDER
from ...models.integrity import IntegrityState
from .._constants import EXT_INTEGRITY_PROVIDER


class IntegrityProvider(ABC):

    def __init__(self, v: Variables = None):
        self.logger = get_logger(v, name=self.__class__.__name__)

    @abstractmethod
    async def get_state(self, user_id: str, session_id: Optional[str] = None) -> Optional[IntegrityState]:
        """Current integrity state, or None when unavailable."""
        pass

    async def resolve(self, user_id: str, session_id: Optional[str] = None) -> IntegrityState:
        """get_state() with the conservative default substituted for None or failure."""
        try:
            state = await self.get_state(user_id, session_id)
        except Exception as e:
            self.logger.warning("Integrity state unavailable for user %s, using conservative default: %s", user_id, e)
            return IntegrityState.conservative_default()

        if state is None:
            self.logger.debug("No integrity state for user %s, using conservative default", user_id)
            return IntegrityState.conservative_default()
        return state


# noinspection PyAbstractClass
class IntegrityProviderPluginBase(Plugin):
    """Base plugin for integrity providers."""
    PROVIDER_NAME: str = None

    def name(self) -> str:
        return f"{EXT_INTEGRITY_PROVIDER}|{self.PROVIDER_NAME}"

    def extension_point_name(self, v: Variables) -> str:
        return EXT_INTEGRITY_PROVIDER

    def is_enabled(self, v: Variables) -> bool:
        return enabled_option_pattern(self, v, IVYRECALL_INTEGRITY_PROVIDER, self_attr='PROVIDER_NAME')

    def on_registration(self, v: Variables) -> None:
        v.set_default_value(IVYRECALL_INTEGRITY_PROVIDER, DEFAULT_IVYRECALL_INTEGRITY_PROVIDER)
