"""
Gravity Field Store Base - read access to per-session attention mass.

The field is accumulated by ingestion; recall only reads it. A missing field is a zero field.
"""
from abc import ABC, abstractmethod
from typing import Optional

from scitrera_app_framework import get_logger
from scitrera_app_framework.api import Variables, Plugin, enabled_option_pattern

from ...config import IVYRECALL_GRAVITY_FIELD_STORE, DEFAULT_IVYRECALL_GRAVITY_FIELD_STORE
from ...models.integrity import GravityField
from .._constants import EXT_GRAVITY_FIELD_STORE


class GravityFieldStore(ABC):

    def __init__(self, v: Variables = None):
        self.logger = get_logger(v, name=self.__class__.__name__)

    @abstractmethod
    async def get_field(self, session_id: Optional[str]) -> Optional[GravityField]:
        """Stored field for the session, or None."""
        pass

    async def resolve(self, session_id: Optional[str]) -> GravityField:
        """get_field() with absence and read failures treated as a zero-mass field."""
        if not session_id:
            return GravityField.empty()
        try:
            field = await self.get_field(session_id)
        except Exception as e:
            self.logger.warning("Gravity field read failed for session %s: %s", session_id, e)
            field = None
        return field if field is not None else GravityField.empty(session_id)


# noinspection PyAbstractClass
class GravityFieldStorePluginBase(Plugin):
    """Base plugin for gravity field stores."""
    PROVIDER_NAME: str = None

    def name(self) -> str:
        return f"{EXT_GRAVITY_FIELD_STORE}|{self.PROVIDER_NAME}"

    def extension_point_name(self, v: Variables) -> str:
        return EXT_GRAVITY_FIELD_STORE

    def is_enabled(self, v: Variables) -> bool:
        return enabled_option_pattern(self, v, IVYRECALL_GRAVITY_FIELD_STORE, self_attr='PROVIDER_NAME')

    def on_registration(self, v: Variables) -> None:
        v.set_default_value(IVYRECALL_GRAVITY_FIELD_STORE, DEFAULT_IVYRECALL_GRAVITY_FIELD_STORE)
