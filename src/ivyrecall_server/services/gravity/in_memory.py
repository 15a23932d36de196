"""In-memory gravity field store."""
from logging import Logger
from typing import Optional

from scitrera_app_framework.api import Variables

from ...models.integrity import GravityField
from .base import GravityFieldStore, GravityFieldStorePluginBase


class InMemoryGravityFieldStore(GravityFieldStore):
    """Fields keyed by session id, held for the life of the process."""

    def __init__(self, v: Variables = None):
        super().__init__(v)
        self._fields: dict[str, GravityField] = {}

    async def get_field(self, session_id: Optional[str]) -> Optional[GravityField]:
        return self._fields.get(session_id)

    async def set_field(self, field: GravityField) -> None:
        """Seed or replace a session's field (ingestion owns this in production)."""
        if not field.session_id:
            raise ValueError("GravityField.session_id is required")
        self._fields[field.session_id] = field


class InMemoryGravityFieldStorePlugin(GravityFieldStorePluginBase):
    PROVIDER_NAME = 'in-memory'

    def initialize(self, v: Variables, logger: Logger) -> GravityFieldStore:
        return InMemoryGravityFieldStore(v=v)
