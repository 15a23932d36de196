"""Abstract storage backend interface.

The recall engine only reads; the write helpers exist so tests and local tooling can seed a store.
"""
from abc import ABC, abstractmethod
from logging import Logger
from typing import Optional

from scitrera_app_framework import get_logger
from scitrera_app_framework.api import Variables, Plugin, enabled_option_pattern

from ...config import IVYRECALL_STORAGE_BACKEND, DEFAULT_IVYRECALL_STORAGE_BACKEND
from ...models.memory import MemoryRecord, PatternRecord, ArcRecord, InsightRecord
from ...models.recall import TimeRange

from .._constants import EXT_STORAGE_BACKEND

INSIGHT_VISIBLE_STATUSES = ("delivered", "queued")


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.
    """

    def __init__(self, v: Variables = None):
        self.logger = get_logger(v, name=self.__class__.__name__)

    # Lifecycle
    @abstractmethod
    async def connect(self) -> None:
        """Initialize storage connection."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close storage connection."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if storage is healthy."""
        pass

    # Seeding
    @abstractmethod
    async def add_memory(self, record: MemoryRecord) -> MemoryRecord:
        """Persist a memory record."""
        pass

    @abstractmethod
    async def add_pattern(self, pattern: PatternRecord) -> PatternRecord:
        """Persist a detected pattern."""
        pass

    @abstractmethod
    async def add_arc(self, arc: ArcRecord) -> ArcRecord:
        """Persist a narrative arc."""
        pass

    @abstractmethod
    async def add_insight(self, insight: InsightRecord) -> InsightRecord:
        """Persist an offline reflection."""
        pass

    # Query interface
    @abstractmethod
    async def get_by_importance(
            self,
            user_id: str,
            min_importance: float,
            limit: int,
            time_range: Optional[TimeRange] = None,
    ) -> list[MemoryRecord]:
        """Records with importance >= floor, highest importance first."""
        pass

    @abstractmethod
    async def get_recent(
            self,
            user_id: str,
            limit: int,
            time_range: Optional[TimeRange] = None,
    ) -> list[MemoryRecord]:
        """Newest records first."""
        pass

    @abstractmethod
    async def search_similar(
            self,
            user_id: str,
            query_embedding: list[float],
            min_similarity: float,
            limit: int,
    ) -> list[tuple[MemoryRecord, float]]:
        """Records whose embedding similarity is >= min_similarity, most similar first."""
        pass

    @abstractmethod
    async def search_content(
            self,
            user_id: str,
            terms: list[str],
            min_importance: float,
            limit: int,
    ) -> list[MemoryRecord]:
        """Records containing any of `terms` (case-insensitive), highest importance first."""
        pass

    @abstractmethod
    async def count_containing(self, user_id: str, term: str) -> int:
        """Number of records containing `term` (case-insensitive)."""
        pass

    @abstractmethod
    async def get_in_time_range(self, user_id: str, time_range: TimeRange, limit: int) -> list[MemoryRecord]:
        """Records created inside the range, newest first."""
        pass

    @abstractmethod
    async def get_by_emotions(
            self,
            user_id: str,
            emotions: list[str],
            min_importance: float,
            limit: int,
    ) -> list[MemoryRecord]:
        """Records whose emotion is in `emotions`, highest importance first."""
        pass

    @abstractmethod
    async def get_session_buffer(self, user_id: str, session_id: Optional[str], limit: int) -> list[MemoryRecord]:
        """Newest records of the session (or of the user when no session is given)."""
        pass

    @abstractmethod
    async def get_by_ids(self, user_id: str, memory_ids: list[str]) -> list[MemoryRecord]:
        """Records by id; unknown ids are skipped."""
        pass

    @abstractmethod
    async def get_patterns(self, user_id: str, limit: int, active_only: bool = True) -> list[PatternRecord]:
        """Detected patterns, most confident first."""
        pass

    @abstractmethod
    async def get_arcs(self, user_id: str, limit: int) -> list[ArcRecord]:
        """Narrative arcs ordered by gravity center."""
        pass

    @abstractmethod
    async def get_insights(self, user_id: str, limit: int) -> list[InsightRecord]:
        """Queued or delivered reflections, highest importance first."""
        pass


# noinspection PyAbstractClass
class StoragePluginBase(Plugin):
    PROVIDER_NAME: str = None

    def name(self) -> str:
        return f"{EXT_STORAGE_BACKEND}|{self.PROVIDER_NAME}"

    def extension_point_name(self, v: Variables) -> str:
        return EXT_STORAGE_BACKEND

    def is_enabled(self, v: Variables) -> bool:
        return enabled_option_pattern(self, v, IVYRECALL_STORAGE_BACKEND, self_attr='PROVIDER_NAME')

    def on_registration(self, v: Variables) -> None:
        v.set_default_value(IVYRECALL_STORAGE_BACKEND, DEFAULT_IVYRECALL_STORAGE_BACKEND)

    async def async_ready(self, v: Variables, logger: Logger, value: object | None) -> None:
        if isinstance(value, StorageBackend):
            try:
                await value.connect()
                logger.info("Storage backend '%s' connected successfully.", self.PROVIDER_NAME)
            except Exception as e:
                logger.error("Error connecting storage backend '%s': %s", self.PROVIDER_NAME, e)
                raise
        return

    async def async_stopping(self, v: Variables, logger: Logger, value: object | None) -> None:
        if isinstance(value, StorageBackend):
            try:
                await value.disconnect()
                logger.info("Storage backend '%s' disconnected successfully.", self.PROVIDER_NAME)
            except Exception as e:
                logger.error("Error disconnecting storage backend '%s': %s", self.PROVIDER_NAME, e)
        return
