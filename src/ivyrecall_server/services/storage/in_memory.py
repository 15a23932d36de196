"""
In-memory storage backend for testing.

Provides a complete storage implementation that stores all data in memory.
Data is lost on service restart - use only for testing.
"""
from logging import Logger
from typing import Optional

from scitrera_app_framework import Variables

from .base import StorageBackend, StoragePluginBase, INSIGHT_VISIBLE_STATUSES
from ...models.memory import MemoryRecord, PatternRecord, ArcRecord, InsightRecord
from ...models.recall import TimeRange
from ...utils import cosine_similarity


class MemoryStorageBackend(StorageBackend):
    """
    In-memory storage backend for testing.

    All data is stored in dictionaries and lost on restart.
    Supports vector similarity search using cosine similarity.
    """

    def __init__(self, v: Variables = None):
        super().__init__(v)
        self._memories: dict[str, dict[str, MemoryRecord]] = {}  # user_id -> {memory_id -> MemoryRecord}
        self._patterns: dict[str, dict[str, PatternRecord]] = {}
        self._arcs: dict[str, dict[str, ArcRecord]] = {}
        self._insights: dict[str, dict[str, InsightRecord]] = {}
        self.logger.info("Initialized MemoryStorageBackend")

    async def connect(self) -> None:
        """Initialize storage (no-op for in-memory)."""
        self.logger.info("In-memory storage connected")

    async def disconnect(self) -> None:
        """Close storage (no-op for in-memory)."""
        self.logger.info("In-memory storage disconnected")

    async def health_check(self) -> bool:
        """Always healthy."""
        return True

    # ========== Seeding ==========

    async def add_memory(self, record: MemoryRecord) -> MemoryRecord:
        self._memories.setdefault(record.user_id, {})[record.id] = record
        return record

    async def add_pattern(self, pattern: PatternRecord) -> PatternRecord:
        self._patterns.setdefault(pattern.user_id, {})[pattern.id] = pattern
        return pattern

    async def add_arc(self, arc: ArcRecord) -> ArcRecord:
        self._arcs.setdefault(arc.user_id, {})[arc.id] = arc
        return arc

    async def add_insight(self, insight: InsightRecord) -> InsightRecord:
        self._insights.setdefault(insight.user_id, {})[insight.id] = insight
        return insight

    # ========== Query Interface ==========

    def _all(self, user_id: str) -> list[MemoryRecord]:
        return list(self._memories.get(user_id, {}).values())

    @staticmethod
    def _in_range(records: list[MemoryRecord], time_range: Optional[TimeRange]) -> list[MemoryRecord]:
        if time_range is None:
            return records
        return [m for m in records if time_range.contains(m.created_at)]

    async def get_by_importance(
            self,
            user_id: str,
            min_importance: float,
            limit: int,
            time_range: Optional[TimeRange] = None,
    ) -> list[MemoryRecord]:
        records = [m for m in self._in_range(self._all(user_id), time_range) if m.importance >= min_importance]
        records.sort(key=lambda m: m.importance, reverse=True)
        return records[:limit]

    async def get_recent(
            self,
            user_id: str,
            limit: int,
            time_range: Optional[TimeRange] = None,
    ) -> list[MemoryRecord]:
        records = self._in_range(self._all(user_id), time_range)
        records.sort(key=lambda m: m.created_at, reverse=True)
        return records[:limit]

    async def search_similar(
            self,
            user_id: str,
            query_embedding: list[float],
            min_similarity: float,
            limit: int,
    ) -> list[tuple[MemoryRecord, float]]:
        results = []
        for memory in self._all(user_id):
            if not memory.embedding:
                continue
            similarity = cosine_similarity(query_embedding, memory.embedding)
            if similarity >= min_similarity:
                results.append((memory, similarity))

        results.sort(key=lambda x: x[1], reverse=True)
        return results[:limit]

    async def search_content(
            self,
            user_id: str,
            terms: list[str],
            min_importance: float,
            limit: int,
    ) -> list[MemoryRecord]:
        lowered = [t.lower() for t in terms if t]
        if not lowered:
            return []
        records = [
            m for m in self._all(user_id)
            if m.importance >= min_importance and any(t in m.content.lower() for t in lowered)
        ]
        records.sort(key=lambda m: m.importance, reverse=True)
        return records[:limit]

    async def count_containing(self, user_id: str, term: str) -> int:
        term = term.lower()
        return sum(1 for m in self._all(user_id) if term in m.content.lower())

    async def get_in_time_range(self, user_id: str, time_range: TimeRange, limit: int) -> list[MemoryRecord]:
        records = self._in_range(self._all(user_id), time_range)
        records.sort(key=lambda m: m.created_at, reverse=True)
        return records[:limit]

    async def get_by_emotions(
            self,
            user_id: str,
            emotions: list[str],
            min_importance: float,
            limit: int,
    ) -> list[MemoryRecord]:
        wanted = set(emotions)
        records = [m for m in self._all(user_id) if m.emotion in wanted and m.importance >= min_importance]
        records.sort(key=lambda m: m.importance, reverse=True)
        return records[:limit]

    async def get_session_buffer(self, user_id: str, session_id: Optional[str], limit: int) -> list[MemoryRecord]:
        records = self._all(user_id)
        if session_id:
            records = [m for m in records if m.session_id == session_id]
        records.sort(key=lambda m: m.created_at, reverse=True)
        return records[:limit]

    async def get_by_ids(self, user_id: str, memory_ids: list[str]) -> list[MemoryRecord]:
        memories = self._memories.get(user_id, {})
        return [memories[mid] for mid in memory_ids if mid in memories]

    async def get_patterns(self, user_id: str, limit: int, active_only: bool = True) -> list[PatternRecord]:
        patterns = [p for p in self._patterns.get(user_id, {}).values() if p.active or not active_only]
        patterns.sort(key=lambda p: p.confidence, reverse=True)
        return patterns[:limit]

    async def get_arcs(self, user_id: str, limit: int) -> list[ArcRecord]:
        arcs = list(self._arcs.get(user_id, {}).values())
        arcs.sort(key=lambda a: a.gravity_center, reverse=True)
        return arcs[:limit]

    async def get_insights(self, user_id: str, limit: int) -> list[InsightRecord]:
        insights = [i for i in self._insights.get(user_id, {}).values() if i.delivery_status in INSIGHT_VISIBLE_STATUSES]
        insights.sort(key=lambda i: i.importance, reverse=True)
        return insights[:limit]


class MemoryStoragePlugin(StoragePluginBase):
    """Plugin for in-memory storage backend."""

    PROVIDER_NAME = 'memory'

    def initialize(self, v: Variables, logger: Logger) -> MemoryStorageBackend:
        return MemoryStorageBackend(v=v)
