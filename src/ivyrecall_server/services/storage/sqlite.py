"""SQLite storage backend."""
import json
import struct
from datetime import datetime, timezone
from logging import Logger
from pathlib import Path
from typing import Any, Optional

import aiosqlite

from scitrera_app_framework import Variables as Variables

from ...models.memory import MemoryRecord, PatternRecord, ArcRecord, InsightRecord
from ...models.recall import TimeRange
from .base import StorageBackend, StoragePluginBase, INSIGHT_VISIBLE_STATUSES
from ...config import IVYRECALL_SQLITE_STORAGE_PATH, DEFAULT_IVYRECALL_SQLITE_STORAGE_PATH
from ...utils import parse_datetime_utc, cosine_similarity


def _ts(dt: datetime) -> str:
    # stored as UTC ISO strings so lexical comparison matches chronological order
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLiteStorageBackend(StorageBackend):
    """SQLite storage backend; similarity search is computed in Python over stored embeddings."""

    def __init__(self, db_path: str = "ivyrecall.db", v: Variables = None):
        """
        Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file
            v: Variables for logging context
        """
        super().__init__(v)
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Initialize storage connection."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.logger.info("Connecting to SQLite database at %s", Path(self.db_path).absolute())

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

        # WAL for concurrent readers (every recall stream reads in parallel)
        await self._connection.execute("PRAGMA journal_mode=WAL")

        await self._create_tables()
        self.logger.info("Connected to SQLite database at %s", self.db_path)

    async def disconnect(self) -> None:
        """Close storage connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            self.logger.info("Disconnected from SQLite database")

    async def health_check(self) -> bool:
        """Check if storage is healthy."""
        try:
            if self._connection:
                await self._connection.execute("SELECT 1")
                return True
            return False
        except Exception as e:
            self.logger.error("Health check failed: %s", e)
            return False

    async def _create_tables(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS memories (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL,
                importance REAL NOT NULL DEFAULT 0.5,
                emotion TEXT,
                session_id TEXT,
                type TEXT,
                metadata TEXT DEFAULT '{}',
                embedding BLOB
            )
        """)
        await self._connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_memories_user_importance ON memories(user_id, importance DESC)")
        await self._connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_memories_user_created ON memories(user_id, created_at DESC)")
        await self._connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_memories_session ON memories(user_id, session_id, created_at DESC)")

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS patterns (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                pattern_type TEXT NOT NULL,
                description TEXT,
                confidence REAL DEFAULT 0.5,
                active INTEGER DEFAULT 1,
                memory_ids TEXT DEFAULT '[]'
            )
        """)
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS arcs (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                arc_name TEXT NOT NULL,
                gravity_center REAL DEFAULT 0,
                memory_count INTEGER DEFAULT 0,
                emotional_tone TEXT,
                memory_ids TEXT DEFAULT '[]'
            )
        """)
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS insights (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                content TEXT NOT NULL,
                importance REAL DEFAULT 0.5,
                emotion TEXT,
                created_at TEXT NOT NULL,
                delivery_status TEXT DEFAULT 'queued'
            )
        """)
        await self._connection.commit()

    # ========== Seeding ==========

    async def add_memory(self, record: MemoryRecord) -> MemoryRecord:
        await self._connection.execute(
            """
            INSERT OR REPLACE INTO memories
                (id, user_id, content, created_at, importance, emotion, session_id, type, metadata, embedding)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.user_id,
                record.content,
                _ts(record.created_at),
                record.importance,
                record.emotion,
                record.session_id,
                record.type,
                json.dumps(record.metadata),
                self._serialize_embedding(record.embedding) if record.embedding else None,
            ),
        )
        await self._connection.commit()
        return record

    async def add_pattern(self, pattern: PatternRecord) -> PatternRecord:
        await self._connection.execute(
            """
            INSERT OR REPLACE INTO patterns (id, user_id, pattern_type, description, confidence, active, memory_ids)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                pattern.id, pattern.user_id, pattern.pattern_type, pattern.description,
                pattern.confidence, 1 if pattern.active else 0, json.dumps(pattern.memory_ids),
            ),
        )
        await self._connection.commit()
        return pattern

    async def add_arc(self, arc: ArcRecord) -> ArcRecord:
        await self._connection.execute(
            """
            INSERT OR REPLACE INTO arcs (id, user_id, arc_name, gravity_center, memory_count, emotional_tone, memory_ids)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                arc.id, arc.user_id, arc.arc_name, arc.gravity_center,
                arc.memory_count, arc.emotional_tone, json.dumps(arc.memory_ids),
            ),
        )
        await self._connection.commit()
        return arc

    async def add_insight(self, insight: InsightRecord) -> InsightRecord:
        await self._connection.execute(
            """
            INSERT OR REPLACE INTO insights (id, user_id, content, importance, emotion, created_at, delivery_status)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                insight.id, insight.user_id, insight.content, insight.importance,
                insight.emotion, _ts(insight.created_at), insight.delivery_status,
            ),
        )
        await self._connection.commit()
        return insight

    # ========== Query Interface ==========

    @staticmethod
    def _range_clause(time_range: Optional[TimeRange], where_parts: list[str], params: list[Any]) -> None:
        if time_range is None:
            return
        if time_range.start is not None:
            where_parts.append("created_at >= ?")
            params.append(_ts(time_range.start))
        if time_range.end is not None:
            where_parts.append("created_at <= ?")
            params.append(_ts(time_range.end))

    async def _fetch_memories(self, query: str, params: list[Any]) -> list[MemoryRecord]:
        cursor = await self._connection.execute(query, params)
        rows = await cursor.fetchall()
        return [self._row_to_memory(row) for row in rows]

    async def get_by_importance(
            self,
            user_id: str,
            min_importance: float,
            limit: int,
            time_range: Optional[TimeRange] = None,
    ) -> list[MemoryRecord]:
        where_parts = ["user_id = ?", "importance >= ?"]
        params: list[Any] = [user_id, min_importance]
        self._range_clause(time_range, where_parts, params)
        query = f"SELECT * FROM memories WHERE {' AND '.join(where_parts)} ORDER BY importance DESC LIMIT ?"
        return await self._fetch_memories(query, params + [limit])

    async def get_recent(
            self,
            user_id: str,
            limit: int,
            time_range: Optional[TimeRange] = None,
    ) -> list[MemoryRecord]:
        where_parts = ["user_id = ?"]
        params: list[Any] = [user_id]
        self._range_clause(time_range, where_parts, params)
        query = f"SELECT * FROM memories WHERE {' AND '.join(where_parts)} ORDER BY created_at DESC LIMIT ?"
        return await self._fetch_memories(query, params + [limit])

    async def search_similar(
            self,
            user_id: str,
            query_embedding: list[float],
            min_similarity: float,
            limit: int,
    ) -> list[tuple[MemoryRecord, float]]:
        """Compute cosine similarity in Python."""
        cursor = await self._connection.execute(
            "SELECT * FROM memories WHERE user_id = ? AND embedding IS NOT NULL", (user_id,)
        )
        rows = await cursor.fetchall()

        results = []
        for row in rows:
            memory = self._row_to_memory(row)
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
        terms = [t for t in terms if t]
        if not terms:
            return []
        like_clause = " OR ".join("content LIKE ? ESCAPE '\\'" for _ in terms)
        query = f"""
            SELECT * FROM memories
            WHERE user_id = ? AND importance >= ? AND ({like_clause})
            ORDER BY importance DESC
            LIMIT ?
        """
        params = [user_id, min_importance] + [_like_pattern(t) for t in terms] + [limit]
        return await self._fetch_memories(query, params)

    async def count_containing(self, user_id: str, term: str) -> int:
        cursor = await self._connection.execute(
            "SELECT COUNT(*) AS n FROM memories WHERE user_id = ? AND content LIKE ? ESCAPE '\\'",
            (user_id, _like_pattern(term)),
        )
        row = await cursor.fetchone()
        return int(row["n"]) if row else 0

    async def get_in_time_range(self, user_id: str, time_range: TimeRange, limit: int) -> list[MemoryRecord]:
        return await self.get_recent(user_id, limit, time_range=time_range)

    async def get_by_emotions(
            self,
            user_id: str,
            emotions: list[str],
            min_importance: float,
            limit: int,
    ) -> list[MemoryRecord]:
        if not emotions:
            return []
        placeholders = ",".join("?" * len(emotions))
        query = f"""
            SELECT * FROM memories
            WHERE user_id = ? AND importance >= ? AND emotion IN ({placeholders})
            ORDER BY importance DESC
            LIMIT ?
        """
        return await self._fetch_memories(query, [user_id, min_importance, *emotions, limit])

    async def get_session_buffer(self, user_id: str, session_id: Optional[str], limit: int) -> list[MemoryRecord]:
        if session_id:
            query = "SELECT * FROM memories WHERE user_id = ? AND session_id = ? ORDER BY created_at DESC LIMIT ?"
            return await self._fetch_memories(query, [user_id, session_id, limit])
        return await self.get_recent(user_id, limit)

    async def get_by_ids(self, user_id: str, memory_ids: list[str]) -> list[MemoryRecord]:
        if not memory_ids:
            return []
        placeholders = ",".join("?" * len(memory_ids))
        query = f"SELECT * FROM memories WHERE user_id = ? AND id IN ({placeholders})"
        return await self._fetch_memories(query, [user_id, *memory_ids])

    async def get_patterns(self, user_id: str, limit: int, active_only: bool = True) -> list[PatternRecord]:
        where = "user_id = ? AND active = 1" if active_only else "user_id = ?"
        cursor = await self._connection.execute(
            f"SELECT * FROM patterns WHERE {where} ORDER BY confidence DESC LIMIT ?", (user_id, limit)
        )
        rows = await cursor.fetchall()
        return [
            PatternRecord(
                id=row["id"],
                user_id=row["user_id"],
                pattern_type=row["pattern_type"],
                description=row["description"],
                confidence=row["confidence"],
                active=bool(row["active"]),
                memory_ids=json.loads(row["memory_ids"] or "[]"),
            )
            for row in rows
        ]

    async def get_arcs(self, user_id: str, limit: int) -> list[ArcRecord]:
        cursor = await self._connection.execute(
            "SELECT * FROM arcs WHERE user_id = ? ORDER BY gravity_center DESC LIMIT ?", (user_id, limit)
        )
        rows = await cursor.fetchall()
        return [
            ArcRecord(
                id=row["id"],
                user_id=row["user_id"],
                arc_name=row["arc_name"],
                gravity_center=row["gravity_center"],
                memory_count=row["memory_count"],
                emotional_tone=row["emotional_tone"],
                memory_ids=json.loads(row["memory_ids"] or "[]"),
            )
            for row in rows
        ]

    async def get_insights(self, user_id: str, limit: int) -> list[InsightRecord]:
        placeholders = ",".join("?" * len(INSIGHT_VISIBLE_STATUSES))
        cursor = await self._connection.execute(
            f"SELECT * FROM insights WHERE user_id = ? AND delivery_status IN ({placeholders}) "
            "ORDER BY importance DESC LIMIT ?",
            (user_id, *INSIGHT_VISIBLE_STATUSES, limit),
        )
        rows = await cursor.fetchall()
        return [
            InsightRecord(
                id=row["id"],
                user_id=row["user_id"],
                content=row["content"],
                importance=row["importance"],
                emotion=row["emotion"],
                created_at=parse_datetime_utc(row["created_at"]),
                delivery_status=row["delivery_status"],
            )
            for row in rows
        ]

    def _row_to_memory(self, row: aiosqlite.Row) -> MemoryRecord:
        """Convert database row to MemoryRecord domain model."""
        return MemoryRecord(
            id=row["id"],
            user_id=row["user_id"],
            content=row["content"],
            created_at=parse_datetime_utc(row["created_at"]),
            importance=row["importance"],
            emotion=row["emotion"],
            session_id=row["session_id"],
            type=row["type"],
            metadata=json.loads(row["metadata"] or "{}"),
            embedding=self._deserialize_embedding(row["embedding"]) if row["embedding"] else None,
        )

    @staticmethod
    def _serialize_embedding(embedding: list[float]) -> bytes:
        """Serialize embedding to binary format."""
        return struct.pack(f'{len(embedding)}f', *embedding)

    @staticmethod
    def _deserialize_embedding(blob: bytes) -> list[float]:
        """Deserialize embedding from binary format."""
        num_floats = len(blob) // 4
        return list(struct.unpack(f'{num_floats}f', blob))


class SqliteStorageBackendPlugin(StoragePluginBase):
    PROVIDER_NAME = 'sqlite'

    def initialize(self, v: Variables, logger: Logger) -> object | None:
        return SQLiteStorageBackend(
            db_path=v.environ(IVYRECALL_SQLITE_STORAGE_PATH, default=DEFAULT_IVYRECALL_SQLITE_STORAGE_PATH),
            v=v
        )
