"""
Concurrent retrieval streams.

Every enabled stream is issued at once and the call proceeds when all have settled.
A stream that raises or exceeds the per-stream timeout contributes no records; the
failure is logged and counted but never propagated.
"""
import asyncio
from dataclasses import dataclass, field
from logging import Logger
from typing import Awaitable, Callable, Optional

from ...models.integrity import CortexVector
from ...models.memory import MemoryRecord, PatternRecord, ArcRecord, InsightRecord
from ...models.recall import ComplexityTier, QueryContext, StreamName
from ...utils import is_zero_vector
from ..embedding import EmbeddingService
from ..metrics import MetricsService
from ..storage import StorageBackend
from .fusion import StreamHits, adapt_semantic_threshold
from .tables import (
    STREAM_BASE_CAPS,
    PEAK_GRAVITY_THRESHOLD,
    SEMANTIC_MAX_RESULTS,
    ADAPTIVE_HIGH_HITS,
    SEMANTIC_BYPASS_RISK,
    PATTERN_STREAM_MAX_RISK,
    REFLECTION_FETCH_LIMIT,
)


def stream_caps(tier: ComplexityTier, vector: CortexVector) -> dict[StreamName, int]:
    """Per-stream result caps for a tier, scaled by the cortex vector where applicable."""
    caps = {name: max(1, int(base * tier.multiplier)) for name, base in STREAM_BASE_CAPS.items()}
    caps[StreamName.BASELINE] = max(1, int(caps[StreamName.BASELINE] * (0.5 + vector.coherence * 0.5)))
    caps[StreamName.RECENT] = max(1, int(caps[StreamName.RECENT] * (0.5 + vector.temporal * 0.5)))
    return caps


def semantic_limit(adjusted_depth: int) -> int:
    return max(1, min(adjusted_depth * 2, SEMANTIC_MAX_RESULTS))


def _as_hits(records: list[MemoryRecord], similarity: float = 0.0) -> StreamHits:
    return [(r, similarity) for r in records]


@dataclass
class StreamRun:
    """Outcome of one round of stream retrieval."""
    hits: dict[str, StreamHits] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)
    semantic_threshold: Optional[float] = None
    adaptive_applied: bool = False
    semantic_bypassed: bool = False
    query_embedding: Optional[list[float]] = None
    patterns: list[PatternRecord] = field(default_factory=list)
    arcs: list[ArcRecord] = field(default_factory=list)
    insights: list[InsightRecord] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {name: len(hits) for name, hits in self.hits.items()}


class StreamRetriever:
    """Issues the tier's streams against the storage backend."""

    def __init__(
            self,
            storage: StorageBackend,
            embedding_service: EmbeddingService,
            metrics: MetricsService,
            logger: Logger,
            timeout: float = 5.0,
    ):
        self.storage = storage
        self.embedding = embedding_service
        self.metrics = metrics
        self.logger = logger
        self.timeout = timeout

    async def _guarded(self, name: str, coro: Awaitable[StreamHits]) -> tuple[str, StreamHits, bool]:
        self.metrics.increment(f"recall.stream.{name}.calls")
        try:
            return name, await asyncio.wait_for(coro, timeout=self.timeout), True
        except asyncio.TimeoutError:
            self.logger.warning("Recall stream '%s' timed out after %.1fs", name, self.timeout)
        except Exception as e:
            self.logger.warning("Recall stream '%s' failed: %s", name, e)
        self.metrics.increment(f"recall.stream.{name}.failures")
        return name, [], False

    async def fetch_session_buffer(self, user_id: str, session_id: Optional[str],
                                   limit: int = STREAM_BASE_CAPS[StreamName.SESSION]) -> list[MemoryRecord]:
        """Most recent records of the session; fetched before entity resolution."""
        _, hits, _ = await self._guarded(
            StreamName.SESSION.value,
            self._records(self.storage.get_session_buffer(user_id, session_id, limit)),
        )
        return [record for record, _ in hits]

    @staticmethod
    async def _records(coro: Awaitable[list[MemoryRecord]], similarity: float = 0.0) -> StreamHits:
        return _as_hits(await coro, similarity)

    # ============================================
    # Streams
    # ============================================

    async def _semantic(self, ctx: QueryContext, embedding_task: asyncio.Task, run: StreamRun) -> StreamHits:
        embedding = await embedding_task
        run.query_embedding = embedding
        if is_zero_vector(embedding):
            self.logger.debug("Query embedding is the zero vector; semantic stream returns nothing")
            return []

        # fetch past the adaptive ceiling so an over-broad threshold can be detected
        first = await self.storage.search_similar(
            ctx.user_id, embedding, ctx.semantic_threshold, max(ctx.semantic_limit, ADAPTIVE_HIGH_HITS + 1),
        )
        adapted = adapt_semantic_threshold(ctx.semantic_threshold, len(first))
        run.semantic_threshold = adapted
        if adapted == ctx.semantic_threshold:
            return first[:ctx.semantic_limit]

        run.adaptive_applied = True
        self.logger.debug(
            "Semantic threshold adapted %.2f -> %.2f after %s hits", ctx.semantic_threshold, adapted, len(first),
        )
        return await self.storage.search_similar(ctx.user_id, embedding, adapted, ctx.semantic_limit)

    async def _patterns(self, ctx: QueryContext, limit: int, run: StreamRun) -> StreamHits:
        patterns = await self.storage.get_patterns(ctx.user_id, limit)
        run.patterns = patterns
        ids = list(dict.fromkeys(mid for p in patterns for mid in p.memory_ids))
        if not ids:
            return []
        return _as_hits(await self.storage.get_by_ids(ctx.user_id, ids))

    async def _arcs(self, ctx: QueryContext, limit: int, run: StreamRun) -> StreamHits:
        arcs = await self.storage.get_arcs(ctx.user_id, limit)
        run.arcs = arcs
        ids = list(dict.fromkeys(mid for a in arcs for mid in a.memory_ids))
        if not ids:
            return []
        return _as_hits(await self.storage.get_by_ids(ctx.user_id, ids))

    async def _reflections(self, ctx: QueryContext, run: StreamRun) -> None:
        # not a memory stream: reflections never enter fusion
        _, insights, _ = await self._guarded(
            "reflections", self.storage.get_insights(ctx.user_id, REFLECTION_FETCH_LIMIT),
        )
        run.insights = insights

    def _plan(self, ctx: QueryContext, run: StreamRun, embedding_task: Optional[asyncio.Task]
              ) -> dict[StreamName, Callable[[], Awaitable[StreamHits]]]:
        """Stream factories for the tier; streams missing their required input are left out."""
        storage = self.storage
        caps = stream_caps(ctx.tier, ctx.integrity.vector)
        enabled = ctx.tier.streams
        uid = ctx.user_id
        plan = {}

        if StreamName.BASELINE in enabled:
            plan[StreamName.BASELINE] = lambda: self._records(storage.get_by_importance(
                uid, ctx.gravity_threshold, caps[StreamName.BASELINE], ctx.time_range))
        if StreamName.RECENT in enabled:
            plan[StreamName.RECENT] = lambda: self._records(storage.get_recent(
                uid, caps[StreamName.RECENT], ctx.time_range))
        if StreamName.SEMANTIC in enabled and embedding_task is not None:
            plan[StreamName.SEMANTIC] = lambda: self._semantic(ctx, embedding_task, run)
        if StreamName.ENTITY in enabled and ctx.entities:
            plan[StreamName.ENTITY] = lambda: self._records(storage.search_content(
                uid, ctx.entities, ctx.entity_floor, caps[StreamName.ENTITY]))
        if StreamName.TEMPORAL in enabled and ctx.time_range is not None:
            plan[StreamName.TEMPORAL] = lambda: self._records(storage.get_in_time_range(
                uid, ctx.time_range, caps[StreamName.TEMPORAL]))
        if StreamName.EMOTIONAL in enabled and ctx.emotion_filter:
            plan[StreamName.EMOTIONAL] = lambda: self._records(storage.get_by_emotions(
                uid, ctx.emotion_filter, ctx.gravity_threshold, caps[StreamName.EMOTIONAL]))
        if StreamName.PEAK in enabled:
            plan[StreamName.PEAK] = lambda: self._records(storage.get_by_importance(
                uid, PEAK_GRAVITY_THRESHOLD, caps[StreamName.PEAK]))
        if StreamName.PATTERN in enabled and ctx.integrity.risk < PATTERN_STREAM_MAX_RISK:
            plan[StreamName.PATTERN] = lambda: self._patterns(ctx, caps[StreamName.PATTERN], run)
        if StreamName.ARC in enabled:
            plan[StreamName.ARC] = lambda: self._arcs(ctx, caps[StreamName.ARC], run)
        return plan

    async def run(self, ctx: QueryContext) -> StreamRun:
        """Run every stream enabled for `ctx.tier` concurrently."""
        run = StreamRun(semantic_threshold=ctx.semantic_threshold)

        embedding_task = None
        if StreamName.SEMANTIC in ctx.tier.streams:
            # bypassed embedding is the zero vector, so the semantic stream finds nothing
            run.semantic_bypassed = ctx.integrity.risk >= SEMANTIC_BYPASS_RISK
            if run.semantic_bypassed:
                self.logger.debug("Semantic stream bypassed at integrity risk %.2f", ctx.integrity.risk)
            embedding_task = asyncio.create_task(self.embedding.embed(ctx.query, bypass=run.semantic_bypassed))

        plan = self._plan(ctx, run, embedding_task)
        pending = [self._guarded(name.value, factory()) for name, factory in plan.items()]
        if ctx.include_reflections and ctx.integrity.risk < SEMANTIC_BYPASS_RISK:
            pending.append(self._reflections(ctx, run))
        results = await asyncio.gather(*pending, return_exceptions=True)

        for result in results:
            if result is None:
                continue
            if isinstance(result, BaseException):
                # _guarded already absorbs stream errors; this only catches cancellation leaks
                self.logger.warning("Recall stream raised outside its guard: %s", result)
                continue
            name, hits, ok = result
            run.hits[name] = hits
            if not ok:
                run.failed.append(name)

        if embedding_task is not None and not embedding_task.done():
            embedding_task.cancel()
        return run
