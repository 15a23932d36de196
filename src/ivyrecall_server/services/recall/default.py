"""
Recall Service - multi-stream, integrity-aware memory recall.

Pipeline:
- validate input and resolve the integrity state (lockdown short-circuits here)
- fetch the session buffer, extract and verify entities
- classify the query and derive thresholds and depth
- run the tier's streams concurrently and fuse their results
- score, select and cluster; derive themes, journey, graph and synthesis
"""
import math
from datetime import datetime, timedelta, timezone
from logging import Logger
from typing import Iterable, Optional

from scitrera_app_framework import get_logger, Variables
from scitrera_app_framework.api import ext_parse_csv

from ...config import (
    IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS, DEFAULT_IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS,
    IVYRECALL_RECALL_DEFAULT_MAX_DEPTH, DEFAULT_IVYRECALL_RECALL_DEFAULT_MAX_DEPTH,
    IVYRECALL_RECALL_BOOST_ORDER, DEFAULT_IVYRECALL_RECALL_BOOST_ORDER,
)
from ...models.integrity import IntegrityState
from ...models.recall import (
    RecallInput, RecallResult, QueryContext, ConversationContext, TimeRange, Synthesis, Diagnostics, StreamName,
    ConsolidationLevel,
)
from ..embedding import EmbeddingService
from ..gravity import GravityFieldStore
from ..integrity import IntegrityProvider
from ..metrics import MetricsService
from ..storage import StorageBackend
from .._constants import (
    EXT_STORAGE_BACKEND,
    EXT_EMBEDDING_SERVICE,
    EXT_INTEGRITY_PROVIDER,
    EXT_GRAVITY_FIELD_STORE,
    EXT_METRICS_SERVICE,
)
from .base import RecallServicePluginBase, RecallValidationError
from .complexity import classify_query
from .fusion import fuse, gravity_threshold, entity_floor, semantic_threshold
from .lexical import extract_entities, resolve_pronouns, verify_entities, infer_temporal_type, time_range_for
from .scoring import BOOSTS, score_candidates
from .selection import select, cluster_by_period
from .streams import StreamRetriever, stream_caps, semantic_limit
from .synthesis import (
    extract_themes, emotional_journey, relationship_graph, synthesize,
    peak_moments, recent_context, session_previews, semantic_insights, reflections, awareness,
)
from .tables import (
    BOOST_NAMES,
    DEEP_MAX_DEPTH,
    MAX_DEPTH_CAP,
    FUSION_DEPTH_FACTOR,
    LOCKDOWN_MESSAGE,
    MISSING_PARAMETERS_MESSAGE,
    SEMANTIC_BYPASS_RISK,
)


def resolve_max_depth(input: RecallInput, integrity: IntegrityState, default_max_depth: int) -> int:
    """Requested depth, capped by the recall strategy's top_k and by the global cap."""
    if input.max_depth is not None:
        max_depth = input.max_depth
    elif input.depth == 'deep':
        max_depth = DEEP_MAX_DEPTH
    else:
        max_depth = default_max_depth

    top_k = integrity.recall_strategy.top_k
    if top_k:
        max_depth = min(max_depth, top_k)
    return max(1, min(max_depth, MAX_DEPTH_CAP))


def adjusted_depth(max_depth: int, integrity: IntegrityState) -> int:
    """Depth scaled by the growth signal: floor(max_depth * (0.5 + growth * 0.5))."""
    return max(1, math.floor(max_depth * (0.5 + integrity.vector.growth * 0.5)))


def resolve_time_range(input: RecallInput, integrity: IntegrityState, now: datetime) -> Optional[TimeRange]:
    """Explicit range, else the range implied by the temporal type, else the strategy's time window."""
    if input.time_range is not None:
        return input.time_range

    temporal_type = input.temporal_type or infer_temporal_type(input.query)
    if temporal_type is not None:
        return time_range_for(temporal_type, now)

    days = integrity.recall_strategy.time_window.days
    if days is not None:
        return TimeRange(start=now - timedelta(days=days), end=now)
    return None


def parse_boost_order(value, logger: Logger = None) -> tuple[str, ...]:
    names = ext_parse_csv(value) if isinstance(value, str) else list(value or ())
    order = []
    for name in names:
        name = name.strip()
        if name in BOOSTS and name not in order:
            order.append(name)
        elif logger and name:
            logger.warning("Ignoring unknown recall boost '%s'", name)
    return tuple(order) or BOOST_NAMES


class RecallService:
    """
    Integrity-aware recall over a user's memory store.

    The service only reads. Failures in individual streams, in entity verification, or in the
    external integrity / gravity sources degrade the result instead of failing the call.
    """

    def __init__(
            self,
            storage: StorageBackend,
            embedding_service: EmbeddingService,
            integrity_provider: IntegrityProvider,
            gravity_store: GravityFieldStore,
            metrics: MetricsService,
            v: Variables = None,
            stream_timeout: float = DEFAULT_IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS,
            default_max_depth: int = DEFAULT_IVYRECALL_RECALL_DEFAULT_MAX_DEPTH,
            boost_order: Iterable[str] = BOOST_NAMES,
    ):
        self.storage = storage
        self.embedding = embedding_service
        self.integrity = integrity_provider
        self.gravity = gravity_store
        self.metrics = metrics
        self.default_max_depth = default_max_depth
        self.logger = get_logger(v, name=self.__class__.__name__)
        self.boost_order = parse_boost_order(boost_order, self.logger)
        self.streams = StreamRetriever(
            storage=storage,
            embedding_service=embedding_service,
            metrics=metrics,
            logger=self.logger,
            timeout=stream_timeout,
        )

        self.logger.info(
            "Initialized RecallService (stream timeout %.1fs, default depth %s, boost order %s)",
            stream_timeout, default_max_depth, ",".join(self.boost_order),
        )

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> int:
        return int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)

    def _lockdown_result(self, integrity: IntegrityState, start_time: datetime) -> RecallResult:
        self.metrics.increment("recall.lockdown")
        self.logger.warning("Recall refused: integrity lockdown (status=%s, risk=%.2f)",
                            integrity.status.value, integrity.risk)
        return RecallResult(
            status="limited",
            reason="integrity_lockdown",
            synthesis=Synthesis(summary=LOCKDOWN_MESSAGE),
            diagnostics=Diagnostics(
                integrity_mode=integrity.mode.value,
                integrity_risk=integrity.risk,
                reason="integrity_lockdown",
                latency_ms=self._elapsed_ms(start_time),
            ),
        )

    async def recall(self, input: RecallInput) -> RecallResult:
        """
        Recall memories relevant to a query.

        Raises:
            RecallValidationError: user_id or query is missing (no retrieval is attempted)
        """
        if not input.user_id or not (input.query or "").strip():
            raise RecallValidationError(MISSING_PARAMETERS_MESSAGE)

        start_time = datetime.now(timezone.utc)
        now = start_time
        user_id, query, session_id = input.user_id, input.query, input.session_id
        self.metrics.increment("recall.calls")

        integrity = input.integrity_state or await self.integrity.resolve(user_id, session_id)
        if integrity.is_locked:
            return self._lockdown_result(integrity, start_time)

        gravity = input.gravity_field or await self.gravity.resolve(session_id)

        # Session history is needed before entity resolution (pronouns)
        session_records = await self.streams.fetch_session_buffer(user_id, session_id)

        entities = extract_entities(query)
        entities = resolve_pronouns(query, entities, session_records)
        if input.verify_entities:
            entities = await verify_entities(entities, self.storage, user_id, self.logger)
        for anchor in integrity.recall_strategy.anchor_entities:
            if anchor and anchor not in entities:
                entities.append(anchor)

        max_depth = resolve_max_depth(input, integrity, self.default_max_depth)
        depth = adjusted_depth(max_depth, integrity)
        time_range = resolve_time_range(input, integrity, now)
        temporal_type = input.temporal_type or infer_temporal_type(query)
        has_temporal = input.time_range is not None or temporal_type is not None

        tier = classify_query(query, len(entities), has_temporal)
        vector = integrity.vector
        g_threshold = gravity_threshold(vector, entities)

        ctx = QueryContext(
            query=query,
            user_id=user_id,
            session_id=session_id,
            integrity=integrity,
            gravity=gravity,
            conversation=input.conversation_context or ConversationContext(),
            entities=entities,
            emotion_filter=list(input.emotion_filter),
            time_range=time_range,
            temporal_type=temporal_type,
            tier=tier,
            max_depth=depth,
            gravity_threshold=g_threshold,
            entity_floor=entity_floor(g_threshold),
            semantic_threshold=semantic_threshold(tier, vector),
            semantic_limit=semantic_limit(depth),
            include_reflections=input.include_reflections,
        )
        self.logger.debug(
            "Recall context: tier=%s, entities=%s, depth=%s, gravity_threshold=%.3f, semantic_threshold=%.3f",
            tier.value, entities, depth, ctx.gravity_threshold, ctx.semantic_threshold,
        )

        run = await self.streams.run(ctx)
        if session_records:
            session_cap = stream_caps(tier, vector)[StreamName.SESSION]
            run.hits[StreamName.SESSION.value] = [(r, 0.0) for r in session_records[:session_cap]]
        ctx.patterns = run.patterns
        ctx.arcs = run.arcs
        ctx.query_embedding = run.query_embedding
        ctx.insights = run.insights

        candidates, echo_count = fuse(run.hits, depth * FUSION_DEPTH_FACTOR)
        scored = score_candidates(candidates, ctx, self.boost_order, now)
        selected = select(scored, tier)

        themes = extract_themes(selected, ctx.patterns, ctx.arcs)
        journey = emotional_journey(selected)
        semantic_hits = run.hits.get(StreamName.SEMANTIC.value, [])

        level = input.consolidation_level
        if level == ConsolidationLevel.RAW:
            memories = [c.model_copy(update={"patterns_detected": []}) for c in selected]
        elif level == ConsolidationLevel.CLUSTERED:
            memories = []
        else:
            memories = selected
        clusters = [] if level == ConsolidationLevel.RAW else cluster_by_period(selected, now)

        reflection_list = None
        if input.include_reflections and integrity.risk < SEMANTIC_BYPASS_RISK:
            reflection_list = reflections(ctx.insights, tier) or None

        result = RecallResult(
            status="success",
            reason=None if candidates else "no_candidates",
            memories=memories,
            clusters=clusters,
            themes=themes,
            emotional_journey=journey,
            relationship_graph=relationship_graph(entities, selected, ctx.arcs),
            synthesis=synthesize(selected, entities, themes, journey, integrity, tier, len(semantic_hits)),
            peak_moments=peak_moments(selected, now),
            recent_context=recent_context(selected, now),
            session_buffer=session_previews(session_records, now),
            semantic_insights=semantic_insights(semantic_hits, now),
            reflections=reflection_list,
            awareness=awareness(
                ctx, run.counts, len(candidates), selected, themes, journey, semantic_hits, run.semantic_threshold,
            ) if input.awareness_mode else None,
            diagnostics=Diagnostics(
                tier=tier,
                integrity_mode=integrity.mode.value,
                integrity_risk=integrity.risk,
                entities=list(entities),
                max_depth=depth,
                stream_counts=run.counts,
                failed_streams=list(run.failed),
                fused_count=len(candidates),
                filtered_user_echo=echo_count,
                selected_count=len(selected),
                gravity_threshold=ctx.gravity_threshold,
                entity_floor=ctx.entity_floor,
                semantic_threshold=run.semantic_threshold,
                adaptive_threshold_applied=run.adaptive_applied,
                semantic_bypassed=run.semantic_bypassed,
                time_range_used=time_range,
                patterns_found=len(ctx.patterns),
                arcs_found=len(ctx.arcs),
                consolidation_level=level,
                latency_ms=self._elapsed_ms(start_time),
                reason=None if candidates else "no_candidates",
            ),
            metadata={
                "user_id": user_id,
                "session_id": session_id,
                "timestamp": now.isoformat(),
            },
        )

        self.metrics.increment(f"recall.tier.{tier.value.lower()}")
        self.logger.info(
            "Recall for user %s: tier=%s, streams=%s, fused=%s, selected=%s, latency=%sms",
            user_id, tier.value, run.counts, len(candidates), len(selected), result.diagnostics.latency_ms,
        )
        return result


class DefaultRecallServicePlugin(RecallServicePluginBase):
    """Default recall service plugin."""
    PROVIDER_NAME = 'default'

    def initialize(self, v: Variables, logger: Logger) -> RecallService:
        return RecallService(
            storage=self.get_extension(EXT_STORAGE_BACKEND, v),
            embedding_service=self.get_extension(EXT_EMBEDDING_SERVICE, v),
            integrity_provider=self.get_extension(EXT_INTEGRITY_PROVIDER, v),
            gravity_store=self.get_extension(EXT_GRAVITY_FIELD_STORE, v),
            metrics=self.get_extension(EXT_METRICS_SERVICE, v),
            v=v,
            stream_timeout=v.environ(
                IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS,
                default=DEFAULT_IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS,
                type_fn=float,
            ),
            default_max_depth=v.environ(
                IVYRECALL_RECALL_DEFAULT_MAX_DEPTH,
                default=DEFAULT_IVYRECALL_RECALL_DEFAULT_MAX_DEPTH,
                type_fn=int,
            ),
            boost_order=v.environ(
                IVYRECALL_RECALL_BOOST_ORDER,
                default=DEFAULT_IVYRECALL_RECALL_BOOST_ORDER,
                type_fn=ext_parse_csv,
            ),
        )
