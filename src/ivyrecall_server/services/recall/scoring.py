"""
Relevance scoring for fused recall candidates.

The base score is a weighted sum of seven bounded signals. A sequence of
multiplicative adjustments (integrity, session affinity, gravity field, entity
gravity wells, conversation context) follows; the product can exceed 1 and is
clamped once at the end. Anchor bias and the analytical boost are applied after
the clamp and clamped again.
"""
from datetime import datetime
from typing import Callable, Iterable, Optional

from ...models.memory import FusedCandidate, ScoredCandidate
from ...models.recall import QueryContext, META_STREAMS
from ...utils import age_in_days, utc_now
from .tables import (
    SCORE_WEIGHTS,
    RECENCY_BUCKETS,
    RECENCY_FLOOR,
    MULTI_SOURCE_SATURATION,
    PATTERN_HIT_INCREMENT,
    COMBO_PATTERNS,
    SEMANTIC_BYPASS_RISK,
    VERIFIABLE_BOOST,
    UNVERIFIABLE_PENALTY,
    SESSION_AFFINITY_FACTOR,
    SESSION_HIGH_GRAVITY,
    SESSION_HIGH_GRAVITY_BOOST,
    FIELD_STRENGTH_DIVISOR,
    FIELD_STRENGTH_CAP,
    ENTITY_WELL_FACTOR,
    ENTITY_WELL_CAP,
    CONTEXT_BOOSTS,
    ANCHOR_BIAS_BOOST,
    ANALYTICAL_BOOST,
    ANALYTICAL_MIN_GRAVITY,
    ANALYTICAL_MAX_AGE_DAYS,
    BOOST_NAMES,
)

_META_SOURCES = frozenset(s.value for s in META_STREAMS)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def recency_score(created_at: datetime, now: Optional[datetime] = None) -> float:
    age = age_in_days(created_at, now)
    for max_age, value in RECENCY_BUCKETS:
        if age < max_age:
            return value
    return RECENCY_FLOOR


def detect_combo_patterns(content: str) -> list[str]:
    """Names of the linguistic combo patterns present in `content`."""
    if not content:
        return []
    return [name for name, pattern in COMBO_PATTERNS.items() if pattern.search(content)]


def _mentions(content_lower: str, terms: Iterable[str]) -> Optional[str]:
    for term in terms:
        if term and term.lower() in content_lower:
            return term
    return None


def base_score(
        candidate: FusedCandidate,
        ctx: QueryContext,
        now: Optional[datetime] = None,
        combos: Optional[list[str]] = None,
) -> tuple[float, dict]:
    """Weighted sum of the seven scoring signals, before adjustments."""
    vector = ctx.integrity.vector
    record = candidate.record
    content = (record.content or "").lower()

    importance_weight = SCORE_WEIGHTS["importance"] * (0.5 + vector.stability * 0.5)
    recency_weight = SCORE_WEIGHTS["recency"] * (0.5 + vector.temporal * 0.5)

    matched = sum(1 for e in ctx.entities if e.lower() in content)
    entity_overlap = matched / max(1, len(ctx.entities))

    emotion_match = 1.0 if record.emotion and record.emotion in ctx.emotion_filter else 0.0
    multi_source = min(1.0, len(candidate.sources) / MULTI_SOURCE_SATURATION)
    if combos is None:
        combos = detect_combo_patterns(record.content)
    pattern_bonus = min(1.0, len(combos) * PATTERN_HIT_INCREMENT * vector.pattern)

    breakdown = {
        "semantic": SCORE_WEIGHTS["semantic"] * candidate.similarity,
        "importance": importance_weight * candidate.importance,
        "recency": recency_weight * recency_score(record.created_at, now),
        "entity": SCORE_WEIGHTS["entity"] * entity_overlap,
        "emotion": SCORE_WEIGHTS["emotion"] * emotion_match * vector.coherence,
        "multi_source": SCORE_WEIGHTS["multi_source"] * multi_source,
        "pattern": SCORE_WEIGHTS["pattern"] * pattern_bonus,
    }
    return sum(breakdown.values()), breakdown


# ============================================
# Post-multiply adjustments; each returns the multiplier applied (1.0 = none)
# ============================================

def integrity_factor(candidate: FusedCandidate, ctx: QueryContext) -> float:
    if ctx.integrity.risk < SEMANTIC_BYPASS_RISK:
        return 1.0
    return VERIFIABLE_BOOST if candidate.record.verifiable else UNVERIFIABLE_PENALTY


def session_factor(candidate: FusedCandidate, ctx: QueryContext) -> float:
    if not ctx.session_id or candidate.record.session_id != ctx.session_id:
        return 1.0
    factor = 1.0 + candidate.importance * SESSION_AFFINITY_FACTOR
    if candidate.importance > SESSION_HIGH_GRAVITY:
        factor *= SESSION_HIGH_GRAVITY_BOOST
    return factor


def gravity_field_factor(candidate: FusedCandidate, ctx: QueryContext) -> float:
    gravity = ctx.gravity
    if gravity.total_mass <= 0 or not ctx.session_id or candidate.record.session_id != ctx.session_id:
        return 1.0
    strength = min(gravity.total_mass / FIELD_STRENGTH_DIVISOR, FIELD_STRENGTH_CAP)
    if candidate.importance > 0.7:
        return 2.0 + strength
    if candidate.importance > 0.4:
        return 1.5 + strength * 0.5
    return 1.0 + strength * 0.3


def entity_well_factor(candidate: FusedCandidate, ctx: QueryContext) -> float:
    content = (candidate.record.content or "").lower()
    for entity, mass in ctx.gravity.entity_anchors.items():
        if mass > 0 and entity.lower() in content:
            return 1.0 + min(mass * ENTITY_WELL_FACTOR, ENTITY_WELL_CAP)
    return 1.0


def context_factor(candidate: FusedCandidate, ctx: QueryContext) -> float:
    conversation = ctx.conversation
    content = (candidate.record.content or "").lower()
    factor = 1.0
    if _mentions(content, conversation.recent_entities):
        factor *= CONTEXT_BOOSTS["recent_entity"]
    if _mentions(content, conversation.current_entities):
        factor *= CONTEXT_BOOSTS["current_entity"]
    if _mentions(content, conversation.recent_topics):
        factor *= CONTEXT_BOOSTS["recent_topic"]
    if conversation.emotional_flow and candidate.record.emotion == conversation.emotional_flow[0]:
        factor *= CONTEXT_BOOSTS["emotional_flow"]
    return factor


BOOSTS: dict[str, Callable[[FusedCandidate, QueryContext], float]] = {
    "integrity": integrity_factor,
    "session": session_factor,
    "gravity_field": gravity_field_factor,
    "entity_well": entity_well_factor,
    "context": context_factor,
}


def anchor_bias_factor(candidate: FusedCandidate, ctx: QueryContext) -> float:
    strategy = ctx.integrity.recall_strategy
    if not strategy.anchor_bias:
        return 1.0
    content = (candidate.record.content or "").lower()
    return ANCHOR_BIAS_BOOST if _mentions(content, strategy.anchor_entities) else 1.0


def analytical_factor(candidate: FusedCandidate, ctx: QueryContext, now: Optional[datetime] = None) -> float:
    if not ctx.tier.is_analytical:
        return 1.0
    if candidate.sources & _META_SOURCES:
        return ANALYTICAL_BOOST
    if (candidate.importance > ANALYTICAL_MIN_GRAVITY
            and age_in_days(candidate.record.created_at, now) < ANALYTICAL_MAX_AGE_DAYS):
        return ANALYTICAL_BOOST
    return 1.0


def score_candidate(
        candidate: FusedCandidate,
        ctx: QueryContext,
        boost_order: Iterable[str] = BOOST_NAMES,
        now: Optional[datetime] = None,
) -> ScoredCandidate:
    """Score one candidate. The result is always within [0, 1]."""
    combos = detect_combo_patterns(candidate.record.content)
    score, breakdown = base_score(candidate, ctx, now, combos)
    breakdown = {f"base_{k}": v for k, v in breakdown.items()}
    breakdown["base"] = score

    for name in boost_order:
        factor = BOOSTS[name](candidate, ctx)
        if factor != 1.0:
            breakdown[f"x_{name}"] = factor
        score *= factor

    score = clamp(score)

    for name, factor in (
            ("anchor_bias", anchor_bias_factor(candidate, ctx)),
            ("analytical", analytical_factor(candidate, ctx, now)),
    ):
        if factor != 1.0:
            breakdown[f"x_{name}"] = factor
            score = clamp(score * factor)

    return ScoredCandidate(
        record=candidate.record,
        sources=set(candidate.sources),
        similarity=candidate.similarity,
        importance=candidate.importance,
        score=score,
        score_breakdown=breakdown,
        patterns_detected=combos,
    )


def score_candidates(
        candidates: list[FusedCandidate],
        ctx: QueryContext,
        boost_order: Iterable[str] = BOOST_NAMES,
        now: Optional[datetime] = None,
) -> list[ScoredCandidate]:
    now = now or utc_now()
    boost_order = tuple(boost_order)
    return [score_candidate(c, ctx, boost_order, now) for c in candidates]
