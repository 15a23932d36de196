"""
Cross-stream fusion and the adaptive thresholds that feed the streams.

Fusion keys candidates by record id, unions stream tags, and keeps the max
similarity and importance seen for each record.
"""
from typing import Iterable

from ...models.integrity import CortexVector
from ...models.memory import MemoryRecord, FusedCandidate
from ...models.recall import ComplexityTier, StreamName
from .tables import (
    GRAVITY_THRESHOLD_BASE,
    ENTITY_GRAVITY_THRESHOLD,
    SEMANTIC_THRESHOLD_BASE,
    SEMANTIC_THRESHOLD_ANALYTICAL,
    SEMANTIC_THRESHOLD_MIN,
    ADAPTIVE_HIGH_HITS,
    ADAPTIVE_LOW_HITS,
    ADAPTIVE_STEP,
    ADAPTIVE_CEILING,
    ADAPTIVE_FLOOR,
)

StreamHits = list[tuple[MemoryRecord, float]]

# targeted streams first so the size cap trims broad streams before narrow ones
FUSION_ORDER = (
    StreamName.ENTITY,
    StreamName.TEMPORAL,
    StreamName.EMOTIONAL,
    StreamName.PEAK,
    StreamName.PATTERN,
    StreamName.ARC,
    StreamName.SEMANTIC,
    StreamName.SESSION,
    StreamName.BASELINE,
    StreamName.RECENT,
)


def fuse(stream_hits: dict[str, StreamHits], max_size: int) -> tuple[list[FusedCandidate], int]:
    """
    Merge stream outputs into at most `max_size` candidates, one per record id.

    User-echo records are dropped. Output order depends only on FUSION_ORDER and
    each stream's own ordering, never on which stream finished first.

    Returns:
        (candidates, number of user-echo records dropped)
    """
    fused: dict[str, FusedCandidate] = {}
    echo_ids: set[str] = set()

    ordered = [s.value for s in FUSION_ORDER if s.value in stream_hits]
    ordered += sorted(s for s in stream_hits if s not in ordered)

    for stream in ordered:
        for record, similarity in stream_hits[stream]:
            if record.is_user_echo:
                echo_ids.add(record.id)
                continue

            existing = fused.get(record.id)
            if existing is None:
                fused[record.id] = FusedCandidate(
                    record=record,
                    sources={stream},
                    similarity=similarity,
                    importance=record.importance,
                )
                continue

            existing.sources.add(stream)
            existing.similarity = max(existing.similarity, similarity)
            existing.importance = max(existing.importance, record.importance)

    candidates = list(fused.values())
    return candidates[:max(0, max_size)], len(echo_ids)


def gravity_threshold(vector: CortexVector, entities: Iterable[str] = ()) -> float:
    """Importance floor for the baseline and emotion streams."""
    threshold = GRAVITY_THRESHOLD_BASE * (0.5 + vector.stability * 0.5)
    if any(True for _ in entities):
        threshold = min(threshold, ENTITY_GRAVITY_THRESHOLD)
    return threshold


def entity_floor(threshold: float) -> float:
    """Lowered importance floor used by the entity stream."""
    return min(0.1, threshold * 0.25)


def semantic_threshold(tier: ComplexityTier, vector: CortexVector) -> float:
    """Initial similarity threshold for the semantic stream."""
    if tier.is_analytical:
        return SEMANTIC_THRESHOLD_ANALYTICAL
    return max(SEMANTIC_THRESHOLD_MIN, SEMANTIC_THRESHOLD_BASE * (0.7 + vector.pattern * 0.3))


def adapt_semantic_threshold(base: float, hit_count: int) -> float:
    """
    Tighten or loosen the semantic threshold after a first pass.

    More than 400 hits raises it by 0.10 (at most 0.55); fewer than 50 lowers it
    by 0.10 (at least 0.20); otherwise `base` is returned unchanged.
    """
    if hit_count > ADAPTIVE_HIGH_HITS:
        return min(ADAPTIVE_CEILING, max(SEMANTIC_THRESHOLD_MIN, base + ADAPTIVE_STEP))
    if hit_count < ADAPTIVE_LOW_HITS:
        return max(ADAPTIVE_FLOOR, base - ADAPTIVE_STEP)
    return base
