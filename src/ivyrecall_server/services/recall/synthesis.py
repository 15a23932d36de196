"""
Derived signals over the final selection: themes, emotional journey,
entity relationship graph, a short integrity-aware synthesis, and the
preview lists returned alongside the memories.
"""
from collections import Counter
from datetime import datetime
from itertools import combinations
from typing import Optional

from ...models.integrity import IntegrityState
from ...models.memory import MemoryRecord, ScoredCandidate, PatternRecord, ArcRecord, InsightRecord
from ...models.recall import (
    ComplexityTier, Theme, EmotionalJourney, RelationshipGraph, EntityConnection, ArcCluster, Synthesis,
    MemoryPreview, SemanticInsights, Reflection, Awareness, QueryContext, StreamName,
)
from ...utils import age_in_days, format_time_ago
from .lexical import contains_keyword
from .tables import (
    PEAK_GRAVITY_THRESHOLD,
    PEAK_MOMENT_COUNT,
    RECENT_CONTEXT_DAYS,
    RECENT_CONTEXT_COUNT,
    SESSION_PREVIEW_COUNT,
    PREVIEW_LENGTH,
    SEMANTIC_INSIGHT_COUNT,
    THEME_KEYWORDS,
    MAX_THEMES,
    JOURNEY_TOP_EMOTIONS,
    JOURNEY_SEGMENTS,
    DEFAULT_EMOTION,
    QUOTE_MAX_LENGTH,
    QUOTE_NOISE,
    QUOTE_SENTENCE,
    QUOTE_SIGNALS,
    STRICT_QUOTE_MIN_GRAVITY,
    GUARDED_QUOTE_MIN_GRAVITY,
    PATTERN_STREAM_MAX_RISK,
    MAX_SUGGESTIONS,
)


def extract_themes(
        selected: list[ScoredCandidate],
        patterns: Optional[list[PatternRecord]] = None,
        arcs: Optional[list[ArcRecord]] = None,
) -> list[Theme]:
    """Topic keyword matches plus meta-stream labels, most frequent first (top 7)."""
    counts: Counter = Counter()
    for candidate in selected:
        content = candidate.record.content or ""
        for theme, keywords in THEME_KEYWORDS.items():
            matches = sum(1 for k in keywords if contains_keyword(content, k))
            if matches:
                counts[theme] += matches

    for pattern in patterns or ():
        counts[f"pattern: {pattern.pattern_type}"] += 1
    for arc in arcs or ():
        counts[f"arc: {arc.arc_name}"] += 1

    total = max(len(selected), 1)
    themes = []
    for name, count in counts.most_common(MAX_THEMES):
        strength = min(count / total, 1.0)
        themes.append(Theme(name=name, frequency=count, strength=strength, percentage=round(strength * 100)))
    return themes


def emotional_journey(selected: list[ScoredCandidate]) -> EmotionalJourney:
    """Emotion trajectory over the selection in chronological order."""
    ordered = sorted(selected, key=lambda c: c.record.created_at)
    emotions = [c.record.emotion for c in ordered if c.record.emotion]
    if not emotions:
        return EmotionalJourney()

    counts = Counter(emotions)
    shifts = sum(1 for prev, cur in zip(emotions, emotions[1:]) if prev != cur)
    stability = 1.0 - shifts / (len(emotions) - 1) if len(emotions) > 1 else 1.0

    chunk = max(1, len(emotions) // JOURNEY_SEGMENTS)
    progression = []
    for i in range(0, len(emotions), chunk):
        segment = Counter(emotions[i:i + chunk])
        progression.append(max(segment, key=segment.get))

    return EmotionalJourney(
        dominant_emotions=[e for e, _ in counts.most_common(JOURNEY_TOP_EMOTIONS)],
        unique_emotions=len(counts),
        emotional_shifts=shifts,
        stability=stability,
        progression=progression,
    )


def relationship_graph(
        entities: list[str],
        selected: list[ScoredCandidate],
        arcs: Optional[list[ArcRecord]] = None,
) -> RelationshipGraph:
    """Entity co-occurrence across the selection, plus arc-derived clusters."""
    contents = [(c.record.content or "").lower() for c in selected]
    total = max(len(selected), 1)

    connections = []
    for a, b in combinations(entities, 2):
        together = sum(1 for text in contents if a.lower() in text and b.lower() in text)
        if together:
            connections.append(EntityConnection(
                source=a,
                target=b,
                strength=min(together / total, 1.0),
                context=f"Co-occurred {together} times",
                memories_involved=together,
            ))
    connections.sort(key=lambda c: c.memories_involved, reverse=True)

    clusters = [
        ArcCluster(
            arc_id=arc.id,
            name=arc.arc_name,
            gravity_center=arc.gravity_center,
            memory_count=arc.memory_count,
            emotional_tone=arc.emotional_tone,
        )
        for arc in arcs or ()
    ]
    return RelationshipGraph(primary_entities=list(entities), connections=connections, clusters=clusters)


def extract_quote(content: str, max_length: int = QUOTE_MAX_LENGTH) -> str:
    """The most informative sentence of `content`, truncated on a word boundary."""
    cleaned = QUOTE_NOISE.sub("", content or "").strip()
    sentences = [s.strip() for s in QUOTE_SENTENCE.findall(cleaned)] or [cleaned]

    def signal(sentence: str) -> int:
        return sum(weight for pattern, weight in QUOTE_SIGNALS if pattern.search(sentence))

    best = max(sentences, key=signal) if sentences else cleaned
    if len(best) <= max_length:
        return best
    cut = best.rfind(" ", 0, max_length)
    return best[:cut if cut > 0 else max_length] + "..."


def _narrative(selected: list[ScoredCandidate], integrity: IntegrityState) -> str:
    if not selected:
        return ""

    if integrity.mode.is_strict:
        for c in selected:
            if c.record.verifiable or c.importance > STRICT_QUOTE_MIN_GRAVITY:
                return f'Verified: "{extract_quote(c.record.content)}"'
        return ""

    if integrity.risk > PATTERN_STREAM_MAX_RISK:
        for c in selected:
            if c.importance > GUARDED_QUOTE_MIN_GRAVITY:
                return f'Key finding: "{extract_quote(c.record.content)}"'
        return ""

    top = max(selected, key=lambda c: c.importance)
    return f'Primary finding: "{extract_quote(top.record.content)}"'


def _suggestions(
        selected: list[ScoredCandidate],
        entities: list[str],
        themes: list[Theme],
        journey: EmotionalJourney,
        integrity: IntegrityState,
        semantic_count: int,
) -> list[str]:
    suggestions = []
    if integrity.risk < PATTERN_STREAM_MAX_RISK:
        for entity in entities:
            mentions = sum(1 for c in selected if entity.lower() in (c.record.content or "").lower())
            if mentions > 5:
                suggestions.append(f"Explore {entity}'s evolution over time")
        if len(themes) > 3:
            suggestions.append(f"Deep dive into {themes[3].name}")
        if journey.emotional_shifts > 10:
            suggestions.append("Examine emotional transitions in detail")
        if len(selected) > 50:
            suggestions.append("Focus on a specific time period")
        if semantic_count > 20:
            suggestions.append("Explore conceptually related memories")

    if any(c.importance > 0.9 for c in selected):
        suggestions.append("Investigate highest gravity moments")
    if len(entities) > 1:
        suggestions.append(f"Explore relationship between {entities[0]} and {entities[1]}")
    return suggestions[:MAX_SUGGESTIONS]


def synthesize(
        selected: list[ScoredCandidate],
        entities: list[str],
        themes: list[Theme],
        journey: EmotionalJourney,
        integrity: IntegrityState,
        tier: ComplexityTier,
        semantic_count: int = 0,
) -> Synthesis:
    """Summary line, integrity-aware narrative and follow-up suggestions."""
    summary = f"Found {len(selected)} relevant memories"
    if entities:
        summary += f" about {', '.join(entities)}"
    if themes:
        summary += f". Primary themes: {', '.join(t.name for t in themes[:tier.profile.max_themes])}"
    summary += f". Emotional tone: primarily {(journey.dominant_emotions or [DEFAULT_EMOTION])[0]}"

    return Synthesis(
        summary=summary,
        narrative=_narrative(selected, integrity),
        suggestions=_suggestions(selected, entities, themes, journey, integrity, semantic_count),
    )


# ============================================
# Response extras
# ============================================

def make_preview(
        record: MemoryRecord,
        now: Optional[datetime] = None,
        similarity: Optional[float] = None,
        importance: Optional[float] = None,
) -> MemoryPreview:
    content = record.content or ""
    if len(content) > PREVIEW_LENGTH:
        content = content[:PREVIEW_LENGTH] + "..."
    return MemoryPreview(
        id=record.id,
        preview=content,
        importance=record.importance if importance is None else importance,
        emotion=record.emotion,
        time_ago=format_time_ago(record.created_at, now),
        similarity=similarity,
    )


def peak_moments(selected: list[ScoredCandidate], now: Optional[datetime] = None) -> list[MemoryPreview]:
    peaks = [c for c in selected if c.importance >= PEAK_GRAVITY_THRESHOLD]
    peaks.sort(key=lambda c: c.importance, reverse=True)
    return [make_preview(c.record, now, importance=c.importance) for c in peaks[:PEAK_MOMENT_COUNT]]


def recent_context(selected: list[ScoredCandidate], now: Optional[datetime] = None) -> list[MemoryPreview]:
    recent = [c for c in selected if age_in_days(c.record.created_at, now) < RECENT_CONTEXT_DAYS]
    return [make_preview(c.record, now, importance=c.importance) for c in recent[:RECENT_CONTEXT_COUNT]]


def session_previews(records: list[MemoryRecord], now: Optional[datetime] = None) -> list[MemoryPreview]:
    kept = [r for r in records if not r.is_user_echo]
    return [make_preview(r, now) for r in kept[:SESSION_PREVIEW_COUNT]]


def semantic_insights(semantic_hits: list, now: Optional[datetime] = None) -> SemanticInsights:
    """Top semantic matches with a label describing how spread their similarities are."""
    hits = [(record, sim) for record, sim in semantic_hits if not record.is_user_echo]
    if not hits:
        return SemanticInsights()

    top = sorted(hits, key=lambda hit: hit[1], reverse=True)[:SEMANTIC_INSIGHT_COUNT]
    similarities = [sim for _, sim in top]
    spread = max(similarities) - min(similarities)
    if spread < 0.1:
        label = "tightly clustered"
    elif spread < 0.3:
        label = "moderately spread"
    else:
        label = "widely distributed"

    return SemanticInsights(
        top_matches=[make_preview(record, now, similarity=sim) for record, sim in top],
        average_similarity=sum(similarities) / len(similarities),
        spread=label,
    )


def reflections(insights: list[InsightRecord], tier: ComplexityTier) -> list[Reflection]:
    """The strongest reflections; deeper tiers get more of them."""
    return [
        Reflection(
            insight=i.content,
            importance=i.importance,
            emotion=i.emotion or DEFAULT_EMOTION,
            timestamp=i.created_at,
            status=i.delivery_status,
        )
        for i in insights[:tier.profile.max_reflections]
        if i.content and i.content.strip()
    ]


def awareness(
        ctx: QueryContext,
        stream_counts: dict[str, int],
        fused_count: int,
        selected: list[ScoredCandidate],
        themes: list[Theme],
        journey: EmotionalJourney,
        semantic_hits: list,
        semantic_threshold: Optional[float],
) -> Awareness:
    vector = ctx.integrity.vector
    mode = ctx.integrity.mode.value
    semantic_count = len(semantic_hits)
    average = sum(sim for _, sim in semantic_hits) / semantic_count if semantic_count else 0.0

    return Awareness(
        query_understanding=f"User is asking about: {', '.join(ctx.entities)}",
        semantic_understanding=(
            f"Query has {semantic_count} semantic matches with average similarity {average:.2f}"
        ),
        memory_statistics={
            "total_memories_found": fused_count,
            "semantic_matches": semantic_count,
            "keyword_matches": stream_counts.get(StreamName.ENTITY.value, 0),
            "memories_analyzed": len(selected),
            "cortex_vectors_applied": {
                "pattern_sensitivity": round(vector.pattern, 2),
                "temporal_awareness": round(vector.temporal, 2),
                "coherence_level": round(vector.coherence, 2),
                "integrity_mode": mode,
            },
        },
        processing_insights=[
            f"Complexity tier: {ctx.tier.value} (status {ctx.integrity.status.value})",
            f"Integrity mode: {mode} (risk: {ctx.integrity.risk:.2f})",
            f"Semantic search found {semantic_count} matches (threshold {semantic_threshold or 0.0:.2f})",
            f"Found {stream_counts.get(StreamName.PEAK.value, 0)} high-gravity moments",
            f"Identified {len(themes)} major themes",
            f"Emotional progression shows {journey.emotional_shifts} shifts",
        ],
    )
