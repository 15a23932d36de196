"""Ranking, budget truncation and time-period clustering."""
import re
from collections import Counter
from datetime import datetime
from typing import Optional

from ...models.memory import ScoredCandidate
from ...models.recall import Cluster, ComplexityTier
from ...utils import age_in_days, utc_now
from .tables import (
    TIME_PERIODS,
    CLUSTER_THEME_MIN_LENGTH,
    CLUSTER_THEME_STOP_WORDS,
    DEFAULT_CLUSTER_THEME,
    DEFAULT_EMOTION,
    GRAVITY_VARIANCE_SCALE,
)

_WORD = re.compile(r"[a-z']+")


def rank(scored: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Score descending; ties broken by importance then id so ranking is deterministic."""
    return sorted(scored, key=lambda c: (-c.score, -c.importance, c.id))


def select(scored: list[ScoredCandidate], tier: ComplexityTier) -> list[ScoredCandidate]:
    """Top-N by score where N is the tier's budget. Duplicate ids are dropped."""
    selected = []
    seen = set()
    for candidate in rank(scored):
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        selected.append(candidate)
        if len(selected) >= tier.final_limit:
            break
    return selected


def period_for(created_at: datetime, now: Optional[datetime] = None) -> tuple[str, str]:
    age = age_in_days(created_at, now)
    for key, label, max_age in TIME_PERIODS:
        if max_age is None or age < max_age:
            return key, label
    key, label, _ = TIME_PERIODS[-1]
    return key, label


def dominant_emotion(members: list[ScoredCandidate]) -> str:
    """Most frequent emotion; ties go to the one seen first."""
    counts = Counter(m.record.emotion for m in members if m.record.emotion)
    if not counts:
        return DEFAULT_EMOTION
    # Counter preserves insertion order, and max() returns the first maximal element
    return max(counts, key=counts.get)


def cluster_theme(members: list[ScoredCandidate]) -> str:
    counts = Counter()
    for m in members:
        for word in _WORD.findall((m.record.content or "").lower()):
            if len(word) >= CLUSTER_THEME_MIN_LENGTH and word not in CLUSTER_THEME_STOP_WORDS:
                counts[word] += 1
    if not counts:
        return DEFAULT_CLUSTER_THEME
    return max(counts, key=counts.get)


def cluster_coherence(members: list[ScoredCandidate]) -> float:
    """Mean of emotional consistency and importance consistency, in [0, 1]."""
    if len(members) < 2:
        return 1.0

    emotions = [m.record.emotion for m in members if m.record.emotion]
    emotion_coherence = 1.0 - len(set(emotions)) / len(emotions) if emotions else 0.0

    gravities = [m.importance for m in members]
    mean = sum(gravities) / len(gravities)
    variance = sum((g - mean) ** 2 for g in gravities) / len(gravities)
    gravity_coherence = 1.0 - min(variance * GRAVITY_VARIANCE_SCALE, 1.0)

    return max(0.0, min(1.0, (emotion_coherence + gravity_coherence) / 2))


def cluster_by_period(selected: list[ScoredCandidate], now: Optional[datetime] = None) -> list[Cluster]:
    """Group the selection into fixed time periods (newest period first); empty periods are omitted."""
    now = now or utc_now()
    buckets: dict[str, list[ScoredCandidate]] = {key: [] for key, _, _ in TIME_PERIODS}
    labels = {key: label for key, label, _ in TIME_PERIODS}

    for candidate in selected:
        key, _ = period_for(candidate.record.created_at, now)
        buckets[key].append(candidate)

    return [
        Cluster(
            period=key,
            label=labels[key],
            members=members,
            dominant_emotion=dominant_emotion(members),
            theme=cluster_theme(members),
            coherence=cluster_coherence(members),
        )
        for key, members in buckets.items()
        if members
    ]
