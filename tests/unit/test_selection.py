"""Unit tests for ranking, budget selection and time-period clustering."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from ivyrecall_server.models import ComplexityTier, MemoryRecord, ScoredCandidate
from ivyrecall_server.services.recall.selection import (
    cluster_by_period,
    cluster_coherence,
    cluster_theme,
    dominant_emotion,
    period_for,
    rank,
    select,
)

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _scored(
        memory_id: str,
        score: float,
        importance: float = 0.5,
        age: timedelta = timedelta(hours=2),
        emotion: Optional[str] = None,
        content: str = "note",
) -> ScoredCandidate:
    record = MemoryRecord(
        id=memory_id, user_id="u", content=content, importance=importance, created_at=NOW - age, emotion=emotion
    )
    return ScoredCandidate(record=record, sources={"baseline"}, importance=importance, score=score)


class TestSelect:
    """Tests for rank() and select()."""

    def test_sorted_by_score(self):
        ranked = rank([_scored("a", 0.2), _scored("b", 0.9), _scored("c", 0.5)])
        assert [c.id for c in ranked] == ["b", "c", "a"]

    def test_ties_broken_by_importance_then_id(self):
        ranked = rank([
            _scored("b", 0.5, importance=0.3),
            _scored("c", 0.5, importance=0.8),
            _scored("a", 0.5, importance=0.3),
        ])
        assert [c.id for c in ranked] == ["c", "a", "b"]

    @pytest.mark.parametrize("tier,budget", [
        (ComplexityTier.SIMPLE, 25),
        (ComplexityTier.MODERATE, 50),
        (ComplexityTier.COMPLEX, 100),
    ])
    def test_budget(self, tier, budget):
        scored = [_scored(f"m{i:03d}", i / 300) for i in range(150)]
        selected = select(scored, tier)
        assert len(selected) == budget
        assert selected[0].id == "m149"

    def test_fewer_candidates_than_budget(self):
        assert len(select([_scored("a", 0.1)], ComplexityTier.TRANSCENDENT)) == 1

    def test_duplicates_dropped(self):
        selected = select([_scored("a", 0.9), _scored("a", 0.4), _scored("b", 0.5)], ComplexityTier.SIMPLE)
        assert [c.id for c in selected] == ["a", "b"]
        assert selected[0].score == 0.9


class TestClustering:
    """Tests for time-period clusters."""

    @pytest.mark.parametrize("age,period", [
        (timedelta(hours=3), "today"),
        (timedelta(days=3), "this_week"),
        (timedelta(days=20), "this_month"),
        (timedelta(days=45), "last_month"),
        (timedelta(days=100), "older"),
    ])
    def test_period_for(self, age, period):
        assert period_for(NOW - age, NOW)[0] == period

    def test_clusters_ordered_newest_first_and_skip_empty(self):
        selected = [
            _scored("old", 0.9, age=timedelta(days=100)),
            _scored("today", 0.5, age=timedelta(hours=1)),
            _scored("week", 0.7, age=timedelta(days=3)),
        ]
        clusters = cluster_by_period(selected, NOW)
        assert [c.period for c in clusters] == ["today", "this_week", "older"]
        assert [c.label for c in clusters] == ["Today", "This Week", "Earlier"]
        assert [m.id for m in clusters[2].members] == ["old"]

    def test_empty_selection(self):
        assert cluster_by_period([], NOW) == []

    def test_dominant_emotion_first_seen_wins_ties(self):
        members = [_scored("a", 0.5, emotion="calm"), _scored("b", 0.5, emotion="joy")]
        assert dominant_emotion(members) == "calm"
        assert dominant_emotion([_scored("c", 0.5)]) == "neutral"

    def test_cluster_theme(self):
        members = [
            _scored("a", 0.5, content="Planning the garden layout"),
            _scored("b", 0.5, content="The garden needs water"),
        ]
        assert cluster_theme(members) == "garden"
        assert cluster_theme([_scored("c", 0.5, content="ok fine")]) == "general reflection"

    def test_coherence_single_member(self):
        assert cluster_coherence([_scored("a", 0.5)]) == 1.0

    def test_coherence_values(self):
        same = [_scored("a", 0.5, emotion="joy"), _scored("b", 0.5, emotion="joy")]
        assert cluster_coherence(same) == pytest.approx(0.75)

        mixed = [_scored("a", 0.5, emotion="joy"), _scored("b", 0.5, emotion="sad")]
        assert cluster_coherence(mixed) == pytest.approx(0.5)

        spread = [_scored("a", 0.5, importance=0.0), _scored("b", 0.5, importance=1.0)]
        assert cluster_coherence(spread) == pytest.approx(0.25)

    def test_coherence_bounded(self):
        members = [_scored(f"m{i}", 0.5, importance=i % 2, emotion=f"e{i}") for i in range(6)]
        assert 0.0 <= cluster_coherence(members) <= 1.0
