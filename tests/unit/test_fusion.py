"""
Unit tests for cross-stream fusion and the adaptive thresholds.
"""
import pytest

from ivyrecall_server.models import ComplexityTier, CortexVector, MemoryRecord
from ivyrecall_server.services.recall.fusion import (
    adapt_semantic_threshold,
    entity_floor,
    fuse,
    gravity_threshold,
    semantic_threshold,
)


def _record(memory_id: str, importance: float = 0.5, **kwargs) -> MemoryRecord:
    return MemoryRecord(id=memory_id, user_id="u", content=f"memory {memory_id}", importance=importance, **kwargs)


class TestFuse:
    """Tests for fuse()."""

    def test_union_of_sources_and_max_similarity(self):
        r1 = _record("m1", importance=0.6)
        fused, echoes = fuse({
            "entity": [(r1, 0.0)],
            "semantic": [(r1, 0.82), (_record("m2"), 0.4)],
        }, max_size=10)

        by_id = {c.id: c for c in fused}
        assert set(by_id) == {"m1", "m2"}
        assert by_id["m1"].sources == {"entity", "semantic"}
        assert by_id["m1"].similarity == pytest.approx(0.82)
        assert by_id["m1"].importance == pytest.approx(0.6)
        assert echoes == 0

    def test_one_candidate_per_record(self):
        r1 = _record("m1")
        fused, _ = fuse({"baseline": [(r1, 0.0)], "recent": [(r1, 0.0)], "peak": [(r1, 0.0)]}, max_size=10)
        assert len(fused) == 1
        assert fused[0].sources == {"baseline", "recent", "peak"}

    def test_user_echo_dropped_and_counted_once(self):
        echo = _record("echo", metadata={"role": "user"})
        fused, echoes = fuse({
            "baseline": [(echo, 0.0), (_record("m1"), 0.0)],
            "recent": [(echo, 0.0)],
        }, max_size=10)
        assert [c.id for c in fused] == ["m1"]
        assert echoes == 1

    def test_cap_keeps_targeted_streams_first(self):
        fused, _ = fuse({
            "recent": [(_record("r1"), 0.0), (_record("r2"), 0.0)],
            "entity": [(_record("e1"), 0.0)],
        }, max_size=2)
        assert [c.id for c in fused] == ["e1", "r1"]

    def test_order_independent_of_completion_order(self):
        a, b, c = _record("a"), _record("b"), _record("c")
        first, _ = fuse({"semantic": [(a, 0.5)], "entity": [(b, 0.0)], "baseline": [(c, 0.0), (a, 0.0)]}, 10)
        second, _ = fuse({"baseline": [(c, 0.0), (a, 0.0)], "entity": [(b, 0.0)], "semantic": [(a, 0.5)]}, 10)
        assert [x.id for x in first] == [x.id for x in second]
        assert [x.sources for x in first] == [x.sources for x in second]

    def test_empty(self):
        assert fuse({}, 10) == ([], 0)
        assert fuse({"baseline": [(_record("m1"), 0.0)]}, 0) == ([], 0)


class TestThresholds:
    """Tests for gravity, entity and semantic thresholds."""

    def test_gravity_threshold_scales_with_stability(self):
        assert gravity_threshold(CortexVector()) == pytest.approx(0.375)
        assert gravity_threshold(CortexVector(values=[0.5, 0.5, 0.5, 1.0])) == pytest.approx(0.5)
        assert gravity_threshold(CortexVector(values=[0.5, 0.5, 0.5, 0.0])) == pytest.approx(0.25)

    def test_entities_lower_gravity_threshold(self):
        assert gravity_threshold(CortexVector(), ["Alex"]) == pytest.approx(0.2)
        assert gravity_threshold(CortexVector(values=[0.5, 0.5, 0.5, 0.0]), ["Alex"]) == pytest.approx(0.2)

    def test_entity_floor(self):
        assert entity_floor(0.2) == pytest.approx(0.05)
        assert entity_floor(0.8) == pytest.approx(0.1)

    def test_semantic_threshold_analytical(self):
        assert semantic_threshold(ComplexityTier.COMPLEX, CortexVector()) == pytest.approx(0.30)
        assert semantic_threshold(ComplexityTier.TRANSCENDENT, CortexVector()) == pytest.approx(0.30)

    def test_semantic_threshold_uses_pattern_signal(self):
        assert semantic_threshold(ComplexityTier.SIMPLE, CortexVector()) == pytest.approx(0.2975)
        assert semantic_threshold(ComplexityTier.MODERATE, CortexVector(values=[0.5, 0.5, 1.0])) == pytest.approx(0.35)

    def test_semantic_threshold_floor(self):
        assert semantic_threshold(ComplexityTier.SIMPLE, CortexVector(values=[0.5, 0.5, 0.0])) == pytest.approx(0.25)


class TestAdaptiveThreshold:
    """Tests for adapt_semantic_threshold()."""

    def test_too_many_hits_raises_threshold(self):
        assert adapt_semantic_threshold(0.35, 401) == pytest.approx(0.45)

    def test_raise_is_capped(self):
        assert adapt_semantic_threshold(0.5, 1000) == pytest.approx(0.55)

    def test_too_few_hits_lowers_threshold(self):
        assert adapt_semantic_threshold(0.35, 10) == pytest.approx(0.25)

    def test_lower_is_floored(self):
        assert adapt_semantic_threshold(0.25, 0) == pytest.approx(0.20)

    @pytest.mark.parametrize("hits", [50, 200, 400])
    def test_moderate_hit_count_unchanged(self, hits):
        assert adapt_semantic_threshold(0.35, hits) == 0.35
