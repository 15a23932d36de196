"""
Unit tests for the core domain models: memory records, integrity state, and recall structures.
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from ivyrecall_server.models import (
    ComplexityTier,
    CortexVector,
    EntityConnection,
    GravityField,
    IntegrityMode,
    IntegrityState,
    IntegrityStatus,
    MemoryRecord,
    PatternRecord,
    ArcRecord,
    RecallInput,
    StreamName,
    TimeRange,
    TimeWindow,
)
from ivyrecall_server.models.integrity import DEFAULT_CORTEX_VECTOR
from ivyrecall_server.api.v1.schemas import RecallRequest


class TestMemoryRecord:
    """Tests for MemoryRecord."""

    def test_generated_ids(self):
        record = MemoryRecord(user_id="u", content="x")
        assert record.id.startswith("mem_")
        assert PatternRecord(user_id="u", pattern_type="growth").id.startswith("pat_")
        assert ArcRecord(user_id="u", arc_name="move").id.startswith("arc_")

    def test_naive_created_at_becomes_utc(self):
        record = MemoryRecord(id="m1", user_id="u", content="x", created_at=datetime(2024, 5, 1, 12, 0))
        assert record.created_at.tzinfo == timezone.utc

    def test_importance_bounds(self):
        with pytest.raises(ValidationError):
            MemoryRecord(id="m1", user_id="u", content="x", importance=1.5)

    def test_embedding_excluded_from_dump(self):
        record = MemoryRecord(id="m1", user_id="u", content="x", embedding=[0.1, 0.2])
        assert "embedding" not in record.model_dump()

    def test_verifiable_requires_literal_true(self):
        assert MemoryRecord(id="a", user_id="u", content="x", metadata={"verifiable": True}).verifiable
        assert not MemoryRecord(id="b", user_id="u", content="x", metadata={"verifiable": "true"}).verifiable
        assert not MemoryRecord(id="c", user_id="u", content="x", metadata={"verifiable": 1}).verifiable
        assert not MemoryRecord(id="d", user_id="u", content="x").verifiable

    @pytest.mark.parametrize("kwargs", [
        {"metadata": {"role": "user"}},
        {"metadata": {"role": "Human"}},
        {"type": "user"},
        {"metadata": {"is_user_message": True}},
        {"metadata": {"memory_type": "user_input"}},
    ])
    def test_user_echo_markers(self, kwargs):
        assert MemoryRecord(id="m", user_id="u", content="x", **kwargs).is_user_echo

    def test_companion_memory_is_not_echo(self):
        record = MemoryRecord(id="m", user_id="u", content="x", type="assistant", metadata={"role": "assistant"})
        assert not record.is_user_echo


class TestCortexVector:
    """Tests for CortexVector length normalization and named access."""

    def test_default_vector(self):
        vector = CortexVector()
        assert vector.values == list(DEFAULT_CORTEX_VECTOR)
        assert vector.coherence == 0.8
        assert vector.integrity_risk == 0.1

    def test_short_vector_padded_with_defaults(self):
        vector = CortexVector(values=[0.9, 0.1])
        assert len(vector.values) == 10
        assert vector.sovereignty == 0.9
        assert vector.growth == 0.1
        assert vector.values[2:] == list(DEFAULT_CORTEX_VECTOR[2:])

    def test_long_vector_truncated(self):
        vector = CortexVector(values=[0.3] * 12)
        assert len(vector.values) == 10

    def test_from_list_none(self):
        assert CortexVector.from_list(None).values == list(DEFAULT_CORTEX_VECTOR)

    def test_get_by_name(self):
        vector = CortexVector(values=[0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9])
        assert vector.get("stability") == 0.3
        assert vector.temporal == 0.9
        assert vector.pattern == 0.2


class TestIntegrityState:
    """Tests for integrity modes and lockdown."""

    @pytest.mark.parametrize("risk,mode", [
        (0.0, IntegrityMode.NOMINAL),
        (0.24, IntegrityMode.NOMINAL),
        (0.25, IntegrityMode.CAUTION),
        (0.5, IntegrityMode.GUARDED),
        (0.75, IntegrityMode.ASSERTIVE_TRUTH),
        (0.9, IntegrityMode.SENTINEL_LOCKDOWN),
    ])
    def test_mode_from_risk(self, risk, mode):
        assert IntegrityMode.from_risk(risk) == mode

    def test_strict_modes(self):
        assert IntegrityMode.ASSERTIVE_TRUTH.is_strict
        assert IntegrityMode.SENTINEL_LOCKDOWN.is_strict
        assert not IntegrityMode.GUARDED.is_strict

    def test_locked_by_status(self):
        assert IntegrityState(risk=0.1, status=IntegrityStatus.LOCKED).is_locked

    def test_locked_by_risk(self):
        assert IntegrityState(risk=0.9).is_locked
        assert not IntegrityState(risk=0.89).is_locked

    def test_conservative_default(self):
        state = IntegrityState.conservative_default()
        assert state.risk == 0.1
        assert state.status == IntegrityStatus.PROTECTED
        assert state.recall_strategy.top_k == 10
        assert state.recall_strategy.time_window == TimeWindow.LAST_30_DAYS
        assert state.vector.growth == 0.0
        assert not state.is_locked

    def test_status_parsed_from_json(self):
        state = IntegrityState.model_validate({"risk": 0.2, "status": "LOCKED"})
        assert state.status == IntegrityStatus.LOCKED

    def test_time_window_days(self):
        assert TimeWindow.LAST_7_DAYS.days == 7
        assert TimeWindow.LAST_18_MONTHS.days == 540
        assert TimeWindow.ALL.days is None

    def test_empty_gravity_field(self):
        field = GravityField.empty("s1")
        assert field.session_id == "s1"
        assert field.total_mass == 0.0
        assert field.entity_anchors == {}


class TestRecallModels:
    """Tests for tier profiles and recall structures."""

    def test_tier_streams_are_nested(self):
        simple = ComplexityTier.SIMPLE.streams
        moderate = ComplexityTier.MODERATE.streams
        complex_ = ComplexityTier.COMPLEX.streams
        transcendent = ComplexityTier.TRANSCENDENT.streams

        assert simple == {StreamName.BASELINE, StreamName.RECENT, StreamName.SEMANTIC}
        assert simple < moderate < complex_ < transcendent
        assert StreamName.PATTERN in transcendent
        assert StreamName.PATTERN not in complex_

    @pytest.mark.parametrize("tier,limit,multiplier", [
        (ComplexityTier.SIMPLE, 25, 0.25),
        (ComplexityTier.MODERATE, 50, 0.5),
        (ComplexityTier.COMPLEX, 100, 1.0),
        (ComplexityTier.TRANSCENDENT, 200, 2.0),
    ])
    def test_tier_budgets(self, tier, limit, multiplier):
        assert tier.final_limit == limit
        assert tier.multiplier == multiplier

    def test_time_range_contains(self):
        now = datetime.now(timezone.utc)
        window = TimeRange(start=now - timedelta(days=1), end=now)
        assert window.contains(now - timedelta(hours=3))
        assert not window.contains(now - timedelta(days=2))
        assert TimeRange().contains(now)

    def test_entity_connection_aliases(self):
        connection = EntityConnection(source="Alex", target="Sam", strength=0.5, context="c", memories_involved=1)
        dumped = connection.model_dump(by_alias=True)
        assert dumped["from"] == "Alex"
        assert dumped["to"] == "Sam"

        parsed = EntityConnection.model_validate(
            {"from": "A", "to": "B", "strength": 1.0, "context": "c", "memories_involved": 2}
        )
        assert parsed.source == "A"


class TestRecallRequest:
    """Tests for the API request model."""

    def test_content_used_as_query(self):
        recall_input = RecallRequest(user_id="u", content="garden").to_input()
        assert isinstance(recall_input, RecallInput)
        assert recall_input.query == "garden"

    def test_query_wins_over_content(self):
        recall_input = RecallRequest(user_id="u", query="q", content="c").to_input()
        assert recall_input.query == "q"

    def test_session_header_fills_missing_session(self):
        assert RecallRequest(user_id="u", query="q").to_input("sess_h").session_id == "sess_h"
        assert RecallRequest(user_id="u", query="q", session_id="sess_b").to_input("sess_h").session_id == "sess_b"
