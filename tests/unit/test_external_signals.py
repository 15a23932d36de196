"""
Unit tests for the external-signal services consulted by recall:
integrity provider, gravity field store, and metrics.
"""
from unittest.mock import AsyncMock

import pytest

from ivyrecall_server.models import GravityField, IntegrityState, IntegrityStatus
from ivyrecall_server.services.integrity.static import StaticIntegrityProvider
from ivyrecall_server.services.metrics.in_memory import InMemoryMetricsService
from ivyrecall_server.services.metrics.noop import NoOpMetricsService


class TestIntegrityProvider:
    """Tests for StaticIntegrityProvider and resolve() fallbacks."""

    async def test_static_state(self, mock_v):
        provider = StaticIntegrityProvider(v=mock_v, state=IntegrityState(risk=0.3))
        state = await provider.resolve("u", "s")
        assert state.risk == 0.3
        assert state.status == IntegrityStatus.ACTIVE

    async def test_returns_copy(self, integrity_provider):
        state = await integrity_provider.resolve("u")
        state.risk = 0.99
        assert (await integrity_provider.resolve("u")).risk == 0.0

    async def test_missing_state_uses_conservative_default(self, integrity_provider):
        integrity_provider.get_state = AsyncMock(return_value=None)
        state = await integrity_provider.resolve("u")
        assert state == IntegrityState.conservative_default()

    async def test_failure_uses_conservative_default(self, integrity_provider):
        integrity_provider.get_state = AsyncMock(side_effect=TimeoutError("no answer"))
        state = await integrity_provider.resolve("u")
        assert state.status == IntegrityStatus.PROTECTED
        assert state.recommended_action == "constrain_generation"


class TestGravityFieldStore:
    """Tests for InMemoryGravityFieldStore and resolve() fallbacks."""

    async def test_stored_field(self, gravity_store):
        await gravity_store.set_field(GravityField(session_id="s1", total_mass=4.0, entity_anchors={"Atlas": 2.0}))
        field = await gravity_store.resolve("s1")
        assert field.total_mass == 4.0
        assert field.entity_anchors == {"Atlas": 2.0}

    async def test_unknown_session_is_empty_field(self, gravity_store):
        field = await gravity_store.resolve("s_unknown")
        assert field.session_id == "s_unknown"
        assert field.total_mass == 0.0

    async def test_no_session_is_empty_field(self, gravity_store):
        assert (await gravity_store.resolve(None)).total_mass == 0.0

    async def test_read_failure_is_empty_field(self, gravity_store):
        gravity_store.get_field = AsyncMock(side_effect=RuntimeError("cache offline"))
        field = await gravity_store.resolve("s1")
        assert field.total_mass == 0.0

    async def test_set_field_requires_session(self, gravity_store):
        with pytest.raises(ValueError):
            await gravity_store.set_field(GravityField(total_mass=1.0))


class TestMetrics:
    """Tests for metrics services."""

    def test_in_memory_counters(self):
        metrics = InMemoryMetricsService()
        metrics.increment("recall.calls")
        metrics.increment("recall.calls")
        metrics.increment("recall.stream.semantic.failures", 3)

        assert metrics.get("recall.calls") == 2
        assert metrics.get("untracked") == 0
        assert metrics.snapshot() == {"recall.calls": 2, "recall.stream.semantic.failures": 3}

    def test_noop(self):
        metrics = NoOpMetricsService()
        metrics.increment("recall.calls")
        assert metrics.get("recall.calls") == 0
        assert metrics.snapshot() == {}
