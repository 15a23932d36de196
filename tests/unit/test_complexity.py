"""Unit tests for query complexity classification."""
import pytest

from ivyrecall_server.models import ComplexityTier
from ivyrecall_server.services.recall.complexity import classify_query


class TestClassifyQuery:
    """Tests for classify_query()."""

    def test_short_plain_query_is_simple(self):
        assert classify_query("hi my dear", 0) == ComplexityTier.SIMPLE

    def test_empty_query_is_simple(self):
        assert classify_query("", 0) == ComplexityTier.SIMPLE
        assert classify_query("   ", 3) == ComplexityTier.SIMPLE

    def test_time_reference_is_moderate(self):
        assert classify_query("What happened with Alex yesterday?", 1) == ComplexityTier.MODERATE

    def test_single_entity_is_moderate(self):
        assert classify_query("coffee with Alex", 1) == ComplexityTier.MODERATE

    def test_longer_query_is_moderate(self):
        assert classify_query("did we plan the garden beds together", 0) == ComplexityTier.MODERATE

    @pytest.mark.parametrize("query", [
        "How am I doing?",
        "why did that happen",
        "analyze my sleep",
        "explore my job options",
    ])
    def test_analytical_phrases_are_complex(self, query):
        assert classify_query(query, 0) == ComplexityTier.COMPLEX

    def test_identity_question_is_complex(self):
        assert classify_query("who is Alex", 1) == ComplexityTier.COMPLEX
        assert classify_query("tell me about Sam", 1) == ComplexityTier.COMPLEX

    def test_long_query_with_entities_is_complex(self):
        query = "we spent the whole afternoon with Alex and Sam at the lake"
        assert classify_query(query, 2) == ComplexityTier.COMPLEX

    def test_between_needs_temporal_context(self):
        query = "what happened between march and may"
        assert classify_query(query, 0, has_temporal=False) == ComplexityTier.MODERATE
        assert classify_query(query, 0, has_temporal=True) == ComplexityTier.COMPLEX

    @pytest.mark.parametrize("query", [
        "how has my consciousness evolved",
        "show me the patterns in my life",
        "give me the complete picture",
    ])
    def test_transcendent_phrases(self, query):
        assert classify_query(query, 0) == ComplexityTier.TRANSCENDENT

    def test_very_long_query_with_many_entities_is_transcendent(self):
        query = " ".join(["word"] * 21)
        assert classify_query(query, 4) == ComplexityTier.TRANSCENDENT
        assert classify_query(query, 3) != ComplexityTier.TRANSCENDENT

    def test_phrases_match_whole_words_only(self):
        # "how" inside "showcase", "why" inside "whyte"
        assert classify_query("showcase whyte art", 0) == ComplexityTier.SIMPLE

    def test_deterministic(self):
        query = "Tell me how Alex and Sam relate to my work lately"
        results = {classify_query(query, 2, True) for _ in range(20)}
        assert len(results) == 1
