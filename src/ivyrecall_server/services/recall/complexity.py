"""Query complexity classification."""
from ...models.recall import ComplexityTier
from .lexical import contains_phrase
from .tables import (
    TRANSCENDENT_PHRASES,
    IDENTITY_PHRASES,
    ANALYTICAL_PHRASES,
    TIME_REFERENCE_PHRASES,
    TRANSCENDENT_MIN_WORDS,
    TRANSCENDENT_MIN_ENTITIES,
    COMPLEX_MIN_WORDS,
    COMPLEX_MIN_ENTITIES,
    MODERATE_MIN_WORDS,
)


def _matches_any(text: str, phrases: tuple[str, ...]) -> bool:
    return any(contains_phrase(text, p) for p in phrases)


def classify_query(query: str, entity_count: int, has_temporal: bool = False) -> ComplexityTier:
    """
    Classify a query; the first matching tier wins.

    Identity questions ("who is ...") always reach COMPLEX so that entity retrieval runs.

    Args:
        query: Raw query text
        entity_count: Number of resolved entities
        has_temporal: Whether the call carries a time range or temporal type

    Returns:
        The ComplexityTier for the query
    """
    if not query or not query.strip():
        return ComplexityTier.SIMPLE

    text = query.lower()
    word_count = len(text.split())

    if _matches_any(text, TRANSCENDENT_PHRASES) or (
            word_count > TRANSCENDENT_MIN_WORDS and entity_count > TRANSCENDENT_MIN_ENTITIES):
        return ComplexityTier.TRANSCENDENT

    if _matches_any(text, IDENTITY_PHRASES):
        return ComplexityTier.COMPLEX

    if (_matches_any(text, ANALYTICAL_PHRASES)
            or (word_count > COMPLEX_MIN_WORDS and entity_count > COMPLEX_MIN_ENTITIES)
            or (has_temporal and contains_phrase(text, "between"))):
        return ComplexityTier.COMPLEX

    if _matches_any(text, TIME_REFERENCE_PHRASES) or entity_count >= 1 or word_count > MODERATE_MIN_WORDS:
        return ComplexityTier.MODERATE

    return ComplexityTier.SIMPLE
