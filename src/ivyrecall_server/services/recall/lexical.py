"""
Lexical analysis for recall queries.

Entity extraction is capitalization based; pronoun resolution looks back over the
last few session turns for the nearest capitalized name. Both are heuristics.
"""
import asyncio
import re
import string
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from logging import Logger
from typing import Iterable, Optional

from ...models.memory import MemoryRecord
from ...models.recall import TemporalType, TimeRange
from ...utils import utc_now
from ..storage import StorageBackend
from .tables import (
    ENTITY_STOP_WORDS,
    PRONOUN_SCAN_STOP_WORDS,
    FALLBACK_STOP_WORDS,
    FALLBACK_MIN_LENGTH,
    FALLBACK_TERM_COUNT,
    PRONOUN_PATTERN,
    PRONOUN_HISTORY_TURNS,
    RELATIVE_TIME_PHRASES,
    PRESENT_WINDOW_DAYS,
    PAST_EPOCH_YEAR,
)

_STRIP_CHARS = string.punctuation + "“”‘’«»"


@lru_cache(maxsize=1024)
def _phrase_regex(phrase: str, prefix: bool) -> re.Pattern:
    tail = "" if prefix else r"\b"
    return re.compile(r"\b" + re.escape(phrase) + tail, re.IGNORECASE)


def contains_phrase(text: str, phrase: str) -> bool:
    """Whole-word / whole-phrase, case-insensitive match."""
    return _phrase_regex(phrase, False).search(text) is not None


def contains_keyword(text: str, keyword: str) -> bool:
    """Like contains_phrase, but keywords of 4+ chars also match as word prefixes (feel -> feeling)."""
    return _phrase_regex(keyword, len(keyword) >= 4).search(text) is not None


def clean_token(token: str) -> str:
    token = token.strip(_STRIP_CHARS)
    if token.endswith("'s") or token.endswith("’s"):
        token = token[:-2]
    return token


def _capitalized_terms(text: str, stop_words: Iterable[str]) -> list[str]:
    found = []
    for raw in text.split():
        token = clean_token(raw)
        if len(token) > 2 and token[0].isupper() and token not in stop_words and token not in found:
            found.append(token)
    return found


def extract_entities(text: str) -> list[str]:
    """
    Capitalized tokens longer than two characters, in query order, deduplicated.

    Falls back to the three longest remaining words when nothing is capitalized.
    """
    if not text:
        return []

    entities = _capitalized_terms(text, ENTITY_STOP_WORDS)
    if entities:
        return entities

    candidates = []
    for raw in text.lower().split():
        token = clean_token(raw)
        if len(token) >= FALLBACK_MIN_LENGTH and token not in FALLBACK_STOP_WORDS and token not in candidates:
            candidates.append(token)

    # sorted() is stable so equal lengths keep query order
    return sorted(candidates, key=len, reverse=True)[:FALLBACK_TERM_COUNT]


def resolve_pronouns(query: str, entities: list[str], history: list[MemoryRecord]) -> list[str]:
    """
    Prepend the most recently mentioned name when the query uses a third-person pronoun.

    Args:
        query: Raw query text
        entities: Entities already extracted from the query
        history: Session records, most recent first

    Returns:
        Entity list, possibly with a resolved referent at the front
    """
    if not query or not PRONOUN_PATTERN.search(query):
        return entities

    for record in history[:PRONOUN_HISTORY_TURNS]:
        names = _capitalized_terms(record.content or "", PRONOUN_SCAN_STOP_WORDS)
        if names:
            referent = names[0]
            return [referent] + [e for e in entities if e != referent]

    return entities


async def verify_entities(
        entities: list[str],
        storage: StorageBackend,
        user_id: str,
        logger: Optional[Logger] = None,
) -> list[str]:
    """
    Keep entities that occur in at least one stored record.

    If nothing verifies, the unverified list is returned unchanged. A failed
    lookup keeps the entity rather than dropping it.
    """
    if not entities:
        return entities

    counts = await asyncio.gather(
        *(storage.count_containing(user_id, entity) for entity in entities),
        return_exceptions=True,
    )

    verified = []
    for entity, count in zip(entities, counts):
        if isinstance(count, BaseException):
            if logger:
                logger.debug("Entity verification failed for %s: %s", entity, count)
            verified.append(entity)
        elif count > 0:
            verified.append(entity)

    return verified or entities


def infer_temporal_type(query: str) -> Optional[TemporalType]:
    """PRESENT when the query uses a relative time reference such as 'yesterday'."""
    if any(contains_phrase(query, p) for p in RELATIVE_TIME_PHRASES):
        return TemporalType.PRESENT
    return None


def time_range_for(temporal_type: Optional[TemporalType], now: Optional[datetime] = None) -> Optional[TimeRange]:
    """Window implied by the tense of a query."""
    if temporal_type is None:
        return None
    now = now or utc_now()
    if temporal_type == TemporalType.PRESENT:
        return TimeRange(start=now - timedelta(days=PRESENT_WINDOW_DAYS), end=now)
    if temporal_type == TemporalType.PAST:
        return TimeRange(start=datetime(PAST_EPOCH_YEAR, 1, 1, tzinfo=timezone.utc), end=now)
    return TimeRange(start=now)
