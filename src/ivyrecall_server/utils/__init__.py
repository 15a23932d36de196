"""Shared utilities for ivyrecall services."""

from .id_generation import generate_id
from .datetime import utc_now, parse_datetime_utc, ensure_utc, age_in_days, format_time_ago
from .vector_math import cosine_similarity, is_zero_vector, zero_vector

__all__ = [
    "generate_id",
    "utc_now",
    "parse_datetime_utc",
    "ensure_utc",
    "age_in_days",
    "format_time_ago",
    "cosine_similarity",
    "is_zero_vector",
    "zero_vector",
]
