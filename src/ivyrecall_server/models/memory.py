"""
Memory domain models for ivyrecall.

MemoryRecord is owned by the store and read-only to the recall engine. FusedCandidate and
ScoredCandidate are created per recall call and discarded afterwards.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils import generate_id, ensure_utc

USER_ROLES = frozenset({"user", "human"})


class MemoryRecord(BaseModel):
    """A stored interaction fragment with its importance ("gravity")."""

    model_config = {"from_attributes": True}

    id: str = Field(default_factory=lambda: generate_id("mem"), description="Unique memory identifier")
    user_id: str = Field(..., description="Owner of the memory")
    content: str = Field(..., description="The memory content")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Creation timestamp")
    importance: float = Field(0.5, ge=0.0, le=1.0, description="Memory gravity (0.0-1.0)")
    emotion: Optional[str] = Field(None, description="Emotion label, if tagged at ingestion")
    session_id: Optional[str] = Field(None, description="Session the memory was recorded in")
    type: Optional[str] = Field(None, description="Record type assigned at ingestion (e.g. 'user', 'assistant')")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Arbitrary metadata")
    embedding: Optional[list[float]] = Field(None, exclude=True, description="Vector embedding for similarity search")

    @field_validator('created_at')
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def verifiable(self) -> bool:
        """Optional metadata flag; anything other than literal True counts as unverifiable."""
        return self.metadata.get("verifiable") is True

    @property
    def is_user_echo(self) -> bool:
        """Whether the record is the user's own turn rather than companion-side memory."""
        role = self.metadata.get("role")
        if isinstance(role, str) and role.lower() in USER_ROLES:
            return True
        if self.type == "user":
            return True
        if self.metadata.get("is_user_message") is True:
            return True
        return self.metadata.get("memory_type") == "user_input"


class PatternRecord(BaseModel):
    """A detected behavioural pattern (meta stream)."""

    id: str = Field(default_factory=lambda: generate_id("pat"))
    user_id: str
    pattern_type: str = Field(..., description="Pattern label, e.g. 'rumination'")
    description: Optional[str] = None
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    active: bool = True
    memory_ids: list[str] = Field(default_factory=list, description="Memories the pattern was detected in")


class ArcRecord(BaseModel):
    """A narrative arc grouping related memories (meta stream)."""

    id: str = Field(default_factory=lambda: generate_id("arc"))
    user_id: str
    arc_name: str
    gravity_center: float = Field(0.0, ge=0.0, description="Accumulated gravity at the arc's center")
    memory_count: int = 0
    emotional_tone: Optional[str] = None
    memory_ids: list[str] = Field(default_factory=list)


class InsightRecord(BaseModel):
    """A reflection produced offline by the companion about the user."""

    id: str = Field(default_factory=lambda: generate_id("ins"))
    user_id: str
    content: str
    importance: float = Field(0.5, ge=0.0, le=1.0)
    emotion: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    delivery_status: str = Field("queued", description="queued, delivered or dismissed")

    @field_validator('created_at')
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class FusedCandidate(BaseModel):
    """A memory surfaced by one or more streams, deduplicated by id."""

    record: MemoryRecord
    sources: set[str] = Field(default_factory=set, description="Names of the streams that surfaced the record")
    similarity: float = Field(0.0, description="Max observed semantic similarity")
    importance: float = Field(0.0, description="Max observed importance")

    @property
    def id(self) -> str:
        return self.record.id


class ScoredCandidate(FusedCandidate):
    """FusedCandidate with its final bounded relevance score."""

    score: float = Field(0.0, ge=0.0, le=1.0)
    score_breakdown: dict[str, float] = Field(default_factory=dict, description="Diagnostics only")
    patterns_detected: list[str] = Field(default_factory=list, description="Linguistic combo patterns in the content")
