"""
Recall request/response models.

Defines complexity tiers, the per-call query context, and the structures
returned by a recall (clusters, themes, emotional journey, relationship graph).
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from .integrity import IntegrityState, GravityField
from .memory import ScoredCandidate, PatternRecord, ArcRecord, InsightRecord


class StreamName(str, Enum):
    """Independently queried retrieval strategies."""

    BASELINE = "baseline"
    RECENT = "recent"
    SEMANTIC = "semantic"
    ENTITY = "entity"
    TEMPORAL = "temporal"
    EMOTIONAL = "emotional"
    PEAK = "peak"
    PATTERN = "pattern"
    ARC = "arc"
    SESSION = "session"


META_STREAMS = frozenset({StreamName.PATTERN, StreamName.ARC})


@dataclass(frozen=True)
class TierProfile:
    multiplier: float
    streams: frozenset
    final_limit: int
    max_themes: int
    max_reflections: int


_SIMPLE_STREAMS = frozenset({StreamName.BASELINE, StreamName.RECENT, StreamName.SEMANTIC})
_MODERATE_STREAMS = _SIMPLE_STREAMS | {StreamName.ENTITY, StreamName.TEMPORAL}
_COMPLEX_STREAMS = _MODERATE_STREAMS | {StreamName.EMOTIONAL, StreamName.PEAK}
_TRANSCENDENT_STREAMS = _COMPLEX_STREAMS | META_STREAMS


class ComplexityTier(str, Enum):
    """Query complexity; selects enabled streams and their size multiplier."""

    SIMPLE = "SIMPLE"
    MODERATE = "MODERATE"
    COMPLEX = "COMPLEX"
    TRANSCENDENT = "TRANSCENDENT"

    @property
    def profile(self) -> TierProfile:
        return TIER_PROFILES[self]

    @property
    def multiplier(self) -> float:
        return self.profile.multiplier

    @property
    def streams(self) -> frozenset:
        return self.profile.streams

    @property
    def final_limit(self) -> int:
        return self.profile.final_limit

    @property
    def is_analytical(self) -> bool:
        return self in (ComplexityTier.COMPLEX, ComplexityTier.TRANSCENDENT)


TIER_PROFILES: dict[ComplexityTier, TierProfile] = {
    ComplexityTier.SIMPLE: TierProfile(0.25, _SIMPLE_STREAMS, 25, 2, 1),
    ComplexityTier.MODERATE: TierProfile(0.5, _MODERATE_STREAMS, 50, 4, 2),
    ComplexityTier.COMPLEX: TierProfile(1.0, _COMPLEX_STREAMS, 100, 6, 3),
    ComplexityTier.TRANSCENDENT: TierProfile(2.0, _TRANSCENDENT_STREAMS, 200, 8, 5),
}


class TemporalType(str, Enum):
    PRESENT = "present"
    PAST = "past"
    FUTURE = "future"


class ConsolidationLevel(str, Enum):
    """How the selection is shaped in the response."""

    RAW = "raw"  # ranked memories only, no clustering
    CLUSTERED = "clustered"  # period clusters only; memories are reachable through cluster members
    SYNTHESIZED = "synthesized"  # ranked memories, clusters and per-memory combo patterns


class TimeRange(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, dt: datetime) -> bool:
        if self.start is not None and dt < self.start:
            return False
        if self.end is not None and dt > self.end:
            return False
        return True


class ConversationContext(BaseModel):
    """Signals about the live conversation, supplied by the turn orchestrator."""

    recent_entities: list[str] = Field(default_factory=list)
    current_entities: list[str] = Field(default_factory=list)
    recent_topics: list[str] = Field(default_factory=list)
    emotional_flow: list[str] = Field(default_factory=list, description="Most recent emotion first")


class RecallInput(BaseModel):
    """Input for a recall call. user_id and query are validated by the service."""

    user_id: Optional[str] = Field(None, description="Owner whose memories are searched")
    query: Optional[str] = Field(None, description="Natural language query")
    session_id: Optional[str] = Field(None, description="Active session")
    emotion_filter: list[str] = Field(default_factory=list, description="Emotions to retrieve")
    time_range: Optional[TimeRange] = Field(None, description="Explicit time window")
    temporal_type: Optional[TemporalType] = Field(None, description="Inferred tense of the query")
    depth: Optional[str] = Field(None, description="'deep' raises the default recall depth")
    max_depth: Optional[int] = Field(None, ge=1, description="Recall depth before integrity scaling")
    integrity_state: Optional[IntegrityState] = Field(None, description="Overrides the integrity provider")
    gravity_field: Optional[GravityField] = Field(None, description="Overrides the gravity field store")
    conversation_context: Optional[ConversationContext] = None
    verify_entities: bool = Field(True, description="Drop entities that never occur in the store")
    consolidation_level: ConsolidationLevel = Field(ConsolidationLevel.SYNTHESIZED, description="Response shape")
    awareness_mode: bool = Field(False, description="Attach a readable account of how the recall went")
    include_reflections: bool = Field(True, description="Attach the companion's offline reflections")


@dataclass
class QueryContext:
    """Everything resolved once per recall call and shared by every stage."""
    query: str
    user_id: str
    session_id: Optional[str]
    integrity: IntegrityState
    gravity: GravityField
    conversation: ConversationContext
    entities: list[str] = field(default_factory=list)
    emotion_filter: list[str] = field(default_factory=list)
    time_range: Optional[TimeRange] = None
    temporal_type: Optional[TemporalType] = None
    tier: ComplexityTier = ComplexityTier.SIMPLE
    max_depth: int = 100
    gravity_threshold: float = 0.5
    entity_floor: float = 0.1
    semantic_threshold: float = 0.35
    semantic_limit: int = 200
    query_embedding: Optional[list[float]] = None
    patterns: list[PatternRecord] = field(default_factory=list)
    arcs: list[ArcRecord] = field(default_factory=list)
    include_reflections: bool = False
    insights: list[InsightRecord] = field(default_factory=list)


class Cluster(BaseModel):
    period: str
    label: str
    members: list[ScoredCandidate] = Field(default_factory=list)
    dominant_emotion: str = "neutral"
    theme: str = "general reflection"
    coherence: float = Field(1.0, ge=0.0, le=1.0)


class Theme(BaseModel):
    name: str
    frequency: int
    strength: float
    percentage: int


class EmotionalJourney(BaseModel):
    dominant_emotions: list[str] = Field(default_factory=lambda: ["neutral"])
    unique_emotions: int = 1
    emotional_shifts: int = 0
    stability: float = 1.0
    progression: list[str] = Field(default_factory=list)


class EntityConnection(BaseModel):
    model_config = {"populate_by_name": True}

    source: str = Field(..., alias="from")
    target: str = Field(..., alias="to")
    strength: float
    context: str
    memories_involved: int


class ArcCluster(BaseModel):
    arc_id: str
    name: str
    gravity_center: float
    memory_count: int
    emotional_tone: Optional[str] = None


class RelationshipGraph(BaseModel):
    primary_entities: list[str] = Field(default_factory=list)
    connections: list[EntityConnection] = Field(default_factory=list)
    clusters: list[ArcCluster] = Field(default_factory=list)


class Synthesis(BaseModel):
    summary: str = ""
    narrative: str = ""
    suggestions: list[str] = Field(default_factory=list)


class MemoryPreview(BaseModel):
    id: str
    preview: str
    importance: float
    emotion: Optional[str] = None
    time_ago: str
    similarity: Optional[float] = None


class SemanticInsights(BaseModel):
    top_matches: list[MemoryPreview] = Field(default_factory=list)
    average_similarity: float = 0.0
    spread: str = "none"


class Reflection(BaseModel):
    insight: str
    importance: float
    emotion: str = "neutral"
    timestamp: datetime
    status: str


class Awareness(BaseModel):
    """Readable account of how a recall went; attached only on request."""

    query_understanding: str
    semantic_understanding: str
    memory_statistics: dict[str, Any] = Field(default_factory=dict)
    processing_insights: list[str] = Field(default_factory=list)


class Diagnostics(BaseModel):
    tier: ComplexityTier = ComplexityTier.SIMPLE
    integrity_mode: str = "nominal"
    integrity_risk: float = 0.0
    entities: list[str] = Field(default_factory=list)
    max_depth: int = 0
    stream_counts: dict[str, int] = Field(default_factory=dict)
    failed_streams: list[str] = Field(default_factory=list)
    fused_count: int = 0
    filtered_user_echo: int = 0
    selected_count: int = 0
    gravity_threshold: Optional[float] = None
    entity_floor: Optional[float] = None
    semantic_threshold: Optional[float] = None
    adaptive_threshold_applied: bool = False
    semantic_bypassed: bool = False
    time_range_used: Optional[TimeRange] = None
    patterns_found: int = 0
    arcs_found: int = 0
    consolidation_level: ConsolidationLevel = ConsolidationLevel.SYNTHESIZED
    latency_ms: int = 0
    reason: Optional[str] = None


class RecallResult(BaseModel):
    status: str = "success"
    reason: Optional[str] = None
    memories: list[ScoredCandidate] = Field(default_factory=list)
    clusters: list[Cluster] = Field(default_factory=list)
    themes: list[Theme] = Field(default_factory=list)
    emotional_journey: EmotionalJourney = Field(default_factory=EmotionalJourney)
    relationship_graph: RelationshipGraph = Field(default_factory=RelationshipGraph)
    synthesis: Synthesis = Field(default_factory=Synthesis)
    peak_moments: list[MemoryPreview] = Field(default_factory=list)
    recent_context: list[MemoryPreview] = Field(default_factory=list)
    session_buffer: list[MemoryPreview] = Field(default_factory=list)
    semantic_insights: SemanticInsights = Field(default_factory=SemanticInsights)
    reflections: Optional[list[Reflection]] = None
    awareness: Optional[Awareness] = None
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    metadata: dict[str, Any] = Field(default_factory=dict)
