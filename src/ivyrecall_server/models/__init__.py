"""
Core domain models for ivyrecall.

Exports the Pydantic models for memories, external signals, and recall results.
"""
from .memory import (
    ArcRecord,
    FusedCandidate,
    InsightRecord,
    MemoryRecord,
    PatternRecord,
    ScoredCandidate,
)
from .integrity import (
    CortexVector,
    GravityField,
    IntegrityMode,
    IntegrityState,
    IntegrityStatus,
    RecallStrategy,
    TimeWindow,
)
from .recall import (
    ArcCluster,
    Awareness,
    Cluster,
    ComplexityTier,
    ConsolidationLevel,
    ConversationContext,
    Diagnostics,
    EmotionalJourney,
    EntityConnection,
    MemoryPreview,
    QueryContext,
    RecallInput,
    RecallResult,
    Reflection,
    RelationshipGraph,
    SemanticInsights,
    StreamName,
    Synthesis,
    TemporalType,
    Theme,
    TimeRange,
)

__all__ = [
    "ArcCluster",
    "ArcRecord",
    "Awareness",
    "Cluster",
    "ComplexityTier",
    "ConsolidationLevel",
    "ConversationContext",
    "CortexVector",
    "Diagnostics",
    "EmotionalJourney",
    "EntityConnection",
    "FusedCandidate",
    "GravityField",
    "InsightRecord",
    "IntegrityMode",
    "IntegrityState",
    "IntegrityStatus",
    "MemoryPreview",
    "MemoryRecord",
    "PatternRecord",
    "QueryContext",
    "RecallInput",
    "RecallResult",
    "RecallStrategy",
    "Reflection",
    "RelationshipGraph",
    "ScoredCandidate",
    "SemanticInsights",
    "StreamName",
    "Synthesis",
    "TemporalType",
    "Theme",
    "TimeRange",
    "TimeWindow",
]
