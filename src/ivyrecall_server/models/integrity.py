"""
External-signal models consumed by recall: integrity state and gravity field.

Both are produced elsewhere (integrity analysis, ingestion) and only read here.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

CORTEX_DIMENSIONS = (
    "sovereignty", "growth", "pattern", "stability", "authenticity",
    "integrity_risk", "coherence", "paradox", "imagination", "temporal",
)
DEFAULT_CORTEX_VECTOR = (0.5, 0.5, 0.5, 0.5, 0.5, 0.1, 0.8, 0.5, 0.5, 0.5)


class IntegrityStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PROTECTED = "PROTECTED"
    LOCKED = "LOCKED"


class IntegrityMode(str, Enum):
    """Caution level derived from integrity risk."""

    NOMINAL = "nominal"
    CAUTION = "caution"
    GUARDED = "guarded"
    ASSERTIVE_TRUTH = "assertive_truth"
    SENTINEL_LOCKDOWN = "sentinel_lockdown"

    @classmethod
    def from_risk(cls, risk: float) -> "IntegrityMode":
        if risk >= 0.9:
            return cls.SENTINEL_LOCKDOWN
        if risk >= 0.75:
            return cls.ASSERTIVE_TRUTH
        if risk >= 0.5:
            return cls.GUARDED
        if risk >= 0.25:
            return cls.CAUTION
        return cls.NOMINAL

    @property
    def is_strict(self) -> bool:
        return self in (IntegrityMode.ASSERTIVE_TRUTH, IntegrityMode.SENTINEL_LOCKDOWN)


class TimeWindow(str, Enum):
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    LAST_18_MONTHS = "last_18mo"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        return {
            TimeWindow.LAST_7_DAYS: 7,
            TimeWindow.LAST_30_DAYS: 30,
            TimeWindow.LAST_90_DAYS: 90,
            TimeWindow.LAST_18_MONTHS: 18 * 30,
        }.get(self)


class CortexVector(BaseModel):
    """Ten opaque behavioural signals, read by name."""

    values: list[float] = Field(default_factory=lambda: list(DEFAULT_CORTEX_VECTOR))

    @field_validator('values')
    @classmethod
    def normalize_length(cls, v: list[float]) -> list[float]:
        v = [float(x) for x in v[:len(CORTEX_DIMENSIONS)]]
        return v + list(DEFAULT_CORTEX_VECTOR[len(v):])

    @classmethod
    def from_list(cls, values: Optional[list[float]]) -> "CortexVector":
        if values is None:
            return cls()
        return cls(values=values)

    def get(self, name: str) -> float:
        return self.values[CORTEX_DIMENSIONS.index(name)]

    @property
    def sovereignty(self) -> float:
        return self.values[0]

    @property
    def growth(self) -> float:
        return self.values[1]

    @property
    def pattern(self) -> float:
        return self.values[2]

    @property
    def stability(self) -> float:
        return self.values[3]

    @property
    def authenticity(self) -> float:
        return self.values[4]

    @property
    def integrity_risk(self) -> float:
        return self.values[5]

    @property
    def coherence(self) -> float:
        return self.values[6]

    @property
    def paradox(self) -> float:
        return self.values[7]

    @property
    def imagination(self) -> float:
        return self.values[8]

    @property
    def temporal(self) -> float:
        return self.values[9]


class RecallStrategy(BaseModel):
    """Recall hints supplied alongside the integrity state."""

    top_k: Optional[int] = Field(None, ge=1, description="Caps the recall depth")
    time_window: TimeWindow = Field(TimeWindow.ALL)
    anchor_entities: list[str] = Field(default_factory=list)
    preferred_types: list[str] = Field(default_factory=list)
    anchor_bias: bool = False


class IntegrityState(BaseModel):
    risk: float = Field(0.0, ge=0.0, le=1.0)
    vector: CortexVector = Field(default_factory=CortexVector)
    status: IntegrityStatus = IntegrityStatus.ACTIVE
    recall_strategy: RecallStrategy = Field(default_factory=RecallStrategy)
    recommended_action: Optional[str] = None

    @property
    def mode(self) -> IntegrityMode:
        return IntegrityMode.from_risk(self.risk)

    @property
    def is_locked(self) -> bool:
        return self.status == IntegrityStatus.LOCKED or self.risk >= 0.9

    @classmethod
    def conservative_default(cls) -> "IntegrityState":
        """Fallback used whenever no integrity state can be obtained."""
        return cls(
            risk=0.1,
            vector=CortexVector(values=[1.0, 0.0, 0.5, 0.5, 1.0, 0.0, 0.5, 0.5, 0.3, 0.5]),
            status=IntegrityStatus.PROTECTED,
            recall_strategy=RecallStrategy(top_k=10, time_window=TimeWindow.LAST_30_DAYS),
            recommended_action="constrain_generation",
        )


class GravityField(BaseModel):
    """Per-session accumulated attention mass."""

    session_id: Optional[str] = None
    total_mass: float = Field(0.0, ge=0.0)
    entity_anchors: dict[str, float] = Field(default_factory=dict)
    high_gravity_memories: list[str] = Field(default_factory=list)

    @classmethod
    def empty(cls, session_id: Optional[str] = None) -> "GravityField":
        return cls(session_id=session_id)
