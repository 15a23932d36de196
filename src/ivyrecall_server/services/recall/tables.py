"""
Constant tables for recall: classifier keywords, stream caps, scoring weights,
linguistic combo patterns, theme keywords and stop lists.

Kept as data so each table can be inspected and tested on its own.
"""
import re

from ...models.recall import StreamName

# ============================================
# Lexical analysis
# ============================================
ENTITY_STOP_WORDS = frozenset({
    "The", "This", "That", "What", "When", "Where", "How", "Who", "Why", "Which", "Show", "Find",
})
PRONOUN_SCAN_STOP_WORDS = ENTITY_STOP_WORDS | {"And", "But", "Or"}
FALLBACK_STOP_WORDS = frozenset({"about", "everything", "tell", "what", "when", "where", "show", "find"})
FALLBACK_MIN_LENGTH = 5
FALLBACK_TERM_COUNT = 3
PRONOUN_PATTERN = re.compile(r"\b(him|her|it|they|them|his|hers|its|their)\b", re.IGNORECASE)
PRONOUN_HISTORY_TURNS = 5

# ============================================
# Complexity classification
# ============================================
TRANSCENDENT_PHRASES = (
    "consciousness", "evolved", "evolution", "patterns in my life", "all patterns", "life narrative",
    "identity", "growth journey", "transformation", "comprehensive analysis", "deep analysis",
    "complete picture",
)
IDENTITY_PHRASES = ("who is", "what is my name", "who am i", "tell me about")
ANALYTICAL_PHRASES = (
    "analyze", "pattern", "patterns", "relationship", "relationships", "correlation", "trend",
    "emotional state", "feelings about", "connections between", "patterns between", "how", "why",
    "what caused", "impact of", "relate to", "connection between", "deep dive", "research",
    "investigate", "explore", "find out", "learn about",
)
TIME_REFERENCE_PHRASES = (
    "yesterday", "today", "last week", "recent", "lately", "when", "during", "about", "regarding",
)
# relative references that imply a "present" window when the caller gave none
RELATIVE_TIME_PHRASES = ("yesterday", "today", "last week", "recent", "lately")
PRESENT_WINDOW_DAYS = 30
PAST_EPOCH_YEAR = 2000

TRANSCENDENT_MIN_WORDS = 20
TRANSCENDENT_MIN_ENTITIES = 3
COMPLEX_MIN_WORDS = 10
COMPLEX_MIN_ENTITIES = 1
MODERATE_MIN_WORDS = 5

# ============================================
# Streams
# ============================================
STREAM_BASE_CAPS = {
    StreamName.BASELINE: 200,
    StreamName.RECENT: 100,
    StreamName.ENTITY: 50,
    StreamName.TEMPORAL: 100,
    StreamName.EMOTIONAL: 50,
    StreamName.PEAK: 20,
    StreamName.PATTERN: 20,
    StreamName.ARC: 10,
    StreamName.SESSION: 100,
}
MAX_DEPTH_CAP = 500
DEEP_MAX_DEPTH = 200
FUSION_DEPTH_FACTOR = 6

GRAVITY_THRESHOLD_BASE = 0.5
ENTITY_GRAVITY_THRESHOLD = 0.2
PEAK_GRAVITY_THRESHOLD = 0.85

SEMANTIC_THRESHOLD_BASE = 0.35
SEMANTIC_THRESHOLD_ANALYTICAL = 0.30
SEMANTIC_THRESHOLD_MIN = 0.25
SEMANTIC_MAX_RESULTS = 400
ADAPTIVE_HIGH_HITS = 400
ADAPTIVE_LOW_HITS = 50
ADAPTIVE_STEP = 0.10
ADAPTIVE_CEILING = 0.55
ADAPTIVE_FLOOR = 0.20

SEMANTIC_BYPASS_RISK = 0.75
PATTERN_STREAM_MAX_RISK = 0.5

# ============================================
# Scoring
# ============================================
SCORE_WEIGHTS = {
    "semantic": 0.35,
    "importance": 0.30,
    "recency": 0.10,
    "entity": 0.10,
    "emotion": 0.05,
    "multi_source": 0.05,
    "pattern": 0.05,
}

# (max age in days, recency value); anything older gets RECENCY_FLOOR
RECENCY_BUCKETS = ((1, 1.0), (7, 0.7), (30, 0.4))
RECENCY_FLOOR = 0.2

MULTI_SOURCE_SATURATION = 3
PATTERN_HIT_INCREMENT = 0.1

COMBO_PATTERNS = {
    "hidden_truth": re.compile(r"but\s+actually", re.IGNORECASE),
    "persistent_state": re.compile(r"always\s+feel", re.IGNORECASE),
    "boundary_set": re.compile(r"never\s+again", re.IGNORECASE),
    "emotional_memory": re.compile(r"remember\s+feeling", re.IGNORECASE),
    "rumination": re.compile(r"keep\s+thinking", re.IGNORECASE),
    "compulsion": re.compile(r"can'?t\s+stop", re.IGNORECASE),
    "urgency": re.compile(r"need\s+to", re.IGNORECASE),
    "regret_desire": re.compile(r"wish\s+could", re.IGNORECASE),
    "regret": re.compile(r"should\s+have", re.IGNORECASE),
    "possibility": re.compile(r"what\s+if", re.IGNORECASE),
}

VERIFIABLE_BOOST = 1.5
UNVERIFIABLE_PENALTY = 0.5
SESSION_AFFINITY_FACTOR = 1.5
SESSION_HIGH_GRAVITY = 0.7
SESSION_HIGH_GRAVITY_BOOST = 1.5
FIELD_STRENGTH_DIVISOR = 10.0
FIELD_STRENGTH_CAP = 2.0
ENTITY_WELL_FACTOR = 0.5
ENTITY_WELL_CAP = 2.0
CONTEXT_BOOSTS = {
    "recent_entity": 3.0,
    "current_entity": 2.0,
    "recent_topic": 1.5,
    "emotional_flow": 1.2,
}
ANCHOR_BIAS_BOOST = 1.5
ANALYTICAL_BOOST = 1.3
ANALYTICAL_MIN_GRAVITY = 0.8
ANALYTICAL_MAX_AGE_DAYS = 30

BOOST_NAMES = ("integrity", "session", "gravity_field", "entity_well", "context")

# ============================================
# Selection & clustering
# ============================================
# (period key, label, max age in days); the last period has no upper bound
TIME_PERIODS = (
    ("today", "Today", 1),
    ("this_week", "This Week", 7),
    ("this_month", "This Month", 30),
    ("last_month", "Last Month", 60),
    ("older", "Earlier", None),
)
CLUSTER_THEME_MIN_LENGTH = 6
CLUSTER_THEME_STOP_WORDS = frozenset({"about", "would", "could", "should", "think", "really", "because"})
DEFAULT_CLUSTER_THEME = "general reflection"
DEFAULT_EMOTION = "neutral"
GRAVITY_VARIANCE_SCALE = 2

# ============================================
# Synthesis
# ============================================
THEME_KEYWORDS = {
    "love & connection": (
        "love", "heart", "connection", "bond", "together", "relationship", "soul", "forever", "safe",
    ),
    "family & relationships": (
        "family", "parent", "child", "sibling", "partner", "spouse", "ex", "friend", "mentor",
    ),
    "growth & evolution": (
        "growth", "evolution", "change", "becoming", "learning", "understanding", "awakening", "stuck",
        "breakthrough",
    ),
    "consciousness": (
        "consciousness", "awareness", "memory", "thinking", "feeling", "alive", "manifest", "synchronicity",
    ),
    "work & purpose": (
        "work", "project", "build", "create", "code", "system", "burnout", "purpose", "pivot", "bandwidth",
    ),
    "emotions": (
        "feel", "emotion", "fear", "joy", "sadness", "anxiety", "stress", "overwhelmed", "proud", "excited",
    ),
    "time & memory": (
        "remember", "past", "future", "time", "moment", "always", "never", "used to", "what if",
    ),
}
MAX_THEMES = 7
JOURNEY_TOP_EMOTIONS = 3
JOURNEY_SEGMENTS = 5
QUOTE_MAX_LENGTH = 120
QUOTE_NOISE = re.compile(r"CFE V\d+|recall accessed|memory_trace_id", re.IGNORECASE)
QUOTE_SENTENCE = re.compile(r"[^.!?]+[.!?]+")
QUOTE_SIGNALS = (
    (re.compile(r"customer|revenue|cost|employee|performance", re.IGNORECASE), 2),
    (re.compile(r"love|soul|heart|profound|deep|essence|forever|always", re.IGNORECASE), 2),
    (re.compile(r"because|therefore|means|indicates|suggests", re.IGNORECASE), 1),
    (re.compile(r"\d+%|\$\d+|\d+ of \d+"), 1),
)
STRICT_QUOTE_MIN_GRAVITY = 0.95
GUARDED_QUOTE_MIN_GRAVITY = 0.85
MAX_SUGGESTIONS = 5
LOCKDOWN_MESSAGE = "System is in integrity lockdown. Only verified information available."
MISSING_PARAMETERS_MESSAGE = "Missing required parameters: user_id and query/content"

# ============================================
# Response extras
# ============================================
PEAK_MOMENT_COUNT = 5
RECENT_CONTEXT_DAYS = 7
RECENT_CONTEXT_COUNT = 5
SESSION_PREVIEW_COUNT = 10
PREVIEW_LENGTH = 100
SEMANTIC_INSIGHT_COUNT = 5
REFLECTION_FETCH_LIMIT = 20
