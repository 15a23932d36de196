"""Configuration keys and defaults for ivyrecall-server.

Values are resolved through scitrera-app-framework Variables (environment, then defaults).
"""

from enum import Enum

# ============================================
# Data Home Directory
# ============================================
IVYRECALL_DATA_DIR = 'IVYRECALL_DATA_DIR'

# ============================================
# Server Configuration
# ============================================
IVYRECALL_SERVER_HOST = 'IVYRECALL_SERVER_HOST'
DEFAULT_IVYRECALL_SERVER_HOST = '127.0.0.1'
IVYRECALL_SERVER_PORT = 'IVYRECALL_SERVER_PORT'
DEFAULT_IVYRECALL_SERVER_PORT = 61010

IVYRECALL_SERVER_CORS_ALLOW_ORIGINS = 'IVYRECALL_SERVER_CORS_ALLOW_ORIGINS'
DEFAULT_IVYRECALL_SERVER_CORS_ALLOW_ORIGINS = ['*']


# ============================================
# Embedding Providers
# ============================================
class EmbeddingProviderType(str, Enum):
    """Available embedding provider types."""

    OPENAI = "openai"  # OpenAI API (also works with any OpenAI-compatible endpoint)
    MOCK = "mock"  # deterministic hash-based provider for testing only


IVYRECALL_EMBEDDING_PROVIDER = 'IVYRECALL_EMBEDDING_PROVIDER'
DEFAULT_IVYRECALL_EMBEDDING_PROVIDER = EmbeddingProviderType.OPENAI
IVYRECALL_EMBEDDING_MODEL = 'IVYRECALL_EMBEDDING_MODEL'
IVYRECALL_EMBEDDING_DIMENSIONS = 'IVYRECALL_EMBEDDING_DIMENSIONS'

# ============================================
# Embedding Service
# ============================================
IVYRECALL_EMBEDDING_SERVICE = 'IVYRECALL_EMBEDDING_SERVICE'
DEFAULT_IVYRECALL_EMBEDDING_SERVICE = 'default'

# ============================================
# Storage Backend
# ============================================
IVYRECALL_STORAGE_BACKEND = 'IVYRECALL_STORAGE_BACKEND'
DEFAULT_IVYRECALL_STORAGE_BACKEND = 'sqlite'

IVYRECALL_SQLITE_STORAGE_PATH = 'IVYRECALL_SQLITE_STORAGE_PATH'
DEFAULT_IVYRECALL_SQLITE_STORAGE_PATH = "ivyrecall.db"

# ============================================
# Integrity Provider
# ============================================
IVYRECALL_INTEGRITY_PROVIDER = 'IVYRECALL_INTEGRITY_PROVIDER'
DEFAULT_IVYRECALL_INTEGRITY_PROVIDER = 'static'

# ============================================
# Gravity Field Store
# ============================================
IVYRECALL_GRAVITY_FIELD_STORE = 'IVYRECALL_GRAVITY_FIELD_STORE'
DEFAULT_IVYRECALL_GRAVITY_FIELD_STORE = 'in-memory'

# ============================================
# Metrics
# ============================================
IVYRECALL_METRICS_SERVICE = 'IVYRECALL_METRICS_SERVICE'
DEFAULT_IVYRECALL_METRICS_SERVICE = 'in-memory'

# ============================================
# Recall Service
# ============================================
IVYRECALL_RECALL_SERVICE = 'IVYRECALL_RECALL_SERVICE'
DEFAULT_IVYRECALL_RECALL_SERVICE = 'default'

# Per-stream timeout; a stream that exceeds it contributes no records
IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS = 'IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS'
DEFAULT_IVYRECALL_RECALL_STREAM_TIMEOUT_SECONDS = 5.0

IVYRECALL_RECALL_DEFAULT_MAX_DEPTH = 'IVYRECALL_RECALL_DEFAULT_MAX_DEPTH'
DEFAULT_IVYRECALL_RECALL_DEFAULT_MAX_DEPTH = 100

# Order in which post-multiply score adjustments run (comma separated)
IVYRECALL_RECALL_BOOST_ORDER = 'IVYRECALL_RECALL_BOOST_ORDER'
DEFAULT_IVYRECALL_RECALL_BOOST_ORDER = ['integrity', 'session', 'gravity_field', 'entity_well', 'context']
