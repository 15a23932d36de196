"""
Centralized extension point constants for all ivyrecall services.

All EXT_* constants are defined here to avoid circular import issues.
"""

# ============================================
# Storage
# ============================================
EXT_STORAGE_BACKEND = 'ivyrecall-primary-storage'

# ============================================
# Embedding
# ============================================
EXT_EMBEDDING_PROVIDER = 'ivyrecall-embedding-provider'
EXT_EMBEDDING_SERVICE = 'ivyrecall-embedding-service'

# ============================================
# External signals
# ============================================
EXT_INTEGRITY_PROVIDER = 'ivyrecall-integrity-provider'
EXT_GRAVITY_FIELD_STORE = 'ivyrecall-gravity-field-store'

# ============================================
# Metrics
# ============================================
EXT_METRICS_SERVICE = 'ivyrecall-metrics-service'

# ============================================
# Recall
# ============================================
EXT_RECALL_SERVICE = 'ivyrecall-recall-service'
