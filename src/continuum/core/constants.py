"""Scoring weights, tier floors and retrieval thresholds."""

# Surprise signal weights (sum to 1.0)
WEIGHT_PREDICTION_ERROR = 0.30
WEIGHT_SEMANTIC_NOVELTY = 0.20
WEIGHT_CONTRADICTION = 0.15
WEIGHT_EMOTIONAL_INTENSITY = 0.15
WEIGHT_CONNECTION_POTENTIAL = 0.10
WEIGHT_TEMPORAL_UNEXPECTED = 0.10

# Additive bonuses, applied before the final clamp
LOVE_CONTEXT_BONUS = 0.10
BREAKTHROUGH_BONUS = 0.15
IDENTITY_BONUS = 0.10
USER_EMPHASIS_BONUS = 0.05

SURPRISE_MAX = 1.0

# Tier floors, inclusive
IDENTITY_FLOOR = 0.90
DEEP_FLOOR = 0.75
PERSISTENT_FLOOR = 0.55
PATTERN_FLOOR = 0.35
SESSION_FLOOR = 0.15

# Retrieval thresholds
PENDING_CONSOLIDATION_THRESHOLD = 0.40  # strictly greater than
HIGH_PRIORITY_FLOOR = 0.60
HIGH_SURPRISE_THRESHOLD = 0.50

DEFAULT_DEPTH_RANGE_LIMIT = 20
DEFAULT_STORE_DEPTH = 0.5
