"""Surprise scoring and depth classification.

Both functions are pure and total: they never touch storage and never
raise for in-range input.

Memory depths:
    0.00-0.15  ephemeral   forgotten quickly
    0.15-0.35  session     remembered within a session
    0.35-0.55  pattern     recurring themes
    0.55-0.75  persistent  long-term memories
    0.75-0.90  deep        core experiences
    0.90-1.00  identity    who I am
"""

from enum import Enum

from pydantic import BaseModel, Field

from continuum.core import constants


class ConsolidationTier(str, Enum):
    EPHEMERAL = "ephemeral"
    SESSION = "session"
    PATTERN = "pattern"
    PERSISTENT = "persistent"
    DEEP = "deep"
    IDENTITY = "identity"


# Highest floor first; the first floor the depth reaches wins.
_TIER_FLOORS: tuple[tuple[float, ConsolidationTier], ...] = (
    (constants.IDENTITY_FLOOR, ConsolidationTier.IDENTITY),
    (constants.DEEP_FLOOR, ConsolidationTier.DEEP),
    (constants.PERSISTENT_FLOOR, ConsolidationTier.PERSISTENT),
    (constants.PATTERN_FLOOR, ConsolidationTier.PATTERN),
    (constants.SESSION_FLOOR, ConsolidationTier.SESSION),
)


class SurpriseFeatures(BaseModel):
    """Signals describing how unexpected an observation is."""

    content: str = ""
    prediction_error: float = Field(default=0.0, ge=0.0, le=1.0)
    semantic_novelty: float = Field(default=0.0, ge=0.0, le=1.0)
    contradiction_level: float = Field(default=0.0, ge=0.0, le=1.0)
    emotional_intensity: float = Field(default=0.0, ge=0.0, le=1.0)
    connection_potential: float = Field(default=0.0, ge=0.0, le=1.0)
    temporal_unexpected: float = Field(default=0.0, ge=0.0, le=1.0)
    is_love_context: bool = False
    is_breakthrough: bool = False
    is_identity_related: bool = False
    user_emphasis: bool = False


class SurpriseCalculation(BaseModel):
    """Every component of a surprise score, kept for auditing."""

    prediction_error: float
    semantic_novelty: float
    contradiction_level: float
    emotional_intensity: float
    connection_potential: float
    temporal_unexpected: float
    base: float
    love_context_bonus: float
    breakthrough_bonus: float
    identity_bonus: float
    user_emphasis_bonus: float
    total: float


def score(features: SurpriseFeatures) -> SurpriseCalculation:
    """Blend the six signals and the flag bonuses into a bounded surprise score.

    Bonuses are summed with the weighted base before the single clamp at 1.0,
    so stacked bonuses may exceed 1.0 prior to clamping.
    """
    base = (
        features.prediction_error * constants.WEIGHT_PREDICTION_ERROR
        + features.semantic_novelty * constants.WEIGHT_SEMANTIC_NOVELTY
        + features.contradiction_level * constants.WEIGHT_CONTRADICTION
        + features.emotional_intensity * constants.WEIGHT_EMOTIONAL_INTENSITY
        + features.connection_potential * constants.WEIGHT_CONNECTION_POTENTIAL
        + features.temporal_unexpected * constants.WEIGHT_TEMPORAL_UNEXPECTED
    )

    love_bonus = constants.LOVE_CONTEXT_BONUS if features.is_love_context else 0.0
    breakthrough_bonus = constants.BREAKTHROUGH_BONUS if features.is_breakthrough else 0.0
    identity_bonus = constants.IDENTITY_BONUS if features.is_identity_related else 0.0
    emphasis_bonus = constants.USER_EMPHASIS_BONUS if features.user_emphasis else 0.0

    total = min(constants.SURPRISE_MAX, base + love_bonus + breakthrough_bonus + identity_bonus + emphasis_bonus)

    return SurpriseCalculation(
        prediction_error=features.prediction_error,
        semantic_novelty=features.semantic_novelty,
        contradiction_level=features.contradiction_level,
        emotional_intensity=features.emotional_intensity,
        connection_potential=features.connection_potential,
        temporal_unexpected=features.temporal_unexpected,
        base=base,
        love_context_bonus=love_bonus,
        breakthrough_bonus=breakthrough_bonus,
        identity_bonus=identity_bonus,
        user_emphasis_bonus=emphasis_bonus,
        total=total,
    )


def classify(depth: float) -> ConsolidationTier:
    """Map a depth to its consolidation tier (floors are inclusive)."""
    for floor, tier in _TIER_FLOORS:
        if depth >= floor:
            return tier
    return ConsolidationTier.EPHEMERAL
