"""
Scoring configuration for the sequencer and the similarity search.

The two scorers use different scales on purpose:

* the sequencer scores a directed edge on a signed, open-ended scale
  ("what is the best next step from here?"), and
* the similarity scorer gives a symmetric 0-1 score ("how alike are these
  two tracks?").

Both read their constants from a :class:`ScoringConfig` value passed in by the
caller. The defaults are the product's tuned values.
"""

import os
from typing import Dict, Mapping, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .camelot import KeyRelation

# ---------------------------------------------------------------------------
# Default tier tables
# ---------------------------------------------------------------------------

SEQUENCER_KEY_SCORES: Dict[KeyRelation, float] = {
    KeyRelation.SAME: 4.0,
    KeyRelation.RELATIVE: 3.0,
    KeyRelation.ADJACENT: 3.0,
    KeyRelation.CROSS_MODE_ADJACENT: 2.0,
    KeyRelation.ENERGY_BOOST: 1.5,
    KeyRelation.CLASH: -2.0,
    KeyRelation.UNPARSEABLE: -3.0,
    KeyRelation.MISSING: -1.0,
}

# Only the penalised tiers change when key jumps are allowed.
SEQUENCER_KEY_SCORES_WITH_JUMPS: Dict[KeyRelation, float] = {
    KeyRelation.CLASH: 1.0,
    KeyRelation.UNPARSEABLE: -1.0,
    KeyRelation.MISSING: -0.5,
}

SIMILARITY_KEY_SCORES: Dict[KeyRelation, float] = {
    KeyRelation.SAME: 1.0,
    KeyRelation.RELATIVE: 0.9,
    KeyRelation.ADJACENT: 0.85,
    KeyRelation.CROSS_MODE_ADJACENT: 0.75,
    KeyRelation.ENERGY_BOOST: 0.7,
    KeyRelation.CLASH: 0.2,
    KeyRelation.UNPARSEABLE: 0.3,
    KeyRelation.MISSING: 0.5,
}

ENV_SIMILARITY_WEIGHTS = "MIXPLAN_SIMILARITY_WEIGHTS"
ENV_MAX_BPM_STEP_PENALTY = "MIXPLAN_MAX_BPM_STEP_PENALTY"
ENV_WINDOW_BONUS = "MIXPLAN_WINDOW_BONUS"


def _check_tiers(table: Mapping[KeyRelation, float], name: str) -> None:
    missing = [tier.value for tier in KeyRelation if tier not in table]
    if missing:
        raise ValueError(f"{name} is missing key tiers: {', '.join(missing)}")


# ---------------------------------------------------------------------------
# Sequencer
# ---------------------------------------------------------------------------

class SequencerWeights(BaseModel):
    """Constants for the directed edge score used while building a set."""

    model_config = ConfigDict(frozen=True)

    # tempo term: tempo_base - distance / tempo_divisor
    tempo_base: float = 4.0
    tempo_divisor: float = Field(default=2.0, gt=0)
    bpm_step_penalty: float = Field(default=4.0, ge=0)
    unknown_tempo_score: float = 0.0

    # energy term: energy_base - |delta| * energy_step + direction bonus
    energy_base: float = 2.0
    energy_step: float = 0.5
    rise_bonus: float = 1.0
    hold_bonus: float = 0.5

    window_bonus: float = 1.0

    key_scores: Dict[KeyRelation, float] = Field(default_factory=lambda: dict(SEQUENCER_KEY_SCORES))
    key_scores_with_jumps: Dict[KeyRelation, float] = Field(
        default_factory=lambda: dict(SEQUENCER_KEY_SCORES_WITH_JUMPS)
    )

    @model_validator(mode="after")
    def _validate_key_tables(self) -> "SequencerWeights":
        _check_tiers(self.key_scores, "key_scores")
        for tier, value in self.key_scores_with_jumps.items():
            if value < self.key_scores[tier]:
                raise ValueError(
                    f"allowing key jumps must not worsen the {tier.value} score "
                    f"({value} < {self.key_scores[tier]})"
                )
        return self

    def key_score(self, relation: KeyRelation, allow_jumps: bool) -> float:
        if allow_jumps and relation in self.key_scores_with_jumps:
            return self.key_scores_with_jumps[relation]
        return self.key_scores[relation]


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------

class SimilarityWeights(BaseModel):
    """Component weights and tier constants for the 0-1 similarity score."""

    model_config = ConfigDict(frozen=True)

    embedding: float = Field(default=0.50, ge=0)
    tempo: float = Field(default=0.20, ge=0)
    key: float = Field(default=0.20, ge=0)
    energy: float = Field(default=0.10, ge=0)

    # tempo term: 1.0 up to tempo_full_match_bpm, 0.0 from tempo_zero_match_bpm
    tempo_full_match_bpm: float = Field(default=1.0, ge=0)
    tempo_zero_match_bpm: float = Field(default=10.0, gt=0)
    unknown_tempo_score: float = Field(default=0.5, ge=0, le=1)

    # energy term: 1 - |delta| / energy_zero_distance
    energy_zero_distance: float = Field(default=5.0, gt=0)

    key_scores: Dict[KeyRelation, float] = Field(default_factory=lambda: dict(SIMILARITY_KEY_SCORES))

    @model_validator(mode="after")
    def _validate(self) -> "SimilarityWeights":
        total = self.embedding + self.tempo + self.key + self.energy
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"similarity weights must sum to 1.0, got {total:.4f}")
        if self.tempo_full_match_bpm >= self.tempo_zero_match_bpm:
            raise ValueError("tempo_full_match_bpm must be below tempo_zero_match_bpm")
        _check_tiers(self.key_scores, "key_scores")
        for tier, value in self.key_scores.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"similarity key score for {tier.value} must be within 0-1")
        return self

    @property
    def components(self) -> Tuple[float, float, float, float]:
        return (self.embedding, self.tempo, self.key, self.energy)


# ---------------------------------------------------------------------------
# Combined config
# ---------------------------------------------------------------------------

class ScoringConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    sequencer: SequencerWeights = Field(default_factory=SequencerWeights)
    similarity: SimilarityWeights = Field(default_factory=SimilarityWeights)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ScoringConfig":
        """
        Build a config with overrides from environment variables.

        MIXPLAN_SIMILARITY_WEIGHTS    "embedding,tempo,key,energy", normalised to sum 1
        MIXPLAN_MAX_BPM_STEP_PENALTY  float, extra penalty past the max BPM step
        MIXPLAN_WINDOW_BONUS          float, bonus when both tracks have windows

        Malformed values are logged and ignored.
        """
        env = os.environ if environ is None else environ

        sequencer_overrides: Dict[str, float] = {}
        for var, field in (
            (ENV_MAX_BPM_STEP_PENALTY, "bpm_step_penalty"),
            (ENV_WINDOW_BONUS, "window_bonus"),
        ):
            value = _env_float(env, var)
            if value is not None:
                sequencer_overrides[field] = value

        similarity_overrides: Dict[str, float] = {}
        weights = _env_weights(env, ENV_SIMILARITY_WEIGHTS)
        if weights is not None:
            similarity_overrides = dict(zip(("embedding", "tempo", "key", "energy"), weights))

        return cls(
            sequencer=SequencerWeights(**sequencer_overrides),
            similarity=SimilarityWeights(**similarity_overrides),
        )


def _env_float(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not a number")
        return None
    if value < 0:
        logger.warning(f"Ignoring {name}={raw!r}: must not be negative")
        return None
    return value


def _env_weights(env: Mapping[str, str], name: str) -> Optional[Tuple[float, float, float, float]]:
    raw = env.get(name)
    if not raw:
        return None
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    if len(parts) != 4:
        logger.warning(f"Ignoring {name}={raw!r}: expected 4 comma-separated weights")
        return None
    try:
        weights = [float(p) for p in parts]
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: weights must be numbers")
        return None
    total = sum(weights)
    if any(w < 0 for w in weights) or total <= 0:
        logger.warning(f"Ignoring {name}={raw!r}: weights must be non-negative with a positive sum")
        return None
    return tuple(w / total for w in weights)  # type: ignore[return-value]
