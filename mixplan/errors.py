"""
Exception hierarchy for the scoring and sequencing engine.

Structural problems (nothing to plan, a required track missing) raise and stop
the call. Data-quality problems (bad key, unknown tempo, missing embedding) are
absorbed by the scorers and never show up here, with one exception: the
embedding codec raises ``EmbeddingFormatError`` so the scorers can decide how
to degrade.
"""


class MixplanError(Exception):
    """Base class for every error raised by this package."""


class PlanningError(MixplanError):
    """A set could not be planned from the given input."""


class EmptyInputError(PlanningError):
    """No analyses were supplied, or every analysis was banned."""


class MissingMustPlayError(PlanningError):
    """A must-play track has no analysis left after filtering."""

    def __init__(self, content_hash: str):
        self.content_hash = content_hash
        super().__init__(f"must-play track {content_hash} missing analysis")


class DuplicateTrackError(PlanningError):
    """Two analyses share the same content hash."""

    def __init__(self, content_hash: str):
        self.content_hash = content_hash
        super().__init__(f"duplicate analysis for track {content_hash}")


class ScoreNonFiniteError(MixplanError, ArithmeticError):
    """An edge score came out as NaN or infinity. Always a defect."""


class EmbeddingFormatError(MixplanError, ValueError):
    """An embedding byte buffer cannot be decoded as float32 values."""
