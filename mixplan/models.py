"""
Data models for track analyses, planning options and scoring results.

Every model is frozen: analyses are read-only snapshots produced upstream,
and results are fresh values built per call.
"""

from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .tempo import estimate_bpm


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Track analysis snapshot
# ---------------------------------------------------------------------------

class TrackId(_Frozen):
    content_hash: str
    path: str = ""


class BeatMarker(_Frozen):
    index: int
    time: float  # seconds from the start of the track


class TempoMapNode(_Frozen):
    beat_index: int
    bpm: float


class Beatgrid(_Frozen):
    beats: Tuple[BeatMarker, ...] = ()
    tempo_map: Tuple[TempoMapNode, ...] = ()
    confidence: float = 0.0


class MusicalKey(_Frozen):
    value: str  # Camelot notation, e.g. "8A"
    confidence: float = 0.0


class Section(_Frozen):
    start_beat: int
    end_beat: int
    label: str
    confidence: float = 0.0


class TransitionWindow(_Frozen):
    start_beat: int
    end_beat: int
    tag: str
    confidence: float = 0.0


class TrackAnalysis(_Frozen):
    """Everything the scorers know about one track."""

    id: TrackId
    beatgrid: Optional[Beatgrid] = None
    key: Optional[MusicalKey] = None
    energy_global: int = Field(default=5, ge=1, le=10)
    sections: Tuple[Section, ...] = ()
    transition_windows: Tuple[TransitionWindow, ...] = ()
    embedding: Optional[bytes] = None  # little-endian float32, see embedding.py

    @property
    def content_hash(self) -> str:
        return self.id.content_hash

    @property
    def key_value(self) -> Optional[str]:
        return self.key.value if self.key else None

    @property
    def bpm(self) -> float:
        """Representative BPM, 0.0 when unknown."""
        return estimate_bpm(self.beatgrid)

    @property
    def first_window_tag(self) -> Optional[str]:
        if not self.transition_windows:
            return None
        return self.transition_windows[0].tag


# ---------------------------------------------------------------------------
# Sequencing
# ---------------------------------------------------------------------------

class SetMode(str, Enum):
    WARM_UP = "WARM_UP"
    PEAK_TIME = "PEAK_TIME"
    OPEN_FORMAT = "OPEN_FORMAT"

    @classmethod
    def parse(cls, text: Optional[str]) -> "SetMode":
        """Lenient lookup: ``"warm-up"``, ``"SET_MODE_WARM_UP"`` etc. Unknown -> PEAK_TIME."""
        if not text:
            return cls.PEAK_TIME
        normalized = text.strip().upper().replace("-", "_").replace(" ", "_")
        if normalized.startswith("SET_MODE_"):
            normalized = normalized[len("SET_MODE_"):]
        try:
            return cls(normalized)
        except ValueError:
            return cls.PEAK_TIME


class PlanOptions(_Frozen):
    mode: SetMode = SetMode.PEAK_TIME
    allow_key_jumps: bool = False
    max_bpm_step: float = Field(default=0.0, ge=0.0)  # 0 = unconstrained
    must_play: FrozenSet[str] = frozenset()  # content hashes
    ban: FrozenSet[str] = frozenset()  # content hashes


class EdgeExplanation(_Frozen):
    from_id: TrackId
    to_id: TrackId
    score: float
    tempo_delta: float  # signed, to - from
    energy_delta: int  # signed, to - from
    key_relation: str
    window_overlap: str = ""
    reason: str = ""


class PlanResult(_Frozen):
    order: Tuple[TrackId, ...]
    explanations: Tuple[EdgeExplanation, ...]
    avg_bpm: float = 0.0
    bpm_range: Tuple[float, float] = (0.0, 0.0)
    energy_arc: Tuple[int, ...] = ()
    mean_edge_score: float = 0.0

    @property
    def content_hashes(self) -> Tuple[str, ...]:
        return tuple(tid.content_hash for tid in self.order)


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------

class SimilarityResult(_Frozen):
    track_id: TrackId
    score: float  # combined, 0-1
    vibe_match: float  # 0-100
    tempo_match: float  # 0-100
    key_match: float  # 0-100
    energy_match: float  # 0-100
    bpm_delta: float  # absolute direct difference
    key_relation: str
    energy_delta: int  # signed, candidate - query
    explanation: str
