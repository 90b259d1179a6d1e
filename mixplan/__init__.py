"""
mixplan: DJ set sequencing and track similarity.

Two pure scoring engines over pre-computed track analyses:

* :class:`SetlistEngine` orders tracks into a set with a per-transition reason.
* :func:`find_similar` ranks tracks by how alike they are to a query track.
"""

from .camelot import CamelotWheel, KeyRelation
from .config import ScoringConfig, SequencerWeights, SimilarityWeights
from .embedding import cosine_similarity, decode_embedding, encode_embedding
from .errors import (
    DuplicateTrackError,
    EmbeddingFormatError,
    EmptyInputError,
    MissingMustPlayError,
    MixplanError,
    PlanningError,
    ScoreNonFiniteError,
)
from .models import (
    Beatgrid,
    BeatMarker,
    EdgeExplanation,
    MusicalKey,
    PlanOptions,
    PlanResult,
    Section,
    SetMode,
    SimilarityResult,
    TempoMapNode,
    TrackAnalysis,
    TrackId,
    TransitionWindow,
)
from .setlist_engine import SetlistEngine
from .similarity import SimilarityScorer, find_similar
from .transitions import EdgeScorer

__version__ = "0.1.0"
