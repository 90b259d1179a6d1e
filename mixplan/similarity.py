"""
Track similarity ("more like this").

Scores how alike two tracks are on a symmetric 0-1 scale: a weighted blend of
embedding, tempo, key and energy terms. This answers a different question from
the sequencer's edge score in ``transitions.py`` and the two scales are never
mixed.
"""

from typing import List, Optional, Sequence

from loguru import logger

from .camelot import CamelotWheel, KeyRelation
from .config import ScoringConfig
from .embedding import cosine_similarity, load_embedding
from .models import SimilarityResult, TrackAnalysis
from .tempo import bpm_distance

# Explanation phrases per key tier
_KEY_PHRASES = {
    KeyRelation.SAME: "same key",
    KeyRelation.RELATIVE: "relative key",
    KeyRelation.ADJACENT: "key compatible",
    KeyRelation.CROSS_MODE_ADJACENT: "key compatible",
    KeyRelation.ENERGY_BOOST: "harmonic key",
    KeyRelation.CLASH: "key clash",
}

# Vibe is only called out once it is clearly similar
_VIBE_MENTION_THRESHOLD = 0.7
_TEMPO_MATCH_BPM = 2.0


class SimilarityScorer:
    """
    Computes :class:`SimilarityResult` values for query/candidate pairs.

    Terms (each 0-1):
      vibe    cosine similarity of the embeddings mapped to 0-1; 0 when either
              embedding is missing, malformed or a different length.
      tempo   1.0 up to tempo_full_match_bpm of octave-aware distance, 0.0 from
              tempo_zero_match_bpm, linear in between; unknown tempo is neutral.
      key     tier constant from the Camelot relation.
      energy  1 - |Δenergy| / energy_zero_distance, floored at 0.
    """

    def __init__(self, config: Optional[ScoringConfig] = None, camelot: Optional[CamelotWheel] = None):
        self.config = config or ScoringConfig()
        self.camelot = camelot or CamelotWheel()

    def score(self, query: TrackAnalysis, candidate: TrackAnalysis) -> SimilarityResult:
        weights = self.config.similarity

        query_vec = load_embedding(query.embedding, query.content_hash)
        candidate_vec = load_embedding(candidate.embedding, candidate.content_hash)
        vibe = cosine_similarity(query_vec, candidate_vec)

        tempo = self.tempo_similarity(query.bpm, candidate.bpm)

        relation = self.camelot.relation(query.key_value, candidate.key_value)
        key = weights.key_scores[relation]

        energy_delta = candidate.energy_global - query.energy_global
        energy = max(0.0, 1.0 - abs(energy_delta) / weights.energy_zero_distance)

        combined = (
            weights.embedding * vibe
            + weights.tempo * tempo
            + weights.key * key
            + weights.energy * energy
        )
        combined = max(0.0, min(1.0, combined))

        tempo_known = query.bpm > 0 and candidate.bpm > 0
        bpm_delta = abs(candidate.bpm - query.bpm) if tempo_known else 0.0

        explanation = self._explain(
            vibe=vibe,
            has_embeddings=query_vec is not None and candidate_vec is not None,
            signed_bpm_delta=candidate.bpm - query.bpm if tempo_known else None,
            relation=relation,
            energy_delta=energy_delta,
        )

        return SimilarityResult(
            track_id=candidate.id,
            score=combined,
            vibe_match=vibe * 100,
            tempo_match=tempo * 100,
            key_match=key * 100,
            energy_match=energy * 100,
            bpm_delta=bpm_delta,
            key_relation=relation.value,
            energy_delta=energy_delta,
            explanation=explanation,
        )

    def tempo_similarity(self, bpm_a: float, bpm_b: float) -> float:
        weights = self.config.similarity
        distance = bpm_distance(bpm_a, bpm_b)
        if distance is None:
            return weights.unknown_tempo_score
        if distance <= weights.tempo_full_match_bpm:
            return 1.0
        if distance >= weights.tempo_zero_match_bpm:
            return 0.0
        return 1.0 - distance / weights.tempo_zero_match_bpm

    @staticmethod
    def _explain(
        vibe: float,
        has_embeddings: bool,
        signed_bpm_delta: Optional[float],
        relation: KeyRelation,
        energy_delta: int,
    ) -> str:
        parts = []

        if not has_embeddings:
            parts.append("no embedding")
        elif vibe >= _VIBE_MENTION_THRESHOLD:
            parts.append(f"similar vibe ({vibe * 100:.0f}%)")

        if signed_bpm_delta is None:
            parts.append("tempo unknown")
        elif abs(signed_bpm_delta) <= _TEMPO_MATCH_BPM:
            parts.append("tempo match")
        else:
            parts.append(f"Δ{signed_bpm_delta:+.1f} BPM")

        parts.append(_KEY_PHRASES[relation] if relation.is_known else "key unknown")

        if energy_delta == 0:
            parts.append("same energy")
        else:
            parts.append(f"energy {energy_delta:+d}")

        return "; ".join(parts)


def find_similar(
    query: TrackAnalysis,
    candidates: Sequence[TrackAnalysis],
    limit: int = 10,
    scorer: Optional[SimilarityScorer] = None,
    min_score: float = 0.0,
) -> List[SimilarityResult]:
    """
    Rank candidates by similarity to ``query``, best first.

    The query itself (by content hash) is skipped. Equal scores keep the
    candidates' input order. Returns an empty list when the query has no usable
    embedding or there is nothing to compare against; callers decide whether
    that is an error. ``limit`` bounds are the caller's responsibility.
    """
    if load_embedding(query.embedding, query.content_hash) is None:
        logger.debug(f"No embedding for query {query.content_hash}; nothing to rank")
        return []

    scorer = scorer or SimilarityScorer()
    results = [
        scorer.score(query, candidate)
        for candidate in candidates
        if candidate.content_hash != query.content_hash
    ]
    if not results:
        return []

    results.sort(key=lambda r: r.score, reverse=True)
    if min_score > 0:
        results = [r for r in results if r.score >= min_score]

    # A non-positive limit keeps everything
    if limit > 0:
        results = results[:limit]

    logger.debug(f"Similarity for {query.content_hash}: returning {len(results)} results")
    return results
