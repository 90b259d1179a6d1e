"""
Set sequencing engine.

Turns a snapshot of track analyses into a full playing order with one edge
explanation per transition. It is a greedy heuristic: pick a start track for
the mode, then keep appending the best-scoring unused track. It does not look
for a globally optimal path.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .camelot import CamelotWheel
from .config import ScoringConfig
from .errors import DuplicateTrackError, EmptyInputError, MissingMustPlayError
from .models import (
    EdgeExplanation,
    PlanOptions,
    PlanResult,
    SetMode,
    TrackAnalysis,
)
from .transitions import EdgeScorer


class SetlistEngine:
    """
    Orders a set of analysed tracks into a playable sequence.

    Stages: filter -> choose start -> extend until no tracks remain.
    Ties at every stage are broken by content hash (ascending), so the same
    input always gives the same output.
    """

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        camelot: Optional[CamelotWheel] = None,
        edge_scorer: Optional[EdgeScorer] = None,
    ):
        self.config = config or ScoringConfig()
        self.camelot = camelot or CamelotWheel()
        self.edge_scorer = edge_scorer or EdgeScorer(self.config, self.camelot)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan(self, analyses: Sequence[TrackAnalysis], options: Optional[PlanOptions] = None) -> PlanResult:
        """
        Plan a set.

        Raises:
            EmptyInputError: no analyses, or every analysis was banned.
            DuplicateTrackError: two non-banned analyses share a content hash.
            MissingMustPlayError: a must-play hash is absent after filtering.

        Must-play only validates presence. Every surviving track is placed
        anyway, so must-play tracks get no positional priority.
        """
        options = options or PlanOptions()
        candidates = self._filter(analyses, options)

        start = self._choose_start(candidates, options.mode)
        logger.debug(
            f"Set start ({options.mode.value}): {start.content_hash} "
            f"bpm={start.bpm:.1f} energy={start.energy_global}"
        )

        # Ordered by content hash; the scan keeps the first maximum it sees
        remaining = sorted(
            (t for t in candidates if t.content_hash != start.content_hash),
            key=lambda t: t.content_hash,
        )

        order: List[TrackAnalysis] = [start]
        explanations: List[EdgeExplanation] = []
        current = start

        while remaining:
            best = self._best_next(current, remaining, options)
            if best is None:
                self._append_residual(order, explanations, remaining)
                break

            best_index, edge = best
            current = remaining.pop(best_index)
            order.append(current)
            explanations.append(edge)
            logger.debug(f"  -> {current.content_hash} score={edge.score:.2f} ({edge.reason})")

        result = self._build_result(order, explanations)
        logger.info(
            f"Set planned: {len(result.order)} tracks, mode={options.mode.value}, "
            f"banned={len(analyses) - len(candidates)}, "
            f"mean edge score={result.mean_edge_score:.2f}"
        )
        return result

    def _filter(self, analyses: Sequence[TrackAnalysis], options: PlanOptions) -> List[TrackAnalysis]:
        if not analyses:
            raise EmptyInputError("no analyses provided")

        filtered = [a for a in analyses if a.content_hash not in options.ban]
        if not filtered:
            raise EmptyInputError("all tracks were filtered out")

        # Banned ids are dropped first, so a banned duplicate is not an error
        seen: Dict[str, TrackAnalysis] = {}
        for analysis in filtered:
            if analysis.content_hash in seen:
                raise DuplicateTrackError(analysis.content_hash)
            seen[analysis.content_hash] = analysis

        for content_hash in sorted(options.must_play):
            if content_hash not in seen:
                raise MissingMustPlayError(content_hash)

        return filtered

    @staticmethod
    def _choose_start(candidates: Sequence[TrackAnalysis], mode: SetMode) -> TrackAnalysis:
        """
        The most extreme track on the mode's axis:
        Warm-up lowest energy, Peak-time highest energy, Open-format lowest
        BPM (tracks with unknown tempo never start an open-format set unless
        every tempo is unknown).
        """
        if mode == SetMode.WARM_UP:
            return min(candidates, key=lambda t: (t.energy_global, t.content_hash))
        if mode == SetMode.PEAK_TIME:
            return min(candidates, key=lambda t: (-t.energy_global, t.content_hash))

        def bpm_key(t: TrackAnalysis):
            bpm = t.bpm
            return (bpm <= 0, bpm, t.content_hash)

        return min(candidates, key=bpm_key)

    def _best_next(
        self,
        current: TrackAnalysis,
        remaining: Sequence[TrackAnalysis],
        options: PlanOptions,
    ) -> Optional[Tuple[int, EdgeExplanation]]:
        """Index and edge of the highest-scoring remaining track; earliest index wins ties."""
        best: Optional[Tuple[int, EdgeExplanation]] = None
        best_score = float("-inf")

        for index, candidate in enumerate(remaining):
            edge = self.edge_scorer.score(current, candidate, options)
            if edge.score > best_score:
                best_score = edge.score
                best = (index, edge)

        return best

    @staticmethod
    def _append_residual(
        order: List[TrackAnalysis],
        explanations: List[EdgeExplanation],
        remaining: List[TrackAnalysis],
    ) -> None:
        """Keep the plan complete when nothing could be scored: hash order, zero scores."""
        logger.warning(f"No scorable next track; appending {len(remaining)} tracks in residual order")
        for track in remaining:
            previous = order[-1]
            explanations.append(
                EdgeExplanation(
                    from_id=previous.id,
                    to_id=track.id,
                    score=0.0,
                    tempo_delta=0.0,
                    energy_delta=track.energy_global - previous.energy_global,
                    key_relation="",
                    reason="unscored residual placement",
                )
            )
            order.append(track)
        remaining.clear()

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_result(order: Sequence[TrackAnalysis], explanations: Sequence[EdgeExplanation]) -> PlanResult:
        bpms = [t.bpm for t in order if t.bpm > 0]
        scores = [e.score for e in explanations]

        return PlanResult(
            order=tuple(t.id for t in order),
            explanations=tuple(explanations),
            avg_bpm=round(sum(bpms) / len(bpms), 1) if bpms else 0.0,
            bpm_range=(min(bpms), max(bpms)) if bpms else (0.0, 0.0),
            energy_arc=tuple(t.energy_global for t in order),
            mean_edge_score=round(sum(scores) / len(scores), 3) if scores else 0.0,
        )
