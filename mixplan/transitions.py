"""
Directed edge scoring for set sequencing.

Scores the step ``from -> to`` on a signed, open-ended scale: the sum of a
tempo, key, energy and window term. Higher is a better next track. The
scale is unrelated to the 0-1 similarity score in ``similarity.py``.
"""

import math
from typing import Optional, Tuple

from .camelot import CamelotWheel, KeyRelation
from .config import ScoringConfig
from .energy import direction_bonus, energy_distance
from .errors import ScoreNonFiniteError
from .models import EdgeExplanation, PlanOptions, TrackAnalysis
from .tempo import bpm_distance, is_octave_match

# Human-readable key labels for edge reasons
_KEY_LABELS = {
    KeyRelation.SAME: "same key",
    KeyRelation.RELATIVE: "relative key",
    KeyRelation.ADJACENT: "{step} Camelot",
    KeyRelation.CROSS_MODE_ADJACENT: "{step} Camelot mode switch",
    KeyRelation.ENERGY_BOOST: "{step} Camelot energy boost",
    KeyRelation.CLASH: "distant key",
    KeyRelation.UNPARSEABLE: "key mismatch",
    KeyRelation.MISSING: "unknown key",
}

_KEY_LABELS_WITH_JUMPS = {
    KeyRelation.CLASH: "permitted key jump",
    KeyRelation.UNPARSEABLE: "unverified key jump",
    KeyRelation.MISSING: "unknown key",
}


class EdgeScorer:
    """
    Scores one directed transition.

    Terms:
      tempo   tempo_base - octave-aware |Δbpm| / tempo_divisor, minus
              bpm_step_penalty when options.max_bpm_step is set and the
              direct |Δbpm| exceeds it.
              Unknown tempo on either side scores unknown_tempo_score.
      key     tier score from the Camelot relation; allowing key jumps softens
              the clash and unknown tiers.
      energy  energy_base - |Δenergy| * energy_step, plus the mode's
              direction bonus.
      window  a fixed bonus if both tracks have at least one recorded
              transition-window tag (presence-based, not semantic tag matching).
    """

    def __init__(self, config: Optional[ScoringConfig] = None, camelot: Optional[CamelotWheel] = None):
        self.config = config or ScoringConfig()
        self.camelot = camelot or CamelotWheel()

    def score(self, from_track: TrackAnalysis, to_track: TrackAnalysis, options: PlanOptions) -> EdgeExplanation:
        weights = self.config.sequencer
        notes = []

        # Tempo
        from_bpm = from_track.bpm
        to_bpm = to_track.bpm
        distance = bpm_distance(from_bpm, to_bpm)
        if distance is None:
            bpm_delta = 0.0
            tempo_score = weights.unknown_tempo_score
            notes.append("tempo unknown")
        else:
            bpm_delta = to_bpm - from_bpm
            tempo_score = weights.tempo_base - distance / weights.tempo_divisor
            if is_octave_match(from_bpm, to_bpm):
                notes.append("half/double time")
            # The step limit applies to the direct tempo change, not the octave match
            if options.max_bpm_step > 0 and abs(bpm_delta) > options.max_bpm_step:
                tempo_score -= weights.bpm_step_penalty
                notes.append(f"exceeds max BPM step {options.max_bpm_step:g}")

        # Key
        key_score, key_label = self.key_compatibility(
            from_track.key_value, to_track.key_value, options.allow_key_jumps
        )

        # Energy
        energy_delta = to_track.energy_global - from_track.energy_global
        energy_score = weights.energy_base - energy_distance(
            from_track.energy_global, to_track.energy_global
        ) * weights.energy_step
        energy_score += direction_bonus(options.mode, energy_delta, weights.rise_bonus, weights.hold_bonus)

        # Window
        window = window_overlap(from_track, to_track)
        window_score = weights.window_bonus if window else 0.0
        if window:
            notes.append(f"window {window}")

        total = tempo_score + key_score + energy_score + window_score
        if not math.isfinite(total):
            raise ScoreNonFiniteError(
                f"non-finite edge score {from_track.content_hash} -> {to_track.content_hash}: "
                f"tempo={tempo_score} key={key_score} energy={energy_score} window={window_score}"
            )

        reason = f"{key_label}; Δ{bpm_delta:+.1f} BPM; Δenergy {energy_delta:+d}"
        if notes:
            reason += "; " + "; ".join(notes)

        return EdgeExplanation(
            from_id=from_track.id,
            to_id=to_track.id,
            score=total,
            tempo_delta=bpm_delta,
            energy_delta=energy_delta,
            key_relation=key_label,
            window_overlap=window,
            reason=reason,
        )

    def key_compatibility(
        self,
        from_key: Optional[str],
        to_key: Optional[str],
        allow_jumps: bool = False,
    ) -> Tuple[float, str]:
        """Signed key term and its label, e.g. ``(3.0, "+1 Camelot")``."""
        relation = self.camelot.relation(from_key, to_key)
        score = self.config.sequencer.key_score(relation, allow_jumps)

        label = _KEY_LABELS[relation]
        if allow_jumps and relation in _KEY_LABELS_WITH_JUMPS:
            label = _KEY_LABELS_WITH_JUMPS[relation]
        if "{step}" in label:
            label = label.format(step=self.camelot.step_label(from_key, to_key))
        return score, label


def window_overlap(from_track: TrackAnalysis, to_track: TrackAnalysis) -> str:
    """``"outro → intro"`` from the first window tag of each track, or "" if either has none."""
    from_tag = from_track.first_window_tag
    to_tag = to_track.first_window_tag
    if from_tag is None or to_tag is None:
        return ""
    return f"{from_tag} → {to_tag}"
