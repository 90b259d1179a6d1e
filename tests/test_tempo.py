import math

from mixplan.models import Beatgrid, BeatMarker, TempoMapNode
from mixplan.tempo import bpm_distance, estimate_bpm, is_octave_match


def test_estimate_bpm_prefers_tempo_map():
    grid = Beatgrid(
        beats=(BeatMarker(index=0, time=0.0), BeatMarker(index=1, time=0.5)),
        tempo_map=(TempoMapNode(beat_index=0, bpm=126.0), TempoMapNode(beat_index=64, bpm=128.0)),
    )
    assert estimate_bpm(grid) == 126.0


def test_estimate_bpm_from_beat_spacing():
    grid = Beatgrid(beats=(BeatMarker(index=0, time=1.0), BeatMarker(index=1, time=1.5)))
    assert math.isclose(estimate_bpm(grid), 120.0)


def test_estimate_bpm_unknown():
    assert estimate_bpm(None) == 0.0
    assert estimate_bpm(Beatgrid()) == 0.0
    assert estimate_bpm(Beatgrid(beats=(BeatMarker(index=0, time=0.0),))) == 0.0
    assert estimate_bpm(Beatgrid(tempo_map=(TempoMapNode(beat_index=0, bpm=float("nan")),))) == 0.0
    assert estimate_bpm(Beatgrid(tempo_map=(TempoMapNode(beat_index=0, bpm=-120.0),))) == 0.0


def test_bpm_distance_direct():
    assert bpm_distance(124.0, 128.0) == 4.0
    assert bpm_distance(128.0, 124.0) == 4.0


def test_bpm_distance_octave_aware():
    assert bpm_distance(140.0, 70.0) == 0.0
    assert bpm_distance(87.0, 172.0) == 2.0
    assert is_octave_match(140.0, 70.0)
    assert not is_octave_match(124.0, 126.0)


def test_bpm_distance_unknown():
    assert bpm_distance(0.0, 124.0) is None
    assert bpm_distance(124.0, 0.0) is None
    assert not is_octave_match(0.0, 124.0)
