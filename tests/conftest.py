"""Test configuration and fixtures."""

from typing import Optional

import numpy as np
import pytest

from mixplan.embedding import EMBEDDING_DIM, encode_embedding
from mixplan.models import (
    Beatgrid,
    MusicalKey,
    TempoMapNode,
    TrackAnalysis,
    TrackId,
    TransitionWindow,
)


def seeded_embedding(seed: float, dim: int = EMBEDDING_DIM) -> bytes:
    """Embedding whose i-th value is ``seed + i * 0.001``."""
    return encode_embedding(seed + np.arange(dim) * 0.001)


def build_analysis(
    content_hash: str,
    bpm: float = 124.0,
    key: Optional[str] = "8A",
    energy: int = 5,
    windows: bool = True,
    embedding: Optional[bytes] = None,
) -> TrackAnalysis:
    """Synthetic analysis. ``bpm=0`` leaves the beatgrid empty (unknown tempo)."""
    beatgrid = Beatgrid(tempo_map=(TempoMapNode(beat_index=0, bpm=bpm),)) if bpm > 0 else None
    return TrackAnalysis(
        id=TrackId(content_hash=content_hash, path=f"/music/{content_hash}.flac"),
        beatgrid=beatgrid,
        key=MusicalKey(value=key, confidence=0.9) if key is not None else None,
        energy_global=energy,
        transition_windows=(
            (
                TransitionWindow(start_beat=0, end_beat=32, tag="intro"),
                TransitionWindow(start_beat=480, end_beat=512, tag="outro"),
            )
            if windows
            else ()
        ),
        embedding=embedding,
    )


@pytest.fixture()
def make_analysis():
    return build_analysis


@pytest.fixture()
def make_embedding():
    return seeded_embedding


@pytest.fixture()
def library():
    """Ten tracks spread over tempo, key and energy."""
    keys = ["8A", "9A", "8B", "10A", "3B", "12A", "1A", "7A", "8A", "11B"]
    return [
        build_analysis(
            f"h{i:02d}",
            bpm=118.0 + i * 1.5,
            key=keys[i],
            energy=1 + (i * 3) % 10,
            windows=i % 3 != 0,
            embedding=seeded_embedding(float(i)),
        )
        for i in range(10)
    ]
