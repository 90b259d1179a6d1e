"""
Embedding codec and cosine similarity.

Embeddings travel as raw bytes: ``4 * dim`` bytes of little-endian IEEE-754
float32. Decoding then re-encoding gives back the same bytes.
"""

from typing import Optional, Sequence, Union

import numpy as np
from loguru import logger

from .errors import EmbeddingFormatError

EMBEDDING_DIM = 512
_DTYPE = np.dtype("<f4")


def encode_embedding(values: Union[Sequence[float], np.ndarray]) -> bytes:
    """Pack float values into little-endian float32 bytes."""
    return np.asarray(values, dtype=_DTYPE).tobytes()


def decode_embedding(data: bytes) -> np.ndarray:
    """Unpack little-endian float32 bytes. Raises EmbeddingFormatError on a ragged buffer."""
    if len(data) % _DTYPE.itemsize != 0:
        raise EmbeddingFormatError(
            f"embedding buffer of {len(data)} bytes is not a multiple of {_DTYPE.itemsize}"
        )
    return np.frombuffer(data, dtype=_DTYPE).copy()


def load_embedding(
    data: Optional[bytes],
    label: str = "",
    expected_dim: int = EMBEDDING_DIM,
) -> Optional[np.ndarray]:
    """
    Decode an optional embedding for scoring.

    Returns None for a missing, empty or malformed buffer; a malformed buffer
    is logged and treated the same as a missing one. A vector that is not
    ``expected_dim`` long is logged but still returned.
    """
    if not data:
        return None
    try:
        vector = decode_embedding(data)
    except EmbeddingFormatError as exc:
        logger.warning(f"Ignoring embedding for {label or 'track'}: {exc}")
        return None
    if len(vector) != expected_dim:
        logger.warning(
            f"Embedding for {label or 'track'} has {len(vector)} values, expected {expected_dim}"
        )
    return vector


def cosine_similarity(a: Optional[np.ndarray], b: Optional[np.ndarray]) -> float:
    """
    Cosine similarity mapped from [-1, 1] onto [0, 1].

    0.0 when either vector is missing or empty, the lengths differ, or a norm
    is zero.
    """
    if a is None or b is None or len(a) == 0 or len(a) != len(b):
        return 0.0

    va = a.astype(np.float64)
    vb = b.astype(np.float64)
    denominator = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denominator == 0 or not np.isfinite(denominator):
        return 0.0

    sim = float(np.dot(va, vb)) / denominator
    if not np.isfinite(sim):
        return 0.0
    sim = max(-1.0, min(1.0, sim))
    return (sim + 1.0) / 2.0
