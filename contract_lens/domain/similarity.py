"""Pure vector math shared by the index and the embedding providers."""

from math import sqrt

from .types import Score, Vector


def cosine(u: Vector, v: Vector) -> Score:
    """Compute cosine similarity between two vectors.

    Args:
        u: First vector
        v: Second vector

    Returns:
        Cosine similarity score between -1 and 1 (0 if either vector is zero)
    """
    if len(u) != len(v):
        raise ValueError(f"dimension mismatch: {len(u)} != {len(v)}")
    dot = sum(a * b for a, b in zip(u, v, strict=True))
    nu = sqrt(sum(a * a for a in u))
    nv = sqrt(sum(b * b for b in v))
    if nu == 0.0 or nv == 0.0:
        return 0.0
    return dot / (nu * nv)


def l2_normalize(values: list[float]) -> Vector:
    norm = sqrt(sum(x * x for x in values))
    if norm == 0.0:
        return tuple(values)
    return tuple(x / norm for x in values)
