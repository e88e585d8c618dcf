"""Entropy of binary label distributions."""

from __future__ import annotations

import math

import numpy as np
import numpy.typing as npt


FloatArray = npt.NDArray[np.float64]


def check_log_base(base: float) -> float:
    """Return ``base`` as a float, or raise if no logarithm exists in it."""
    base = float(base)
    if not base > 0 or base == 1 or math.isinf(base):
        raise ValueError(f"log_base must be > 0 and != 1, got {base}")
    return base


def binary_entropy(p: npt.ArrayLike, base: float = 2.0) -> FloatArray:
    """Entropy of a variable taking one value with probability ``p``.

    Pure proportions (``p`` equal to 0 or 1) have entropy exactly 0; they are
    masked out before any logarithm is taken.

    Args:
        p: Proportion(s) in ``[0, 1]``.
        base: Logarithm base.

    Returns:
        Array of entropies with the shape of ``p``.
    """
    p = np.asarray(p, dtype=np.float64)
    h = np.zeros_like(p)
    mixed = (p > 0) & (p < 1)
    q = p[mixed]
    h[mixed] = -(q * np.log(q) + (1 - q) * np.log(1 - q)) / math.log(base)
    return h


def conditional_entropy(
    left_total: npt.ArrayLike,
    left_positive: npt.ArrayLike,
    total: int,
    total_positive: int,
    base: float = 2.0,
) -> FloatArray:
    """Expected entropy of the label after a binary split.

    Args:
        left_total: Size of the left partition, per candidate split. Must be
            in ``[1, total - 1]``.
        left_positive: Positive labels in the left partition, per candidate.
        total: Size of the set being split.
        total_positive: Positive labels in the set being split.
        base: Logarithm base.

    Returns:
        ``p1 * H(pd1) + p2 * H(pd2)`` for every candidate.
    """
    left_total = np.asarray(left_total, dtype=np.float64)
    left_positive = np.asarray(left_positive, dtype=np.float64)
    right_total = total - left_total
    right_positive = total_positive - left_positive

    return (left_total / total) * binary_entropy(
        left_positive / left_total, base
    ) + (right_total / total) * binary_entropy(right_positive / right_total, base)
