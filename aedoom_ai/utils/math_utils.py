"""
Math and Statistics Utilities
Provides entropy, loss selection, normalization and smoothing helpers
"""
import math
import numpy as np
from typing import Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

def patch_entropy(cell: np.ndarray, levels: int = 256) -> float:
    """
    Shannon entropy of the intensity histogram of a cell

    Args:
        cell: Integer intensities in [0, levels)
        levels: Number of histogram bins

    Returns:
        Entropy in bits (0 for a uniform cell, log2(cell.size) at most)
    """
    values = np.asarray(cell).reshape(-1)
    if values.size == 0:
        return 0.0
    counts = np.bincount(values.astype(np.int64), minlength=levels)
    p = counts[counts > 0] / values.size
    return float(-np.sum(p * np.log2(p)))

def loss_extremes(losses: Sequence[float]) -> Tuple[int, int]:
    """
    Indices of the lowest and highest loss

    Ties go to the first index. Non-finite losses are ignored. The highest
    loss must be strictly positive; index 0 is returned when none is.

    Args:
        losses: Loss per ensemble member

    Returns:
        (min_index, max_index)
    """
    min_index, max_index = 0, 0
    lowest, highest = math.inf, 0.0
    for i, loss in enumerate(losses):
        if not math.isfinite(loss):
            continue
        if loss < lowest:
            lowest, min_index = loss, i
        if loss > highest:
            highest, max_index = loss, i
    return min_index, max_index

def normalize_distribution(values: np.ndarray) -> np.ndarray:
    """
    Divide by the total

    Args:
        values: Non-negative scores

    Returns:
        float32 array summing to 1, or all zeros when the total is zero or not finite
    """
    values = np.asarray(values, dtype=np.float32)
    total = float(np.sum(values))
    if total == 0.0 or not math.isfinite(total):
        return np.zeros_like(values)
    return (values / total).astype(np.float32)

def exponential_moving_average(current: Optional[float], value: float, alpha: float = 0.1) -> float:
    """
    Blend value into a running average

    Args:
        current: Average so far, or None before the first sample
        value: New sample
        alpha: Weight of the new sample, in (0, 1]

    Returns:
        Updated average; the first sample is returned unchanged
    """
    if not 0.0 < alpha <= 1.0:
        raise ValueError(f"alpha must be in (0, 1], got {alpha}")
    if current is None:
        return float(value)
    return current + alpha * (value - current)
