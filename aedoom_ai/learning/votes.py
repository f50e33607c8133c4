"""
Vote Aggregation: entropy-weighted per-action surprise scores
Cell tasks add votes concurrently; the decision stage reads and resets them
"""
import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from aedoom_ai.core.actions import Action
from aedoom_ai.utils.math_utils import normalize_distribution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellVote:
    """Outcome of evaluating one grid cell"""
    min_index: Action  # best reconstructing autoencoder
    max_index: Action  # worst reconstructing autoencoder, the one that was trained
    entropy: float
    loss: float = 0.0  # training loss of max_index
    diverged: bool = False
    cell: int = 0
    losses: Tuple[float, ...] = ()


class VoteAggregator:
    """
    Thread-safe running sums, one per action

    Both the best and the worst autoencoder of a cell receive the cell's
    entropy, so the sums only depend on the set of votes, not their order.
    """

    def __init__(self, num_actions: int = 6):
        self.num_actions = num_actions
        self._votes = np.zeros(num_actions, dtype=np.float32)
        self._count = 0
        self._lock = threading.Lock()

    def add(self, vote: CellVote):
        with self._lock:
            self._votes[int(vote.min_index)] += vote.entropy
            self._votes[int(vote.max_index)] += vote.entropy
            self._count += 1

    def fold(self, votes: Iterable[Optional[CellVote]]) -> int:
        """Add every vote, skipping None; returns how many were added"""
        added = 0
        for vote in votes:
            if vote is None:
                continue
            self.add(vote)
            added += 1
        return added

    def peek(self) -> np.ndarray:
        """Copy of the raw sums"""
        with self._lock:
            return self._votes.copy()

    @property
    def count(self) -> int:
        return self._count

    def snapshot_and_reset(self) -> np.ndarray:
        """
        Normalized distribution of the sums, then zero them

        Returns:
            float32 array summing to 1, or all zeros when nothing was voted
        """
        with self._lock:
            raw = self._votes.copy()
            count = self._count
            self._votes[:] = 0.0
            self._count = 0

        distribution = normalize_distribution(raw)
        if not distribution.any():
            logger.debug(f"Vote total is zero after {count} votes - using an empty distribution")
        return distribution
