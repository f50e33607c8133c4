"""
Patch Ensembles: one autoencoder per action for every grid cell
Hard-example mining: the worst reconstructor of a cell is the one that learns
"""
import logging
from typing import Dict, List, Optional, Tuple

import torch

from aedoom_ai.config import Config, config as default_config
from aedoom_ai.core.actions import Action, MarkovState
from aedoom_ai.core.autoencoder import AutoEncoder
from aedoom_ai.learning.votes import CellVote
from aedoom_ai.perception.patches import Patch
from aedoom_ai.utils.math_utils import loss_extremes

logger = logging.getLogger(__name__)


class PatchEnsemble:
    """Autoencoders of a single cell, indexed by Action"""

    def __init__(self, input_size: int = 64, config: Optional[Config] = None):
        self.config = config or default_config
        self.input_size = input_size
        self.members: List[AutoEncoder] = [
            AutoEncoder(input_size,
                        markov_order=self.config.MARKOV_ORDER,
                        num_actions=self.config.NUM_ACTIONS,
                        config=self.config)
            for _ in range(self.config.NUM_ACTIONS)
        ]

    def __len__(self):
        return len(self.members)

    def __getitem__(self, action: Action) -> AutoEncoder:
        return self.members[int(action)]

    def measure(self, patch: Patch, state: Optional[MarkovState] = None) -> List[float]:
        return [ae.measure(patch.input, patch.target, state) for ae in self.members]

    def evaluate(self, patch: Patch, state: Optional[MarkovState], seed: int) -> CellVote:
        """
        Measure every member, train the worst one and report the vote

        Args:
            patch: Noisy/clean views of the cell
            state: Recent actions used as conditioning
            seed: Seed of the dropout generator for the training step

        Returns:
            CellVote with the best and worst member
        """
        losses = self.measure(patch, state)
        min_index, max_index = loss_extremes(losses)

        learner = self.members[max_index]
        divergences = learner.divergences
        rng = torch.Generator().manual_seed(int(seed))
        loss = learner.encode(patch.input, patch.target, rng, state)

        return CellVote(
            min_index=Action(min_index),
            max_index=Action(max_index),
            entropy=patch.entropy,
            loss=loss,
            diverged=learner.divergences > divergences,
            cell=patch.cell,
            losses=tuple(losses),
        )


class PatchGrid:
    """
    Ensembles for a rows x cols grid, created the first time a cell is used

    Every ensemble starts from the same seeded weights, so lazy creation
    gives the same result as building all of them up front.
    """

    def __init__(self, rows: int, cols: int, input_size: int = 64,
                 config: Optional[Config] = None,
                 frame_shape: Optional[Tuple[int, int]] = None):
        self.rows = rows
        self.cols = cols
        self.input_size = input_size
        self.config = config or default_config
        # (height, width) of the frames this grid was built for
        if frame_shape is None:
            frame_shape = (rows * self.config.PATCH_SIZE, cols * self.config.PATCH_SIZE)
        self.frame_shape = tuple(frame_shape)
        self._ensembles: Dict[int, PatchEnsemble] = {}

    @property
    def size(self) -> int:
        return self.rows * self.cols

    @property
    def shape(self):
        return self.rows, self.cols

    def matches(self, frame_shape: Tuple[int, int]) -> bool:
        """True when a frame of this (height, width) can reuse the grid"""
        return self.frame_shape == tuple(frame_shape[:2])

    def ensemble(self, index: int) -> PatchEnsemble:
        """Ensemble of a cell; not thread-safe, call from the pipeline thread"""
        if not 0 <= index < self.size:
            raise IndexError(f"Cell {index} outside grid of {self.size} cells")
        ensemble = self._ensembles.get(index)
        if ensemble is None:
            ensemble = PatchEnsemble(self.input_size, self.config)
            self._ensembles[index] = ensemble
        return ensemble

    @property
    def allocated(self) -> int:
        return len(self._ensembles)

    def __len__(self):
        return self.size

    def __repr__(self):
        return f"PatchGrid({self.rows}x{self.cols}, allocated={self.allocated})"
