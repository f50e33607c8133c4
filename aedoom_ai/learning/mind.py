"""
Decision Mind: second-level ensemble that picks the next action
Reads the normalized vote distribution together with the recent actions
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import torch

from aedoom_ai.config import Config, config as default_config
from aedoom_ai.core.actions import Action, MarkovState
from aedoom_ai.core.autoencoder import AutoEncoder
from aedoom_ai.utils.math_utils import loss_extremes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    action: Action  # lowest loss: the action to take
    learn: Action  # highest loss: the autoencoder that was trained
    losses: Tuple[float, ...]
    trained_loss: float
    diverged: bool = False
    trained: bool = True  # False when the votes carried no evidence


class DecisionMind:
    """One Markov-conditioned autoencoder per action over the vote distribution"""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config
        self.num_actions = self.config.NUM_ACTIONS
        self.input_size = self.config.mind_input_size()
        self.members: List[AutoEncoder] = [
            AutoEncoder(self.input_size,
                        markov_order=self.config.MARKOV_ORDER,
                        num_actions=self.num_actions,
                        config=self.config)
            for _ in range(self.num_actions)
        ]
        self.decisions = 0
        logger.info(f"Decision mind ready: {self.num_actions} autoencoders, "
                    f"input width {self.input_size}, Markov order {self.config.MARKOV_ORDER}")

    def _vector(self, distribution: np.ndarray) -> np.ndarray:
        distribution = np.asarray(distribution, dtype=np.float32).reshape(-1)
        if distribution.shape[0] > self.input_size:
            raise ValueError(f"Distribution of length {distribution.shape[0]} does not fit "
                             f"mind input width {self.input_size}")
        if distribution.shape[0] < self.input_size:
            distribution = np.pad(distribution, (0, self.input_size - distribution.shape[0]))
        return distribution

    def decide(self, distribution: np.ndarray, state: MarkovState,
               rng: np.random.Generator) -> Decision:
        """
        Pick the best reconstructor as the action and train the worst one

        An all-zero distribution (no cell voted) is measured but not trained
        on, so a scene without evidence leaves the mind unchanged.

        Args:
            distribution: Normalized votes, one entry per action
            state: Recent actions; not modified here
            rng: Source of the dropout seed for the training step

        Returns:
            Decision
        """
        vector = self._vector(distribution)
        losses = [ae.measure(vector, vector, state) for ae in self.members]
        min_index, max_index = loss_extremes(losses)

        learner = self.members[max_index]
        divergences = learner.divergences
        trained = bool(vector.any())
        trained_loss = 0.0
        if trained:
            generator = torch.Generator().manual_seed(int(rng.integers(0, 2 ** 31)))
            trained_loss = learner.encode(vector, vector, generator, state)
        else:
            logger.debug("Empty vote distribution - mind not trained")
        self.decisions += 1

        decision = Decision(
            action=Action(min_index),
            learn=Action(max_index),
            losses=tuple(losses),
            trained_loss=trained_loss,
            diverged=learner.divergences > divergences,
            trained=trained,
        )
        logger.debug(f"Decision {self.decisions}: act {decision.action.name}, "
                     f"train {decision.learn.name}, losses {np.round(losses, 5).tolist()}")
        return decision
