"""
Actions and Markov context
Closed set of discrete actions and the short history used as conditioning
"""
import numpy as np
from enum import IntEnum
from typing import Iterable, Optional, Tuple


class Action(IntEnum):
    """Discrete actions the agent can take"""
    LEFT = 0
    RIGHT = 1
    FORWARD = 2
    BACKWARD = 3
    NONE = 4
    ACTIVATE = 5


def action_space(num_actions: int) -> Tuple[Action, ...]:
    """First num_actions members of Action, in index order"""
    if not 1 <= num_actions <= len(Action):
        raise ValueError(f"num_actions must be between 1 and {len(Action)}, got {num_actions}")
    return tuple(Action(i) for i in range(num_actions))


class MarkovState:
    """
    Fixed-length window of the most recently taken actions

    Index 0 holds the newest action. shift() pushes a new action in at the
    front and drops the oldest one: [a0, a1] shifted by a2 becomes [a2, a0].
    """

    def __init__(self, order: int = 2, actions: Optional[Iterable[Action]] = None):
        self.order = order
        if actions is None:
            self._actions = [Action.LEFT] * order
        else:
            self._actions = [Action(a) for a in actions]
            if len(self._actions) != order:
                raise ValueError(f"Expected {order} actions, got {len(self._actions)}")

    def shift(self, action: Action):
        """Record a newly taken action"""
        if self.order == 0:
            return
        self._actions = [Action(action)] + self._actions[:-1]

    def one_hot(self, num_actions: int) -> np.ndarray:
        """Concatenated one-hot encoding of every entry, newest first"""
        encoded = np.zeros((self.order, num_actions), dtype=np.float32)
        for i, action in enumerate(self._actions):
            encoded[i, int(action)] = 1.0
        return encoded.reshape(-1)

    def as_tuple(self) -> Tuple[Action, ...]:
        return tuple(self._actions)

    def copy(self) -> 'MarkovState':
        return MarkovState(self.order, self._actions)

    def __len__(self):
        return self.order

    def __iter__(self):
        return iter(self._actions)

    def __getitem__(self, index: int) -> Action:
        return self._actions[index]

    def __eq__(self, other):
        if isinstance(other, MarkovState):
            return self._actions == other._actions
        return NotImplemented

    def __repr__(self):
        names = ", ".join(a.name for a in self._actions)
        return f"MarkovState([{names}])"
