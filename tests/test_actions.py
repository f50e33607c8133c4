"""
Action enum and Markov state tests
"""
import numpy as np
import pytest

from aedoom_ai.core.actions import Action, MarkovState, action_space


def test_action_indices():
    assert [a.name for a in Action] == ['LEFT', 'RIGHT', 'FORWARD', 'BACKWARD', 'NONE', 'ACTIVATE']
    assert int(Action.ACTIVATE) == 5


def test_action_space():
    assert action_space(3) == (Action.LEFT, Action.RIGHT, Action.FORWARD)
    assert len(action_space(6)) == 6
    with pytest.raises(ValueError):
        action_space(0)
    with pytest.raises(ValueError):
        action_space(7)


def test_initial_state_is_all_left():
    assert MarkovState(2).as_tuple() == (Action.LEFT, Action.LEFT)


def test_shift_puts_newest_first_and_drops_last():
    state = MarkovState(2, [Action.LEFT, Action.RIGHT])
    state.shift(Action.FORWARD)
    assert state.as_tuple() == (Action.FORWARD, Action.LEFT)
    state.shift(Action.NONE)
    assert state.as_tuple() == (Action.NONE, Action.FORWARD)
    assert state[0] is Action.NONE


def test_one_hot_newest_first():
    encoded = MarkovState(2, [Action.RIGHT, Action.ACTIVATE]).one_hot(6)
    assert encoded.shape == (12,)
    assert encoded.dtype == np.float32
    assert encoded[1] == 1.0
    assert encoded[6 + 5] == 1.0
    assert encoded.sum() == 2.0


def test_order_zero_state():
    state = MarkovState(0)
    state.shift(Action.RIGHT)
    assert len(state) == 0
    assert state.one_hot(6).shape == (0,)


def test_copy_is_independent():
    state = MarkovState(2)
    copy = state.copy()
    state.shift(Action.BACKWARD)
    assert copy == MarkovState(2)
    assert copy != state


def test_wrong_length_rejected():
    with pytest.raises(ValueError):
        MarkovState(2, [Action.LEFT])
