"""
Patch ensemble, grid and decision mind tests
"""
import numpy as np
import pytest

from aedoom_ai.config import Config
from aedoom_ai.core.actions import Action, MarkovState
from aedoom_ai.learning.mind import DecisionMind
from aedoom_ai.learning.patch_ensemble import PatchEnsemble, PatchGrid
from aedoom_ai.perception.patches import PatchExtractor
from aedoom_ai.utils.math_utils import loss_extremes


@pytest.fixture
def patch():
    gray = np.random.default_rng(4).integers(0, 256, size=(8, 8)).astype(np.uint8)
    return PatchExtractor().extract(gray, np.random.default_rng(2))[0]


def test_fresh_ensemble_votes_for_first_member(patch):
    ensemble = PatchEnsemble()
    vote = ensemble.evaluate(patch, MarkovState(2), seed=11)
    # Identical initial weights: every loss ties, the first index wins both ways
    assert vote.min_index is Action.LEFT
    assert vote.max_index is Action.LEFT
    assert vote.entropy == patch.entropy
    assert vote.loss > 0.0
    assert not vote.diverged
    assert len(set(vote.losses)) == 1


def test_only_worst_member_trains(patch):
    ensemble = PatchEnsemble()
    state = MarkovState(2)
    ensemble.evaluate(patch, state, seed=1)
    assert [ae.iteration for ae in ensemble.members] == [1, 0, 0, 0, 0, 0]

    vote = ensemble.evaluate(patch, state, seed=2)
    assert (int(vote.min_index), int(vote.max_index)) == loss_extremes(vote.losses)
    assert sum(ae.iteration for ae in ensemble.members) == 2
    assert ensemble[vote.max_index].iteration >= 1


def test_evaluation_is_reproducible(patch):
    a, b = PatchEnsemble(), PatchEnsemble()
    for seed in (1, 2, 3):
        assert a.evaluate(patch, MarkovState(2), seed) == b.evaluate(patch, MarkovState(2), seed)


def test_ensemble_size_follows_config():
    assert len(PatchEnsemble(config=Config().replace(NUM_ACTIONS=3))) == 3


def test_grid_creates_ensembles_lazily():
    grid = PatchGrid(2, 3)
    assert grid.size == 6
    assert grid.allocated == 0
    ensemble = grid.ensemble(4)
    assert grid.ensemble(4) is ensemble
    assert grid.allocated == 1
    assert grid.frame_shape == (16, 24)
    assert grid.matches((16, 24)) and not grid.matches((17, 24))
    with pytest.raises(IndexError):
        grid.ensemble(6)


def test_mind_acts_on_lowest_and_trains_highest():
    mind = DecisionMind()
    state = MarkovState(2)
    rng = np.random.default_rng(1)
    distribution = np.array([0.5, 0.5, 0, 0, 0, 0], dtype=np.float32)

    decision = mind.decide(distribution, state, rng)
    assert decision.action is Action.LEFT
    assert decision.learn is Action.LEFT
    assert [ae.iteration for ae in mind.members] == [1, 0, 0, 0, 0, 0]
    assert state == MarkovState(2)

    decision = mind.decide(distribution, state, rng)
    min_index, max_index = loss_extremes(decision.losses)
    assert decision.action == Action(min_index)
    assert decision.learn == Action(max_index)
    assert mind.members[max_index].iteration >= 1


def test_mind_width_is_configurable():
    mind = DecisionMind(Config().replace(MIND_INPUT_SIZE=8))
    assert mind.members[0].size == 8
    assert mind.members[0].weights['l1'].shape == (4, 8 + 12)
    decision = mind.decide(np.full(6, 1 / 6), MarkovState(2), np.random.default_rng(0))
    assert len(decision.losses) == 6
    with pytest.raises(ValueError):
        mind.decide(np.zeros(9), MarkovState(2), np.random.default_rng(0))


def test_empty_distribution_is_not_trained_on():
    mind = DecisionMind()
    rng = np.random.default_rng(0)
    before = rng.bit_generator.state
    decision = mind.decide(np.zeros(6), MarkovState(2), rng)

    assert not decision.trained
    assert decision.trained_loss == 0.0
    assert [ae.iteration for ae in mind.members] == [0] * 6
    assert rng.bit_generator.state == before
    # Identical untrained members tie, so the first one wins
    assert decision.action is Action.LEFT
    assert len(set(decision.losses)) == 1
