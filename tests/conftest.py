import numpy as np
import pytest

from aedoom_ai.config import Config


@pytest.fixture
def quiet_config():
    """No dropout, so training steps are deterministic without a generator"""
    return Config().replace(DROPOUT_PROBABILITY=0.0)


@pytest.fixture
def headless_config():
    return Config().replace(HEADLESS=True, NUM_WORKERS=2, DECISION_INTERVAL=5)


@pytest.fixture
def vector():
    return np.random.default_rng(0).random(16).astype(np.float32)
