import math

import numpy as np
import pytest

from aedoom_ai.utils.math_utils import (
    exponential_moving_average, loss_extremes, normalize_distribution
)
from aedoom_ai.utils.time_utils import format_duration


def test_loss_extremes_prefers_first_index_on_ties():
    assert loss_extremes([3.0, 1.0, 1.0, 5.0, 5.0]) == (1, 3)


def test_loss_extremes_defaults_to_zero():
    assert loss_extremes([0.0, 0.0, 0.0]) == (0, 0)
    assert loss_extremes([]) == (0, 0)


def test_loss_extremes_ignores_non_finite():
    assert loss_extremes([math.nan, 2.0, 1.0, math.inf]) == (2, 1)


def test_normalize_distribution():
    np.testing.assert_allclose(normalize_distribution(np.array([1.0, 3.0])), [0.25, 0.75])
    assert not normalize_distribution(np.zeros(4)).any()
    assert not normalize_distribution(np.array([np.inf, 1.0])).any()


def test_exponential_moving_average():
    assert exponential_moving_average(None, 2.0) == 2.0
    assert exponential_moving_average(0.0, 1.0, alpha=0.25) == pytest.approx(0.25)
    assert exponential_moving_average(4.0, 0.0, alpha=1.0) == 0.0
    with pytest.raises(ValueError):
        exponential_moving_average(1.0, 1.0, alpha=0.0)


def test_format_duration():
    assert format_duration(3725.5) == "1h 2m 5.50s"
    assert format_duration(0) == "0.00s"
    assert format_duration(-1) == "0s"
