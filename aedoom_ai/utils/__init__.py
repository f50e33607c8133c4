"""
Utilities module for the aedoom agent
Centralized utility functions used across the codebase
"""
from aedoom_ai.utils.pretty_logger import ColoredFormatter, StatusLogger, setup_pretty_logging
from aedoom_ai.utils.time_utils import format_duration, Timer, FPSCounter
from aedoom_ai.utils.math_utils import (
    patch_entropy, loss_extremes, normalize_distribution,
    exponential_moving_average
)

__all__ = [
    # Logging
    'ColoredFormatter', 'StatusLogger', 'setup_pretty_logging',
    # Time utils
    'format_duration', 'Timer', 'FPSCounter',
    # Math utils
    'patch_entropy', 'loss_extremes', 'normalize_distribution',
    'exponential_moving_average',
]
