"""
Configuration module for the aedoom agent
Centralized configuration for all system components
"""
import os
from dataclasses import dataclass, fields, replace
from typing import Optional

@dataclass
class Config:
    # Patch grid
    PATCH_SIZE: int = 8  # Edge length of the square patches the frame is cut into
    PATCH_NOISE_STD: float = 1.0 / 16.0  # Gaussian noise added to the autoencoder input view
    CELL_SAMPLE_FRACTION: float = 1.0 / 64.0  # Fraction of grid cells evaluated per frame (windowed)
    HEADLESS_CELL_SAMPLE_FRACTION: float = 1.0 / 4.0  # Fraction of grid cells per frame (headless)
    HEADLESS: bool = False

    # Actions and decision making
    NUM_ACTIONS: int = 6  # Size of the action ensemble (first N members of Action)
    MARKOV_ORDER: int = 2  # Number of past actions used as conditioning context
    DECISION_INTERVAL: int = 30  # Frames between two decisions of the mind
    MIND_INPUT_SIZE: Optional[int] = None  # Vote vector width seen by the mind (None = NUM_ACTIONS)

    # Optimizer (Adam)
    ADAM_BETA1: float = 0.8  # Exponential decay of the first moment estimates
    ADAM_BETA2: float = 0.89  # Exponential decay of the second moment estimates
    LEARNING_RATE: float = 1e-3
    ADAM_EPSILON: float = 1e-8
    GRADIENT_CLIP_NORM: float = 1.0  # Global gradient norm above which gradients are rescaled
    DROPOUT_PROBABILITY: float = 0.1  # Hidden unit drop probability during training

    # Seeds (every run starts from the same state)
    SEED: int = 1  # Frame level generator: noise, cell sampling, task seeds
    AUTOENCODER_SEED: int = 1  # Weight initialization seed of every autoencoder

    # Workers
    NUM_WORKERS: Optional[int] = None  # None = os.cpu_count()

    # Action sink
    DEBOUNCE_REPEATS: bool = False  # Skip key events when the same action is emitted twice

    # Error handling
    MAX_ERRORS: int = 10  # Errors tolerated inside ERROR_WINDOW before stopping
    ERROR_WINDOW: float = 60.0  # seconds

    # Logging / monitoring
    LOG_PATH: str = "logs"
    DETAILED_LOGGING: bool = False  # DEBUG on the console regardless of --log-level
    STATUS_LOG_INTERVAL: float = 5.0  # seconds between status lines
    SYSTEM_METRICS_INTERVAL: int = 300  # frames between psutil samples

    def __post_init__(self):
        """Validate configuration values"""
        if self.PATCH_SIZE <= 0:
            raise ValueError(f"PATCH_SIZE must be positive, got {self.PATCH_SIZE}")
        if not 2 <= self.NUM_ACTIONS <= 6:
            raise ValueError(f"NUM_ACTIONS must be between 2 and 6, got {self.NUM_ACTIONS}")
        if self.MARKOV_ORDER < 0:
            raise ValueError(f"MARKOV_ORDER must be >= 0, got {self.MARKOV_ORDER}")
        if self.DECISION_INTERVAL <= 0:
            raise ValueError(f"DECISION_INTERVAL must be positive, got {self.DECISION_INTERVAL}")
        for name in ('CELL_SAMPLE_FRACTION', 'HEADLESS_CELL_SAMPLE_FRACTION'):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        for name in ('ADAM_BETA1', 'ADAM_BETA2', 'DROPOUT_PROBABILITY'):
            value = getattr(self, name)
            if not 0.0 <= value < 1.0:
                raise ValueError(f"{name} must be in [0, 1), got {value}")
        if self.LEARNING_RATE <= 0 or self.ADAM_EPSILON <= 0 or self.GRADIENT_CLIP_NORM <= 0:
            raise ValueError("LEARNING_RATE, ADAM_EPSILON and GRADIENT_CLIP_NORM must be positive")
        if self.PATCH_NOISE_STD < 0:
            raise ValueError(f"PATCH_NOISE_STD must be >= 0, got {self.PATCH_NOISE_STD}")
        if self.MIND_INPUT_SIZE is not None and self.MIND_INPUT_SIZE < self.NUM_ACTIONS:
            raise ValueError(f"MIND_INPUT_SIZE must cover the {self.NUM_ACTIONS} vote entries, "
                             f"got {self.MIND_INPUT_SIZE}")
        if self.NUM_WORKERS is not None and self.NUM_WORKERS <= 0:
            raise ValueError(f"NUM_WORKERS must be positive, got {self.NUM_WORKERS}")

    def replace(self, **overrides) -> 'Config':
        """Return a validated copy with the given fields changed"""
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, prefix: str = "AEDOOM_") -> 'Config':
        """
        Build a configuration from environment variables

        Every field can be overridden with PREFIX + FIELD_NAME, e.g.
        AEDOOM_DECISION_INTERVAL=15. Values are parsed according to the
        type of the field's default.
        """
        defaults = cls()
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(prefix + f.name)
            if raw is None:
                continue
            overrides[f.name] = _parse_value(raw, getattr(defaults, f.name))
        return cls(**overrides)

    def effective_workers(self) -> int:
        return self.NUM_WORKERS or os.cpu_count() or 1

    def mind_input_size(self) -> int:
        return self.MIND_INPUT_SIZE or self.NUM_ACTIONS

    def sample_fraction(self, headless: Optional[bool] = None) -> float:
        if headless is None:
            headless = self.HEADLESS
        return self.HEADLESS_CELL_SAMPLE_FRACTION if headless else self.CELL_SAMPLE_FRACTION


def _parse_value(raw: str, default):
    """Parse an environment string using the default's type"""
    if isinstance(default, bool):
        return raw.strip().lower() in ('1', 'true', 'yes', 'on')
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        # Allow fractions such as 1/64
        if '/' in raw:
            numerator, denominator = raw.split('/', 1)
            return float(numerator) / float(denominator)
        return float(raw)
    if default is None:
        # Optional[int] fields
        return int(raw) if raw.strip() else None
    return raw

# Global configuration instance
config = Config()

__all__ = ['Config', 'config']
