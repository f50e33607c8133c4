"""
Autoencoder: small two-layer reconstruction network with online Adam updates
Reconstruction error is used as a surprise signal, not for compression

The forward/backward math is a pure function of the weight tensors
(forward, reconstruction_loss) and the optimizer step is a separate update
rule (adam_update) operating on explicit gradient and moment buffers.
"""
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from aedoom_ai.config import Config, config as default_config
from aedoom_ai.core.actions import MarkovState

logger = logging.getLogger(__name__)

Vector = Union[np.ndarray, Sequence[float], torch.Tensor]


@dataclass
class WeightTensor:
    """Rank-2 parameter with its gradient and Adam moment buffers"""
    name: str
    values: torch.Tensor
    grad: torch.Tensor
    m: torch.Tensor  # first moment estimate
    v: torch.Tensor  # second moment estimate

    @classmethod
    def create(cls, name: str, values: torch.Tensor) -> 'WeightTensor':
        values = values.to(torch.float32)
        return cls(
            name=name,
            values=values,
            grad=torch.zeros_like(values),
            m=torch.zeros_like(values),
            v=torch.zeros_like(values),
        )

    @property
    def shape(self) -> Tuple[int, int]:
        return tuple(self.values.shape)


@dataclass(frozen=True)
class AdamHyperParams:
    beta1: float = 0.8
    beta2: float = 0.89
    learning_rate: float = 1e-3
    epsilon: float = 1e-8
    clip_norm: float = 1.0

    @classmethod
    def from_config(cls, cfg: Config) -> 'AdamHyperParams':
        return cls(
            beta1=cfg.ADAM_BETA1,
            beta2=cfg.ADAM_BETA2,
            learning_rate=cfg.LEARNING_RATE,
            epsilon=cfg.ADAM_EPSILON,
            clip_norm=cfg.GRADIENT_CLIP_NORM,
        )


@dataclass
class AdamStep:
    """What a single optimizer step did"""
    iteration: int
    grad_norm: float  # global norm before clipping
    clipped_norm: float  # global norm of the gradient actually applied
    scale: float
    beta1_power: float
    beta2_power: float


def everett(x: torch.Tensor) -> torch.Tensor:
    """
    Split rectification: every unit becomes the pair (min(x, 0), max(x, 0))

    Doubles the number of rows of a column vector.
    """
    pairs = torch.stack((torch.clamp(x, max=0.0), torch.clamp(x, min=0.0)), dim=1)
    return pairs.reshape(-1, x.shape[1])


def forward(params: Dict[str, torch.Tensor], x: torch.Tensor,
            keep_mask: Optional[torch.Tensor] = None) -> torch.Tensor:
    """Reconstruct column vector x with weights l1, b1, l2, b2"""
    hidden = everett(params['l1'] @ x + params['b1'])
    if keep_mask is not None:
        hidden = hidden * keep_mask
    return params['l2'] @ hidden + params['b2']


def reconstruction_loss(prediction: torch.Tensor, target: torch.Tensor) -> torch.Tensor:
    """Mean squared reconstruction error"""
    return torch.mean((prediction - target) ** 2)


def bias_power(beta: float, iteration: int) -> float:
    """beta ** (iteration + 1), with overflow/underflow mapped to 0"""
    try:
        y = math.pow(beta, iteration + 1)
    except OverflowError:
        return 0.0
    if math.isnan(y) or math.isinf(y):
        return 0.0
    return y


def global_norm(gradients: Sequence[torch.Tensor]) -> float:
    total = 0.0
    for g in gradients:
        total += float(torch.sum(g.double() ** 2))
    return math.sqrt(total)


def adam_update(tensors: Sequence[WeightTensor], iteration: int,
                hyper: AdamHyperParams) -> AdamStep:
    """
    Apply one Adam step to tensors from their grad buffers

    Gradients are rescaled to clip_norm when their global norm exceeds it.
    Bias correction uses iteration + 1, so consecutive calls never share
    correction terms.
    """
    norm = global_norm([w.grad for w in tensors])
    scale = 1.0
    if norm > hyper.clip_norm:
        scale = hyper.clip_norm / norm
    b1 = bias_power(hyper.beta1, iteration)
    b2 = bias_power(hyper.beta2, iteration)

    with torch.no_grad():
        for w in tensors:
            g = w.grad * scale
            w.m.mul_(hyper.beta1).add_(g, alpha=1.0 - hyper.beta1)
            w.v.mul_(hyper.beta2).addcmul_(g, g, value=1.0 - hyper.beta2)
            mhat = w.m / (1.0 - b1)
            vhat = torch.clamp(w.v / (1.0 - b2), min=0.0)
            w.values.sub_(hyper.learning_rate * mhat / (torch.sqrt(vhat) + hyper.epsilon))

    return AdamStep(
        iteration=iteration,
        grad_norm=norm,
        clipped_norm=norm * scale,
        scale=scale,
        beta1_power=b1,
        beta2_power=b2,
    )


class AutoEncoder:
    """
    Two affine layers around a split-rectified hidden layer

    size is the width of the vectors to reconstruct. With markov_order > 0
    the network is widened by markov_order * num_actions so a one-hot
    encoding of the recent actions can be appended to input and target.
    """

    def __init__(self, size: int, markov_order: int = 0, num_actions: int = 6,
                 seed: Optional[int] = None, config: Optional[Config] = None):
        if size < 2:
            raise ValueError(f"Autoencoder size must be at least 2, got {size}")
        self.config = config or default_config
        self.size = size
        self.markov_order = markov_order
        self.num_actions = num_actions
        self.extra = markov_order * num_actions
        self.width = size + self.extra
        self.hidden = size // 2
        self.hyper = AdamHyperParams.from_config(self.config)
        self.dropout = self.config.DROPOUT_PROBABILITY

        self.seed = self.config.AUTOENCODER_SEED if seed is None else seed
        self.rng = torch.Generator().manual_seed(self.seed)
        self.iteration = 0
        self.divergences = 0
        self.last_step: Optional[AdamStep] = None

        self.weights: Dict[str, WeightTensor] = {
            'l1': self._init_matrix('l1', self.hidden, self.width),
            'b1': WeightTensor.create('b1', torch.zeros(self.hidden, 1)),
            'l2': self._init_matrix('l2', self.width, 2 * self.hidden),
            'b2': WeightTensor.create('b2', torch.zeros(self.width, 1)),
        }

    def _init_matrix(self, name: str, rows: int, fan_in: int) -> WeightTensor:
        """He initialization from the private generator"""
        factor = math.sqrt(2.0 / fan_in)
        values = torch.randn((rows, fan_in), generator=self.rng) * factor
        return WeightTensor.create(name, values)

    def _prepare(self, input: Vector, output: Vector,
                 state: Optional[MarkovState]) -> Tuple[torch.Tensor, torch.Tensor]:
        x = torch.as_tensor(np.asarray(input, dtype=np.float32)).reshape(-1)
        y = torch.as_tensor(np.asarray(output, dtype=np.float32)).reshape(-1)
        if x.shape[0] != self.size or y.shape[0] != self.size:
            raise ValueError(f"Expected vectors of length {self.size}, "
                             f"got {x.shape[0]} and {y.shape[0]}")

        if self.extra:
            if state is None:
                # No history known: empty conditioning
                context = torch.zeros(self.extra)
            else:
                if len(state) != self.markov_order:
                    raise ValueError(f"Expected a Markov state of order {self.markov_order}, "
                                     f"got {len(state)}")
                context = torch.from_numpy(state.one_hot(self.num_actions))
            x = torch.cat((x, context))
            y = torch.cat((y, context))
        elif state is not None and len(state) > 0:
            raise ValueError("Autoencoder was built without Markov conditioning")

        return x.reshape(-1, 1), y.reshape(-1, 1)

    def _dropout_mask(self, rng: torch.Generator) -> Optional[torch.Tensor]:
        if self.dropout <= 0.0:
            return None
        keep = torch.rand((2 * self.hidden, 1), generator=rng) >= self.dropout
        return keep.to(torch.float32) / (1.0 - self.dropout)

    def _tensors(self) -> List[WeightTensor]:
        return list(self.weights.values())

    def measure(self, input: Vector, output: Vector,
                state: Optional[MarkovState] = None) -> float:
        """Reconstruction loss of output from input; no learning"""
        x, y = self._prepare(input, output, state)
        with torch.no_grad():
            params = {name: w.values for name, w in self.weights.items()}
            loss = reconstruction_loss(forward(params, x), y)
        return float(loss)

    def encode(self, input: Vector, output: Vector, rng: Optional[torch.Generator] = None,
               state: Optional[MarkovState] = None) -> float:
        """
        Train on a single example and return its loss

        Returns 0.0 and leaves weights and optimizer state untouched when the
        loss or its gradient is not finite.
        """
        x, y = self._prepare(input, output, state)
        rng = rng if rng is not None else self.rng

        params = {name: w.values.detach().requires_grad_(True)
                  for name, w in self.weights.items()}
        prediction = forward(params, x, self._dropout_mask(rng))
        loss = reconstruction_loss(prediction, y)
        value = float(loss.detach())
        if not math.isfinite(value):
            self._record_divergence("loss", value)
            return 0.0

        gradients = torch.autograd.grad(loss, list(params.values()))
        norm = global_norm(gradients)
        if not math.isfinite(norm):
            self._record_divergence("gradient norm", norm)
            return 0.0

        with torch.no_grad():
            for w, g in zip(self._tensors(), gradients):
                w.grad.copy_(g)
        self.last_step = adam_update(self._tensors(), self.iteration, self.hyper)
        self.iteration += 1
        return value

    def _record_divergence(self, what: str, value: float):
        self.divergences += 1
        logger.warning(f"Non-finite {what} ({value}) at iteration {self.iteration} - skipping update")

    def snapshot(self) -> Dict[str, Dict[str, torch.Tensor]]:
        """Copy of every weight and optimizer buffer"""
        return {
            name: {
                'values': w.values.clone(),
                'm': w.m.clone(),
                'v': w.v.clone(),
            }
            for name, w in self.weights.items()
        }

    def __repr__(self):
        return (f"AutoEncoder(size={self.size}, extra={self.extra}, hidden={self.hidden}, "
                f"iteration={self.iteration})")
