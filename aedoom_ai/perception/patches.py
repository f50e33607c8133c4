"""
Patch Extraction: grayscale conversion and 8x8 cell cutting
Turns frames into noisy/clean vector pairs with an entropy weight
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from aedoom_ai.config import Config, config as default_config
from aedoom_ai.utils.math_utils import patch_entropy

logger = logging.getLogger(__name__)


@dataclass
class Patch:
    """One grid cell ready for the autoencoders"""
    input: np.ndarray  # noisy view, float32 in [0, 1]
    target: np.ndarray  # clean view, float32 in [0, 1]
    entropy: float  # bits, of the clean cell's intensity histogram
    cell: int = 0  # row-major grid index


def to_grayscale(frame: np.ndarray) -> np.ndarray:
    """
    Convert a raster to 8-bit luminance

    Args:
        frame: (H, W) gray, (H, W, 1), (H, W, 3) RGB or (H, W, 4) RGBA;
            uint8 or float in [0, 1]

    Returns:
        (H, W) uint8 array
    """
    frame = np.asarray(frame)
    if frame.dtype != np.uint8:
        if np.issubdtype(frame.dtype, np.floating):
            frame = np.clip(frame * 255.0 + 0.5, 0, 255).astype(np.uint8)
        else:
            frame = np.clip(frame, 0, 255).astype(np.uint8)

    if frame.ndim == 2:
        return frame
    if frame.ndim == 3:
        channels = frame.shape[2]
        if channels == 1:
            return frame[:, :, 0]
        if channels == 3:
            return cv2.cvtColor(np.ascontiguousarray(frame), cv2.COLOR_RGB2GRAY)
        if channels == 4:
            return cv2.cvtColor(np.ascontiguousarray(frame), cv2.COLOR_RGBA2GRAY)
    raise ValueError(f"Unsupported frame shape {frame.shape}")


class PatchExtractor:
    """Cuts a grayscale frame into non-overlapping square cells"""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config
        self.patch_size = self.config.PATCH_SIZE
        self.noise_std = self.config.PATCH_NOISE_STD

    @property
    def vector_size(self) -> int:
        return self.patch_size * self.patch_size

    def grid_shape(self, frame: np.ndarray) -> Tuple[int, int]:
        """(rows, cols) of whole cells; partial border cells are discarded"""
        height, width = np.asarray(frame).shape[:2]
        return height // self.patch_size, width // self.patch_size

    def cells(self, gray: np.ndarray) -> np.ndarray:
        """(rows * cols, patch_size ** 2) uint8 blocks in row-major order"""
        rows, cols = self.grid_shape(gray)
        ps = self.patch_size
        blocks = gray[:rows * ps, :cols * ps].reshape(rows, ps, cols, ps)
        return blocks.transpose(0, 2, 1, 3).reshape(rows * cols, ps * ps)

    def make_patch(self, cell: np.ndarray, rng: np.random.Generator, index: int = 0) -> Patch:
        target = cell.astype(np.float32) / 255.0
        noise = rng.normal(0.0, self.noise_std, size=target.shape) if self.noise_std > 0 else 0.0
        noisy = np.clip(target + noise, 0.0, 1.0).astype(np.float32)
        return Patch(input=noisy, target=target, entropy=patch_entropy(cell), cell=index)

    def extract(self, gray: np.ndarray, rng: np.random.Generator,
                indices: Optional[Sequence[int]] = None) -> List[Patch]:
        """
        Build patches for the given cells (all cells when indices is None)

        Noise is drawn from rng in the order of indices.
        """
        blocks = self.cells(gray)
        if indices is None:
            indices = range(len(blocks))
        return [self.make_patch(blocks[i], rng, int(i)) for i in indices]
