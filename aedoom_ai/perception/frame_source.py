"""
Frame Sources: where the agent's frames come from
Any iterable of numpy rasters works; these cover video files, cameras and synthetic scenes
"""
import logging
from typing import Iterator, Optional, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class VideoFrameSource:
    """
    Frames from a video file or camera through cv2.VideoCapture

    Yields RGB uint8 frames until the stream ends.
    """

    def __init__(self, source: Union[str, int]):
        self.source = source
        self.capture: Optional[cv2.VideoCapture] = None
        self.frames_read = 0

    def open(self):
        if self.capture is not None:
            return
        self.capture = cv2.VideoCapture(self.source)
        if not self.capture.isOpened():
            self.capture.release()
            self.capture = None
            raise IOError(f"Could not open video source {self.source!r}")
        width = int(self.capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self.capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"Opened video source {self.source!r} ({width}x{height})")

    def read(self) -> Optional[np.ndarray]:
        """Next RGB frame, or None at end of stream"""
        self.open()
        ok, frame = self.capture.read()
        if not ok or frame is None:
            return None
        self.frames_read += 1
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def close(self):
        if self.capture is not None:
            self.capture.release()
            self.capture = None
            logger.info(f"Closed video source {self.source!r} after {self.frames_read} frames")

    def __iter__(self) -> Iterator[np.ndarray]:
        self.open()
        try:
            while True:
                frame = self.read()
                if frame is None:
                    return
                yield frame
        finally:
            self.close()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class StaticFrameSource:
    """The same frame over and over; endless when count is None"""

    def __init__(self, frame: np.ndarray, count: Optional[int] = None):
        self.frame = np.asarray(frame)
        self.count = count

    def __iter__(self) -> Iterator[np.ndarray]:
        emitted = 0
        while self.count is None or emitted < self.count:
            yield self.frame.copy()
            emitted += 1

    def __len__(self):
        if self.count is None:
            raise TypeError("Endless frame source has no length")
        return self.count


def split_scene(width: int, height: int, top: int = 0, bottom: int = 255) -> np.ndarray:
    """
    RGB test frame: top half one intensity, bottom half another

    Args:
        width: Frame width in pixels
        height: Frame height in pixels
        top: Intensity of the upper half
        bottom: Intensity of the lower half

    Returns:
        (height, width, 3) uint8 frame
    """
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[:height // 2] = top
    frame[height // 2:] = bottom
    return frame
