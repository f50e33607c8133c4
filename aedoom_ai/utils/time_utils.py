"""
Time Utilities
Provides timing context managers, FPS measurement and duration formatting
"""
import time
import logging
from typing import Optional
from collections import deque

logger = logging.getLogger(__name__)

def format_duration(seconds: float, precision: int = 2) -> str:
    """
    Format duration in human-readable format

    Args:
        seconds: Duration in seconds
        precision: Decimal precision for seconds

    Returns:
        Formatted string (e.g., "1h 23m 45.67s")
    """
    if seconds < 0:
        return "0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs:.{precision}f}s")

    return " ".join(parts)

class Timer:
    """
    Context manager for timing code blocks
    """

    def __init__(self, name: str = "Operation", logger_instance: Optional[logging.Logger] = None):
        """
        Initialize timer

        Args:
            name: Name of the operation being timed
            logger_instance: Optional logger to log timing (defaults to module logger)
        """
        self.name = name
        self.start_time = None
        self.end_time = None
        self.logger = logger_instance or logger

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.end_time = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        self.logger.debug(f"{self.name} took {format_duration(self.elapsed(), precision=4)}")
        return False

    def elapsed(self) -> float:
        """
        Get elapsed time

        Returns:
            Elapsed time in seconds
        """
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time

class FPSCounter:
    """
    Calculate FPS from frame timestamps
    """

    def __init__(self, window_size: int = 60):
        self.window_size = window_size
        self.frame_times = deque(maxlen=window_size)

    def tick(self) -> Optional[float]:
        """
        Record a frame and return current FPS

        Returns:
            Current FPS, or None if not enough frames
        """
        self.frame_times.append(time.perf_counter())
        return self.get_fps()

    def get_fps(self) -> Optional[float]:
        """Current FPS without recording a frame"""
        if len(self.frame_times) < 2:
            return None
        time_span = self.frame_times[-1] - self.frame_times[0]
        if time_span > 0:
            return (len(self.frame_times) - 1) / time_span
        return None

    def reset(self):
        self.frame_times.clear()
