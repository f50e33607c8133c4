"""
Performance Monitor: frame timing, learning metrics and process resources
Thread-safe bookkeeping shared by the pipeline and the cell tasks
"""
import math
import time
import logging
import threading
from collections import deque, defaultdict
from datetime import datetime
from typing import Dict, Optional

import numpy as np
import psutil

from aedoom_ai.core.actions import Action
from aedoom_ai.utils.math_utils import exponential_moving_average
from aedoom_ai.utils.time_utils import FPSCounter

logger = logging.getLogger(__name__)

class PerformanceMonitor:
    """
    Tracks frame durations, sampled cells, losses, divergences and decisions
    """

    def __init__(self, history: int = 1000, fps_window: int = 120, loss_alpha: float = 0.05):
        self.start_time = time.time()

        # Frame timing: processing time per frame, plus wall-clock throughput
        self.frame_times = deque(maxlen=history)
        self.cells_per_frame = deque(maxlen=history)
        self.fps_counter = FPSCounter(window_size=fps_window)

        # Learning metrics
        self.cell_losses = deque(maxlen=history * 10)
        self.mind_losses = deque(maxlen=history)
        self.loss_alpha = loss_alpha
        self.cell_loss_ema: Optional[float] = None
        self.mind_loss_ema: Optional[float] = None
        self.decision_counts: Dict[str, int] = defaultdict(int)

        # System resources
        self.memory_usage = deque(maxlen=100)
        self.cpu_usage = deque(maxlen=100)

        # Counters
        self.frame_count = 0
        self.decision_count = 0
        self.divergence_count = 0
        self.grid_rebuilds = 0
        self.error_count = 0
        self.error_categories: Dict[str, int] = defaultdict(int)

        self.lock = threading.RLock()
        self._process = psutil.Process()

    def record_frame(self, duration: float, cells: int):
        """Record one processed frame"""
        with self.lock:
            self.frame_count += 1
            self.frame_times.append(duration)
            self.cells_per_frame.append(cells)
            self.fps_counter.tick()

    def record_cell_loss(self, loss: float):
        with self.lock:
            self.cell_losses.append(loss)
            if math.isfinite(loss):
                self.cell_loss_ema = exponential_moving_average(self.cell_loss_ema, loss, self.loss_alpha)

    def record_decision(self, action: Action, loss: Optional[float] = None):
        """Count a decision; loss is None when the mind was not trained"""
        with self.lock:
            self.decision_count += 1
            self.decision_counts[Action(action).name] += 1
            if loss is None:
                return
            self.mind_losses.append(loss)
            if math.isfinite(loss):
                self.mind_loss_ema = exponential_moving_average(self.mind_loss_ema, loss, self.loss_alpha)

    def record_divergence(self, source: str = "cell"):
        with self.lock:
            self.divergence_count += 1
            self.error_categories[f"divergence/{source}"] += 1

    def record_grid_rebuild(self, rows: int, cols: int):
        with self.lock:
            self.grid_rebuilds += 1

    def record_error(self, error: BaseException, context: str = ""):
        with self.lock:
            self.error_count += 1
            self.error_categories[type(error).__name__] += 1

    def update_system_metrics(self):
        """Sample process memory and CPU with psutil"""
        try:
            with self.lock:
                memory_mb = self._process.memory_info().rss / (1024 * 1024)
                self.memory_usage.append(memory_mb)
                self.cpu_usage.append(self._process.cpu_percent(interval=None))
        except psutil.Error as e:
            logger.debug(f"System metrics unavailable: {e}")

    def fps(self) -> float:
        with self.lock:
            if not self.frame_times:
                return 0.0
            mean = float(np.mean(self.frame_times))
            return 1.0 / mean if mean > 0 else 0.0

    def throughput(self) -> float:
        """Frames per second of wall-clock time over the recent window"""
        with self.lock:
            return self.fps_counter.get_fps() or 0.0

    def get_current_stats(self) -> Dict:
        """Snapshot of every tracked metric"""
        with self.lock:
            runtime = time.time() - self.start_time
            frame_ms = np.array(self.frame_times) * 1000 if self.frame_times else np.zeros(1)
            return {
                'runtime_seconds': runtime,
                'frame_count': self.frame_count,
                'fps': self.fps(),
                'throughput_fps': self.throughput(),
                'frame_ms': {
                    'avg': float(np.mean(frame_ms)),
                    'max': float(np.max(frame_ms)),
                },
                'cells_per_frame': float(np.mean(self.cells_per_frame)) if self.cells_per_frame else 0.0,
                'cell_loss_avg': float(np.mean(self.cell_losses)) if self.cell_losses else 0.0,
                'mind_loss_avg': float(np.mean(self.mind_losses)) if self.mind_losses else 0.0,
                'cell_loss_ema': self.cell_loss_ema if self.cell_loss_ema is not None else 0.0,
                'mind_loss_ema': self.mind_loss_ema if self.mind_loss_ema is not None else 0.0,
                'decision_count': self.decision_count,
                'decisions': dict(self.decision_counts),
                'divergence_count': self.divergence_count,
                'grid_rebuilds': self.grid_rebuilds,
                'error_count': self.error_count,
                'error_categories': dict(self.error_categories),
                'memory_mb': self.memory_usage[-1] if self.memory_usage else 0.0,
                'cpu_percent': self.cpu_usage[-1] if self.cpu_usage else 0.0,
            }

    def generate_report(self, filepath: Optional[str] = None) -> str:
        """Generate a plain-text performance report, optionally written to filepath"""
        stats = self.get_current_stats()
        decisions = "\n".join(f"  {name}: {count}" for name, count in sorted(stats['decisions'].items()))

        report = f"""
{'='*80}
AEDOOM AGENT - PERFORMANCE REPORT
Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}
{'='*80}

RUNTIME STATISTICS
------------------
Total Runtime: {stats['runtime_seconds']:.2f} seconds ({stats['runtime_seconds']/60:.2f} minutes)
Frames Processed: {stats['frame_count']:,}
Grid Rebuilds: {stats['grid_rebuilds']}

PERFORMANCE METRICS
-------------------
FPS: {stats['fps']:.2f} (throughput {stats['throughput_fps']:.2f})
Frame Time: avg {stats['frame_ms']['avg']:.2f} ms, max {stats['frame_ms']['max']:.2f} ms
Cells per Frame: {stats['cells_per_frame']:.1f}
Process Memory: {stats['memory_mb']:.1f} MB
Process CPU: {stats['cpu_percent']:.1f}%

LEARNING
--------
Average Cell Loss: {stats['cell_loss_avg']:.6f}
Average Mind Loss: {stats['mind_loss_avg']:.6f}
Recent Cell Loss: {stats['cell_loss_ema']:.6f}
Recent Mind Loss: {stats['mind_loss_ema']:.6f}
Divergences: {stats['divergence_count']}
Decisions: {stats['decision_count']}
{decisions or '  none'}

ERRORS
------
Total Errors: {stats['error_count']}
{'='*80}
"""
        if filepath:
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write(report)
            logger.info(f"Performance report saved to {filepath}")
        return report
