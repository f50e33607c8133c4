"""
Main Orchestrator: aedoom agent
Fast stage per frame (patches, cell ensembles, votes), slow stage on the decision cadence (mind, action)
"""
import logging
import threading
import time
from typing import Iterable, List, Optional, Tuple

import numpy as np

from aedoom_ai.config import Config, config as default_config
from aedoom_ai.core.actions import Action, MarkovState
from aedoom_ai.core.error_handler import ErrorHandler
from aedoom_ai.core.scheduler import BoundedScheduler
from aedoom_ai.input.action_sink import ActionSink, RecordingSink
from aedoom_ai.learning.mind import Decision, DecisionMind
from aedoom_ai.learning.patch_ensemble import PatchEnsemble, PatchGrid
from aedoom_ai.learning.votes import CellVote, VoteAggregator
from aedoom_ai.monitoring.performance_monitor import PerformanceMonitor
from aedoom_ai.perception.patches import Patch, PatchExtractor, to_grayscale
from aedoom_ai.utils.pretty_logger import StatusLogger

logger = logging.getLogger(__name__)

CellTask = Tuple[PatchEnsemble, Patch, MarkovState, int]


class DecisionCadence:
    """Decisions happen on frames 0, interval, 2 * interval, ..."""

    def __init__(self, interval: int):
        if interval <= 0:
            raise ValueError(f"Decision interval must be positive, got {interval}")
        self.interval = interval

    def is_due(self, frame_index: int) -> bool:
        return frame_index % self.interval == 0


class AedoomAgent:
    """
    Main agent orchestrator
    Owns the grid, the mind, the Markov state and the worker pool

    Only the pipeline thread touches the mind, the Markov state and the
    grid layout. Cell tasks only touch their own ensemble and the vote
    aggregator.
    """

    def __init__(self, config: Optional[Config] = None, sink: Optional[ActionSink] = None,
                 performance_monitor: Optional[PerformanceMonitor] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 headless: Optional[bool] = None):
        self.config = config or default_config
        self.headless = self.config.HEADLESS if headless is None else headless
        self.sample_fraction = self.config.sample_fraction(self.headless)

        logger.info("=" * 80)
        logger.info("Initializing aedoom agent...")
        logger.info("=" * 80)

        self.rng = np.random.default_rng(self.config.SEED)
        self.extractor = PatchExtractor(self.config)
        self.grid: Optional[PatchGrid] = None
        self.votes = VoteAggregator(self.config.NUM_ACTIONS)
        self.mind = DecisionMind(self.config)
        self.state = MarkovState(self.config.MARKOV_ORDER)
        self.cadence = DecisionCadence(self.config.DECISION_INTERVAL)

        self.sink = sink if sink is not None else RecordingSink()
        self.performance_monitor = performance_monitor or PerformanceMonitor()
        self.error_handler = error_handler or ErrorHandler(
            agent=self, max_errors=self.config.MAX_ERRORS, error_window=self.config.ERROR_WINDOW)
        self.scheduler = BoundedScheduler(self.config.effective_workers(),
                                          on_error=self._on_task_error)
        self.status_logger = StatusLogger(logger)

        self.frame_index = 0
        self.last_decision: Optional[Decision] = None
        self._stop_event = threading.Event()
        self._closed = False

        logger.info(f"Agent ready: {self.config.NUM_ACTIONS} actions, "
                    f"{self.config.PATCH_SIZE}x{self.config.PATCH_SIZE} patches, "
                    f"sampling {self.sample_fraction:.4f} of cells "
                    f"({'headless' if self.headless else 'windowed'}), "
                    f"decision every {self.config.DECISION_INTERVAL} frames")

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    def stop(self):
        """Ask run() to return after the current frame"""
        if not self._stop_event.is_set():
            logger.info("Stop requested")
        self._stop_event.set()

    def _ensure_grid(self, gray: np.ndarray) -> PatchGrid:
        height, width = gray.shape[:2]
        if self.grid is None or not self.grid.matches((height, width)):
            rows, cols = self.extractor.grid_shape(gray)
            if rows == 0 or cols == 0:
                raise ValueError(f"Frame is smaller than one {self.config.PATCH_SIZE}px patch")
            previous = self.grid
            self.grid = PatchGrid(rows, cols, self.extractor.vector_size, self.config,
                                  frame_shape=(height, width))
            self.performance_monitor.record_grid_rebuild(rows, cols)
            if previous is None:
                logger.info(f"Grid built: {rows}x{cols} cells for {width}x{height} frames")
            else:
                old_height, old_width = previous.frame_shape
                logger.info(f"Frame size changed {old_width}x{old_height} -> {width}x{height}: "
                            f"grid rebuilt {previous.rows}x{previous.cols} -> {rows}x{cols} cells")
        return self.grid

    def _sample_cells(self, cells: int) -> np.ndarray:
        count = max(1, int(cells * self.sample_fraction))
        return self.rng.choice(cells, size=min(count, cells), replace=False)

    def _evaluate_cell(self, task: CellTask) -> CellVote:
        ensemble, patch, state, seed = task
        return ensemble.evaluate(patch, state, seed)

    def _on_task_error(self, error: BaseException, task: CellTask):
        cell = task[1].cell
        self.performance_monitor.record_error(error, context=f"cell {cell}")
        self.error_handler.record_error(error, context=f"cell {cell}", component="patch_ensemble")

    def observe(self, frame: np.ndarray) -> List[CellVote]:
        """
        Fast stage: evaluate a sample of cells and fold their votes

        Returns:
            Votes of the cells whose task completed
        """
        gray = to_grayscale(frame)
        grid = self._ensure_grid(gray)

        blocks = self.extractor.cells(gray)
        state = self.state.copy()
        tasks: List[CellTask] = []
        for index in self._sample_cells(grid.size):
            index = int(index)
            patch = self.extractor.make_patch(blocks[index], self.rng, index)
            seed = int(self.rng.integers(0, 2 ** 31))
            tasks.append((grid.ensemble(index), patch, state, seed))

        # Completion order varies between runs; fold in cell order
        votes = sorted(self.scheduler.run(self._evaluate_cell, tasks), key=lambda v: v.cell)
        for vote in votes:
            self.performance_monitor.record_cell_loss(vote.loss)
            if vote.diverged:
                self.performance_monitor.record_divergence("cell")
        self.votes.fold(votes)
        return votes

    def decide(self) -> Decision:
        """Slow stage: read the votes, let the mind pick, emit and remember the action"""
        distribution = self.votes.snapshot_and_reset()
        decision = self.mind.decide(distribution, self.state, self.rng)
        self.sink.emit(decision.action)
        self.state.shift(decision.action)

        self.last_decision = decision
        self.performance_monitor.record_decision(
            decision.action, decision.trained_loss if decision.trained else None)
        if decision.diverged:
            self.performance_monitor.record_divergence("mind")
        if decision.trained:
            logger.info(f"Frame {self.frame_index}: action {decision.action.name} "
                        f"(training {decision.learn.name}, loss {decision.trained_loss:.5f})")
        else:
            logger.info(f"Frame {self.frame_index}: action {decision.action.name} (no votes, not trained)")
        return decision

    def process_frame(self, frame: np.ndarray) -> Optional[Action]:
        """
        Run both stages for one frame

        Returns:
            The emitted action, or None when no decision was due
        """
        start = time.perf_counter()
        votes = self.observe(frame)

        action = None
        if self.cadence.is_due(self.frame_index):
            action = self.decide().action
        self.frame_index += 1

        self.performance_monitor.record_frame(time.perf_counter() - start, len(votes))
        return action

    def _log_status(self):
        if self.frame_index % self.config.SYSTEM_METRICS_INTERVAL == 0:
            self.performance_monitor.update_system_metrics()
        grid = f"{self.grid.rows}x{self.grid.cols}" if self.grid else "none"
        self.status_logger.status(
            f"frame {self.frame_index} | {self.performance_monitor.fps():.1f} fps "
            f"({self.performance_monitor.throughput():.1f} wall) | grid {grid} | "
            f"cell loss {self.performance_monitor.cell_loss_ema or 0.0:.5f} | "
            f"decisions {self.performance_monitor.decision_count} | state {self.state}",
            component="PIPELINE",
            interval=self.config.STATUS_LOG_INTERVAL,
        )

    def run(self, source: Iterable[np.ndarray], max_frames: Optional[int] = None) -> int:
        """
        Process frames until the source ends, max_frames is reached or stop() is called

        The agent is closed afterwards.

        Returns:
            Number of frames processed
        """
        if self._closed:
            raise RuntimeError("Agent is closed; create a new agent to run again")
        processed = 0
        logger.info("Agent running")
        try:
            for frame in source:
                if self._stop_event.is_set():
                    break
                if frame is None:
                    logger.warning(f"Skipping empty frame after frame {self.frame_index}")
                    continue
                try:
                    self.process_frame(frame)
                except Exception as e:
                    logger.error(f"Frame {self.frame_index} failed: {e}", exc_info=True)
                    self.performance_monitor.record_error(e, context="process_frame")
                    if self.error_handler.record_error(e, context=f"frame {self.frame_index}",
                                                       component="agent"):
                        break
                    continue

                processed += 1
                self._log_status()
                if max_frames is not None and processed >= max_frames:
                    break
                if self._stop_event.is_set():
                    break
        finally:
            self.close()
        logger.info(f"Agent finished after {processed} frames")
        return processed

    def close(self):
        """Drain in-flight cell tasks and release any held key"""
        if self._closed:
            return
        self._closed = True
        self.scheduler.close()
        release_all = getattr(self.sink, 'release_all', None)
        if release_all is not None:
            release_all()
