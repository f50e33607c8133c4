"""
Error Handler: error bookkeeping and stop decisions
Stops the agent on critical errors or when errors pile up too quickly
"""
import logging
import time
import traceback
from typing import Dict, List, Optional
from collections import deque
from aedoom_ai.config import config as default_config

logger = logging.getLogger(__name__)

class ErrorHandler:
    """
    Records failures from the pipeline and cell tasks
    Asks the agent to stop when an error is critical or the error rate is too high
    """

    def __init__(self, agent=None, max_errors: Optional[int] = None,
                 error_window: Optional[float] = None):
        """
        Initialize error handler

        Args:
            agent: Object with a stop() method, stopped when errors get out of hand
            max_errors: Errors tolerated inside error_window (defaults to config.MAX_ERRORS)
            error_window: Time window in seconds to count errors (defaults to config.ERROR_WINDOW)
        """
        self.agent = agent
        self.max_errors = default_config.MAX_ERRORS if max_errors is None else max_errors
        self.error_window = default_config.ERROR_WINDOW if error_window is None else error_window

        self.errors = deque(maxlen=1000)
        self.error_count = 0
        self.last_error_time = 0.0
        self.critical_errors: List[Dict] = []
        self.stop_requested = False

        # Matched against the lowercased exception type and message
        self.critical_patterns = [
            'memoryerror',
            'out of memory',
            'keyboardinterrupt',
            'systemexit',
            'segmentation fault',
        ]

        logger.info(f"Error handler initialized - stopping after {self.max_errors} errors "
                    f"in {self.error_window:.0f}s")

    def record_error(self, error: BaseException, context: str = "unknown",
                     component: str = "unknown", stop_game: bool = False) -> bool:
        """
        Record an error and decide if the agent should stop

        Args:
            error: The exception that occurred
            context: Context where error occurred
            component: Component that generated the error
            stop_game: Stop regardless of the error rate

        Returns:
            True if the agent should stop, False otherwise
        """
        current_time = time.time()
        error_info = {
            'timestamp': current_time,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'context': context,
            'component': component,
            'traceback': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            'critical': self._is_critical_error(error),
        }

        self.errors.append(error_info)
        self.error_count += 1
        self.last_error_time = current_time

        should_stop = False
        if error_info['critical']:
            self.critical_errors.append(error_info)
            logger.critical(f"🔴 CRITICAL ERROR in {component}/{context}: {error}")
            should_stop = True
        elif self._should_stop_due_to_error_rate():
            logger.error(f"🚨 Too many errors ({self.recent_error_count()} in "
                         f"{self.error_window:.0f}s) - stopping agent")
            should_stop = True
        elif stop_game:
            should_stop = True
        else:
            logger.warning(f"Error in {component}/{context}: {type(error).__name__}: {error}")

        if should_stop:
            self._stop_agent(error_info)
        return should_stop

    def _is_critical_error(self, error: BaseException) -> bool:
        error_str = str(error).lower()
        error_type = type(error).__name__.lower()
        return any(pattern in error_str or pattern in error_type
                   for pattern in self.critical_patterns)

    def recent_error_count(self) -> int:
        current_time = time.time()
        return sum(1 for e in self.errors if current_time - e['timestamp'] <= self.error_window)

    def _should_stop_due_to_error_rate(self) -> bool:
        if self.error_count <= self.max_errors:
            return False
        return self.recent_error_count() > self.max_errors

    def _stop_agent(self, error_info: Dict):
        self.stop_requested = True
        logger.critical("=" * 80)
        logger.critical("🚨 STOPPING AGENT")
        logger.critical(f"Error Type: {error_info['error_type']}")
        logger.critical(f"Error Message: {error_info['error_message']}")
        logger.critical(f"Component: {error_info['component']}")
        logger.critical(f"Context: {error_info['context']}")
        logger.critical("=" * 80)
        if self.agent is not None:
            self.agent.stop()

    def get_error_stats(self) -> Dict:
        """Get error statistics"""
        recent = self.recent_error_count()
        return {
            'total_errors': len(self.errors),
            'recent_errors': recent,
            'critical_errors': len(self.critical_errors),
            'error_rate': recent / self.error_window if self.error_window > 0 else 0,
            'last_error_time': self.last_error_time,
            'stop_requested': self.stop_requested,
        }

    def reset(self):
        """Reset error handler (clear error history)"""
        self.error_count = 0
        self.errors.clear()
        self.critical_errors.clear()
        self.stop_requested = False
        logger.info("Error handler reset")
