"""
Pretty Terminal Logger - readable, component-prefixed terminal output
Uses colors and emojis on the console and a plain timestamped log file
"""
import logging
import os
import re
import sys
import time
from typing import Dict, Optional

EMOJI_PATTERN = re.compile(
    "["
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F680-\U0001F6FF"  # transport & map symbols
    "\U0001F900-\U0001F9FF"  # supplemental symbols and pictographs
    "\U00002600-\U000027BF"  # miscellaneous symbols, dingbats
    "]+", flags=re.UNICODE)


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors and emojis"""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',
        'BOLD': '\033[1m',
        'DIM': '\033[2m',
    }

    EMOJIS = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️',
        'WARNING': '⚠️',
        'ERROR': '❌',
        'CRITICAL': '🚨',
    }

    # Keyed by the last component of the logger name
    COMPONENT_ICONS = {
        'agent': '👾',
        'autoencoder': '🧠',
        'mind': '🧠',
        'patch_ensemble': '🧩',
        'votes': '🗳️',
        'patches': '👁️',
        'frame_source': '🎞️',
        'scheduler': '⚙️',
        'action_sink': '🎮',
        'performance_monitor': '📊',
        'error_handler': '🛡️',
        'main': '🚀',
    }

    def __init__(self, use_colors: bool = True, use_emojis: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()
        self.use_emojis = use_emojis

    def format(self, record: logging.LogRecord) -> str:
        component = record.name.split('.')[-1]
        component_icon = self.COMPONENT_ICONS.get(component, '•') if self.use_emojis else ''
        emoji = self.EMOJIS.get(record.levelname, '') if self.use_emojis else ''

        color = self.COLORS.get(record.levelname, '') if self.use_colors else ''
        reset = self.COLORS['RESET'] if self.use_colors else ''

        message = record.getMessage()
        if not self.use_emojis:
            message = EMOJI_PATTERN.sub('', message).strip()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if record.levelname == 'INFO':
            icon_space = ' ' if component_icon else ''
            return f"{color}{component_icon}{icon_space}{component.upper()}:{reset} {message}"

        emoji_space = ' ' if emoji else ''
        if record.levelname == 'WARNING':
            return f"{color}{emoji}{emoji_space}{component.upper()}:{reset} {message}"
        if record.levelname == 'ERROR':
            return f"{color}{emoji}{emoji_space}ERROR [{component}]:{reset} {message}"
        if record.levelname == 'CRITICAL':
            bold = self.COLORS['BOLD'] if self.use_colors else ''
            return f"{color}{bold}{emoji}{emoji_space}CRITICAL [{component}]:{reset} {message}"

        # DEBUG - minimal format
        dim = self.COLORS['DIM'] if self.use_colors else ''
        return f"{dim}{emoji}{emoji_space}[{component}]:{reset} {message}"


class StatusLogger:
    """Status logger for periodic updates"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.last_status_time: Dict[str, float] = {}

    def status(self, message: str, component: str = "STATUS", interval: float = 1.0) -> bool:
        """
        Log status message with throttling

        Returns:
            True if the message was logged
        """
        current_time = time.time()
        key = component
        last = self.last_status_time.get(key)
        if last is None or current_time - last >= interval:
            self.logger.info(f"📊 {component}: {message}")
            self.last_status_time[key] = current_time
            return True
        return False


def setup_pretty_logging(level: int = logging.INFO, use_colors: bool = True,
                         use_emojis: bool = True, log_path: Optional[str] = None,
                         log_to_file: bool = True) -> logging.Logger:
    """
    Setup pretty logging for terminal output

    Args:
        level: Console log level
        use_colors: ANSI colors when stdout is a terminal
        use_emojis: Level and component icons
        log_path: Directory of the timestamped log file (defaults to config.LOG_PATH)
        log_to_file: Disable to keep logging on the console only

    Returns:
        The configured root logger
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors, use_emojis=use_emojis))
    root_logger.addHandler(console_handler)

    if log_to_file:
        if log_path is None:
            from aedoom_ai.config import config
            log_path = config.LOG_PATH
        os.makedirs(log_path, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_path, f'agent_{int(time.time())}.log'))
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        ))
        root_logger.addHandler(file_handler)

    root_logger.setLevel(min(level, logging.DEBUG) if log_to_file else level)
    return root_logger
