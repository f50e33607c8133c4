"""
Action Sinks: where decided actions go
Recording and callback sinks plus a translator from actions to key press/release events
"""
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from aedoom_ai.config import Config, config as default_config
from aedoom_ai.core.actions import Action

logger = logging.getLogger(__name__)

# Action.NONE has no key
DEFAULT_KEY_MAP: Dict[Action, Optional[str]] = {
    Action.LEFT: 'left',
    Action.RIGHT: 'right',
    Action.FORWARD: 'up',
    Action.BACKWARD: 'down',
    Action.NONE: None,
    Action.ACTIVATE: 'space',
}


class ActionSink:
    """Anything that accepts the agent's actions"""

    def emit(self, action: Action):
        raise NotImplementedError


class RecordingSink(ActionSink):
    """Keeps every emitted action"""

    def __init__(self):
        self.actions: List[Action] = []

    def emit(self, action: Action):
        self.actions.append(Action(action))

    def __len__(self):
        return len(self.actions)


class CallbackSink(ActionSink):
    def __init__(self, callback: Callable[[Action], None]):
        self.callback = callback

    def emit(self, action: Action):
        self.callback(Action(action))


@dataclass(frozen=True)
class KeyEvent:
    key: str
    pressed: bool  # False for a release
    action: Action


class KeyEventTranslator(ActionSink):
    """
    Turns actions into key press/release pairs

    At most one key is held at a time: a new action releases the held key
    before pressing its own. With auto mode off, actions are ignored.

    Events go to on_event when it is set; otherwise they are queued for
    drain_events, keeping only the newest max_pending.
    """

    def __init__(self, key_map: Optional[Dict[Action, Optional[str]]] = None,
                 debounce: Optional[bool] = None, auto_mode: bool = True,
                 on_event: Optional[Callable[[KeyEvent], None]] = None,
                 config: Optional[Config] = None, max_pending: int = 256):
        cfg = config or default_config
        self.key_map = dict(DEFAULT_KEY_MAP if key_map is None else key_map)
        self.debounce = cfg.DEBOUNCE_REPEATS if debounce is None else debounce
        self.auto_mode = auto_mode
        self.on_event = on_event
        self.held_key: Optional[str] = None
        self.held_action: Optional[Action] = None
        self.last_action: Optional[Action] = None
        self.skipped = 0
        self._events: deque = deque(maxlen=max_pending)
        self._lock = threading.Lock()

    def _push(self, event: KeyEvent):
        if self.on_event is not None:
            self.on_event(event)
        else:
            self._events.append(event)

    def _release_held(self):
        if self.held_key is not None:
            self._push(KeyEvent(self.held_key, False, self.held_action))
        self.held_key = None
        self.held_action = None

    def emit(self, action: Action):
        action = Action(action)
        with self._lock:
            if not self.auto_mode:
                return
            if self.debounce and action == self.last_action:
                self.skipped += 1
                return
            self._release_held()
            key = self.key_map.get(action)
            if key is not None:
                self._push(KeyEvent(key, True, action))
                self.held_key = key
                self.held_action = action
            self.last_action = action

    def set_auto_mode(self, enabled: bool):
        with self._lock:
            if self.auto_mode == enabled:
                return
            self.auto_mode = enabled
            if not enabled:
                self._release_held()
                self.last_action = None
        logger.info(f"Auto mode {'enabled' if enabled else 'disabled'}")

    def toggle_auto_mode(self) -> bool:
        """Flip auto mode; returns the new state"""
        self.set_auto_mode(not self.auto_mode)
        return self.auto_mode

    def release_all(self):
        with self._lock:
            self._release_held()

    def drain_events(self) -> List[KeyEvent]:
        """Pending events in emission order; clears the queue"""
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events
