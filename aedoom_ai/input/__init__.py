"""
Input components: action sinks and key event translation
"""
from aedoom_ai.input.action_sink import (
    ActionSink, RecordingSink, CallbackSink, KeyEvent, KeyEventTranslator, DEFAULT_KEY_MAP
)

__all__ = [
    'ActionSink',
    'RecordingSink',
    'CallbackSink',
    'KeyEvent',
    'KeyEventTranslator',
    'DEFAULT_KEY_MAP',
]
