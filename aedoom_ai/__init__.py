"""
aedoom AI Agent - Modular Architecture
Reward-free curiosity agent that learns to act from raw video frames

Frames are cut into 8x8 grayscale patches. Every patch cell owns one small
autoencoder per action; the worst reconstructor of a sampled cell trains on
it and both the best and the worst one receive the cell's entropy as a vote.
Every few frames a second ensemble, the mind, reads the normalized votes
together with the last two actions and picks the next action.

Main Components:
    - Core: Agent orchestrator, autoencoder, actions, worker scheduler
    - Perception: Frame sources, grayscale conversion, patch extraction
    - Learning: Patch ensembles, vote aggregation, decision mind
    - Input: Action sinks and key event translation
    - Monitoring: Performance tracking
    - Utils: Shared utilities for logging, timing and math

Quick Start:
    >>> from aedoom_ai import AedoomAgent, StaticFrameSource, split_scene
    >>> agent = AedoomAgent()
    >>> agent.run(StaticFrameSource(split_scene(64, 64), count=90))
"""

__version__ = "1.0.0"

# Configuration and core first: the other sub-packages import from both
from aedoom_ai.config import Config, config
from aedoom_ai.core import AedoomAgent, Action, AutoEncoder, MarkovState, DecisionCadence

from aedoom_ai.learning import DecisionMind, PatchEnsemble, PatchGrid, VoteAggregator
from aedoom_ai.perception import PatchExtractor, VideoFrameSource, StaticFrameSource, split_scene
from aedoom_ai.input import KeyEventTranslator, RecordingSink
from aedoom_ai.monitoring import PerformanceMonitor

__all__ = [
    # Core components
    'AedoomAgent',
    'Action',
    'AutoEncoder',
    'MarkovState',
    'DecisionCadence',
    # Configuration
    'Config',
    'config',
    # Learning
    'DecisionMind',
    'PatchEnsemble',
    'PatchGrid',
    'VoteAggregator',
    # Perception
    'PatchExtractor',
    'VideoFrameSource',
    'StaticFrameSource',
    'split_scene',
    # Input
    'KeyEventTranslator',
    'RecordingSink',
    # Monitoring
    'PerformanceMonitor',
]
