"""
Core components: Agent, autoencoder, actions and scheduler
"""
from aedoom_ai.core.actions import Action, MarkovState, action_space
from aedoom_ai.core.autoencoder import AutoEncoder, AdamStep, adam_update, forward, reconstruction_loss
from aedoom_ai.core.scheduler import BoundedScheduler
from aedoom_ai.core.error_handler import ErrorHandler
from aedoom_ai.core.agent import AedoomAgent, DecisionCadence

__all__ = [
    'Action', 'MarkovState', 'action_space',
    'AutoEncoder', 'AdamStep', 'adam_update', 'forward', 'reconstruction_loss',
    'BoundedScheduler', 'ErrorHandler',
    'AedoomAgent', 'DecisionCadence',
]
