"""
Learning components: per-cell autoencoder ensembles, vote aggregation and the decision mind
"""
from aedoom_ai.learning.votes import CellVote, VoteAggregator
from aedoom_ai.learning.patch_ensemble import PatchEnsemble, PatchGrid
from aedoom_ai.learning.mind import Decision, DecisionMind

__all__ = [
    'CellVote',
    'VoteAggregator',
    'PatchEnsemble',
    'PatchGrid',
    'Decision',
    'DecisionMind',
]
