"""
Perception components: frame sources, grayscale conversion and patch extraction
"""
from aedoom_ai.perception.patches import Patch, PatchExtractor, to_grayscale
from aedoom_ai.perception.frame_source import VideoFrameSource, StaticFrameSource, split_scene

__all__ = [
    'Patch',
    'PatchExtractor',
    'to_grayscale',
    'VideoFrameSource',
    'StaticFrameSource',
    'split_scene',
]
