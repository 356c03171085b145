"""
Environment Module
==================

Environments produce raw screens and rewards for the training loop.

Classes:
    BaseEnvironment      - Abstract interface every environment implements
    GymAtariEnvironment  - Gymnasium ALE adapter (requires the 'atari' extra)
"""

from .base_env import BaseEnvironment
from .gym_env import GymAtariEnvironment

__all__ = ['BaseEnvironment', 'GymAtariEnvironment']
