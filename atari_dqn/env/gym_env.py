"""
Gymnasium ALE Adapter
=====================

Wraps a Gymnasium Atari environment so it produces raw luminance screens
for the training loop. Frame skipping is done by the trainer, so the
underlying environment steps one emulator frame at a time.

Requires the optional 'atari' extra:
    pip install -e .[atari]
"""

from typing import Hashable, Optional, Tuple

import numpy as np

from .base_env import BaseEnvironment
from ..utils.logger import get_logger

logger = get_logger(__name__)


class GymAtariEnvironment(BaseEnvironment):
    """
    Atari game backed by gymnasium + ale-py.

    Example:
        >>> env = GymAtariEnvironment('ALE/Pong-v5')
        >>> screen = env.reset()
        >>> screen, reward, done, info = env.step(env.legal_actions[0])
    """

    def __init__(self, env_id: str):
        """
        Create the environment.

        Args:
            env_id: Gymnasium id, e.g. 'ALE/Breakout-v5'
        """
        # Imported lazily so the core does not need the emulator installed
        import gymnasium as gym
        import ale_py

        gym.register_envs(ale_py)
        self.env_id = env_id
        self._env = gym.make(
            env_id,
            obs_type='grayscale',
            frameskip=1,
            repeat_action_probability=0.0,
        )
        self._legal_actions = tuple(range(int(self._env.action_space.n)))
        self._seed: Optional[int] = None

        meanings = self._env.unwrapped.get_action_meanings()
        logger.info(f"Environment {env_id}: {len(self._legal_actions)} actions {meanings}")

    @property
    def legal_actions(self) -> Tuple[Hashable, ...]:
        return self._legal_actions

    def reset(self) -> np.ndarray:
        screen, _ = self._env.reset(seed=self._seed)
        # Only the first episode is seeded; later resets continue the stream
        self._seed = None
        return screen

    def step(self, action: Hashable) -> Tuple[np.ndarray, float, bool, dict]:
        screen, reward, terminated, truncated, info = self._env.step(action)
        return screen, float(reward), bool(terminated or truncated), info

    def close(self) -> None:
        self._env.close()

    def seed(self, seed: int) -> None:
        """Seed the emulator on the next reset."""
        self._seed = seed
