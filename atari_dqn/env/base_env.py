"""
Base Environment Interface
==========================

Abstract base class that defines the interface the training loop drives.
Any emulator that produces raw screens and rewards can be plugged in.

To add a new environment:
1. Create a new file in atari_dqn/env/
2. Inherit from BaseEnvironment
3. Implement all abstract methods
"""

from abc import ABC, abstractmethod
from typing import Hashable, Tuple
import numpy as np


class BaseEnvironment(ABC):
    """
    Abstract base class for pixel environments.

    Properties:
        legal_actions: tuple - Fixed, ordered set of legal actions.
                       The first action is used as the no-op while the
                       frame stack fills up.

    Methods:
        reset() -> np.ndarray
            Start a new episode, return the first raw screen

        step(action) -> Tuple[np.ndarray, float, bool, dict]
            Execute action, return (raw_screen, reward, done, info)
    """

    @property
    @abstractmethod
    def legal_actions(self) -> Tuple[Hashable, ...]:
        """Return the legal actions, in a stable order."""
        pass

    @abstractmethod
    def reset(self) -> np.ndarray:
        """
        Reset the environment to the start of an episode.

        Returns:
            np.ndarray: Raw screen, (210, 160) luminance or (210, 160, 3) RGB
        """
        pass

    @abstractmethod
    def step(self, action: Hashable) -> Tuple[np.ndarray, float, bool, dict]:
        """
        Execute one emulator step with the given action.

        Returns:
            Tuple containing:
                - raw_screen (np.ndarray): Screen after the action
                - reward (float): Score gained by the action
                - done (bool): True if the game is over
                - info (dict): Additional information (lives, etc.)
        """
        pass

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass

    def seed(self, seed: int) -> None:
        """Set random seed for reproducibility. Override if the environment has randomness."""
        pass
