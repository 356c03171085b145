"""
Experience Replay Memory
========================

A bounded memory of past transitions used to train the DQN.

Why Experience Replay?
    1. Breaks correlation between consecutive experiences
       (Neural networks learn poorly from correlated data)

    2. Improves sample efficiency
       (Each transition can be used for many updates)

How it works:
    1. The driver loop appends one Transition per agent step
    2. Updates sample uniform random minibatches (with replacement)
    3. Once full, the oldest transition is evicted first (FIFO)

References:
    Mnih et al., 2013 - "Playing Atari with Deep Reinforcement Learning"
"""

from typing import Iterator, List, Optional
import threading

import numpy as np

from .transition import Transition


class InsufficientDataError(RuntimeError):
    """Raised when more transitions are requested than the memory holds."""


class ConfigurationError(ValueError):
    """Raised when a component is constructed with invalid settings."""


class ReplayMemory:
    """
    Fixed-capacity FIFO store of transitions.

    Circular buffer of Transition objects. Transitions are not copied into
    flat arrays, so the frames shared by overlapping states are stored once.

    Example:
        >>> memory = ReplayMemory(capacity=10000)
        >>> memory.append(transition)
        >>> batch = memory.sample(32)
    """

    def __init__(self, capacity: int, rng: Optional[np.random.Generator] = None):
        """
        Initialize the replay memory.

        Args:
            capacity: Maximum number of transitions to store
            rng: Random generator used for sampling (a fresh one if None)

        Raises:
            ConfigurationError: If capacity is not a positive integer
        """
        if isinstance(capacity, bool) or not isinstance(capacity, (int, np.integer)) or capacity <= 0:
            raise ConfigurationError(f"Replay capacity must be a positive integer, got {capacity!r}")

        self.capacity = int(capacity)
        self.rng = rng if rng is not None else np.random.default_rng()
        self._memory: List[Transition] = []
        self._position = 0  # Next slot to overwrite once full

        # append() must be atomic with respect to size and eviction
        self._lock = threading.Lock()

    def append(self, transition: Transition) -> None:
        """
        Add a transition, evicting the oldest one when at capacity.

        Args:
            transition: Transition to record
        """
        with self._lock:
            if len(self._memory) < self.capacity:
                self._memory.append(transition)
            else:
                self._memory[self._position] = transition
            self._position = (self._position + 1) % self.capacity

    def sample(self, batch_size: int) -> List[Transition]:
        """
        Draw transitions uniformly at random, with replacement.

        Args:
            batch_size: Number of transitions to draw

        Returns:
            List of exactly batch_size transitions

        Raises:
            ValueError: If batch_size is not positive
            InsufficientDataError: If the memory holds fewer than batch_size transitions
        """
        if batch_size <= 0:
            raise ValueError(f"Batch size must be positive, got {batch_size}")

        with self._lock:
            size = len(self._memory)
            if size < batch_size:
                raise InsufficientDataError(
                    f"Cannot sample {batch_size} transitions from a memory of {size}"
                )
            indices = self.rng.integers(0, size, size=batch_size)
            return [self._memory[i] for i in indices]

    def __len__(self) -> int:
        """Return current number of stored transitions."""
        return len(self._memory)

    def __iter__(self) -> Iterator[Transition]:
        """Iterate oldest first (snapshot)."""
        with self._lock:
            snapshot = self._memory[self._position:] + self._memory[:self._position]
        return iter(snapshot)

    def is_ready(self, batch_size: int) -> bool:
        """Check if the memory has enough transitions for sampling."""
        return len(self._memory) >= batch_size
