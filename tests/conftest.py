"""
Pytest configuration for the test suite.

This file is automatically loaded by pytest and applies configuration
to all tests in the tests/ directory. It also provides small stand-ins
for the value function and the emulator so the DQN core and training
loop can be tested without a real network or game.
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from atari_dqn.env.base_env import BaseEnvironment


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


class FakeValueFunction:
    """
    Records every call and answers evaluate() from plain functions.

    live_fn / frozen_fn map a (batch, frames, h, w) array to a
    (batch, action_count) array of values.
    """

    def __init__(self, action_count, live_fn=None, frozen_fn=None, loss=0.5):
        self.action_count = action_count
        self.live_fn = live_fn or self._zeros
        self.frozen_fn = frozen_fn or self._zeros
        self.loss = loss

        self.iteration = 0
        self.evaluate_calls = []
        self.train_calls = []
        self.clone_count = 0
        self.saved_paths = []

    def _zeros(self, states):
        return np.zeros((states.shape[0], self.action_count), dtype=np.float32)

    def evaluate(self, states, frozen=False):
        self.evaluate_calls.append((states.shape[0], frozen))
        fn = self.frozen_fn if frozen else self.live_fn
        return fn(states)

    def train_step(self, states, targets, masks):
        self.train_calls.append((states, targets, masks))
        self.iteration += 1
        return self.loss

    def clone_into_frozen(self):
        self.clone_count += 1

    def save(self, filepath):
        self.saved_paths.append(filepath)


class FakeEnvironment(BaseEnvironment):
    """
    Scripted game: every step pays a fixed reward and the game ends after
    episode_length emulator steps. Screens are flat gray, one shade per step.
    """

    def __init__(self, episode_length=20, reward=1.0, actions=(0, 1, 2), rgb=False):
        self.episode_length = episode_length
        self.reward = reward
        self._actions = tuple(actions)
        self.rgb = rgb

        self.t = 0
        self.resets = 0
        self.actions_taken = []
        self.closed = False
        self.seeds = []

    @property
    def legal_actions(self):
        return self._actions

    def _screen(self):
        shape = (210, 160, 3) if self.rgb else (210, 160)
        return np.full(shape, (self.t * 16) % 256, dtype=np.uint8)

    def reset(self):
        self.t = 0
        self.resets += 1
        return self._screen()

    def step(self, action):
        assert action in self._actions
        self.t += 1
        self.actions_taken.append(action)
        done = self.t >= self.episode_length
        return self._screen(), self.reward, done, {}

    def close(self):
        self.closed = True

    def seed(self, seed):
        self.seeds.append(seed)


@pytest.fixture
def fake_value_function():
    """Factory for FakeValueFunction instances."""
    return FakeValueFunction


@pytest.fixture
def fake_env():
    """Factory for FakeEnvironment instances."""
    return FakeEnvironment


def make_frames(start=0, count=4, shape=(2, 2)):
    """A tuple of small constant frames with values start, start+1, ..."""
    frames = []
    for value in range(start, start + count):
        frame = np.full(shape, value, dtype=np.uint8)
        frame.setflags(write=False)
        frames.append(frame)
    return tuple(frames)


@pytest.fixture
def frames_factory():
    """Factory for small InputFrames tuples."""
    return make_frames
