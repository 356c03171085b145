"""
Tests for the Replay Memory.

These tests verify:
    - Capacity validation
    - FIFO eviction once full
    - Uniform sampling with replacement
    - Thread-safe appends
"""

import threading

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from atari_dqn.ai.replay_memory import ConfigurationError, InsufficientDataError, ReplayMemory
from atari_dqn.ai.transition import Transition
from tests.conftest import make_frames


def make_transition(i, terminal=False):
    """Transition whose reward identifies it."""
    frames = make_frames(i)
    next_frame = None if terminal else frames[-1]
    return Transition.create(frames, 0, float(i), next_frame)


@pytest.fixture
def memory():
    """Replay memory with a seeded generator."""
    return ReplayMemory(capacity=100, rng=np.random.default_rng(0))


class TestReplayMemoryInitialization:
    """Test construction and capacity validation."""

    def test_starts_empty(self, memory):
        assert len(memory) == 0
        assert list(memory) == []

    def test_capacity_set_correctly(self, memory):
        assert memory.capacity == 100

    @pytest.mark.parametrize("capacity", [0, -1, 1.5, True, "10", None])
    def test_invalid_capacity_rejected(self, capacity):
        """Non-positive or non-integer capacities are configuration errors."""
        with pytest.raises(ConfigurationError):
            ReplayMemory(capacity)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            ReplayMemory(0)

    def test_numpy_integer_capacity_accepted(self):
        assert ReplayMemory(np.int64(5)).capacity == 5


class TestReplayMemoryAppend:
    """Test storage and FIFO eviction."""

    def test_append_increases_size(self, memory):
        memory.append(make_transition(0))
        assert len(memory) == 1

    def test_size_never_exceeds_capacity(self):
        memory = ReplayMemory(capacity=5)
        for i in range(12):
            memory.append(make_transition(i))
            assert len(memory) == min(i + 1, 5)

    def test_oldest_evicted_first(self):
        """Capacity 2: appending t1, t2, t3 leaves exactly t2, t3."""
        memory = ReplayMemory(capacity=2)
        t1, t2, t3 = make_transition(1), make_transition(2), make_transition(3)
        memory.append(t1)
        memory.append(t2)
        memory.append(t3)

        assert len(memory) == 2
        assert list(memory) == [t2, t3]
        for _ in range(20):
            assert {t.reward for t in memory.sample(2)} <= {2.0, 3.0}
        with pytest.raises(InsufficientDataError):
            memory.sample(3)

    def test_iteration_is_oldest_first_after_wraparound(self):
        memory = ReplayMemory(capacity=3)
        for i in range(7):
            memory.append(make_transition(i))
        assert [t.reward for t in memory] == [4.0, 5.0, 6.0]

    def test_frames_are_not_copied(self, memory):
        """Stored transitions share the caller's frame objects."""
        transition = make_transition(0)
        memory.append(transition)
        stored = next(iter(memory))
        assert all(a is b for a, b in zip(stored.state, transition.state))

    def test_concurrent_appends_respect_capacity(self):
        memory = ReplayMemory(capacity=500)

        def worker(offset):
            for i in range(1000):
                memory.append(make_transition((offset + i) % 200))

        threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(memory) == 500
        assert len(list(memory)) == 500


class TestReplayMemorySample:
    """Test sampling behavior."""

    def test_sample_returns_exact_count(self, memory):
        for i in range(50):
            memory.append(make_transition(i))
        assert len(memory.sample(32)) == 32

    def test_sample_entire_memory(self, memory):
        for i in range(10):
            memory.append(make_transition(i))
        assert len(memory.sample(10)) == 10

    def test_sampled_items_come_from_memory(self, memory):
        stored = [make_transition(i) for i in range(20)]
        for transition in stored:
            memory.append(transition)
        rewards = {t.reward for t in stored}
        for transition in memory.sample(16):
            assert transition.reward in rewards

    def test_sample_too_many_raises(self, memory):
        for i in range(5):
            memory.append(make_transition(i))
        with pytest.raises(InsufficientDataError):
            memory.sample(6)

    def test_sample_from_empty_raises(self, memory):
        with pytest.raises(InsufficientDataError):
            memory.sample(1)

    def test_insufficient_data_is_runtime_error(self, memory):
        with pytest.raises(RuntimeError):
            memory.sample(1)

    @pytest.mark.parametrize("batch_size", [0, -3])
    def test_non_positive_batch_size_raises(self, memory, batch_size):
        memory.append(make_transition(0))
        with pytest.raises(ValueError):
            memory.sample(batch_size)

    def test_sampling_is_with_replacement(self):
        """Duplicates can appear within a single minibatch."""
        memory = ReplayMemory(capacity=10, rng=np.random.default_rng(1))
        memory.append(make_transition(0))
        memory.append(make_transition(1))

        draws = [memory.sample(2) for _ in range(50)]
        assert any(a.reward == b.reward for a, b in draws)

    def test_sampling_is_roughly_uniform(self):
        memory = ReplayMemory(capacity=4, rng=np.random.default_rng(2))
        for i in range(4):
            memory.append(make_transition(i))

        counts = {i: 0 for i in range(4)}
        for transition in memory.sample(4000):
            counts[int(transition.reward)] += 1

        for count in counts.values():
            assert 850 < count < 1150

    def test_sampling_is_reproducible_with_seed(self):
        a = ReplayMemory(capacity=20, rng=np.random.default_rng(42))
        b = ReplayMemory(capacity=20, rng=np.random.default_rng(42))
        for i in range(20):
            a.append(make_transition(i))
            b.append(make_transition(i))

        assert [t.reward for t in a.sample(10)] == [t.reward for t in b.sample(10)]


class TestReplayMemoryUtilities:
    """Test helper methods."""

    def test_is_ready(self, memory):
        for i in range(3):
            memory.append(make_transition(i))
        assert memory.is_ready(3)
        assert not memory.is_ready(4)

