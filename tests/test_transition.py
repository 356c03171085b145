"""
Tests for the Transition record.
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from atari_dqn.ai.transition import ActionValue, Transition
from tests.conftest import make_frames


class TestTransition:
    """Test transition construction and successor states."""

    def test_create_stores_fields(self):
        frames = make_frames()
        transition = Transition.create(frames, 2, 1, frames[0])
        assert transition.state == frames
        assert transition.action == 2
        assert transition.reward == 1.0
        assert isinstance(transition.reward, float)

    def test_create_accepts_list_state(self):
        transition = Transition.create(list(make_frames()), 0, 0.0)
        assert isinstance(transition.state, tuple)

    @pytest.mark.parametrize("count", [0, 3, 5])
    def test_wrong_frame_count_raises(self, count):
        with pytest.raises(ValueError):
            Transition.create(make_frames(count=count), 0, 0.0)

    def test_missing_next_frame_is_terminal(self):
        assert Transition.create(make_frames(), 0, 0.0).is_terminal
        assert not Transition.create(make_frames(), 0, 0.0, make_frames()[0]).is_terminal

    def test_next_input_frames_slides_window(self):
        frames = make_frames(0)
        next_frame = np.full((2, 2), 9, dtype=np.uint8)
        successor = Transition.create(frames, 0, 0.0, next_frame).next_input_frames()

        assert len(successor) == 4
        assert all(a is b for a, b in zip(successor[:3], frames[1:]))
        assert successor[3] is next_frame

    def test_successor_from_list_state(self):
        """A transition built from a list state still yields a tuple successor."""
        frames = list(make_frames(0))
        next_frame = make_frames(9)[0]
        successor = Transition(frames, 0, 0.0, next_frame).next_input_frames()

        assert isinstance(successor, tuple)
        assert all(a is b for a, b in zip(successor[:3], frames[1:]))
        assert successor[3] is next_frame

    def test_terminal_has_no_successor(self):
        with pytest.raises(ValueError):
            Transition.create(make_frames(), 0, 0.0).next_input_frames()


class TestActionValue:
    """Test the action/value pair."""

    def test_fields(self):
        pair = ActionValue(action=3, value=1.5)
        assert pair.action == 3
        assert pair.value == 1.5
        assert tuple(pair) == (3, 1.5)
