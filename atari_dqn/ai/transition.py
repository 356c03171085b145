"""
Transition Types
================

Data recorded for every environment step:

    Transition(state, action, reward, next_frame)

    - state:      the 4 most recent frames when the action was chosen
    - action:     the legal action that was taken
    - reward:     (clipped) reward received
    - next_frame: the single frame observed afterwards, or None if the
                  episode ended; absence is the terminal signal

The successor state is never stored. It is rebuilt on demand by sliding the
state window one frame forward, so consecutive transitions share frames.
"""

from typing import Hashable, NamedTuple, Optional

from .frames import Frame, InputFrames, INPUT_FRAME_COUNT


class ActionValue(NamedTuple):
    """An action paired with its estimated value."""
    action: Hashable
    value: float


class Transition(NamedTuple):
    """One recorded step of environment interaction."""
    state: InputFrames
    action: Hashable
    reward: float
    next_frame: Optional[Frame] = None

    @classmethod
    def create(
        cls,
        state: InputFrames,
        action: Hashable,
        reward: float,
        next_frame: Optional[Frame] = None,
    ) -> 'Transition':
        """
        Build a validated transition.

        Raises:
            ValueError: If the state does not hold exactly INPUT_FRAME_COUNT frames
        """
        state = tuple(state)
        if len(state) != INPUT_FRAME_COUNT:
            raise ValueError(
                f"Transition state must hold {INPUT_FRAME_COUNT} frames, got {len(state)}"
            )
        return cls(state, action, float(reward), next_frame)

    @property
    def is_terminal(self) -> bool:
        """True when the episode ended after this transition."""
        return self.next_frame is None

    def next_input_frames(self) -> InputFrames:
        """
        Successor state: drop the oldest frame, append next_frame.

        Raises:
            ValueError: For terminal transitions, which have no successor
        """
        if self.next_frame is None:
            raise ValueError("Terminal transition has no successor state")
        return tuple(self.state[1:]) + (self.next_frame,)

