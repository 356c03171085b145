"""
Frame Preprocessing
===================

Turns raw emulator screens into the small grayscale frames the network sees,
and keeps the sliding stack of recent frames that forms one network input.

Pipeline:
    1. RGB screen (210 x 160 x 3) -> luminance (210 x 160)
    2. Area-average downsampling (cv2.INTER_AREA) -> 84 x 84 uint8

Each preprocessed frame is read-only. Consecutive input states share the same
frame objects as the stack slides, so nothing is copied per step.
"""

from collections import deque
from typing import Deque, Tuple

import cv2
import numpy as np


FRAME_SIZE = 84
INPUT_FRAME_COUNT = 4
RAW_FRAME_HEIGHT = 210
RAW_FRAME_WIDTH = 160

Frame = np.ndarray
InputFrames = Tuple[Frame, ...]


def to_luminance(raw_screen: np.ndarray) -> np.ndarray:
    """Convert an RGB or single-channel screen to uint8 luminance (BT.601)."""
    screen = np.ascontiguousarray(raw_screen, dtype=np.uint8)
    if screen.ndim == 3:
        if screen.shape[2] != 3:
            raise ValueError(f"Expected 3 color channels, got {screen.shape[2]}")
        return cv2.cvtColor(screen, cv2.COLOR_RGB2GRAY)
    if screen.ndim == 2:
        return screen
    raise ValueError(f"Raw screen must be 2-D or 3-D, got shape {screen.shape}")


def preprocess_screen(
    raw_screen: np.ndarray,
    height: int = RAW_FRAME_HEIGHT,
    width: int = RAW_FRAME_WIDTH,
    frame_size: int = FRAME_SIZE,
) -> Frame:
    """
    Downsample and grayscale a raw screen.

    Args:
        raw_screen: (height, width) luminance or (height, width, 3) RGB, uint8
        height: Expected raw screen height
        width: Expected raw screen width
        frame_size: Side of the square output frame

    Returns:
        Read-only (frame_size, frame_size) uint8 array

    Raises:
        ValueError: If the screen does not have the expected resolution
    """
    gray = to_luminance(raw_screen)
    if gray.shape != (height, width):
        raise ValueError(
            f"Raw screen must be {height}x{width}, got {gray.shape[0]}x{gray.shape[1]}"
        )

    frame = cv2.resize(gray, (frame_size, frame_size), interpolation=cv2.INTER_AREA)
    frame.setflags(write=False)
    return frame


def draw_frame(frame: Frame) -> str:
    """
    Render a frame as text: one line per row, one hex digit (value // 16) per pixel.

    Handy for eyeballing what the agent sees in a debug log.
    """
    digits = np.asarray(frame, dtype=np.uint8) // 16
    return "\n".join("".join(f"{int(v):x}" for v in row) for row in digits) + "\n"


def stack_input_frames(batch) -> np.ndarray:
    """Stack a sequence of InputFrames into a (batch, frames, h, w) uint8 array."""
    return np.stack([np.stack(frames) for frames in batch]).astype(np.uint8, copy=False)


class FrameStack:
    """
    Sliding window over the most recent frames.

    Example:
        >>> stack = FrameStack()
        >>> stack.push(preprocess_screen(screen))
        >>> if stack.is_full():
        ...     state = stack.input_frames()
    """

    def __init__(self, size: int = INPUT_FRAME_COUNT):
        if size <= 0:
            raise ValueError("Frame stack size must be positive")
        self.size = size
        self._frames: Deque[Frame] = deque(maxlen=size)

    def push(self, frame: Frame) -> None:
        """Append the newest frame, dropping the oldest when full."""
        self._frames.append(frame)

    def is_full(self) -> bool:
        return len(self._frames) == self.size

    def input_frames(self) -> InputFrames:
        """Snapshot of the current window, oldest first."""
        if not self.is_full():
            raise RuntimeError(
                f"Frame stack holds {len(self._frames)} of {self.size} frames"
            )
        return tuple(self._frames)

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)
