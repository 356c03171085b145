"""
Configuration file for the Atari DQN trainer
============================================

All hyperparameters, frame settings, and training options are centralized here.
Modify these values to experiment with different training configurations.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.LEARNING_RATE)
"""

from dataclasses import dataclass, field
from typing import List, Optional
import torch


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Environment - Emulator and frame settings
    2. Neural Network - Architecture configuration
    3. Training - Learning hyperparameters
    4. Exploration - Epsilon-greedy settings
    5. Training Control - Logging, checkpoints, evaluation
    6. System - Hardware and paths
    """

    # =========================================================================
    # ENVIRONMENT
    # =========================================================================

    # Gymnasium environment id (requires the 'atari' extra)
    ENV_ID: str = 'ALE/Pong-v5'

    # Raw emulator screen
    RAW_FRAME_HEIGHT: int = 210
    RAW_FRAME_WIDTH: int = 160

    # Preprocessed frame is FRAME_SIZE x FRAME_SIZE grayscale
    FRAME_SIZE: int = 84

    # Number of stacked frames fed to the network
    INPUT_FRAME_COUNT: int = 4

    # Each selected action is repeated FRAME_SKIP + 1 times
    FRAME_SKIP: int = 3

    # Normalize rewards to -1, 0 or 1 (sign of the accumulated score)
    CLIP_REWARDS: bool = True

    # =========================================================================
    # NEURAL NETWORK ARCHITECTURE
    # =========================================================================

    # Convolutional feature extractor: (out_channels, kernel_size, stride)
    CONV_LAYERS: List[List[int]] = field(default_factory=lambda: [
        [16, 8, 4],
        [32, 4, 2],
    ])

    # Fully connected layers between the conv stack and the output layer
    HIDDEN_LAYERS: List[int] = field(default_factory=lambda: [256])

    # Activation function: 'relu', 'leaky_relu', 'tanh', 'elu'
    ACTIVATION: str = 'relu'

    # =========================================================================
    # TRAINING HYPERPARAMETERS
    # =========================================================================

    # Learning rate - How big of steps to take during optimization
    LEARNING_RATE: float = 0.00025

    # Discount factor (gamma) - must be in [0, 1)
    GAMMA: float = 0.95

    # Minibatch size for every update
    BATCH_SIZE: int = 32

    # Replay memory capacity (oldest transitions evicted first)
    MEMORY_SIZE: int = 500_000

    # Updates start once the replay memory holds more than this many transitions
    MEMORY_MIN: int = 100

    # Copy live weights into the frozen target network every N updates
    CLONE_FREQUENCY: int = 10_000

    # Value placed in the target slots of actions that were not taken.
    # Those slots are masked out of the loss.
    DUMMY_TARGET: float = 0.0

    # Gradient clipping to prevent exploding gradients (0 disables)
    GRAD_CLIP: float = 10.0

    # =========================================================================
    # EXPLORATION SETTINGS (Epsilon-Greedy)
    # =========================================================================

    # Epsilon is annealed linearly over EXPLORE_STEPS update iterations
    EPSILON_START: float = 1.0
    EPSILON_END: float = 0.1
    EXPLORE_STEPS: int = 1_000_000

    # Exploration rate used while evaluating
    EVAL_EPSILON: float = 0.05

    # =========================================================================
    # TRAINING CONTROL
    # =========================================================================

    # Stop training after this many update iterations
    MAX_ITERATIONS: int = 10_000_000

    # Maximum agent steps per episode (prevents endless games)
    MAX_STEPS_PER_EPISODE: int = 50_000

    # Save checkpoint every N episodes
    SAVE_EVERY: int = 100

    # Log stats every N episodes
    LOG_EVERY: int = 1

    # Run a greedy evaluation every N episodes (0 = never)
    EVAL_EVERY: int = 50

    # Episodes per evaluation run
    EVAL_EPISODES: int = 5

    # Episode history kept for running averages
    HISTORY_LENGTH: int = 1000

    # Log an ASCII rendering of every preprocessed frame at DEBUG level
    DRAW_FRAMES: bool = False

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Force CPU even when an accelerator is available
    FORCE_CPU: bool = False

    @property
    def DEVICE(self) -> torch.device:
        """Auto-detect CUDA/MPS/CPU, or force CPU if configured."""
        if self.FORCE_CPU:
            return torch.device('cpu')
        if torch.cuda.is_available():
            return torch.device('cuda')
        elif hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
            return torch.device('mps')
        return torch.device('cpu')

    # Paths
    MODEL_DIR: str = 'models'
    LOG_DIR: str = 'logs'

    # Log level name: 'DEBUG', 'INFO', 'WARNING', 'ERROR'
    LOG_LEVEL: str = 'INFO'

    # Seed for the agent's random engine (exploration and replay sampling)
    SEED: Optional[int] = 0

    @property
    def INPUT_SHAPE(self) -> tuple:
        """Shape of one network input: (frames, height, width)."""
        return (self.INPUT_FRAME_COUNT, self.FRAME_SIZE, self.FRAME_SIZE)

    def __post_init__(self):
        """Validation and derived calculations."""
        assert self.LEARNING_RATE > 0, "Learning rate must be positive"
        assert 0 <= self.GAMMA < 1, "Gamma must be in [0, 1)"
        assert self.BATCH_SIZE > 0, "Batch size must be positive"
        assert self.MEMORY_SIZE > 0, "Memory size must be positive"
        assert self.BATCH_SIZE <= self.MEMORY_SIZE, "Batch size must not exceed memory size"
        assert self.CLONE_FREQUENCY > 0, "Clone frequency must be positive"
        assert self.FRAME_SKIP >= 0, "Frame skip must be non-negative"
        assert self.EPSILON_START >= self.EPSILON_END, "Epsilon start must be >= end"
        assert 0 <= self.EVAL_EPSILON <= 1, "Eval epsilon must be in [0, 1]"
        assert self.EXPLORE_STEPS > 0, "Explore steps must be positive"


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    cfg = Config()
    print("=" * 60)
    print("Atari DQN - Configuration Summary")
    print("=" * 60)
    print(f"\nEnvironment: {cfg.ENV_ID}")
    print(f"   Input shape: {cfg.INPUT_SHAPE}")
    print(f"   Frame skip: {cfg.FRAME_SKIP}")
    print(f"\nTraining:")
    print(f"   Learning rate: {cfg.LEARNING_RATE}")
    print(f"   Batch size: {cfg.BATCH_SIZE}")
    print(f"   Gamma: {cfg.GAMMA}")
    print(f"   Replay capacity: {cfg.MEMORY_SIZE:,}")
    print(f"   Clone frequency: {cfg.CLONE_FREQUENCY:,}")
    print(f"\nExploration:")
    print(f"   Epsilon: {cfg.EPSILON_START} -> {cfg.EPSILON_END} over {cfg.EXPLORE_STEPS:,} iterations")
    print(f"\nDevice: {cfg.DEVICE}")
    print("=" * 60)
