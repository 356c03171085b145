"""
AI Module
=========

Deep Q-Learning from pixels.

Classes:
    DQN           - Epsilon-greedy policy and minibatch Bellman update
    ReplayMemory  - Bounded FIFO experience replay
    ValueFunction - Live network plus frozen target network
    QNetwork      - Convolutional Q-network
    Trainer       - Training loop orchestration
    Evaluator     - Evaluation runs with a fixed small epsilon
"""

from .agent import DQN
from .evaluator import Evaluator, EvalResults
from .frames import FrameStack, draw_frame, preprocess_screen
from .network import QNetwork
from .replay_memory import ConfigurationError, InsufficientDataError, ReplayMemory
from .trainer import Trainer, TrainingMetrics, EpisodeStats, calculate_epsilon
from .transition import ActionValue, Transition
from .value_function import ValueFunction

__all__ = [
    'DQN', 'Evaluator', 'EvalResults', 'FrameStack', 'draw_frame', 'preprocess_screen',
    'QNetwork', 'ConfigurationError', 'InsufficientDataError', 'ReplayMemory',
    'Trainer', 'TrainingMetrics', 'EpisodeStats', 'calculate_epsilon',
    'ActionValue', 'Transition', 'ValueFunction',
]
