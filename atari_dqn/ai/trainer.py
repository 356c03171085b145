"""
Training Loop
=============

Drives the DQN against an environment:
    1. Preprocess each raw screen and slide it onto the frame stack
    2. Ask the epsilon-greedy policy for an action, repeat it for skipped frames
    3. Record the transition and run one update
    4. Clone the frozen network on a fixed cadence
    5. Track metrics, evaluate and save checkpoints

This module ties together the environment, the DQN core and the evaluator.
"""

import os
import time
from dataclasses import dataclass
from typing import Callable, Hashable, List, Optional, Tuple

import numpy as np

from config import Config
from .agent import DQN
from .evaluator import Evaluator
from .frames import Frame, FrameStack, draw_frame, preprocess_screen
from .transition import Transition
from ..utils.logger import get_logger, log_training_metrics

logger = get_logger(__name__)


def calculate_epsilon(iteration: int, config: Config) -> float:
    """
    Linearly anneal epsilon from EPSILON_START to EPSILON_END over
    EXPLORE_STEPS update iterations, then hold it.
    """
    if iteration >= config.EXPLORE_STEPS:
        return config.EPSILON_END
    progress = iteration / config.EXPLORE_STEPS
    return config.EPSILON_START - progress * (config.EPSILON_START - config.EPSILON_END)


def clip_reward(score: float) -> float:
    """Normalize a score to its sign: 1 for positive, -1 for negative, else 0."""
    return float(np.sign(score))


@dataclass
class EpisodeStats:
    """Statistics for a single episode."""
    episode: int
    score: float
    steps: int
    epsilon: float
    avg_loss: Optional[float]
    updates: int
    duration: float


class TrainingMetrics:
    """
    Tracks and stores training metrics over time.

    Metrics tracked:
        - Episode scores
        - Steps per episode
        - Average loss per episode
        - Epsilon values
        - Episode durations
    """

    def __init__(self, history_length: int = 1000):
        """
        Initialize metrics tracker.

        Args:
            history_length: Maximum history to store
        """
        self.history_length = history_length

        self.scores: List[float] = []
        self.steps: List[int] = []
        self.losses: List[float] = []
        self.epsilons: List[float] = []
        self.durations: List[float] = []
        self.best_score: Optional[float] = None

    def add(self, stats: EpisodeStats) -> None:
        """Add episode statistics."""
        self.scores.append(stats.score)
        self.steps.append(stats.steps)
        if stats.avg_loss is not None:
            self.losses.append(stats.avg_loss)
        self.epsilons.append(stats.epsilon)
        self.durations.append(stats.duration)

        if self.best_score is None or stats.score > self.best_score:
            self.best_score = stats.score

        # Trim to history length
        for attr in ['scores', 'steps', 'losses', 'epsilons', 'durations']:
            values = getattr(self, attr)
            if len(values) > self.history_length:
                setattr(self, attr, values[-self.history_length:])

    def get_recent_average(self, metric: str, n: int = 100) -> float:
        """Get average of last n values for a metric."""
        values = getattr(self, metric, [])
        if not values:
            return 0.0
        return float(np.mean(values[-n:]))


class Trainer:
    """
    Manages the training loop for the DQN.

    Responsibilities:
        1. Run training episodes
        2. Coordinate environment, frame stack and DQN
        3. Clone the frozen network every CLONE_FREQUENCY updates
        4. Track metrics, evaluate and save checkpoints

    Example:
        >>> env = GymAtariEnvironment('ALE/Pong-v5')
        >>> dqn = DQN(env.legal_actions, config)
        >>> trainer = Trainer(env, dqn, config)
        >>> trainer.train(max_iterations=1_000_000)
    """

    def __init__(
        self,
        env,
        dqn: DQN,
        config: Optional[Config] = None,
        model_name: str = 'dqn'
    ):
        """
        Initialize the trainer.

        Args:
            env: Environment instance (implements BaseEnvironment)
            dqn: DQN agent built over env.legal_actions
            config: Configuration object
            model_name: Prefix for checkpoint files
        """
        self.env = env
        self.dqn = dqn
        self.config = config or Config()
        self.model_name = model_name.replace('/', '_')

        self.metrics = TrainingMetrics(self.config.HISTORY_LENGTH)
        self.current_episode = 0
        self.total_steps = 0

        # The first legal action doubles as no-op while the frame stack fills
        self.noop_action: Hashable = env.legal_actions[0]
        self.frames = FrameStack(self.config.INPUT_FRAME_COUNT)

        if self.config.SEED is not None:
            self.env.seed(self.config.SEED)

        self.evaluator: Optional[Evaluator] = None
        if self.config.EVAL_EVERY > 0:
            self.evaluator = Evaluator(self, self.config, log_dir=self.config.LOG_DIR)

    def _preprocess(self, raw_screen: np.ndarray) -> Frame:
        frame = preprocess_screen(
            raw_screen,
            height=self.config.RAW_FRAME_HEIGHT,
            width=self.config.RAW_FRAME_WIDTH,
            frame_size=self.config.FRAME_SIZE,
        )
        if self.config.DRAW_FRAMES:
            logger.debug("\n" + draw_frame(frame))
        return frame

    def _act(self, action: Hashable) -> Tuple[np.ndarray, float, bool]:
        """Repeat an action for FRAME_SKIP + 1 emulator steps or until game over."""
        score = 0.0
        done = False
        screen = None
        for _ in range(self.config.FRAME_SKIP + 1):
            screen, reward, done, _ = self.env.step(action)
            score += reward
            if done:
                break
        return screen, score, done

    def run_episode(self, update: bool = True, epsilon: Optional[float] = None) -> EpisodeStats:
        """
        Play one episode.

        Args:
            update: Record transitions and train; False for evaluation
            epsilon: Fixed exploration rate. Defaults to the annealed schedule
                     when updating and EVAL_EPSILON otherwise.

        Returns:
            Episode statistics
        """
        start_time = time.time()

        frames = self.frames
        frames.clear()
        frame = self._preprocess(self.env.reset())
        total_score = 0.0
        steps = 0
        losses: List[float] = []
        anneal = update and epsilon is None
        if epsilon is not None:
            current_epsilon = epsilon
        elif update:
            current_epsilon = calculate_epsilon(self.dqn.current_iteration, self.config)
        else:
            current_epsilon = self.config.EVAL_EPSILON

        while steps < self.config.MAX_STEPS_PER_EPISODE:
            frames.push(frame)

            if not frames.is_full():
                # Not enough history for a network input yet
                screen, score, done = self._act(self.noop_action)
                total_score += score
                steps += 1
                if done:
                    break
                frame = self._preprocess(screen)
                continue

            input_frames = frames.input_frames()
            if anneal:
                current_epsilon = calculate_epsilon(self.dqn.current_iteration, self.config)
            action = self.dqn.select_action(input_frames, current_epsilon)

            screen, score, done = self._act(action)
            total_score += score
            steps += 1
            if update:
                self.total_steps += 1

            next_frame = None if done else self._preprocess(screen)

            if update:
                reward = clip_reward(score) if self.config.CLIP_REWARDS else score
                self.dqn.add_transition(Transition.create(input_frames, action, reward, next_frame))
                if self.dqn.memory_size > self.config.MEMORY_MIN:
                    loss = self.dqn.update()
                    if loss is not None:
                        losses.append(loss)
                        if self.dqn.current_iteration % self.config.CLONE_FREQUENCY == 0:
                            self.dqn.clone_frozen_net()

            if next_frame is None:
                break
            frame = next_frame

        return EpisodeStats(
            episode=self.current_episode,
            score=total_score,
            steps=steps,
            epsilon=current_epsilon,
            avg_loss=float(np.mean(losses)) if losses else None,
            updates=len(losses),
            duration=time.time() - start_time,
        )

    def _checkpoint_path(self, suffix: str) -> str:
        return os.path.join(self.config.MODEL_DIR, f'{self.model_name}_{suffix}.pth')

    def train(
        self,
        max_iterations: Optional[int] = None,
        max_episodes: Optional[int] = None,
        progress_callback: Optional[Callable[[EpisodeStats], None]] = None
    ) -> TrainingMetrics:
        """
        Run the training loop.

        Args:
            max_iterations: Stop once this many updates are done (default from config)
            max_episodes: Optional cap on the number of episodes
            progress_callback: Called with each episode's statistics

        Returns:
            Training metrics
        """
        if max_iterations is None:
            max_iterations = self.config.MAX_ITERATIONS

        logger.info(
            f"Starting DQN training | iterations={max_iterations:,} | "
            f"actions={len(self.dqn.legal_actions)} | device={self.config.DEVICE} | "
            f"gamma={self.dqn.gamma} | capacity={self.dqn.replay_memory.capacity:,}"
        )

        while self.dqn.current_iteration < max_iterations:
            if max_episodes is not None and self.current_episode >= max_episodes:
                break

            stats = self.run_episode(update=True)
            previous_best = self.metrics.best_score
            self.metrics.add(stats)

            if self.current_episode % self.config.LOG_EVERY == 0:
                log_training_metrics(
                    episode=self.current_episode,
                    score=stats.score,
                    epsilon=stats.epsilon,
                    iteration=self.dqn.current_iteration,
                    memory_size=self.dqn.memory_size,
                    loss=stats.avg_loss,
                    steps=stats.steps,
                )

            if stats.updates > 0 and (previous_best is None or stats.score > previous_best):
                self.dqn.save(self._checkpoint_path('best'))

            episode = self.current_episode
            if self.config.SAVE_EVERY > 0 and episode > 0 and episode % self.config.SAVE_EVERY == 0:
                self.dqn.save(self._checkpoint_path(f'ep{episode}'))

            if self.evaluator is not None and episode > 0 and episode % self.config.EVAL_EVERY == 0:
                results = self.evaluator.evaluate(self.config.EVAL_EPISODES, iteration=self.dqn.current_iteration)
                self.evaluator.log_results(results)

            if progress_callback:
                progress_callback(stats)

            self.current_episode += 1

        self.dqn.save(self._checkpoint_path('final'))

        logger.info(
            f"Training complete | episodes={self.current_episode} | "
            f"iterations={self.dqn.current_iteration:,} | steps={self.total_steps:,} | "
            f"best score={self.metrics.best_score}"
        )
        return self.metrics
