"""
Policy Evaluator
================

Runs evaluation episodes with a small fixed epsilon (EVAL_EPSILON) and no
updates, to measure how well the current network actually plays,
separate from noisy training metrics.

Usage:
    evaluator = Evaluator(trainer, config)
    results = evaluator.evaluate(num_episodes=10, iteration=dqn.current_iteration)
    evaluator.log_results(results)
"""

import json
import os
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class EvalResults:
    """Results from one evaluation run."""
    timestamp: str
    iteration: int
    num_games: int
    epsilon: float

    # Score metrics
    mean_score: float
    median_score: float
    std_score: float
    min_score: float
    max_score: float
    q25_score: float
    q75_score: float

    # Survival metrics
    mean_steps: float
    max_steps: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Evaluator:
    """
    Evaluates the agent through the trainer's episode runner.

    Key features:
    - Plays with EVAL_EPSILON and never records transitions or updates
    - Tracks score and survival time
    - Logs results as JSON lines for historical comparison
    - Detects plateau (no improvement over N evaluations)
    """

    def __init__(
        self,
        trainer,
        config,
        log_dir: str = "eval_logs",
        plateau_threshold: int = 5
    ):
        """
        Initialize the evaluator.

        Args:
            trainer: Trainer whose run_episode() plays the games
            config: Config object
            log_dir: Directory for the evaluation log
            plateau_threshold: Evaluations without improvement before plateau is reported
        """
        self.trainer = trainer
        self.config = config
        self.log_dir = log_dir
        self.plateau_threshold = plateau_threshold

        self.eval_history: List[EvalResults] = []
        self.best_eval_score: Optional[float] = None
        self.evals_since_improvement: int = 0

    def evaluate(
        self,
        num_episodes: int = 5,
        iteration: int = 0,
        epsilon: Optional[float] = None
    ) -> EvalResults:
        """
        Run evaluation episodes.

        Args:
            num_episodes: Number of games to play
            iteration: Current update iteration (for logging)
            epsilon: Exploration rate (EVAL_EPSILON if None)

        Returns:
            EvalResults with all metrics
        """
        if num_episodes <= 0:
            raise ValueError("num_episodes must be positive")

        epsilon = self.config.EVAL_EPSILON if epsilon is None else epsilon

        scores = []
        steps_list = []
        for _ in range(num_episodes):
            stats = self.trainer.run_episode(update=False, epsilon=epsilon)
            scores.append(stats.score)
            steps_list.append(stats.steps)

        scores_arr = np.array(scores, dtype=np.float64)
        steps_arr = np.array(steps_list)

        results = EvalResults(
            timestamp=datetime.now().isoformat(),
            iteration=iteration,
            num_games=num_episodes,
            epsilon=epsilon,
            mean_score=float(np.mean(scores_arr)),
            median_score=float(np.median(scores_arr)),
            std_score=float(np.std(scores_arr)),
            min_score=float(np.min(scores_arr)),
            max_score=float(np.max(scores_arr)),
            q25_score=float(np.percentile(scores_arr, 25)),
            q75_score=float(np.percentile(scores_arr, 75)),
            mean_steps=float(np.mean(steps_arr)),
            max_steps=int(np.max(steps_arr))
        )

        self._update_history(results)
        return results

    def _update_history(self, results: EvalResults) -> None:
        """Update evaluation history and plateau counter."""
        self.eval_history.append(results)

        if self.best_eval_score is None or results.mean_score > self.best_eval_score:
            self.best_eval_score = results.mean_score
            self.evals_since_improvement = 0
        else:
            self.evals_since_improvement += 1

    def is_plateau(self) -> bool:
        """Check if the model has plateaued (no improvement in N evals)."""
        return self.evals_since_improvement >= self.plateau_threshold

    def log_results(self, results: EvalResults) -> None:
        """
        Append results to the JSON-lines log and report them.

        Args:
            results: EvalResults to log
        """
        os.makedirs(self.log_dir, exist_ok=True)
        log_file = os.path.join(self.log_dir, "eval_log.jsonl")
        with open(log_file, 'a') as f:
            f.write(json.dumps(results.to_dict()) + '\n')

        plateau = " | PLATEAU" if self.is_plateau() else ""
        logger.info(
            f"EVAL @ iter {results.iteration} | "
            f"score {results.mean_score:.1f} +/- {results.std_score:.1f} "
            f"(median {results.median_score:.1f}, range {results.min_score:.0f}..{results.max_score:.0f}) | "
            f"steps {results.mean_steps:.0f} | best {self.best_eval_score:.1f}{plateau}"
        )
