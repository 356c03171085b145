"""
DQN Agent
=========

The core of Deep Q-Learning from pixels.

Key Components:
    1. Replay Memory   - Bounded FIFO store of transitions
    2. Value Function  - Live network plus frozen target network
    3. Epsilon-Greedy  - Balances exploration vs exploitation

Update step:
    1. Sample a minibatch of transitions uniformly from replay memory
    2. Rebuild successor states (drop oldest frame, append next frame)
    3. Evaluate successors on the FROZEN network
    4. Target: y = r                                (terminal)
               y = r + gamma * max_a' Q_frozen(s', a')  (otherwise)
    5. Regress Q_live(s, a) toward y for the taken action only

The frozen network is only refreshed by clone_frozen_net(), which the driver
loop calls on its own cadence.

References:
    Mnih et al., 2013 - "Playing Atari with Deep Reinforcement Learning"
"""

from typing import Any, Dict, Hashable, List, Optional, Sequence

import numpy as np

from config import Config
from .frames import InputFrames, stack_input_frames
from .replay_memory import ConfigurationError, ReplayMemory
from .transition import ActionValue, Transition
from .value_function import ValueFunction
from ..utils.logger import get_logger, log_model_event

logger = get_logger(__name__)


class DQN:
    """
    Deep Q-Network agent: replay memory, epsilon-greedy policy and the
    minibatch Bellman update.

    Attributes:
        legal_actions: Fixed, ordered tuple of legal actions
        replay_memory: Transition store
        value_function: Live/frozen evaluator (anything with evaluate,
                        train_step and clone_into_frozen)
        rng: Random engine shared by exploration and replay sampling

    Example:
        >>> dqn = DQN(legal_actions=(0, 1, 2, 3), config=Config())
        >>> action = dqn.select_action(input_frames, epsilon=0.1)
        >>> dqn.add_transition(Transition.create(input_frames, action, 1.0, next_frame))
        >>> loss = dqn.update()
    """

    def __init__(
        self,
        legal_actions: Sequence[Hashable],
        config: Optional[Config] = None,
        replay_memory_capacity: Optional[int] = None,
        gamma: Optional[float] = None,
        value_function: Optional[Any] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize the agent.

        Args:
            legal_actions: Non-empty sequence of distinct actions; the order
                           fixes each action's network output slot
            config: Configuration object
            replay_memory_capacity: Overrides config.MEMORY_SIZE
            gamma: Discount factor in [0, 1), overrides config.GAMMA
            value_function: Evaluator to drive (a ValueFunction is built if None)
            seed: Seed for the random engine (config.SEED if None)

        Raises:
            ConfigurationError: On empty/duplicate actions, bad capacity or gamma
        """
        self.config = config or Config()

        self.legal_actions = tuple(legal_actions)
        if not self.legal_actions:
            raise ConfigurationError("Legal action set must not be empty")
        self._action_index: Dict[Hashable, int] = {}
        for index, action in enumerate(self.legal_actions):
            if action in self._action_index:
                raise ConfigurationError(f"Duplicate legal action: {action!r}")
            self._action_index[action] = index

        self.gamma = float(self.config.GAMMA if gamma is None else gamma)
        if not 0.0 <= self.gamma < 1.0:
            raise ConfigurationError(f"Gamma must be in [0, 1), got {self.gamma}")

        capacity = self.config.MEMORY_SIZE if replay_memory_capacity is None else replay_memory_capacity
        self.batch_size = self.config.BATCH_SIZE

        seed = self.config.SEED if seed is None else seed
        self.rng = np.random.default_rng(seed)

        self.replay_memory = ReplayMemory(capacity, rng=self.rng)
        if value_function is None:
            value_function = ValueFunction(len(self.legal_actions), self.config)
        self.value_function = value_function

        logger.debug(
            f"DQN ready: {len(self.legal_actions)} actions, capacity={capacity}, "
            f"gamma={self.gamma}, batch={self.batch_size}"
        )

    # ------------------------------------------------------------------
    # Queryable state
    # ------------------------------------------------------------------

    @property
    def memory_size(self) -> int:
        """Current replay memory occupancy."""
        return len(self.replay_memory)

    @property
    def current_iteration(self) -> int:
        """Number of update iterations performed by the value function."""
        return self.value_function.iteration

    def action_index(self, action: Hashable) -> int:
        """Output slot of a legal action."""
        try:
            return self._action_index[action]
        except KeyError:
            raise ValueError(f"Action {action!r} is not a legal action") from None

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    def select_action(self, input_frames: InputFrames, epsilon: float) -> Hashable:
        """
        Select an action using the epsilon-greedy policy.

        Args:
            input_frames: The 4 most recent frames
            epsilon: Probability of taking a uniformly random action

        Returns:
            Selected legal action
        """
        if not 0.0 <= epsilon <= 1.0:
            raise ValueError(f"Epsilon must be in [0, 1], got {epsilon}")

        if self.rng.random() < epsilon:
            return self.legal_actions[int(self.rng.integers(len(self.legal_actions)))]

        return self.select_action_greedily(input_frames).action

    def select_action_greedily(self, input_frames: InputFrames) -> ActionValue:
        """Best action and its estimated value on the live network."""
        return self.select_actions_greedily([input_frames])[0]

    def select_actions_greedily(
        self,
        batch: Sequence[InputFrames],
        frozen: bool = False
    ) -> List[ActionValue]:
        """
        Best action and value for every state, using one evaluator call.

        Ties are broken toward the lowest action index.

        Args:
            batch: States to evaluate
            frozen: Evaluate on the frozen network instead of the live one

        Returns:
            One ActionValue per state, in input order
        """
        if not batch:
            return []

        q_values = np.asarray(self.value_function.evaluate(stack_input_frames(batch), frozen=frozen))
        best = np.argmax(q_values, axis=1)  # First maximum wins
        return [
            ActionValue(self.legal_actions[int(index)], float(q_values[row, index]))
            for row, index in enumerate(best)
        ]

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def add_transition(self, transition: Transition) -> None:
        """
        Record a transition in replay memory.

        Transitions built directly from the tuple constructor are checked the
        same way as Transition.create, so a malformed one never reaches memory.

        Raises:
            ValueError: If the state has the wrong frame count or the action
                is not legal
        """
        transition = Transition.create(*transition)
        self.action_index(transition.action)
        self.replay_memory.append(transition)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def compute_targets(self, transitions: Sequence[Transition]) -> np.ndarray:
        """
        Bellman targets for a minibatch.

        Terminal transitions use the raw reward and never touch the frozen
        network. All non-terminal successors are evaluated in one batch.

        Returns:
            (len(transitions),) float32 array of targets

        Raises:
            RuntimeError: If any target is NaN or infinite
        """
        successors = [t.next_input_frames() for t in transitions if not t.is_terminal]
        next_values = iter(self.select_actions_greedily(successors, frozen=True))

        targets = np.empty(len(transitions), dtype=np.float32)
        for i, transition in enumerate(transitions):
            if transition.is_terminal:
                targets[i] = transition.reward
            else:
                targets[i] = transition.reward + self.gamma * next(next_values).value
        if not np.all(np.isfinite(targets)):
            raise RuntimeError(f"Non-finite Bellman target in minibatch: {targets}")
        return targets

    def build_training_batch(self, transitions: Sequence[Transition]):
        """
        Assemble the arrays for one train_step call.

        Returns:
            Tuple of (states, targets, masks): states is (N, 4, 84, 84) uint8;
            targets and masks are (N, action_count) with the computed target
            and a 1 in the taken action's slot, DUMMY_TARGET and 0 elsewhere.
        """
        action_count = len(self.legal_actions)
        targets = np.full((len(transitions), action_count), self.config.DUMMY_TARGET, dtype=np.float32)
        masks = np.zeros((len(transitions), action_count), dtype=np.float32)

        rows = np.arange(len(transitions))
        columns = np.array([self.action_index(t.action) for t in transitions], dtype=np.int64)
        targets[rows, columns] = self.compute_targets(transitions)
        masks[rows, columns] = 1.0

        states = stack_input_frames([t.state for t in transitions])
        return states, targets, masks

    def update(self) -> Optional[float]:
        """
        Perform one minibatch update of the live network.

        Returns:
            Loss value, or None if replay memory holds less than one minibatch
        """
        if not self.replay_memory.is_ready(self.batch_size):
            logger.debug(
                f"Skipping update: {self.memory_size} transitions, need {self.batch_size}"
            )
            return None

        transitions = self.replay_memory.sample(self.batch_size)
        states, targets, masks = self.build_training_batch(transitions)
        return self.value_function.train_step(states, targets, masks)

    def clone_frozen_net(self) -> None:
        """Copy the live network into the frozen target network."""
        self.value_function.clone_into_frozen()
        logger.debug(f"Cloned live network into frozen network at iteration {self.current_iteration}")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, filepath: str) -> None:
        """Save a training checkpoint."""
        self.value_function.save(filepath)
        log_model_event('save', filepath, iteration=self.current_iteration)

    def load_trained_model(self, filepath: str) -> None:
        """Load trained weights into both networks."""
        self.value_function.load_weights(filepath)
        log_model_event('load', filepath)

    def restore_training_state(self, filepath: str) -> None:
        """Resume from a training checkpoint (weights, optimizer, iteration)."""
        self.value_function.restore_training_state(filepath)
        log_model_event('restore', filepath, iteration=self.current_iteration)
