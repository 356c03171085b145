"""
Value Function
==============

Wraps the Q-network engine behind the four operations the DQN core needs:

    evaluate(states, frozen)          per-action values for a batch of states
    train_step(states, targets, masks) one gradient step on the live network
    clone_into_frozen()               copy live weights into the frozen network
    load_weights / restore_training_state / save   checkpoint entry points

Two networks of the same type are held:
    - live:   trained by every train_step
    - frozen: target network, replaced wholesale by clone_into_frozen() only

Parameter lifecycle:
    construction          live = frozen = theta_0
    train_step()*         live = theta_t, frozen = theta_0
    clone_into_frozen()   live = frozen = theta_t
"""

from typing import Any, Dict, Optional
import copy
import os
import threading

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from config import Config
from .network import QNetwork
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ValueFunction:
    """
    Live/frozen pair of Q-networks plus the optimizer for the live one.

    Example:
        >>> vf = ValueFunction(action_count=6)
        >>> q = vf.evaluate(states)                 # live network
        >>> q_target = vf.evaluate(states, frozen=True)
        >>> loss = vf.train_step(states, targets, masks)
        >>> vf.clone_into_frozen()
    """

    def __init__(self, action_count: int, config: Optional[Config] = None):
        """
        Build both networks and the optimizer.

        Args:
            action_count: Number of outputs (one per legal action)
            config: Configuration object
        """
        self.config = config or Config()
        self.action_count = action_count
        self.device = self.config.DEVICE

        self.live_net = QNetwork(action_count, self.config).to(self.device)
        self.frozen_net = QNetwork(action_count, self.config).to(self.device)
        self.frozen_net.requires_grad_(False)
        self.frozen_net.eval()  # Frozen network is never trained directly

        self.optimizer = optim.Adam(self.live_net.parameters(), lr=self.config.LEARNING_RATE)
        self._loss_fn = nn.SmoothL1Loss(reduction='sum')

        # Number of optimizer steps taken
        self.iteration = 0

        # Guards the frozen weights against a swap during evaluation
        self._frozen_lock = threading.Lock()

        self.clone_into_frozen()

    def _to_tensor(self, array: np.ndarray, dtype: Optional[torch.dtype] = None) -> torch.Tensor:
        return torch.as_tensor(np.ascontiguousarray(array), dtype=dtype, device=self.device)

    def evaluate(self, states: np.ndarray, frozen: bool = False) -> np.ndarray:
        """
        Compute per-action values for a batch of states.

        Args:
            states: (batch, 4, 84, 84) uint8 frames
            frozen: Use the frozen (target) network instead of the live one

        Returns:
            (batch, action_count) float32 array
        """
        states_tensor = self._to_tensor(states)
        with torch.inference_mode():
            if frozen:
                with self._frozen_lock:
                    q_values = self.frozen_net(states_tensor)
            else:
                q_values = self.live_net(states_tensor)
        return q_values.float().cpu().numpy()

    def train_step(self, states: np.ndarray, targets: np.ndarray, masks: np.ndarray) -> float:
        """
        Perform one gradient update on the live network.

        Only slots whose mask is set contribute to the loss; whatever sits in
        the other target slots never reaches the gradient.

        Args:
            states: (batch, 4, 84, 84) uint8 frames
            targets: (batch, action_count) regression targets
            masks: (batch, action_count) 1 for the taken action, 0 elsewhere

        Returns:
            Loss value
        """
        states_tensor = self._to_tensor(states)
        targets_tensor = self._to_tensor(targets, dtype=torch.float32)
        masks_tensor = self._to_tensor(masks, dtype=torch.float32) > 0

        self.live_net.train()
        q_values = self.live_net(states_tensor)

        selected_q = torch.where(masks_tensor, q_values, torch.zeros_like(q_values))
        selected_targets = torch.where(masks_tensor, targets_tensor, torch.zeros_like(q_values))
        loss = self._loss_fn(selected_q, selected_targets) / states_tensor.shape[0]

        self.optimizer.zero_grad()
        loss.backward()

        # Gradient clipping for stability
        if self.config.GRAD_CLIP > 0:
            torch.nn.utils.clip_grad_norm_(self.live_net.parameters(), self.config.GRAD_CLIP)

        self.optimizer.step()
        self.iteration += 1

        return loss.item()

    def clone_into_frozen(self) -> None:
        """Hard update: copy live network weights into the frozen network."""
        live_state = copy.deepcopy(self.live_net.state_dict())
        with self._frozen_lock:
            self.frozen_net.load_state_dict(live_state)

    def save(self, filepath: str) -> None:
        """
        Save live weights, optimizer state and iteration counter.

        Args:
            filepath: Destination checkpoint path
        """
        dir_path = os.path.dirname(filepath)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)

        checkpoint: Dict[str, Any] = {
            'net_state_dict': self.live_net.state_dict(),
            'optimizer_state_dict': self.optimizer.state_dict(),
            'iteration': self.iteration,
            'action_count': self.action_count,
        }
        torch.save(checkpoint, filepath)

    def _load_checkpoint(self, filepath: str) -> Dict[str, Any]:
        return torch.load(filepath, map_location=self.device, weights_only=False)

    def load_weights(self, filepath: str) -> None:
        """
        Load trained network weights (checkpoint or bare state dict).

        Errors from torch (missing file, malformed data, shape mismatch)
        propagate unchanged.
        """
        checkpoint = self._load_checkpoint(filepath)
        state_dict = checkpoint.get('net_state_dict', checkpoint)
        self.live_net.load_state_dict(state_dict)
        self.clone_into_frozen()

    def restore_training_state(self, filepath: str) -> None:
        """
        Restore live weights, optimizer state and iteration counter.

        Raises:
            KeyError: If the file is not a full training checkpoint
        """
        checkpoint = self._load_checkpoint(filepath)
        self.live_net.load_state_dict(checkpoint['net_state_dict'])
        self.optimizer.load_state_dict(checkpoint['optimizer_state_dict'])
        self.iteration = int(checkpoint['iteration'])
        self.clone_into_frozen()
        logger.debug(f"Restored training state at iteration {self.iteration}")
