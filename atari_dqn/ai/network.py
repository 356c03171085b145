"""
Q-Network Architecture
======================

The convolutional network that approximates Q-values from stacked frames.

Theory:
    Q-Learning aims to learn Q(s, a) = expected discounted future reward
    We use a neural network to approximate this function

    Input:  4 stacked 84x84 grayscale frames
    Output: Q-value for each legal action

Architecture (Mnih et al., 2013):
    conv 16 x 8x8 stride 4 -> ReLU
    conv 32 x 4x4 stride 2 -> ReLU
    fully connected 256    -> ReLU
    fully connected -> one output per action
"""

import torch
import torch.nn as nn
import torch.nn.functional as F
from typing import Any, Callable, Dict, List, Optional, cast

from config import Config


class QNetwork(nn.Module):
    """
    Deep Q-Network over stacked pixel frames.

    Example:
        >>> config = Config()
        >>> net = QNetwork(action_count=6, config=config)
        >>> frames = torch.zeros(1, 4, 84, 84, dtype=torch.uint8)
        >>> q_values = net(frames)  # Shape: (1, 6)
    """

    def __init__(
        self,
        action_count: int,
        config: Optional[Config] = None,
        hidden_layers: Optional[List[int]] = None
    ):
        """
        Initialize the network.

        Args:
            action_count: Number of legal actions (output dimension)
            config: Configuration object
            hidden_layers: Override config's fully connected layer sizes
        """
        super(QNetwork, self).__init__()

        self.config = config or Config()
        self.action_count = action_count
        self.input_shape = self.config.INPUT_SHAPE
        self.hidden_sizes = hidden_layers or self.config.HIDDEN_LAYERS

        self._activation_fn = self._get_activation_fn()

        self.conv_layers = nn.ModuleList()
        self.fc_layers = nn.ModuleList()
        self._build_network()
        self._init_weights()

    def _build_network(self) -> None:
        """Construct the conv stack and the fully connected head."""
        in_channels = self.input_shape[0]
        for out_channels, kernel_size, stride in self.config.CONV_LAYERS:
            self.conv_layers.append(
                nn.Conv2d(in_channels, out_channels, kernel_size=kernel_size, stride=stride)
            )
            in_channels = out_channels

        # Flattened conv output size for the configured frame size
        with torch.no_grad():
            dummy = torch.zeros(1, *self.input_shape)
            flat_size = self._features(dummy).shape[1]

        layer_sizes = [flat_size] + list(self.hidden_sizes) + [self.action_count]
        for i in range(len(layer_sizes) - 1):
            self.fc_layers.append(nn.Linear(layer_sizes[i], layer_sizes[i + 1]))

    def _init_weights(self) -> None:
        """
        Initialize weights using Xavier/Glorot initialization.
        This helps with training stability.
        """
        for layer in list(self.conv_layers) + list(self.fc_layers):
            nn.init.xavier_uniform_(layer.weight)
            nn.init.constant_(layer.bias, 0.0)

    def _get_activation_fn(self) -> Callable[..., Any]:
        """Get the activation function based on config."""
        activation_map: Dict[str, Callable[..., Any]] = {
            'relu': F.relu,
            'leaky_relu': F.leaky_relu,
            'tanh': torch.tanh,
            'elu': F.elu,
        }
        result = activation_map.get(self.config.ACTIVATION, F.relu)
        return cast(Callable[..., Any], result)

    def _features(self, x: torch.Tensor) -> torch.Tensor:
        for conv in self.conv_layers:
            x = self._activation_fn(conv(x))
        return torch.flatten(x, start_dim=1)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Forward pass: frames -> Q-values

        Args:
            x: Stacked frames, shape (batch, 4, 84, 84). uint8 input is
               scaled to [0, 1]; float input is used as-is.

        Returns:
            Q-values, shape (batch, action_count)
        """
        if x.dtype == torch.uint8:
            x = x.float() / 255.0

        x = self._features(x)
        for layer in self.fc_layers[:-1]:
            x = self._activation_fn(layer(x))
        return self.fc_layers[-1](x)
