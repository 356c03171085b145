"""
Tests for the Q-Network.

These tests verify:
    - Output shape matches the number of actions
    - Layer construction follows the config
    - uint8 frames are scaled to [0, 1]
"""

import pytest
import torch
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from atari_dqn.ai.network import QNetwork


@pytest.fixture
def config():
    return Config(FORCE_CPU=True)


@pytest.fixture
def network(config):
    torch.manual_seed(0)
    return QNetwork(action_count=6, config=config)


class TestQNetwork:
    """Test network construction and forward pass."""

    def test_output_shape(self, network):
        frames = torch.zeros(2, 4, 84, 84, dtype=torch.uint8)
        assert network(frames).shape == (2, 6)

    def test_layer_counts_follow_config(self, network, config):
        assert len(network.conv_layers) == len(config.CONV_LAYERS)
        # Hidden layers plus the output layer
        assert len(network.fc_layers) == len(config.HIDDEN_LAYERS) + 1
        assert network.fc_layers[-1].out_features == 6

    def test_default_architecture(self, network):
        """16 8x8/4 and 32 4x4/2 convolutions leave a 32x9x9 feature map."""
        assert network.conv_layers[0].out_channels == 16
        assert network.conv_layers[1].out_channels == 32
        assert network.fc_layers[0].in_features == 32 * 9 * 9
        assert network.fc_layers[0].out_features == 256

    def test_hidden_layers_override(self, config):
        network = QNetwork(action_count=4, config=config, hidden_layers=[64, 32])
        assert [layer.out_features for layer in network.fc_layers] == [64, 32, 4]

    def test_uint8_input_is_scaled(self, network):
        frames = torch.randint(0, 256, (3, 4, 84, 84), dtype=torch.uint8)
        with torch.no_grad():
            from_uint8 = network(frames)
            from_float = network(frames.float() / 255.0)
        assert torch.allclose(from_uint8, from_float)

    def test_biases_start_at_zero(self, network):
        for layer in list(network.conv_layers) + list(network.fc_layers):
            assert torch.all(layer.bias == 0)

    @pytest.mark.parametrize("activation", ['relu', 'leaky_relu', 'tanh', 'elu'])
    def test_activations(self, activation):
        network = QNetwork(action_count=2, config=Config(ACTIVATION=activation))
        assert network(torch.zeros(1, 4, 84, 84)).shape == (1, 2)

    def test_gradients_flow(self, network):
        frames = torch.randint(0, 256, (2, 4, 84, 84), dtype=torch.uint8)
        network(frames).sum().backward()
        assert all(p.grad is not None for p in network.parameters())
