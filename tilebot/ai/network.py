"""
Value Network
=============

The neural network that approximates Q-values for the brain.

Theory:
    Q-Learning aims to learn Q(s, a) = expected future reward
    We use a small fully connected network to approximate this function

    Input:  Current tile values plus a short window of past boards and actions
    Output: Q-value for each of the four moves

The network learns by minimizing TD (Temporal Difference) error:
    Loss = (Q(s,a) - (r + γ * max_a' Q(s', a')))²
"""

import torch
import torch.nn as nn
import torch.nn.functional as F
from typing import Any, Callable, Dict, List, Optional, cast

from config import BrainConfig


class QNetwork(nn.Module):
    """
    Fully connected Q-network.

    Architecture:
        Input Layer → Hidden Layers (activation) → Linear regression output

    Example:
        >>> net = QNetwork(input_size=52, action_size=4, config=BrainConfig())
        >>> q_values = net(torch.randn(1, 52))  # Shape: (1, 4)
    """

    def __init__(
        self,
        input_size: int,
        action_size: int,
        config: Optional[BrainConfig] = None,
        hidden_layers: Optional[List[int]] = None
    ):
        """
        Initialize the network.

        Args:
            input_size: Dimension of the network input
            action_size: Number of possible actions (output dimension)
            config: Brain hyperparameters
            hidden_layers: Override config's hidden layer sizes
        """
        super().__init__()

        self.config = config or BrainConfig()
        self.input_size = input_size
        self.action_size = action_size
        self.hidden_sizes = hidden_layers or self.config.HIDDEN_LAYERS

        # Cache activation function (avoids dict lookup every forward pass)
        self._activation_fn = self._get_activation_fn()

        self.layers = nn.ModuleList()
        layer_sizes = [self.input_size] + list(self.hidden_sizes) + [self.action_size]
        for i in range(len(layer_sizes) - 1):
            self.layers.append(nn.Linear(layer_sizes[i], layer_sizes[i + 1]))

        self._init_weights()

    def _init_weights(self) -> None:
        """Xavier/Glorot initialization for training stability."""
        for layer in self.layers:
            if isinstance(layer, nn.Linear):
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

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Args:
            x: Input tensor of shape (batch_size, input_size)

        Returns:
            Q-values tensor of shape (batch_size, action_size)
        """
        for layer in self.layers[:-1]:
            x = self._activation_fn(layer(x))
        # Output layer (no activation - raw Q-values)
        return self.layers[-1](x)
