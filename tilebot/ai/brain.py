"""
Deep-Q Brain
============

The default decision model driven by the agent loop.

Contract:
    action = brain.forward(observation)   # int in [0, num_actions)
    brain.backward(reward)                # reward for that action

The brain never sees the game. It only sees observations and rewards, and
it remembers what it chose between forward() and backward().

Algorithm:
    1. forward() builds the network input from the current observation plus
       TEMPORAL_WINDOW previous observations and (one-hot) actions
    2. Action is epsilon-greedy; epsilon anneals linearly from 1.0 to
       EPSILON_MIN between LEARNING_STEPS_BURNIN and LEARNING_STEPS_TOTAL
    3. backward() stores (s, a, r, s') every EXPERIENCE_ADD_EVERY steps
    4. Once the buffer holds START_LEARN_THRESHOLD experiences, each
       backward() trains on one sampled batch:
           target = r + γ * max_a' Q(s', a')
           loss   = Huber(Q(s, a), target), clamped at TDERROR_CLAMP

References:
    Karpathy, ConvNetJS deepqlearn demo
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
"""

import os
import random
import threading
from collections import deque
from typing import Deque, Optional, Tuple

import numpy as np
import torch
import torch.nn.functional as F
import torch.optim as optim

from config import BrainConfig

from .network import QNetwork
from .replay_buffer import ReplayBuffer
from ..utils.logger import get_logger


logger = get_logger(__name__)


class Brain:
    """
    Epsilon-greedy deep Q-learner with a temporal input window.

    Attributes:
        age: Number of backward() calls while learning
        forward_passes: Number of forward() calls that were paired with a backward()
        epsilon: Exploration rate used by the most recent forward()
        learning: If False, no experiences are stored and no training happens
        memory: Experience replay buffer

    Example:
        >>> brain = Brain(num_states=16, num_actions=4)
        >>> action = brain.forward(observation)
        >>> brain.backward(1.0)
    """

    def __init__(
        self,
        num_states: int,
        num_actions: int,
        config: Optional[BrainConfig] = None,
        device: Optional[torch.device] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize the brain.

        Args:
            num_states: Length of an observation
            num_actions: Number of possible actions
            config: Brain hyperparameters
            device: Torch device for the network (CPU if None)
            seed: Optional seed for exploration and replay sampling
        """
        self.config = config or BrainConfig()
        self.num_states = num_states
        self.num_actions = num_actions
        self.device = device or torch.device('cpu')
        self._rng = random.Random(seed)
        if seed is not None:
            torch.manual_seed(seed)

        self.temporal_window = self.config.TEMPORAL_WINDOW
        # Need at least 2 entries to form an (s, a, r, s') experience
        self.window_size = max(self.temporal_window, 2)
        self.net_inputs = (
            num_states * self.temporal_window
            + num_actions * self.temporal_window
            + num_states
        )

        self.state_window: Deque[np.ndarray] = deque(
            [np.zeros(num_states, dtype=np.float32)] * self.window_size, maxlen=self.window_size)
        self.action_window: Deque[int] = deque([0] * self.window_size, maxlen=self.window_size)
        self.reward_window: Deque[float] = deque([0.0] * self.window_size, maxlen=self.window_size)
        self.net_window: Deque[np.ndarray] = deque(
            [np.zeros(self.net_inputs, dtype=np.float32)] * self.window_size, maxlen=self.window_size)

        self.value_net = QNetwork(self.net_inputs, num_actions, self.config).to(self.device)
        self.optimizer = optim.SGD(
            self.value_net.parameters(),
            lr=self.config.LEARNING_RATE,
            momentum=self.config.MOMENTUM,
            weight_decay=self.config.L2_DECAY
        )

        self.memory = ReplayBuffer(self.config.EXPERIENCE_SIZE, self.net_inputs, seed=seed)

        self.age = 0
        self.forward_passes = 0
        self.epsilon = 1.0
        self.learning = True
        self._pending: Optional[Tuple[np.ndarray, np.ndarray, int]] = None

        # Training metrics (bounded to prevent memory growth during long training)
        self.losses: Deque[float] = deque(maxlen=10000)
        self._losses_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------------

    def forward(self, observation) -> int:
        """
        Choose an action for the observation.

        Until the temporal window has filled, actions are random.
        """
        observation = np.asarray(observation, dtype=np.float32)
        if observation.shape != (self.num_states,):
            raise ValueError(
                f"Observation has shape {observation.shape}, expected ({self.num_states},)"
            )

        if self.forward_passes >= self.temporal_window:
            net_input = self._net_input(observation)
            if self.learning:
                span = self.config.LEARNING_STEPS_TOTAL - self.config.LEARNING_STEPS_BURNIN
                self.epsilon = min(1.0, max(
                    self.config.EPSILON_MIN,
                    1.0 - (self.age - self.config.LEARNING_STEPS_BURNIN) / span
                ))
            else:
                self.epsilon = self.config.EPSILON_TEST_TIME

            if self._rng.random() < self.epsilon:
                action = self._random_action()
            else:
                action = self._policy(net_input)
        else:
            net_input = np.zeros(self.net_inputs, dtype=np.float32)
            action = self._random_action()

        # Windows only change in backward(); a choice that never gets a
        # reward is replaced by the next forward()
        self._pending = (net_input, observation, action)
        return action

    def backward(self, reward: float) -> Optional[float]:
        """
        Receive the reward for the last forward() and learn from experience.

        Returns:
            Loss of the training batch, or None if no training happened

        Raises:
            RuntimeError: If no forward() is waiting for a reward
        """
        if self._pending is None:
            raise RuntimeError("backward() called without a preceding forward()")
        net_input, observation, action = self._pending
        self._pending = None

        self.forward_passes += 1
        self.net_window.append(net_input)
        self.state_window.append(observation)
        self.action_window.append(action)
        self.reward_window.append(reward)

        if not self.learning:
            return None

        self.age += 1

        # Need two complete network inputs before an experience exists
        if self.forward_passes > self.temporal_window + 1 and \
                self.age % self.config.EXPERIENCE_ADD_EVERY == 0:
            self.memory.push(
                self.net_window[-2],
                self.action_window[-2],
                self.reward_window[-2],
                self.net_window[-1],
            )

        if len(self.memory) > self.config.START_LEARN_THRESHOLD:
            return self._learn_batch()
        return None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _random_action(self) -> int:
        return self._rng.randrange(self.num_actions)

    def _net_input(self, observation: np.ndarray) -> np.ndarray:
        """Observation followed by the windowed past observations and actions."""
        parts = [observation]
        for k in range(self.temporal_window):
            n = self.window_size - 1 - k
            parts.append(self.state_window[n])
            one_hot = np.zeros(self.num_actions, dtype=np.float32)
            # Scaled by num_states so actions weigh like a full board
            one_hot[self.action_window[n]] = float(self.num_states)
            parts.append(one_hot)
        return np.concatenate(parts).astype(np.float32)

    def _policy(self, net_input: np.ndarray) -> int:
        with torch.inference_mode():
            state = torch.from_numpy(net_input).unsqueeze(0).to(self.device)
            q_values = self.value_net(state)
            return int(q_values.argmax(dim=1).item())

    def _learn_batch(self) -> float:
        states, actions, rewards, next_states = self.memory.sample(self.config.BATCH_SIZE)

        states_t = torch.from_numpy(states).to(self.device)
        actions_t = torch.from_numpy(actions).to(self.device)
        rewards_t = torch.from_numpy(rewards).to(self.device)
        next_states_t = torch.from_numpy(next_states).to(self.device)

        with torch.no_grad():
            next_q = self.value_net(next_states_t).max(dim=1).values
            targets = rewards_t + self.config.GAMMA * next_q

        q_values = self.value_net(states_t).gather(1, actions_t.unsqueeze(1)).squeeze(1)
        loss = F.smooth_l1_loss(q_values, targets, beta=self.config.TDERROR_CLAMP)

        self.optimizer.zero_grad()
        loss.backward()
        self.optimizer.step()

        loss_value = loss.item()
        with self._losses_lock:
            self.losses.append(loss_value)
        return loss_value

    # -------------------------------------------------------------------------
    # Inspection and persistence
    # -------------------------------------------------------------------------

    def get_average_loss(self, n: int = 100) -> Optional[float]:
        """Average of the last n training losses, or None before any training."""
        with self._losses_lock:
            recent = list(self.losses)[-n:]
        if not recent:
            return None
        return float(np.mean(recent))

    def save(self, filepath: str) -> None:
        """Save network weights and learning progress."""
        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
        torch.save({
            'value_net': self.value_net.state_dict(),
            'optimizer': self.optimizer.state_dict(),
            'age': self.age,
            'forward_passes': self.forward_passes,
            'num_states': self.num_states,
            'num_actions': self.num_actions,
        }, filepath)
        logger.info(f"SAVE | {filepath} | age={self.age}")

    def load(self, filepath: str) -> None:
        """
        Load weights saved by save().

        Raises:
            ValueError: If the checkpoint was made for a different board or action set
        """
        checkpoint = torch.load(filepath, map_location=self.device)
        if checkpoint['num_states'] != self.num_states or checkpoint['num_actions'] != self.num_actions:
            raise ValueError(
                f"Checkpoint is for {checkpoint['num_states']} states / "
                f"{checkpoint['num_actions']} actions, brain has "
                f"{self.num_states} / {self.num_actions}"
            )
        self.value_net.load_state_dict(checkpoint['value_net'])
        self.optimizer.load_state_dict(checkpoint['optimizer'])
        self.age = checkpoint['age']
        self.forward_passes = checkpoint['forward_passes']
        logger.info(f"LOAD | {filepath} | age={self.age}")
