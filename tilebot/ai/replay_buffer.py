"""
Experience Replay Buffer
========================

A memory buffer that stores experiences for training the brain.

Why Experience Replay?
    1. Breaks correlation between consecutive moves
    2. Each experience can be used for multiple training steps
    3. Random sampling provides more diverse gradients

How it works:
    1. The brain stores (state, action, reward, next_state) tuples while playing
    2. During learning, random batches are sampled from the buffer
    3. Old experiences are overwritten when the buffer is full (FIFO)
"""

import numpy as np
from typing import Tuple


class ReplayBuffer:
    """
    Fixed-size buffer of experience tuples with contiguous numpy storage.

    Experience tuple: (state, action, reward, next_state)
        - state: Network input before the move (np.ndarray)
        - action: Action taken (int)
        - reward: Reward received (float)
        - next_state: Network input after the move (np.ndarray)

    Example:
        >>> buffer = ReplayBuffer(capacity=10000, state_size=52)
        >>> buffer.push(state, action, reward, next_state)
        >>> batch = buffer.sample(batch_size=64)
    """

    def __init__(self, capacity: int, state_size: int, seed=None):
        """
        Args:
            capacity: Maximum number of experiences to store
            state_size: Size of each stored state vector
            seed: Optional seed for sampling
        """
        self.capacity = capacity
        self.state_size = state_size
        self._size = 0      # Current number of experiences stored
        self._position = 0  # Current write position for circular buffer
        self._rng = np.random.default_rng(seed)

        self.states = np.empty((capacity, state_size), dtype=np.float32)
        self.actions = np.empty(capacity, dtype=np.int64)
        self.rewards = np.empty(capacity, dtype=np.float32)
        self.next_states = np.empty((capacity, state_size), dtype=np.float32)

    def push(self, state: np.ndarray, action: int, reward: float, next_state: np.ndarray) -> None:
        """
        Add an experience. When full, the oldest experience is overwritten.
        """
        np.copyto(self.states[self._position], state)
        self.actions[self._position] = action
        self.rewards[self._position] = reward
        np.copyto(self.next_states[self._position], next_state)

        self._position = (self._position + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def sample(self, batch_size: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Sample a random batch using vectorized numpy indexing.

        Returns:
            (states, actions, rewards, next_states) as copies

        Raises:
            RuntimeError: If the buffer is empty
        """
        if self._size == 0:
            raise RuntimeError("Cannot sample from an empty buffer. Call push() first.")

        # Sample with replacement (duplicates are rare with large buffers)
        indices = self._rng.integers(0, self._size, size=batch_size)
        return (
            self.states[indices].copy(),
            self.actions[indices].copy(),
            self.rewards[indices].copy(),
            self.next_states[indices].copy(),
        )

    def __len__(self) -> int:
        return self._size
