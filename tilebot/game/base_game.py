"""
Base Game Interface
===================

Abstract base class that defines the interface all puzzle games must implement.
The agent loop only talks to a game through this interface, so any game
that follows it can be driven and rewarded the same way.

To add a new game:
1. Create a new file in tilebot/game/
2. Inherit from BaseGame
3. Implement all abstract methods
4. Register in __init__.py
"""

from abc import ABC, abstractmethod
from typing import Any, List


class BaseGame(ABC):
    """
    Abstract base class for grid puzzle games.

    Properties:
        grid: List[List[Any]] - Row-major cells; empty cells are None or 0
        score: int - Current game score
        won: bool - Whether the winning condition was reached

    Methods:
        restart() -> None
            Start a new game on a fresh board

        apply_action(action: int) -> None
            Apply a move (0 up, 1 right, 2 down, 3 left), mutating grid and score

        is_terminated() -> bool
            True once the episode has ended (win or no legal moves)
    """

    @property
    @abstractmethod
    def grid(self) -> List[List[Any]]:
        """Return a snapshot of the board, one list per row."""
        pass

    @property
    @abstractmethod
    def score(self) -> int:
        """Return the current score."""
        pass

    @property
    def won(self) -> bool:
        """Return True if the winning condition was reached. Override if needed."""
        return False

    @property
    def size(self) -> int:
        """Return the board dimension."""
        return len(self.grid)

    @abstractmethod
    def restart(self) -> None:
        """Reset the game to a fresh board."""
        pass

    @abstractmethod
    def apply_action(self, action: int) -> None:
        """
        Execute one move.

        Args:
            action: Integer in [0, 3] (up, right, down, left)
        """
        pass

    @abstractmethod
    def is_terminated(self) -> bool:
        """Return True if the current episode is over."""
        pass
