"""
Game Module
===========

Contains puzzle game implementations the agent can learn to play.

Classes:
    Game2048 - Classic 2048 sliding-tile puzzle
    BaseGame - Abstract base class for creating new games

Game Registry:
    Use get_game(name) to get a game class by name
    Use list_games() to get all available games
"""

from typing import Any, Dict, List, Optional, Type

from .base_game import BaseGame
from .game_2048 import Game2048


# =============================================================================
# GAME REGISTRY
# =============================================================================
# Maps game names to their classes and metadata.
# To add a new game:
#   1. Create the game class inheriting from BaseGame
#   2. Add an entry to GAME_REGISTRY below

GAME_REGISTRY: Dict[str, Dict[str, Any]] = {
    '2048': {
        'class': Game2048,
        'name': '2048',
        'description': 'Slide and merge tiles to reach 2048',
        'actions': ['UP', 'RIGHT', 'DOWN', 'LEFT'],
    },
}


def get_game(name: str) -> Optional[Type[BaseGame]]:
    """
    Get a game class by name.

    Args:
        name: Game identifier (e.g., '2048')

    Returns:
        The game class, or None if not found

    Example:
        >>> GameClass = get_game('2048')
        >>> game = GameClass(config)
    """
    entry = GAME_REGISTRY.get(name.lower())
    if entry:
        return entry['class']
    return None


def list_games() -> List[str]:
    """Get a list of all available game names."""
    return list(GAME_REGISTRY.keys())


__all__ = [
    'Game2048',
    'BaseGame',
    'GAME_REGISTRY',
    'get_game',
    'list_games',
]
