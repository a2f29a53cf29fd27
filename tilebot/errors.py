"""
Exception types raised by the agent loop and its collaborators.

Failures inside a tick are wrapped into one of these at the call site so
the loop can abandon the tick without tearing down its schedule.
"""


class TileBotError(Exception):
    """Base class for all project errors."""


class InvalidGridError(TileBotError, ValueError):
    """Grid rows have inconsistent lengths or the grid is not square."""


class GameEnvironmentError(TileBotError):
    """The game raised while restarting or applying an action."""


class ModelError(TileBotError):
    """The decision model raised during forward or backward."""
