"""
tilebot - Self-Playing 2048 Agent
=================================

This package contains all the components for training an agent to play
a tile-merging puzzle game.

Modules:
    game/   - Puzzle game implementations (2048)
    ai/     - Observation, reward, episode tracking, stats and the agent loop
    web/    - Real-time dashboard with loop controls
    utils/  - Logging and the tick scheduler
"""

__version__ = "1.0.0"
