"""
Tests for the Episode Tracker.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tilebot.ai.episode import EpisodeState, EpisodeTracker


class TestEpisodeTracker:
    """RUNNING / TERMINATED transitions and per-episode counters."""

    def test_starts_running(self):
        tracker = EpisodeTracker()
        assert tracker.state is EpisodeState.RUNNING
        assert tracker.episode_index == 0
        assert not tracker.is_terminated

    def test_check_follows_game(self, game):
        tracker = EpisodeTracker()
        assert tracker.check(game) is EpisodeState.RUNNING
        game.terminated = True
        assert tracker.check(game) is EpisodeState.TERMINATED
        assert not tracker.summary_recorded

    def test_stays_terminated_until_next_episode(self, game):
        tracker = EpisodeTracker()
        game.terminated = True
        tracker.check(game)
        game.terminated = False
        assert tracker.check(game) is EpisodeState.TERMINATED

    def test_record_move(self):
        tracker = EpisodeTracker()
        tracker.record_move(1.0)
        tracker.record_move(-5.0)
        assert tracker.moves == 2
        assert tracker.total_reward == -4.0

    def test_begin_next_episode(self, game):
        tracker = EpisodeTracker()
        tracker.record_move(1.0)
        game.terminated = True
        tracker.check(game)
        tracker.mark_recorded()

        tracker.begin_next_episode()

        assert tracker.state is EpisodeState.RUNNING
        assert tracker.episode_index == 1
        assert tracker.moves == 0
        assert tracker.total_reward == 0.0
        assert not tracker.summary_recorded

    def test_reset_forgets_episode_index(self):
        tracker = EpisodeTracker()
        tracker.begin_next_episode()
        tracker.begin_next_episode()
        tracker.record_move(1.0)
        tracker.reset()
        assert tracker.episode_index == 0
        assert tracker.moves == 0
