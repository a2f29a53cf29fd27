"""
Tests for the command line entry point.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import main
from tilebot.ai.brain import Brain


class TestParseArgs:
    """Argument parsing and config overrides."""

    def test_defaults_come_from_config(self):
        args = main.parse_args([])
        config = main.build_config(args)
        assert config.PLAY_SPEED_MS == 200
        assert config.GRID_SIZE == 4
        assert not args.web

    def test_overrides(self):
        args = main.parse_args([
            '--speed', '50', '--grid-size', '5', '--seed', '3',
            '--port', '5001', '--log-level', 'DEBUG', '--no-log-file',
        ])
        config = main.build_config(args)
        assert config.PLAY_SPEED_MS == 50
        assert config.GRID_SIZE == 5
        assert config.SEED == 3
        assert config.WEB_PORT == 5001
        assert config.LOG_LEVEL == 'DEBUG'
        assert config.LOG_TO_FILE is False

    def test_fast_requires_ticks(self):
        with pytest.raises(SystemExit):
            main.parse_args(['--fast'])

    def test_fast_and_web_conflict(self):
        with pytest.raises(SystemExit):
            main.parse_args(['--fast', '--ticks', '10', '--web'])

    def test_invalid_override_fails_validation(self):
        args = main.parse_args(['--grid-size', '1'])
        with pytest.raises(AssertionError):
            main.build_config(args)


class TestRun:
    """Headless runs."""

    def test_build_loop_uses_brain(self):
        config = main.build_config(main.parse_args(['--seed', '1', '--no-log-file']))
        loop = main.build_loop(config)
        assert isinstance(loop.model, Brain)

    def test_fast_run_and_save(self, tmp_path):
        model_path = tmp_path / "brain.pth"
        exit_code = main.main([
            '--fast', '--ticks', '30', '--seed', '1',
            '--no-log-file', '--save', str(model_path),
        ])
        assert exit_code == 0
        assert model_path.exists()

    def test_load_saved_model(self, tmp_path):
        model_path = tmp_path / "brain.pth"
        main.main(['--fast', '--ticks', '10', '--seed', '1', '--no-log-file', '--save', str(model_path)])
        config = main.build_config(main.parse_args(['--seed', '2', '--no-log-file']))
        loop = main.build_loop(config, str(model_path))
        assert loop.model.age > 0

    def test_timed_run_stops_at_ticks(self):
        args = main.parse_args(['--speed', '5', '--ticks', '5', '--seed', '1', '--no-log-file'])
        loop = main.build_loop(main.build_config(args))
        main.run_headless(loop, args)
        assert not loop.is_running
        assert loop.tick_count >= 5
