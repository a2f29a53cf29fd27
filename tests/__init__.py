"""
Tests for tilebot
=================

Run all tests:
    pytest tests/

Skip the slower learning tests:
    pytest tests/ -m "not slow"
"""
