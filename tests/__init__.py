"""
Tests for the Atari DQN
=======================

Run all tests:
    pytest tests/

Skip the slower tests that train a real network:
    pytest tests/ -m "not slow"
"""
