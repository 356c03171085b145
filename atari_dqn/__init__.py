"""
Atari DQN - Source Package
==========================

Deep Q-Network training core for agents that learn from raw pixels.

Modules:
    ai/    - Replay memory, value function, DQN core, training loop
    env/   - Environment interface and emulator adapters
    utils/ - Logging infrastructure
"""

__version__ = "1.0.0"
