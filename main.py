#!/usr/bin/env python3
"""
Atari DQN - Main Entry Point
============================

Trains a Deep Q-Network to play an Atari game from raw pixels.

Usage:
    # Train on the default game (Pong)
    python main.py

    # Train a specific game for a fixed number of updates
    python main.py --env ALE/Breakout-v5 --iterations 2000000

    # Resume an interrupted run
    python main.py --resume models/ALE_Breakout-v5_interrupted.pth

    # Watch a trained model play (no updates)
    python main.py --evaluate --model models/ALE_Pong-v5_best.pth

    # Inspect a checkpoint
    python main.py --inspect models/ALE_Pong-v5_final.pth

Press Ctrl+C to stop training; the model is saved before exiting.
"""

import argparse
import os
import sys

import numpy as np
import torch

from config import Config
from atari_dqn.ai import DQN, Evaluator, Trainer
from atari_dqn.env import GymAtariEnvironment
from atari_dqn.utils.logger import LogLevel, get_logger, setup_logging


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Atari DQN - Learn to play Atari games from pixels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES
========
    python main.py --env ALE/Pong-v5
    python main.py --evaluate --model models/ALE_Pong-v5_best.pth
    python main.py --resume models/ALE_Pong-v5_interrupted.pth
    python main.py --inspect models/ALE_Pong-v5_final.pth
        """
    )

    # Mode selection
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        '--evaluate', action='store_true',
        help='Evaluation mode: play with a trained model, no updates'
    )
    mode_group.add_argument(
        '--inspect', type=str, metavar='MODEL_PATH',
        help='Inspect a checkpoint and show its metadata'
    )

    # Environment
    parser.add_argument(
        '--env', type=str, default=None,
        help='Gymnasium environment id (default: ALE/Pong-v5)'
    )

    # Model options
    parser.add_argument(
        '--model', type=str, default=None,
        help='Path to trained weights to load'
    )
    parser.add_argument(
        '--resume', type=str, default=None, metavar='CHECKPOINT',
        help='Resume training from a checkpoint (weights, optimizer, iteration)'
    )

    # Training parameters
    parser.add_argument(
        '--iterations', type=int, default=None,
        help='Number of update iterations to train for'
    )
    parser.add_argument(
        '--episodes', type=int, default=None,
        help='Stop after this many episodes (training) or play this many (evaluation)'
    )
    parser.add_argument(
        '--lr', type=float, default=None,
        help='Learning rate'
    )
    parser.add_argument(
        '--gamma', type=float, default=None,
        help='Discount factor in [0, 1)'
    )

    # Other options
    parser.add_argument(
        '--cpu', action='store_true',
        help='Force CPU even when an accelerator is available'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--log-level', type=str, default=None,
        choices=[level.name for level in LogLevel],
        help='Logging verbosity (default: INFO)'
    )
    parser.add_argument(
        '--draw-frames', action='store_true',
        help='Log an ASCII rendering of every preprocessed frame (implies DEBUG)'
    )

    return parser.parse_args(argv)


def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """Apply command line overrides to a config."""
    if args.env:
        config.ENV_ID = args.env
    if args.lr is not None:
        config.LEARNING_RATE = args.lr
    if args.gamma is not None:
        config.GAMMA = args.gamma
    if args.iterations is not None:
        config.MAX_ITERATIONS = args.iterations
    if args.cpu:
        config.FORCE_CPU = True
    if args.seed is not None:
        config.SEED = args.seed
    if args.log_level:
        config.LOG_LEVEL = args.log_level
    if args.draw_frames:
        config.DRAW_FRAMES = True
        config.LOG_LEVEL = 'DEBUG'

    # Re-run validation after overrides
    config.__post_init__()
    return config


def inspect_model(filepath: str) -> None:
    """Display the metadata stored in a checkpoint."""
    checkpoint = torch.load(filepath, map_location='cpu', weights_only=False)

    print("\n" + "=" * 60)
    print(f"Checkpoint: {os.path.basename(filepath)}")
    print("=" * 60)
    print(f"   File Size:  {os.path.getsize(filepath) / (1024 * 1024):.2f} MB")
    if 'net_state_dict' in checkpoint:
        print(f"   Iteration:  {checkpoint.get('iteration', 0):,}")
        print(f"   Actions:    {checkpoint.get('action_count', '?')}")
        state_dict = checkpoint['net_state_dict']
    else:
        print("   (bare state dict, no training state)")
        state_dict = checkpoint
    params = sum(tensor.numel() for tensor in state_dict.values())
    print(f"   Parameters: {params:,}")
    print("=" * 60 + "\n")


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.inspect:
        inspect_model(args.inspect)
        return 0

    config = apply_args(Config(), args)
    setup_logging(config.LOG_DIR, LogLevel.from_name(config.LOG_LEVEL), force=True)
    logger = get_logger('main')

    if config.SEED is not None:
        np.random.seed(config.SEED)
        torch.manual_seed(config.SEED)

    env = GymAtariEnvironment(config.ENV_ID)
    dqn = DQN(env.legal_actions, config)
    trainer = Trainer(env, dqn, config, model_name=config.ENV_ID)

    try:
        if args.evaluate:
            if args.model is None:
                logger.error("--evaluate requires --model")
                return 2
            dqn.load_trained_model(args.model)
            if trainer.evaluator is None:
                trainer.evaluator = Evaluator(trainer, config, log_dir=config.LOG_DIR)
            results = trainer.evaluator.evaluate(
                args.episodes or config.EVAL_EPISODES,
                iteration=dqn.current_iteration
            )
            trainer.evaluator.log_results(results)
            return 0

        if args.resume:
            dqn.restore_training_state(args.resume)
        elif args.model:
            dqn.load_trained_model(args.model)

        try:
            trainer.train(max_iterations=config.MAX_ITERATIONS, max_episodes=args.episodes)
        except KeyboardInterrupt:
            logger.warning("Training interrupted by user")
            dqn.save(trainer._checkpoint_path('interrupted'))
    finally:
        env.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
