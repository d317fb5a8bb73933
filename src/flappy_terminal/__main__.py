"""Play flappy in a terminal-style window.

Usage:
    python -m flappy_terminal
    python -m flappy_terminal --preset endless --seed 7
    python -m flappy_terminal --config my_game.yaml --keybindings my_keys.yaml --log-level DEBUG
"""

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

import yaml

from .config import CONFIGS, load_game_config
from .keybindings import BindingError, KeyParseError, load_keybindings


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flappy-terminal", description="Flappy bird on a character grid.")
    parser.add_argument("--preset", choices=sorted(CONFIGS), default="default", help="Named game configuration")
    parser.add_argument("--config", help="YAML file overriding the preset")
    parser.add_argument("--keybindings", help="YAML file merged over the default key bindings")
    parser.add_argument("--width", type=int, help="Canvas width in cells")
    parser.add_argument("--height", type=int, help="Canvas height in cells")
    parser.add_argument("--seed", type=int, help="Seed for pipe generation")
    parser.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--log-file", help="Write logs here instead of stderr")
    return parser


def configure_logging(level: str, log_file: Optional[str] = None) -> None:
    # The window owns the screen, so logs default to stderr or a file
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        filename=log_file,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        if args.config:
            config = load_game_config(args.config, preset=args.preset)
        else:
            config = CONFIGS[args.preset]
        if args.width is not None:
            config = dataclasses.replace(config, canvas_width=args.width)
        if args.height is not None:
            config = dataclasses.replace(config, canvas_height=args.height)
        bindings = load_keybindings(args.keybindings)
    except (KeyParseError, BindingError) as e:
        print(f"Invalid keybindings: {e}", file=sys.stderr)
        return 2
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    # Imported late so --help works without a display
    from .shell import FlappyApp

    logger.info("Starting with preset %s", args.preset)
    FlappyApp(config=config, bindings=bindings, seed=args.seed).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
