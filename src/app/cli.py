from __future__ import annotations

import argparse
from typing import Iterable

COMMANDS = ("run", "calibrate", "devices")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openrgb-fade",
        description="Reactive typing effect for keyboards driven by an OpenRGB SDK server.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=COMMANDS,
        help="run (default): fade keys as they are pressed; calibrate: rebuild the keymap; "
        "devices: list keyboards reported by OpenRGB",
    )
    parser.add_argument("--device", metavar="NAME", help="Keyboard to drive (substring of its OpenRGB name)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(list(argv) if argv is not None else None)
