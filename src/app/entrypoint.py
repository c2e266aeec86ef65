"""openrgb-fade startup entrypoint.

This module owns the startup sequence (logging, config, single-instance) and
maps failures to process exit codes.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Iterable

from src.core.config import Config
from src.core.utils.exceptions import (
    CalibrationCancelled,
    ConfigError,
    InputCaptureError,
    SdkConnectionError,
)

from .cli import parse_args
from .session import FadeSession
from .startup import acquire_single_instance_lock, configure_logging, release_single_instance_lock

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SDK = 1
EXIT_CONFIG = 2
EXIT_INPUT = 3
EXIT_CANCELLED = 4
EXIT_ALREADY_RUNNING = 5


def _print_prompt(index: int, total: int) -> None:
    print(f"[{index + 1}/{total}] Press the key under the lit LED (wait to skip)", flush=True)


def _print_devices(session: FadeSession) -> None:
    listings = session.list_devices()
    if not listings:
        print("OpenRGB reports no keyboards.")
        return
    for item in listings:
        status = "calibrated" if item.has_keymap else "not calibrated"
        info = item.info
        print(f"{info.vendor} {info.name}: {info.led_count} LEDs, {status} ({item.keymap_path})")


def _install_sigterm(session: FadeSession):
    def _handler(signum, frame):
        logger.info("Received signal %s; shutting down", signum)
        session.stop()

    try:
        return signal.signal(signal.SIGTERM, _handler)
    except ValueError:
        # Not on the main thread (embedded use); Ctrl-C still works.
        return None


def run_command(args, config: Config) -> int:
    session = FadeSession(config, on_prompt=_print_prompt)
    previous_handler = _install_sigterm(session)
    try:
        if args.command == "devices":
            _print_devices(session)
        elif args.command == "calibrate":
            if session.connect() is None:
                raise CalibrationCancelled("Calibration cancelled; keymap not saved")
            result = session.calibrate()
            print(f"Mapped {len(result.keymap)} keys; {len(result.unmapped)} LEDs left unmapped.")
        else:
            session.run()
    except KeyboardInterrupt:
        if args.command == "calibrate":
            logger.error("Calibration interrupted; keymap not saved")
            return EXIT_CANCELLED
        logger.info("Shutting down...")
    finally:
        session.shutdown()
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)
    return EXIT_OK


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(debug=bool(args.debug))

    try:
        config = Config.load()
        if args.device:
            config = config.replace(device_name=args.device)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG

    if args.command != "devices" and not acquire_single_instance_lock():
        logger.error("openrgb-fade is already running")
        return EXIT_ALREADY_RUNNING

    try:
        return run_command(args, config)
    except CalibrationCancelled as exc:
        logger.error("%s", exc)
        return EXIT_CANCELLED
    except InputCaptureError as exc:
        logger.error("Keyboard input unavailable: %s", exc)
        return EXIT_INPUT
    except SdkConnectionError as exc:
        logger.error("%s", exc)
        return EXIT_SDK
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG
    finally:
        release_single_instance_lock()


def run() -> None:
    sys.exit(main())
