#!/usr/bin/env python3
"""
Record Screen - Command Line Entry Point

Records an iOS Simulator or Android device until Ctrl+C, a fixed duration,
or the tool stopping on its own, then prints where the video was saved.

Usage:
    python record_screen.py ios                        # Booted simulator, Ctrl+C to stop
    python record_screen.py android --duration 30      # 30 seconds from the default device
    python record_screen.py android --device emulator-5554 --output videos/
    python record_screen.py ios --timeout 120 --codec h264

Exit codes:
    0 - Video saved
    1 - Recording failed
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Dict, Optional

from config.settings import LOG_LEVEL
from recording import CancellationSignal, RecordingError, RecordingFactory
from recording.constants import Platform

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Log to the console in the same format as the rest of the project"""
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter("%(message)s | %(name)s"))
    logger.addHandler(console_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Record the screen of an iOS Simulator or Android device",
        epilog="""
Examples:
  %(prog)s ios                               # Record the booted simulator until Ctrl+C
  %(prog)s android --duration 30             # Record 30 seconds
  %(prog)s android --no-window --no-audio    # Headless, video only
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "platform",
        choices=[platform.value for platform in Platform],
        help="Platform to record",
    )

    parser.add_argument(
        "--device",
        help="Simulator UDID or adb serial (default: booted simulator / only device)",
    )

    parser.add_argument(
        "--output",
        help="Output file or directory (default: system temp directory)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="Abort the recording after this many seconds",
    )

    parser.add_argument(
        "--duration",
        type=float,
        help="Stop recording normally after this many seconds",
    )

    parser.add_argument(
        "--delay",
        type=float,
        help="Seconds to wait after the tool starts recording and again before stopping it",
    )

    parser.add_argument(
        "--tool-path",
        help="Path to xcrun (iOS) or scrcpy (Android)",
    )

    parser.add_argument(
        "--config",
        help="YAML file with recorder defaults (default: config/recorder.yaml)",
    )

    parser.add_argument(
        "--codec",
        help="Video codec (iOS: h264/hevc, Android: h264/h265/av1)",
    )

    parser.add_argument(
        "--no-window",
        action="store_true",
        help="Android: do not open the scrcpy window",
    )

    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Android: record video only",
    )

    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        type=str.upper,
        choices=LOG_LEVELS,
        help=f"Logging level (default: {LOG_LEVEL})",
    )

    return parser


def recorder_options(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate command line flags into recorder options"""
    options: Dict[str, Any] = {
        "device_id": args.device,
        "output_path": args.output,
        "tool_path": args.tool_path,
        "delay": args.delay,
    }

    if args.platform == Platform.IOS.value:
        options["codec"] = args.codec
    else:
        if args.codec:
            options["recording"] = {"codec": args.codec}
        if args.no_window:
            options["window"] = False
        if args.no_audio:
            options["audio"] = False

    return {key: value for key, value in options.items() if value is not None}


async def record(args: argparse.Namespace) -> int:
    """Run one recording, returns the process exit code"""
    logger = logging.getLogger(__name__)

    recorder = RecordingFactory.create_recorder(
        args.platform,
        config_path=args.config,
        **recorder_options(args),
    )

    cancellation = CancellationSignal()
    stop_requested = asyncio.Event()

    def on_interrupt() -> None:
        # Before recording starts Ctrl+C aborts, afterwards it stops normally
        if session is None:
            cancellation.trigger("Interrupted by user")
        stop_requested.set()

    session = None
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, on_interrupt)

    try:
        session = await recorder.start_recording(
            cancellation=cancellation,
            timeout=args.timeout,
        )
        if session is None:
            return 1

        if args.duration:
            logger.info(f"Recording for {args.duration}s...")
        else:
            logger.info("Recording... press Ctrl+C to stop")

        stop_waiter = asyncio.ensure_future(stop_requested.wait())
        exit_waiter = asyncio.ensure_future(session.process.wait())
        try:
            await asyncio.wait(
                {stop_waiter, exit_waiter},
                timeout=args.duration,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            stop_waiter.cancel()
            exit_waiter.cancel()

        video_path = await session.stop()

    except RecordingError as e:
        logger.error(f"Recording failed: {e}")
        return 1

    finally:
        loop.remove_signal_handler(signal.SIGINT)

    if video_path is None:
        return 1

    print(video_path)
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        return asyncio.run(record(args))
    except ValueError as e:
        logging.getLogger(__name__).error(f"Invalid option: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
