"""
Android Recorder

Records a device or emulator with scrcpy.

scrcpy handles the timeout itself through --time-limit and exits cleanly
when it is reached, so only the caller's cancellation is wired into the
process controller. At info verbosity scrcpy logs "Recording started" once
the recorder runs; at warn/error verbosity nothing is logged, and readiness
falls back to the process having spawned.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from config.settings import (
    ANDROID_DEFAULT_DEVICE,
    ANDROID_DEFAULT_EXTENSION,
    ANDROID_QUIET_LOG_LEVELS,
    ANDROID_READY_MARKER,
)
from recording.config import RecordingConfig
from recording.constants import Platform
from recording.controllers.platform_recorder import PlatformRecorder
from recording.controllers.process_controller import ReadyMatcher
from recording.options.android_options import build_android_args
from recording.utils.cancellation import CombinedCancellation, combine
from recording.utils.recording_utils import OutputMarker


class AndroidRecorder(PlatformRecorder):
    """
    Screen recorder for Android devices and emulators.

    Usage:
        recorder = AndroidRecorder(
            device_id="emulator-5554",
            window=False,
            recording={"format": "mkv", "bit_rate": 4_000_000},
        )
        session = await recorder.start_recording()
        path = await session.stop()
    """

    platform = Platform.ANDROID
    label = "Android"
    default_device = ANDROID_DEFAULT_DEVICE

    def build_args(self, config: RecordingConfig, video_path: Path) -> List[str]:
        return build_android_args(
            config.options,
            device_id=config.device_id,
            output_path=str(video_path),
            timeout=config.timeout,
        )

    def file_extension(self, config: RecordingConfig) -> str:
        """Follows recording.format, scrcpy's own default otherwise"""
        recording = config.options.get("recording") or {}
        return recording.get("format") or ANDROID_DEFAULT_EXTENSION

    def ready_matcher(self, config: RecordingConfig) -> Optional[ReadyMatcher]:
        debug = config.options.get("debug") or {}
        if debug.get("log_level") in ANDROID_QUIET_LOG_LEVELS:
            return None
        return OutputMarker(ANDROID_READY_MARKER)

    def create_cancellation(self, config: RecordingConfig) -> CombinedCancellation:
        # Timeout goes to scrcpy as --time-limit instead
        return combine(config.cancellation)

    def build_env(self, config: RecordingConfig) -> Optional[Dict[str, str]]:
        """Point scrcpy at a specific adb through the ADB variable"""
        if not config.adb_path:
            return None

        env = dict(os.environ)
        env["ADB"] = config.adb_path
        return env
