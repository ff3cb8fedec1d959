"""
iOS Simulator Recorder

Records a simulator with `xcrun simctl io <device> recordVideo`.

simctl keeps recording until it receives SIGINT, then finalizes the file
and exits. It prints "Recording started" to stderr once frames are
actually being captured, which is what readiness waits for.

A timeout is enforced on our side: when it expires the recording is
interrupted the same way a caller cancellation would.
"""

from pathlib import Path
from typing import List, Optional

from config.settings import IOS_DEFAULT_DEVICE, IOS_READY_MARKER, IOS_VIDEO_EXTENSION
from recording.config import RecordingConfig
from recording.constants import Platform
from recording.controllers.platform_recorder import PlatformRecorder
from recording.controllers.process_controller import ReadyMatcher
from recording.options.ios_options import build_ios_args
from recording.utils.cancellation import CombinedCancellation, combine
from recording.utils.recording_utils import OutputMarker


class IOSRecorder(PlatformRecorder):
    """
    Screen recorder for the iOS Simulator.

    Usage:
        recorder = IOSRecorder(device_id="booted", codec="h264")
        session = await recorder.start_recording(timeout=60)
        path = await session.stop()
    """

    platform = Platform.IOS
    label = "iOS"
    default_device = IOS_DEFAULT_DEVICE

    def build_args(self, config: RecordingConfig, video_path: Path) -> List[str]:
        return build_ios_args(config.options, config.device_id, str(video_path))

    def file_extension(self, config: RecordingConfig) -> str:
        return IOS_VIDEO_EXTENSION

    def ready_matcher(self, config: RecordingConfig) -> Optional[ReadyMatcher]:
        return OutputMarker(IOS_READY_MARKER)

    def create_cancellation(self, config: RecordingConfig) -> CombinedCancellation:
        # simctl has no time limit of its own
        return combine(config.cancellation, config.timeout)
