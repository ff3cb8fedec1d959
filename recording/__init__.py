"""
Recording Module

Screen recording for the iOS Simulator (xcrun simctl) and Android
devices (scrcpy).

Public API:
    - create_recorder / RecordingFactory: Recorder for a platform tag
    - IOSRecorder, AndroidRecorder: Platform recorders
    - RecordingSession: Handle returned by start_recording()
    - CancellationSignal: Caller-side cancellation
    - RecordingError and subclasses: Failure taxonomy

Usage:
    from recording import CancellationSignal, create_recorder

    recorder = create_recorder("ios", on_error="throw")
    session = await recorder.start_recording(timeout=60)
    # ... drive the simulator ...
    video_path = await session.stop()
"""

from recording.config import RecordingConfig
from recording.constants import Platform, ProcessState
from recording.controllers.recording_session import RecordingSession
from recording.factory import RecordingFactory, create_recorder
from recording.implementations import AndroidRecorder, IOSRecorder
from recording.interfaces import (
    DeviceUnavailableError,
    FileWriteError,
    OperationAbortedError,
    RecordingError,
    RecordingFailedError,
    ScreenRecorderInterface,
    ToolNotFoundError,
    UnsupportedPlatformError,
)
from recording.utils.cancellation import CancellationSignal

__all__ = [
    "AndroidRecorder",
    "CancellationSignal",
    "DeviceUnavailableError",
    "FileWriteError",
    "IOSRecorder",
    "OperationAbortedError",
    "Platform",
    "ProcessState",
    "RecordingConfig",
    "RecordingError",
    "RecordingFactory",
    "RecordingFailedError",
    "RecordingSession",
    "ScreenRecorderInterface",
    "ToolNotFoundError",
    "UnsupportedPlatformError",
    "create_recorder",
]
