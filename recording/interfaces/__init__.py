"""
Recording Interfaces Package

Exposes the recorder interface and the recording error taxonomy.
"""

from recording.interfaces.recorder_interface import (
    DeviceUnavailableError,
    FileWriteError,
    OperationAbortedError,
    RecordingError,
    RecordingFailedError,
    ScreenRecorderInterface,
    ToolNotFoundError,
    UnsupportedPlatformError,
)

# Public API
__all__ = [
    "DeviceUnavailableError",
    "FileWriteError",
    "OperationAbortedError",
    # Exceptions
    "RecordingError",
    "RecordingFailedError",
    # Interface
    "ScreenRecorderInterface",
    "ToolNotFoundError",
    "UnsupportedPlatformError",
]
