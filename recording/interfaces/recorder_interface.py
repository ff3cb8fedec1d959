"""
Screen Recorder Interface

Abstract interface for platform screen recorders, plus the error taxonomy
every recorder reports failures through.

High-level code depends on this abstraction, not on xcrun or scrcpy directly.
Every failure that reaches a caller is one of the RecordingError subclasses
below - raw OSError / process exit errors are classified first.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from recording.controllers.recording_session import RecordingSession


class ScreenRecorderInterface(ABC):
    """
    Abstract base class for platform screen recorders.

    A recorder holds instance defaults; each call to start_recording()
    spawns one recording tool process and hands back a session for it.
    """

    @abstractmethod
    async def start_recording(self, **overrides: Any) -> Optional["RecordingSession"]:
        """
        Start recording and return a session controlling it.

        Waits until the recording tool reports it is actually recording
        (plus any startup delay) before returning.

        Args:
            **overrides: Per-call options, taking precedence over the
                         recorder's instance defaults

        Returns:
            RecordingSession on success, None when the failure was handled
            by an "ignore" or callback on-error policy

        Raises:
            RecordingError: With the default "throw" policy

        Example:
            session = await recorder.start_recording(output_path="out.mp4")
            # ... interact with the device ...
            path = await session.stop()
        """
        pass


# =============================================================================
# ERROR TAXONOMY
# =============================================================================


class RecordingError(Exception):
    """
    Base exception for all screen recording errors.

    Carries the underlying failure (if any) as .cause, which is also
    chained as __cause__ so tracebacks show it.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause


class ToolNotFoundError(RecordingError):
    """Recording tool (xcrun, scrcpy, adb) missing or not executable"""

    def __init__(
        self,
        tool_path: Union[str, Path],
        cause: Optional[BaseException] = None,
        hint: str = "",
    ):
        tool_name = Path(str(tool_path)).name or str(tool_path)
        super().__init__(f"{tool_name} not found at path: {tool_path}{hint}", cause)
        self.tool_path = str(tool_path)


class DeviceUnavailableError(RecordingError):
    """Device, emulator or simulator not reachable, offline or not booted"""

    def __init__(
        self,
        device_id: str,
        platform: str,
        cause: Optional[BaseException] = None,
    ):
        if platform == "ios":
            message = f"iOS Simulator not available or not booted: {device_id}"
        else:
            message = f"Android device/emulator not available: {device_id}"
        super().__init__(message, cause)
        self.device_id = device_id
        self.platform = platform


class OperationAbortedError(RecordingError):
    """Recording was cancelled or timed out"""

    def __init__(
        self,
        operation: str = "operation",
        reason: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        message = f"{operation} was aborted"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, cause)
        self.operation = operation
        self.reason = reason


class FileWriteError(RecordingError):
    """Video file could not be written at the destination"""

    def __init__(
        self,
        output_path: Union[str, Path],
        cause: Optional[BaseException] = None,
    ):
        super().__init__(f"Failed to write video file: {output_path}", cause)
        self.output_path = str(output_path)


class RecordingFailedError(RecordingError):
    """Recording tool failed for a reason no other error describes"""

    def __init__(self, platform: str, cause: Optional[BaseException] = None):
        super().__init__(f"{platform.upper()} video recording command failed", cause)
        self.platform = platform


class UnsupportedPlatformError(RecordingError):
    """Platform tag is not one we know how to record"""

    def __init__(self, platform: Any):
        super().__init__(f"Unsupported platform: {platform}")
        self.platform = platform
