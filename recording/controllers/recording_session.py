"""
Recording Session

Handle for one in-progress recording. Created by a platform recorder once
the tool reports it is recording; stopping it finalizes the video file.

A session is single-use: it owns its process controller and releases it
(along with any timeout timer) on the first stop().
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from recording.controllers.error_classifier import ErrorContext, classify_error
from recording.controllers.process_controller import ProcessController
from recording.interfaces.recorder_interface import FileWriteError
from recording.utils.recording_utils import OnErrorPolicy, file_exists, handle_error


class RecordingSession:
    """
    Controls a single recording started by a platform recorder.

    Usage:
        session = await recorder.start_recording()
        # ... interact with the device ...
        video = await session.stop()  # Path, or None if handled by policy
    """

    def __init__(
        self,
        process: ProcessController,
        video_path: Path,
        on_error: Optional[OnErrorPolicy],
        error_context: ErrorContext,
        cleanup: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize session.

        Args:
            process: Controller of the running recording tool
            video_path: Where the tool writes the video
            on_error: Policy applied to failures during stop()
            error_context: Details used to classify failures
            cleanup: Releases the recording's cancellation resources
        """
        self.logger = logging.getLogger(__name__)
        self.process = process
        self.video_path = Path(video_path)
        self.on_error = on_error
        self.error_context = error_context
        self._cleanup = cleanup
        self._stopped = False

    @property
    def is_stopped(self) -> bool:
        """True once stop() has been called"""
        return self._stopped

    async def stop(self) -> Optional[Path]:
        """
        Stop recording and return the video path.

        The tool exiting cleanly is not enough: the video file must also
        exist, otherwise a FileWriteError is reported.

        Returns:
            Path to the video, or None if a failure was handled by an
            "ignore" / callback policy, or the session was already stopped

        Raises:
            RecordingError: With the "throw" policy
        """
        if self._stopped:
            self.logger.warning("Recording session already stopped")
            return None

        self._stopped = True

        try:
            await self.process.stop()

            if not file_exists(self.video_path):
                raise FileWriteError(
                    self.video_path,
                    FileNotFoundError(f"Video file was not created: {self.video_path}"),
                )

            self.logger.info(f"Recording saved: {self.video_path}")
            return self.video_path

        except Exception as e:
            error = classify_error(e, self.error_context)
            self.logger.error(f"Recording failed: {error}")
            handle_error(self.on_error, error)
            return None

        finally:
            self._release()

    def _release(self) -> None:
        if self._cleanup is not None:
            cleanup, self._cleanup = self._cleanup, None
            cleanup()

    def __repr__(self) -> str:
        return f"RecordingSession(video_path={str(self.video_path)!r}, stopped={self._stopped})"
