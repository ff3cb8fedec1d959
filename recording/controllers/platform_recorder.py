"""
Platform Recorder

Shared start-up sequence for the iOS and Android recorders:

    resolve config -> video path -> cancellation -> tool arguments
    -> spawn -> wait until recording -> RecordingSession

Platform subclasses only decide the tool-specific parts (arguments,
environment, readiness marker, file extension, how timeouts apply).
"""

import asyncio
import logging
import shutil
from abc import abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from recording.config import RecordingConfig
from recording.constants import Platform
from recording.controllers.error_classifier import ErrorContext, classify_error
from recording.controllers.process_controller import ProcessController, ReadyMatcher
from recording.controllers.recording_session import RecordingSession
from recording.interfaces.recorder_interface import (
    FileWriteError,
    OperationAbortedError,
    ScreenRecorderInterface,
)
from recording.utils.cancellation import CombinedCancellation
from recording.utils.recording_utils import (
    create_video_path,
    ensure_file_directory,
    handle_error,
)


class PlatformRecorder(ScreenRecorderInterface):
    """
    Base class for recorders driving one external recording tool.

    Subclasses set `platform`, `label` and `default_device`, and implement
    build_args(), file_extension(), ready_matcher() and
    create_cancellation().
    """

    platform: Platform
    label: str = ""
    default_device: str = ""

    def __init__(self, **options: Any):
        """
        Initialize recorder with instance defaults.

        Args:
            **options: Instance defaults (device_id, output_path, tool_path,
                       timeout, delay, on_error, tool options, ...)

        Raises:
            ValueError: If an option is unknown or invalid
        """
        self.logger = logging.getLogger(__name__)
        self.config = RecordingConfig.resolve(self.platform, options)
        self.logger.info(
            f"{self.label} recorder initialized (tool: {self.config.tool_path})",
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def start_recording(self, **overrides: Any) -> Optional[RecordingSession]:
        """
        Start the recording tool and wait until it is recording.

        Args:
            **overrides: Per-call options over the instance defaults

        Returns:
            RecordingSession, or None if a failure was handled by an
            "ignore" / callback on-error policy

        Raises:
            RecordingError: With the "throw" policy
            ValueError: If an override is unknown or invalid
        """
        config = self.config.with_overrides(**overrides)
        video_path = create_video_path(
            self.platform.value,
            self.file_extension(config),
            config.output_path,
        )
        context = self.error_context(config, video_path)
        cancellation = self.create_cancellation(config)
        controller: Optional[ProcessController] = None

        try:
            if cancellation.signal.is_set:
                raise OperationAbortedError(
                    f"{self.label} video recording",
                    reason=cancellation.signal.reason,
                )

            try:
                ensure_file_directory(video_path)
            except OSError as e:
                raise FileWriteError(video_path, e) from e

            args = self.build_args(config, video_path)

            self.logger.info(f"Starting {self.label} recording: {video_path}")
            controller = ProcessController(
                command=config.tool_path,
                args=args,
                env=self.build_env(config),
                cancellation=cancellation.signal,
                ready_matcher=self.ready_matcher(config),
                startup_delay=config.startup_delay,
                stop_delay=config.stop_delay,
            )
            await controller.started()

        except asyncio.CancelledError:
            await self._abandon(controller, cancellation)
            raise

        except Exception as e:
            await self._abandon(controller, cancellation)
            error = classify_error(e, context)
            self.logger.error(f"Failed to start {self.label} recording: {error}")
            handle_error(config.on_error, error)
            return None

        self.logger.info(f"{self.label} recording started")
        return RecordingSession(
            controller,
            video_path,
            config.on_error,
            context,
            cleanup=cancellation.cleanup,
        )

    def is_available(self) -> bool:
        """Check whether the recording tool can be found"""
        return shutil.which(self.config.tool_path) is not None

    # =========================================================================
    # PLATFORM HOOKS
    # =========================================================================

    @abstractmethod
    def build_args(self, config: RecordingConfig, video_path: Path) -> List[str]:
        """Tool arguments for one recording"""
        pass

    @abstractmethod
    def file_extension(self, config: RecordingConfig) -> str:
        pass

    @abstractmethod
    def ready_matcher(self, config: RecordingConfig) -> Optional[ReadyMatcher]:
        """Readiness predicate (None = ready once spawned)"""
        pass

    @abstractmethod
    def create_cancellation(self, config: RecordingConfig) -> CombinedCancellation:
        """Effective cancellation for one recording"""
        pass

    def build_env(self, config: RecordingConfig) -> Optional[Dict[str, str]]:
        """Environment for the tool (None = inherit ours)"""
        return None

    def error_context(self, config: RecordingConfig, video_path: Path) -> ErrorContext:
        return ErrorContext(
            platform=self.platform.value,
            tool_path=config.tool_path,
            device_id=config.device_id or self.default_device,
            output_path=str(video_path),
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _abandon(
        self,
        controller: Optional[ProcessController],
        cancellation: CombinedCancellation,
    ) -> None:
        """Make sure no tool process or timer outlives a failed start"""
        try:
            if controller is not None:
                await controller.close()
        finally:
            cancellation.cleanup()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tool_path={self.config.tool_path!r})"
