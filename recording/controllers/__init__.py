"""
Recording Controllers Package

Controllers that run a recording tool from spawn to saved file.
"""

from recording.controllers.error_classifier import (
    CLASSIFICATION_RULES,
    ErrorContext,
    classify_error,
)
from recording.controllers.platform_recorder import PlatformRecorder
from recording.controllers.process_controller import ProcessController, ProcessExitError
from recording.controllers.recording_session import RecordingSession

# Public API
__all__ = [
    "CLASSIFICATION_RULES",
    "ErrorContext",
    "PlatformRecorder",
    "ProcessController",
    "ProcessExitError",
    "RecordingSession",
    "classify_error",
]
