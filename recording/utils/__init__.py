"""
Recording Utilities Package

Exposes shared helpers: cancellation signals, output paths and
on-error policy handling.
"""

from recording.utils.cancellation import (
    AbortError,
    CancellationSignal,
    CombinedCancellation,
    combine,
)
from recording.utils.recording_utils import (
    OnErrorPolicy,
    OutputMarker,
    create_video_path,
    ensure_file_directory,
    file_exists,
    generate_filename,
    handle_error,
    validate_on_error,
)

# Public API
__all__ = [
    "AbortError",
    "CancellationSignal",
    "CombinedCancellation",
    "OnErrorPolicy",
    "OutputMarker",
    "combine",
    "create_video_path",
    "ensure_file_directory",
    "file_exists",
    "generate_filename",
    "handle_error",
    "validate_on_error",
]
