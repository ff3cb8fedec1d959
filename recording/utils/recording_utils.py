"""
Recording Utilities

Shared helpers for recorders: output path generation, directory creation
and on-error policy handling.
"""

import logging
import tempfile
import time
import uuid
from pathlib import Path
from typing import Callable, Optional, Union

from recording.constants import ON_ERROR_IGNORE, ON_ERROR_POLICIES, ON_ERROR_THROW
from recording.interfaces.recorder_interface import RecordingError

# "throw", "ignore", or a callback receiving the classified error
OnErrorPolicy = Union[str, Callable[[RecordingError], None]]

PathLike = Union[str, Path]


def generate_filename(platform: str, extension: str) -> str:
    """
    Generate a unique video filename.

    Args:
        platform: Platform tag ("ios" or "android")
        extension: File extension without the dot

    Returns:
        Filename like "ios-video-1735689600000-1a2b3c4d.mp4"
    """
    timestamp = int(time.time() * 1000)
    short_id = uuid.uuid4().hex[:8]
    return f"{platform}-video-{timestamp}-{short_id}.{extension}"


def create_video_path(
    platform: str,
    extension: str,
    output_path: Optional[PathLike] = None,
) -> Path:
    """
    Resolve where a recording will be written.

    A path with an extension is used as the file itself. A path without one
    is treated as a directory and gets a generated filename. No path at all
    means a generated filename in the system temp directory.

    Args:
        platform: Platform tag ("ios" or "android")
        extension: File extension without the dot
        output_path: Optional file or directory

    Returns:
        Absolute path of the video file

    Example:
        create_video_path("ios", "mp4", "/recordings")
        # Returns: /recordings/ios-video-1735689600000-1a2b3c4d.mp4
    """
    if not output_path:
        return Path(tempfile.gettempdir()).resolve() / generate_filename(platform, extension)

    path = Path(output_path).expanduser()
    if path.suffix:
        return path.resolve()

    return path.resolve() / generate_filename(platform, extension)


def ensure_file_directory(file_path: PathLike) -> None:
    """
    Create the parent directory of a file if it is missing.

    Raises:
        OSError: If the directory cannot be created
    """
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)


def file_exists(file_path: PathLike) -> bool:
    """Check whether the recording file exists"""
    return Path(file_path).exists()


def validate_on_error(policy: OnErrorPolicy) -> None:
    """
    Check an on-error policy value.

    Raises:
        ValueError: If policy is neither a known name nor callable
    """
    if callable(policy):
        return
    if policy not in ON_ERROR_POLICIES:
        raise ValueError(
            f"Invalid on_error policy: {policy!r} "
            f"(expected one of {ON_ERROR_POLICIES} or a callable)",
        )


def handle_error(policy: Optional[OnErrorPolicy], error: RecordingError) -> None:
    """
    Apply an on-error policy to a classified error.

    - "throw" (or None): raise the error
    - "ignore": swallow it; the caller yields None
    - callable: hand it the error; the caller yields None

    Args:
        policy: On-error policy
        error: Classified recording error

    Raises:
        RecordingError: When the policy is "throw"
    """
    if policy is None or policy == ON_ERROR_THROW:
        raise error

    if policy == ON_ERROR_IGNORE:
        logging.getLogger(__name__).debug(f"Ignoring recording error: {error}")
        return

    policy(error)


class OutputMarker:
    """
    Ready matcher looking for a literal marker in tool output.

    Remembers the end of the previous chunk so a marker split across two
    reads still matches. One instance follows one stream; ProcessController
    copies it for each stream it reads.

    Usage:
        matcher = OutputMarker("Recording started")
        controller = ProcessController(..., ready_matcher=matcher)
    """

    def __init__(self, marker: str):
        if not marker:
            raise ValueError("marker must not be empty")
        self.marker = marker
        self._carry = ""

    def __call__(self, text: str) -> bool:
        window = self._carry + text
        self._carry = window[-(len(self.marker) - 1):] if len(self.marker) > 1 else ""
        return self.marker in window

    def __repr__(self) -> str:
        return f"OutputMarker({self.marker!r})"
