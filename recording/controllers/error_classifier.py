"""
Error Classifier

Turns raw failures (spawn OSErrors, process exit errors, cancellations)
into the recording error taxonomy.

Rules are evaluated top to bottom and the first match wins. The order is
part of the contract: a missing tool and a missing output directory both
surface as ENOENT, and "device not found" must not be mistaken for a
missing executable.

    1. tool missing          -> ToolNotFoundError
    2. device unreachable    -> DeviceUnavailableError
    3. cancellation          -> OperationAbortedError
    4. destination unwritable -> FileWriteError
    5. anything else         -> RecordingFailedError
"""

import errno
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from recording.constants import (
    ABORT_KEYWORDS,
    DEVICE_UNAVAILABLE_KEYWORDS,
    TOOL_HINTS,
    TOOL_MISSING_KEYWORDS,
)
from recording.interfaces.recorder_interface import (
    DeviceUnavailableError,
    FileWriteError,
    OperationAbortedError,
    RecordingError,
    RecordingFailedError,
    ToolNotFoundError,
)
from recording.utils.cancellation import AbortError

logger = logging.getLogger(__name__)

TOOL_ERRNOS = (errno.ENOENT, errno.EACCES, errno.ENOEXEC)
WRITE_ERRNOS = (
    errno.ENOENT,
    errno.EACCES,
    errno.EPERM,
    errno.EROFS,
    errno.ENOSPC,
    errno.EISDIR,
    errno.ENOTDIR,
)


@dataclass(frozen=True)
class ErrorContext:
    """What the classifier knows about the recording that failed."""

    platform: str
    tool_path: str
    device_id: str
    output_path: str
    operation: str = "video recording"


Predicate = Callable[[BaseException, ErrorContext], bool]
Factory = Callable[[BaseException, ErrorContext], RecordingError]


# =============================================================================
# PREDICATES
# =============================================================================


def _message(error: BaseException) -> str:
    return str(error).lower()


def _same_path(left: Any, right: str) -> bool:
    if left is None:
        return False
    return str(left) == right or Path(str(left)).name == Path(right).name


def is_tool_missing(error: BaseException, context: ErrorContext) -> bool:
    """Spawn failed because the executable is missing or not executable"""
    if isinstance(error, OSError) and error.errno in TOOL_ERRNOS:
        return _same_path(error.filename, context.tool_path)

    message = _message(error)
    return any(keyword in message for keyword in TOOL_MISSING_KEYWORDS)


def is_device_unavailable(error: BaseException, context: ErrorContext) -> bool:
    """Tool reported the device, emulator or simulator is unreachable"""
    message = _message(error)
    return any(keyword in message for keyword in DEVICE_UNAVAILABLE_KEYWORDS)


def is_aborted(error: BaseException, context: ErrorContext) -> bool:
    """Cancellation or timeout, or a message saying the run was interrupted"""
    if isinstance(error, (AbortError, OperationAbortedError)):
        return True

    message = _message(error)
    return any(keyword in message for keyword in ABORT_KEYWORDS)


def is_write_failure(error: BaseException, context: ErrorContext) -> bool:
    """Filesystem error while preparing or writing the destination"""
    if isinstance(error, FileWriteError):
        return True

    return isinstance(error, OSError) and error.errno in WRITE_ERRNOS


# =============================================================================
# RULE TABLE
# =============================================================================

CLASSIFICATION_RULES: List[Tuple[str, Predicate, Factory]] = [
    (
        "tool_not_found",
        is_tool_missing,
        lambda error, ctx: ToolNotFoundError(ctx.tool_path, error, hint=tool_hint(ctx.tool_path)),
    ),
    (
        "device_unavailable",
        is_device_unavailable,
        lambda error, ctx: DeviceUnavailableError(ctx.device_id, ctx.platform, error),
    ),
    (
        "operation_aborted",
        is_aborted,
        lambda error, ctx: OperationAbortedError(
            f"{_platform_label(ctx.platform)} {ctx.operation}",
            reason=getattr(error, "reason", None),
            cause=error,
        ),
    ),
    (
        "file_write",
        is_write_failure,
        lambda error, ctx: FileWriteError(ctx.output_path, error),
    ),
]


def tool_hint(tool_path: str) -> str:
    """Troubleshooting text for a missing tool, empty for unknown tools"""
    name = Path(str(tool_path)).name
    if name.endswith(".exe"):
        name = name[:-4]
    return TOOL_HINTS.get(name, "")


def _platform_label(platform: str) -> str:
    return "iOS" if platform == "ios" else platform.capitalize()


def classify_error(error: Any, context: ErrorContext) -> RecordingError:
    """
    Map a raw failure onto the recording error taxonomy.

    Never raises. Errors that are already RecordingErrors pass through
    unchanged; values that are not exceptions at all become a
    RecordingFailedError without a cause.

    Args:
        error: Whatever was caught
        context: Recording details used to build the error message

    Returns:
        The classified RecordingError

    Example:
        try:
            await controller.started()
        except Exception as e:
            raise classify_error(e, context)
    """
    if isinstance(error, RecordingError):
        return error

    if not isinstance(error, BaseException):
        logger.debug(f"Classifying non-exception failure: {error!r}")
        return RecordingFailedError(context.platform)

    for name, predicate, factory in CLASSIFICATION_RULES:
        try:
            if predicate(error, context):
                logger.debug(f"Classified {type(error).__name__} as {name}")
                return factory(error, context)
        except Exception as e:
            logger.error(f"Error classification rule '{name}' failed: {e}")

    return RecordingFailedError(context.platform, error)


def classify_rule_name(error: Any, context: ErrorContext) -> Optional[str]:
    """Name of the first rule matching an error, None if none match"""
    if not isinstance(error, BaseException):
        return None

    for name, predicate, _factory in CLASSIFICATION_RULES:
        if predicate(error, context):
            return name

    return None
