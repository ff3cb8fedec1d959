"""
Recording Constants

Enums and fixed values for the screen recording system.

Note: Tunable values (tool paths, delays, grace periods, markers) live in
config/settings.py. This file only holds enums, rule keywords and the
platform-default tables derived from settings.
"""

from enum import Enum
from typing import Any, Dict

from config.settings import (
    ADB_PATH,
    ANDROID_DEFAULT_DELAY,
    IOS_DEFAULT_DELAY,
    RECORDING_OUTPUT_DIR,
    SCRCPY_PATH,
    XCRUN_PATH,
)

# =============================================================================
# PLATFORMS
# =============================================================================


class Platform(Enum):
    """Platforms a recorder can target."""

    IOS = "ios"
    ANDROID = "android"


# =============================================================================
# PROCESS STATE TRACKING
# =============================================================================


class ProcessState(Enum):
    """
    States a recording process can be in.

    Lifecycle: STARTING -> RUNNING -> STOPPED
    Any state may move to FAILED. STOPPED and FAILED are terminal.
    """

    STARTING = "starting"  # Spawned (or spawning), not yet ready
    RUNNING = "running"  # Readiness observed, tool is recording
    STOPPED = "stopped"  # Exited cleanly
    FAILED = "failed"  # Spawn error, bad exit, or cancelled before ready


TERMINAL_STATES = frozenset({ProcessState.STOPPED, ProcessState.FAILED})

# Allowed forward moves; anything else is a bug in the controller
PROCESS_TRANSITIONS = {
    ProcessState.STARTING: {ProcessState.RUNNING, ProcessState.FAILED},
    ProcessState.RUNNING: {ProcessState.STOPPED, ProcessState.FAILED},
    ProcessState.STOPPED: set(),
    ProcessState.FAILED: set(),
}


# =============================================================================
# ON-ERROR POLICIES
# =============================================================================

ON_ERROR_THROW = "throw"
ON_ERROR_IGNORE = "ignore"
ON_ERROR_POLICIES = (ON_ERROR_THROW, ON_ERROR_IGNORE)


# =============================================================================
# ERROR CLASSIFICATION KEYWORDS
# =============================================================================
# Matched case-insensitively against the failure message (which includes
# the tool's trailing stderr)

TOOL_MISSING_KEYWORDS = (
    "command not found",
    "enoent",
)

DEVICE_UNAVAILABLE_KEYWORDS = (
    "invalid device",
    "device not found",
    "device offline",
    "no devices/emulators found",
    "could not find any adb device",
    "not booted",
)

ABORT_KEYWORDS = (
    "aborted",
    "interrupted",
)


# =============================================================================
# PLATFORM DEFAULTS
# =============================================================================
# Lowest tier of the configuration merge: per-call > instance > these

PLATFORM_DEFAULTS: Dict[Platform, Dict[str, Any]] = {
    Platform.IOS: {
        "tool_path": XCRUN_PATH,
        "output_path": RECORDING_OUTPUT_DIR,
        "startup_delay": IOS_DEFAULT_DELAY,
        "stop_delay": IOS_DEFAULT_DELAY,
        "on_error": ON_ERROR_THROW,
    },
    Platform.ANDROID: {
        "tool_path": SCRCPY_PATH,
        "output_path": RECORDING_OUTPUT_DIR,
        "startup_delay": ANDROID_DEFAULT_DELAY,
        "stop_delay": ANDROID_DEFAULT_DELAY,
        "on_error": ON_ERROR_THROW,
        "adb_path": ADB_PATH,
        "audio": True,
        "window": True,
    },
}


# =============================================================================
# TROUBLESHOOTING HINTS
# =============================================================================
# Appended to ToolNotFoundError messages, keyed by executable name

TOOL_HINTS: Dict[str, str] = {
    "xcrun": """
Make sure Xcode command line tools are installed:

* xcode-select --install
* Or set XCRUN_PATH / tool_path to the xcrun executable""",
    "adb": """
To fix ADB issues:

1. Install Android SDK Platform-Tools (Android Studio SDK Manager or
   https://developer.android.com/studio/releases/platform-tools)
2. Add platform-tools to PATH:
   export PATH="$ANDROID_HOME/platform-tools:$PATH"
3. Or set ADB_PATH / adb_path, common locations:
   - macOS: ~/Library/Android/sdk/platform-tools/adb
   - Linux: ~/Android/Sdk/platform-tools/adb""",
    "scrcpy": """
To install scrcpy:

* macOS: brew install scrcpy
* Linux: apt install scrcpy (Ubuntu/Debian) or snap install scrcpy
* From source: https://github.com/Genymobile/scrcpy

Make sure scrcpy is in your PATH or set SCRCPY_PATH / tool_path.""",
}
