"""
Central Configuration File

ALL configuration values live here. This is the single source of truth.

Guidelines:
- Machine-specific tool locations belong in .env, NOT here
- Import these settings in modules: from config.settings import XCRUN_PATH
- Durations are in seconds unless the name says otherwise
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# =============================================================================
# TOOL LOCATIONS
# =============================================================================

# iOS Simulator recording goes through `xcrun simctl io <device> recordVideo`
XCRUN_PATH = os.getenv("XCRUN_PATH", "/usr/bin/xcrun")

# Android recording goes through scrcpy; "scrcpy" means "look it up on PATH"
SCRCPY_PATH = os.getenv("SCRCPY_PATH", "scrcpy")

# Optional adb override, forwarded to scrcpy through the ADB env variable
ADB_PATH = os.getenv("ADB_PATH") or None

# =============================================================================
# RECORDING DEFAULTS
# =============================================================================

# Device targeted when none is given
IOS_DEFAULT_DEVICE = "booted"
ANDROID_DEFAULT_DEVICE = "default"

# Startup/stop delays (seconds)
# scrcpy needs a moment to buffer frames before "ready" means anything
IOS_DEFAULT_DELAY = 0.0
ANDROID_DEFAULT_DELAY = 0.2

# Container used when nothing else decides it
IOS_VIDEO_EXTENSION = "mp4"
ANDROID_DEFAULT_EXTENSION = "mp4"

# Where recordings go when no output path is given (None = system temp dir)
RECORDING_OUTPUT_DIR = os.getenv("RECORDING_OUTPUT_DIR") or None

# Optional YAML file holding recorder instance defaults
RECORDER_CONFIG_PATH = Path(
    os.getenv("RECORDER_CONFIG_PATH", "config/recorder.yaml"),
)

# =============================================================================
# READINESS MARKERS
# =============================================================================

# Written to stderr by `simctl io recordVideo` once frames are being captured
IOS_READY_MARKER = "Recording started"

# Logged by scrcpy at info verbosity once the recorder is running
ANDROID_READY_MARKER = "Recording started"

# scrcpy verbosity levels that suppress the ready marker
ANDROID_QUIET_LOG_LEVELS = ("warn", "error")

# =============================================================================
# PROCESS LIFECYCLE
# =============================================================================

# Seconds to wait after SIGINT before escalating to SIGKILL
STOP_GRACE_PERIOD = float(os.getenv("STOP_GRACE_PERIOD", "5.0"))

# Seconds to keep draining stdout/stderr after the child exits.
# Daemons spawned by the tool (adb server) can hold the pipes open forever.
OUTPUT_DRAIN_TIMEOUT = 1.0

# Bytes read from a stream per chunk
OUTPUT_CHUNK_SIZE = 4096

# Characters of trailing stderr kept for failure messages
MAX_OUTPUT_TAIL = 8192

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
