"""
Recording Test Configuration and Fixtures

Shared fixtures for recording module tests.

Real recording tools are replaced by small Python scripts written to a
temporary directory and made executable. They accept the same arguments
as xcrun / scrcpy and behave according to their mode:

    record            print the ready marker, record until SIGINT, write file
    no_file           like record, but never write the file
    silent            never print the marker, write file on SIGINT
    crash_after_ready print the marker, then exit 2
    ignore_sigint     print the marker, ignore SIGINT forever
    time_limit        print the marker, stop by itself after --time-limit
    device_offline    exit 1 complaining about the device
    invalid_device    exit 1 like simctl with an unknown UDID
    stdout_marker     like record, but print the marker on stdout
    split_marker      like record, but split the marker across two stderr
                      writes with stdout output in between
    cross_stream      print half the marker on each stream, then exit 3
"""

import stat
import sys
from pathlib import Path

import pytest

from recording.controllers.error_classifier import ErrorContext
from recording.utils.cancellation import CancellationSignal

FAKE_TOOL_TEMPLATE = '''#!{python}
import signal
import sys
import time

MODE = {mode!r}
MARKER = "Recording started"

args = sys.argv[1:]
if "--record" in args:
    output = args[args.index("--record") + 1]
else:
    output = args[-1] if args else None

stopped = False


def on_sigint(signum, frame):
    global stopped
    stopped = True


def finish(write=True, code=0):
    if write and output:
        with open(output, "wb") as f:
            f.write(b"fake video")
    sys.exit(code)


if MODE == "device_offline":
    sys.stderr.write("ERROR: adb: device offline\\n")
    sys.exit(1)

if MODE == "invalid_device":
    sys.stderr.write("Invalid device: NOT-A-UDID\\n")
    sys.exit(1)

if MODE == "ignore_sigint":
    signal.signal(signal.SIGINT, signal.SIG_IGN)
else:
    signal.signal(signal.SIGINT, on_sigint)

print("fake tool starting", flush=True)

if MODE == "cross_stream":
    sys.stdout.write("Recording")
    sys.stdout.flush()
    time.sleep(0.2)
    sys.stderr.write(" started? no - still initializing\\n")
    sys.stderr.flush()
    time.sleep(0.2)
    sys.exit(3)

if MODE == "stdout_marker":
    print(MARKER, flush=True)
elif MODE == "split_marker":
    sys.stderr.write("Recording")
    sys.stderr.flush()
    time.sleep(0.2)
    print("encoder initialized, waiting for first frame", flush=True)
    time.sleep(0.2)
    sys.stderr.write(" started\\n")
    sys.stderr.flush()
elif MODE != "silent":
    sys.stderr.write(MARKER + "\\n")
    sys.stderr.flush()

if MODE == "crash_after_ready":
    sys.stderr.write("fatal: encoder crashed\\n")
    sys.exit(2)

if MODE == "time_limit":
    limit = float(args[args.index("--time-limit") + 1])
    deadline = time.monotonic() + limit
    while not stopped and time.monotonic() < deadline:
        time.sleep(0.01)
    finish()

while not stopped:
    time.sleep(0.01)

finish(write=(MODE != "no_file"))
'''


# =============================================================================
# FAKE TOOL FIXTURES
# =============================================================================


@pytest.fixture
def fake_tool(tmp_path):
    """
    Provide a factory writing fake recording tools.

    Usage:
        def test_record(fake_tool):
            xcrun = fake_tool("record", name="xcrun")
            recorder = IOSRecorder(tool_path=str(xcrun))
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def make(mode: str = "record", name: str = "xcrun") -> Path:
        path = bin_dir / f"{name}-{mode}"
        path.write_text(FAKE_TOOL_TEMPLATE.format(python=sys.executable, mode=mode))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return make


@pytest.fixture
def fake_xcrun(fake_tool):
    """Fake xcrun that records until SIGINT"""
    return fake_tool("record", name="xcrun")


@pytest.fixture
def fake_scrcpy(fake_tool):
    """Fake scrcpy that records until SIGINT"""
    return fake_tool("record", name="scrcpy")


@pytest.fixture
def recording_dir(tmp_path):
    """Provide an empty output directory for recordings"""
    directory = tmp_path / "recordings"
    directory.mkdir()
    return directory


# =============================================================================
# ERROR CONTEXT FIXTURES
# =============================================================================


@pytest.fixture
def ios_context():
    """Error context of an iOS recording"""
    return ErrorContext(
        platform="ios",
        tool_path="/usr/bin/xcrun",
        device_id="booted",
        output_path="/tmp/out.mp4",
    )


@pytest.fixture
def android_context():
    """Error context of an Android recording"""
    return ErrorContext(
        platform="android",
        tool_path="scrcpy",
        device_id="emulator-5554",
        output_path="/tmp/out.mp4",
    )


# =============================================================================
# CANCELLATION FIXTURES
# =============================================================================


@pytest.fixture
def cancellation():
    """Provide a fresh caller-side cancellation signal"""
    return CancellationSignal()


@pytest.fixture
def error_tracker():
    """
    Provide a callable on-error policy that records what it receives.

    Usage:
        def test_policy(error_tracker):
            recorder = IOSRecorder(on_error=error_tracker)
            ...
            assert error_tracker.was_called()
    """

    class ErrorTracker:
        def __init__(self):
            self.errors = []

        def __call__(self, error):
            self.errors.append(error)

        def was_called(self) -> bool:
            return len(self.errors) > 0

        @property
        def last(self):
            return self.errors[-1] if self.errors else None

    return ErrorTracker()


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """
    Configure pytest with custom markers for recording tests.
    """
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "unit_integration: Integration tests spawning fake tools")
    config.addinivalue_line("markers", "slow: Slow tests")
