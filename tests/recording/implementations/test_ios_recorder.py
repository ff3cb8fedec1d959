"""
iOS Recorder Tests

End-to-end tests against a fake xcrun:
- Start and stop a recording
- Timeout before and after readiness
- Failure classification and on-error policies

To run:
    pytest tests/recording/implementations/test_ios_recorder.py -v
"""

import asyncio

import pytest

from recording.config import RecordingConfig
from recording.constants import ProcessState
from recording.implementations.ios_recorder import IOSRecorder
from recording.interfaces.recorder_interface import (
    DeviceUnavailableError,
    OperationAbortedError,
    ToolNotFoundError,
)

# =============================================================================
# ARGUMENT TESTS
# =============================================================================


@pytest.mark.unit
def test_build_args(tmp_path):
    """Test simctl arguments with options and the output path last."""
    recorder = IOSRecorder(codec="h264", mask="black")
    video = tmp_path / "out.mp4"

    args = recorder.build_args(recorder.config, video)

    assert args == [
        "simctl", "io", "booted", "recordVideo",
        "--codec", "h264", "--mask", "black", str(video),
    ]


@pytest.mark.unit
def test_defaults():
    """Test iOS platform defaults."""
    recorder = IOSRecorder()

    assert recorder.config.startup_delay == 0
    assert recorder.config.stop_delay == 0
    assert recorder.config.on_error == "throw"
    assert recorder.file_extension(recorder.config) == "mp4"
    assert recorder.ready_matcher(recorder.config) is not None


# =============================================================================
# RECORDING TESTS
# =============================================================================


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_record_to_directory(fake_xcrun, recording_dir):
    """Test a full recording into a directory."""
    recorder = IOSRecorder(tool_path=str(fake_xcrun), output_path=str(recording_dir))

    session = await asyncio.wait_for(recorder.start_recording(), timeout=10)
    assert session is not None
    assert session.process.state == ProcessState.RUNNING

    video = await asyncio.wait_for(session.stop(), timeout=10)

    assert video.parent == recording_dir.resolve()
    assert video.name.startswith("ios-video-")
    assert video.exists()


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_per_call_output_overrides_instance(fake_xcrun, recording_dir):
    """Test per-call options win over instance defaults."""
    recorder = IOSRecorder(tool_path=str(fake_xcrun), output_path=str(recording_dir / "a"))
    target = recording_dir / "b" / "clip.mp4"

    session = await asyncio.wait_for(
        recorder.start_recording(output_path=str(target)),
        timeout=10,
    )
    video = await asyncio.wait_for(session.stop(), timeout=10)

    assert video == target.resolve()


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_timeout_before_ready(fake_tool, recording_dir):
    """Test the timeout aborts a tool that never gets ready."""
    recorder = IOSRecorder(tool_path=str(fake_tool("silent")), output_path=str(recording_dir))

    with pytest.raises(OperationAbortedError) as exc_info:
        await asyncio.wait_for(recorder.start_recording(timeout=0.5), timeout=10)

    assert "Recording timed out after 500ms" in str(exc_info.value)


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_timeout_after_ready_stops_recording(fake_xcrun, recording_dir):
    """Test a timeout during recording ends it with a usable file."""
    recorder = IOSRecorder(tool_path=str(fake_xcrun), output_path=str(recording_dir))

    session = await asyncio.wait_for(recorder.start_recording(timeout=0.5), timeout=10)
    await asyncio.wait_for(session.process.wait(), timeout=10)

    video = await session.stop()

    assert video is not None and video.exists()


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_cancelled_before_start(fake_xcrun, recording_dir, cancellation):
    """Test an already-cancelled signal fails fast."""
    cancellation.trigger("not today")
    recorder = IOSRecorder(tool_path=str(fake_xcrun), output_path=str(recording_dir))

    with pytest.raises(OperationAbortedError) as exc_info:
        await recorder.start_recording(cancellation=cancellation, timeout=30)

    assert exc_info.value.reason == "not today"
    assert list(recording_dir.iterdir()) == []


# =============================================================================
# FAILURE TESTS
# =============================================================================


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_missing_xcrun(tmp_path):
    """Test a missing xcrun is reported as ToolNotFoundError."""
    recorder = IOSRecorder(tool_path=str(tmp_path / "xcrun"), output_path=str(tmp_path))

    with pytest.raises(ToolNotFoundError) as exc_info:
        await asyncio.wait_for(recorder.start_recording(), timeout=10)

    assert "xcode-select --install" in str(exc_info.value)


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_invalid_device(fake_tool, recording_dir):
    """Test simctl's invalid device message."""
    recorder = IOSRecorder(
        tool_path=str(fake_tool("invalid_device")),
        output_path=str(recording_dir),
        device_id="NOT-A-UDID",
    )

    with pytest.raises(DeviceUnavailableError) as exc_info:
        await asyncio.wait_for(recorder.start_recording(), timeout=10)

    assert "NOT-A-UDID" in str(exc_info.value)


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_ignore_policy(tmp_path):
    """Test ignore returns None instead of raising."""
    recorder = IOSRecorder(tool_path=str(tmp_path / "xcrun"), on_error="ignore")

    assert await asyncio.wait_for(recorder.start_recording(), timeout=10) is None


@pytest.mark.unit_integration
@pytest.mark.asyncio
async def test_callback_policy(tmp_path, error_tracker):
    """Test a per-call callback policy receives the error."""
    recorder = IOSRecorder(tool_path=str(tmp_path / "xcrun"))

    result = await asyncio.wait_for(
        recorder.start_recording(on_error=error_tracker),
        timeout=10,
    )

    assert result is None
    assert isinstance(error_tracker.last, ToolNotFoundError)


@pytest.mark.unit
def test_invalid_override_rejected():
    """Test unknown per-call options are refused up front."""
    recorder = IOSRecorder()

    with pytest.raises(ValueError):
        RecordingConfig.resolve("ios", {}, {"frame_rate": 60})

    with pytest.raises(ValueError):
        recorder.config.with_overrides(timeout=-1)
