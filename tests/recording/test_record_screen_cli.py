"""
Command Line Tests

Tests for record_screen.py argument handling and exit codes.

To run:
    pytest tests/recording/test_record_screen_cli.py -v
"""

import logging

import pytest

import record_screen


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging() adds a handler to the root logger; undo it"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.mark.unit
def test_recorder_options_ios():
    """Test iOS flags become recorder options."""
    args = record_screen.build_parser().parse_args(["ios", "--device", "ABC", "--codec", "h264"])

    assert record_screen.recorder_options(args) == {"device_id": "ABC", "codec": "h264"}


@pytest.mark.unit
def test_recorder_options_android():
    """Test Android flags become option groups."""
    args = record_screen.build_parser().parse_args(
        ["android", "--no-window", "--no-audio", "--codec", "h265", "--delay", "0.5"],
    )

    assert record_screen.recorder_options(args) == {
        "delay": 0.5,
        "recording": {"codec": "h265"},
        "window": False,
        "audio": False,
    }


@pytest.mark.unit
def test_unknown_platform_rejected():
    """Test argparse refuses unknown platforms."""
    with pytest.raises(SystemExit):
        record_screen.build_parser().parse_args(["symbian"])


@pytest.mark.unit_integration
def test_records_for_duration(fake_xcrun, recording_dir, tmp_path, capsys):
    """Test a timed recording prints the saved path and exits 0."""
    exit_code = record_screen.main([
        "ios",
        "--tool-path", str(fake_xcrun),
        "--output", str(recording_dir),
        "--config", str(tmp_path / "absent.yaml"),
        "--duration", "0.3",
    ])

    assert exit_code == 0
    printed = capsys.readouterr().out.strip()
    assert printed.startswith(str(recording_dir.resolve()))
    assert printed.endswith(".mp4")


@pytest.mark.unit_integration
def test_missing_tool_exit_code(tmp_path):
    """Test a failed recording exits 1."""
    exit_code = record_screen.main([
        "android",
        "--tool-path", str(tmp_path / "scrcpy"),
        "--output", str(tmp_path),
        "--config", str(tmp_path / "absent.yaml"),
    ])

    assert exit_code == 1


@pytest.mark.unit
def test_log_level_validated_by_parser():
    """Test an unknown log level is a usage error, any case is accepted."""
    parser = record_screen.build_parser()

    assert parser.parse_args(["ios", "--log-level", "debug"]).log_level == "DEBUG"

    with pytest.raises(SystemExit) as exc_info:
        parser.parse_args(["ios", "--log-level", "loud"])

    assert exc_info.value.code == 2
