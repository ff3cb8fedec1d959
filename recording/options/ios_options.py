"""
iOS Recording Options

Builds `xcrun simctl io <device> recordVideo` arguments.

Supported options (all optional):
    codec    "h264" or "hevc"                      -> --codec
    display  "internal" or "external"              -> --display
    mask     "ignored", "alpha" or "black"         -> --mask
    force    overwrite an existing file            -> --force
"""

from typing import Any, List, Mapping, Optional

from config.settings import IOS_DEFAULT_DEVICE

IOS_OPTION_KEYS = ("codec", "display", "mask", "force")


def build_ios_args(
    options: Optional[Mapping[str, Any]] = None,
    device_id: Optional[str] = None,
    output_path: Optional[str] = None,
) -> List[str]:
    """
    Build xcrun arguments for recording a simulator.

    Args:
        options: iOS option values (see module docstring)
        device_id: Simulator UDID (None = the booted simulator)
        output_path: Video file, always the last argument

    Returns:
        Argument list, without the xcrun executable itself

    Example:
        build_ios_args({"codec": "h264"}, output_path="/tmp/out.mp4")
        # Returns: ["simctl", "io", "booted", "recordVideo",
        #           "--codec", "h264", "/tmp/out.mp4"]
    """
    options = options or {}

    args = ["simctl", "io", device_id if device_id is not None else IOS_DEFAULT_DEVICE]
    args.append("recordVideo")

    for key in ("codec", "display", "mask"):
        value = options.get(key)
        if value:
            args.extend([f"--{key}", str(value)])

    if options.get("force"):
        args.append("--force")

    if output_path is not None:
        args.append(str(output_path))

    return args
