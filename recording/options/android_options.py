"""
Android Recording Options

Builds scrcpy arguments from grouped option mappings. Argument order is
fixed: serial, record path, time limit, then the groups below in order.

Groups (each a mapping; window and audio also accept False to disable):

    tunnel    host, port
    window    enabled, borderless, title, x, y, width, height,
              always_on_top, fullscreen
    recording bit_rate, codec, format, max_size, crop {width, height, x, y},
              orientation, time_limit
    audio     enabled, source, codec, bit_rate, buffer, encoder
    debug     show_touches, log_level, print_fps
    input     keyboard, mouse, raw_key_events, prefer_text,
              shortcut_modifiers
    app       start_app, force_stop, new_display (True or {width, height, dpi})
    screen    turn_off, timeout
    advanced  render_driver, video_source, otg, stay_awake, no_power_on,
              kill_adb_on_close, power_off_on_close, disable_screensaver

True for window or audio means "scrcpy default" and adds nothing.
"""

from typing import Any, List, Mapping, Optional

ANDROID_OPTION_GROUPS = (
    "tunnel",
    "window",
    "recording",
    "audio",
    "debug",
    "input",
    "app",
    "screen",
    "advanced",
)

# (option key, scrcpy flag) pairs for boolean switches
WINDOW_SWITCHES = (
    ("borderless", "--window-borderless"),
)
WINDOW_GEOMETRY = (
    ("x", "--window-x"),
    ("y", "--window-y"),
    ("width", "--window-width"),
    ("height", "--window-height"),
)
INPUT_SWITCHES = (
    ("raw_key_events", "--raw-key-events"),
    ("prefer_text", "--prefer-text"),
)
ADVANCED_SWITCHES = (
    ("otg", "--otg"),
    ("stay_awake", "--stay-awake"),
    ("no_power_on", "--no-power-on"),
    ("kill_adb_on_close", "--kill-adb-on-close"),
    ("power_off_on_close", "--power-off-on-close"),
    ("disable_screensaver", "--disable-screensaver"),
)


def format_number(value: Any) -> str:
    """Render a number the way scrcpy expects (30.0 -> "30")"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_android_args(
    options: Optional[Mapping[str, Any]] = None,
    device_id: Optional[str] = None,
    output_path: Optional[str] = None,
    timeout: Optional[float] = None,
) -> List[str]:
    """
    Build scrcpy arguments for recording a device.

    Args:
        options: Option groups (see module docstring)
        device_id: adb serial (None = scrcpy picks the only device)
        output_path: Video file passed to --record
        timeout: Recording limit in seconds, passed as --time-limit.
                 Takes precedence over recording.time_limit.

    Returns:
        Argument list, without the scrcpy executable itself

    Example:
        build_android_args(
            {"window": False, "audio": False},
            device_id="emulator-5554",
            output_path="/tmp/out.mp4",
        )
        # Returns: ["--serial", "emulator-5554", "--record", "/tmp/out.mp4",
        #           "--no-window", "--no-audio"]
    """
    options = options or {}
    args: List[str] = []

    if device_id:
        args.extend(["--serial", str(device_id)])

    if output_path:
        args.extend(["--record", str(output_path)])

    if timeout is not None:
        args.extend(["--time-limit", format_number(timeout)])

    args.extend(_tunnel_args(options.get("tunnel")))
    args.extend(_window_args(options.get("window")))
    args.extend(_recording_args(options.get("recording"), timeout))
    args.extend(_audio_args(options.get("audio")))
    args.extend(_debug_args(options.get("debug")))
    args.extend(_input_args(options.get("input")))
    args.extend(_app_args(options.get("app")))
    args.extend(_screen_args(options.get("screen")))
    args.extend(_advanced_args(options.get("advanced")))

    return args


# =============================================================================
# GROUP BUILDERS
# =============================================================================


def _tunnel_args(tunnel: Optional[Mapping[str, Any]]) -> List[str]:
    if not tunnel:
        return []

    args = []
    if tunnel.get("host"):
        args.extend(["--tunnel-host", str(tunnel["host"])])
    if tunnel.get("port") is not None:
        args.extend(["--tunnel-port", format_number(tunnel["port"])])
    return args


def _window_args(window: Any) -> List[str]:
    if window is False:
        return ["--no-window"]
    if not isinstance(window, Mapping):
        return []

    args = []
    if window.get("enabled") is False:
        args.append("--no-window")
    for key, flag in WINDOW_SWITCHES:
        if window.get(key):
            args.append(flag)
    if window.get("title"):
        args.extend(["--window-title", str(window["title"])])
    for key, flag in WINDOW_GEOMETRY:
        if window.get(key) is not None:
            args.extend([flag, format_number(window[key])])
    if window.get("always_on_top"):
        args.append("--always-on-top")
    if window.get("fullscreen"):
        args.append("--fullscreen")
    return args


def _recording_args(recording: Optional[Mapping[str, Any]], timeout: Optional[float]) -> List[str]:
    if not recording:
        return []

    args = []
    if recording.get("bit_rate") is not None:
        args.extend(["--video-bit-rate", format_number(recording["bit_rate"])])
    if recording.get("codec"):
        args.extend(["--video-codec", str(recording["codec"])])
    if recording.get("format"):
        args.extend(["--record-format", str(recording["format"])])
    if recording.get("max_size") is not None:
        args.extend(["--max-size", format_number(recording["max_size"])])

    crop = recording.get("crop")
    if crop:
        args.extend(["--crop", f"{crop['width']}:{crop['height']}:{crop['x']}:{crop['y']}"])

    if recording.get("orientation") is not None:
        args.extend(["--record-orientation", format_number(recording["orientation"])])

    # The top-level timeout already produced --time-limit
    if recording.get("time_limit") is not None and timeout is None:
        args.extend(["--time-limit", format_number(recording["time_limit"])])
    return args


def _audio_args(audio: Any) -> List[str]:
    if audio is False:
        return ["--no-audio"]
    if not isinstance(audio, Mapping):
        return []

    args = []
    if audio.get("enabled") is False:
        args.append("--no-audio")
    if audio.get("source"):
        args.extend(["--audio-source", str(audio["source"])])
    if audio.get("codec"):
        args.extend(["--audio-codec", str(audio["codec"])])
    if audio.get("bit_rate") is not None:
        args.extend(["--audio-bit-rate", format_number(audio["bit_rate"])])
    if audio.get("buffer") is not None:
        args.extend(["--audio-buffer", format_number(audio["buffer"])])
    if audio.get("encoder"):
        args.extend(["--audio-encoder", str(audio["encoder"])])
    return args


def _debug_args(debug: Optional[Mapping[str, Any]]) -> List[str]:
    if not debug:
        return []

    args = []
    if debug.get("show_touches"):
        args.append("--show-touches")
    if debug.get("log_level"):
        args.extend(["--verbosity", str(debug["log_level"])])
    if debug.get("print_fps"):
        args.append("--print-fps")
    return args


def _input_args(input_options: Optional[Mapping[str, Any]]) -> List[str]:
    if not input_options:
        return []

    args = []
    if input_options.get("keyboard"):
        args.extend(["--keyboard", str(input_options["keyboard"])])
    if input_options.get("mouse"):
        args.extend(["--mouse", str(input_options["mouse"])])
    for key, flag in INPUT_SWITCHES:
        if input_options.get(key):
            args.append(flag)
    modifiers = input_options.get("shortcut_modifiers")
    if modifiers:
        args.extend(["--shortcut-mod", ",".join(modifiers)])
    return args


def _app_args(app: Optional[Mapping[str, Any]]) -> List[str]:
    if not app:
        return []

    args = []
    if app.get("start_app"):
        prefix = "+" if app.get("force_stop") else ""
        args.extend(["--start-app", f"{prefix}{app['start_app']}"])

    new_display = app.get("new_display")
    if new_display is True:
        args.append("--new-display")
    elif isinstance(new_display, Mapping):
        value = ""
        if new_display.get("width") and new_display.get("height"):
            value = f"{new_display['width']}x{new_display['height']}"
        if new_display.get("dpi"):
            value += f"/{new_display['dpi']}"
        args.extend(["--new-display", value] if value else ["--new-display"])
    return args


def _screen_args(screen: Optional[Mapping[str, Any]]) -> List[str]:
    if not screen:
        return []

    args = []
    if screen.get("turn_off"):
        args.append("--turn-screen-off")
    if screen.get("timeout") is not None:
        args.extend(["--screen-off-timeout", format_number(screen["timeout"])])
    return args


def _advanced_args(advanced: Optional[Mapping[str, Any]]) -> List[str]:
    if not advanced:
        return []

    args = []
    if advanced.get("render_driver"):
        args.extend(["--render-driver", str(advanced["render_driver"])])
    if advanced.get("video_source"):
        args.extend(["--video-source", str(advanced["video_source"])])
    for key, flag in ADVANCED_SWITCHES:
        if advanced.get(key):
            args.append(flag)
    return args
