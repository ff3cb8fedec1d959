"""
Recording Configuration

Immutable, validated view of every setting a single recording uses.

Values come from three tiers, highest first:
    1. Per-call overrides    recorder.start_recording(timeout=10)
    2. Instance defaults     create_recorder("android", audio=False)
                             (optionally read from config/recorder.yaml)
    3. Platform defaults     recording.constants.PLATFORM_DEFAULTS

None never overrides a lower tier. Option groups (e.g. Android "audio")
are replaced as a whole, not merged key by key.

Example config/recorder.yaml:

    ios:
      device_id: 8A1B2C3D-...
      codec: h264
    android:
      delay: [0.5, 0.5]
      audio: false
      recording:
        format: mkv
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from config.settings import RECORDER_CONFIG_PATH
from recording.constants import ON_ERROR_THROW, PLATFORM_DEFAULTS, Platform
from recording.options import ANDROID_OPTION_GROUPS, IOS_OPTION_KEYS
from recording.utils.cancellation import CancellationSignal
from recording.utils.recording_utils import OnErrorPolicy, validate_on_error

logger = logging.getLogger(__name__)

# Settings shared by every platform
BASE_KEYS = frozenset({
    "device_id",
    "output_path",
    "tool_path",
    "cancellation",
    "timeout",
    "startup_delay",
    "stop_delay",
    "on_error",
})

# Extra top-level settings and tool options per platform
PLATFORM_KEYS = {
    Platform.IOS: frozenset(),
    Platform.ANDROID: frozenset({"adb_path"}),
}
PLATFORM_OPTION_KEYS = {
    Platform.IOS: frozenset(IOS_OPTION_KEYS),
    Platform.ANDROID: frozenset(ANDROID_OPTION_GROUPS),
}

# Tool-specific spellings of tool_path
TOOL_PATH_ALIASES = {
    Platform.IOS: "xcrun_path",
    Platform.ANDROID: "scrcpy_path",
}

Delay = Union[float, int, tuple, list]


def parse_platform(platform: Union[str, Platform]) -> Platform:
    """
    Convert a platform tag to Platform.

    Raises:
        ValueError: If the tag is unknown
    """
    if isinstance(platform, Platform):
        return platform
    return Platform(str(platform).lower())


def expand_delay(delay: Delay) -> Dict[str, float]:
    """
    Expand the delay shorthand.

    A single number sets both delays; a (startup, stop) pair sets each.

    Raises:
        ValueError: If delay is neither a number nor a pair
    """
    if isinstance(delay, (tuple, list)):
        if len(delay) != 2:
            raise ValueError(f"delay must be a number or (startup, stop) pair, got {delay!r}")
        return {"startup_delay": float(delay[0]), "stop_delay": float(delay[1])}

    if isinstance(delay, bool) or not isinstance(delay, (int, float)):
        raise ValueError(f"delay must be a number or (startup, stop) pair, got {delay!r}")

    return {"startup_delay": float(delay), "stop_delay": float(delay)}


@dataclass(frozen=True)
class RecordingConfig:
    """
    Settings for one recording.

    Build with RecordingConfig.resolve() rather than directly, so the
    platform defaults and the delay shorthand are applied.

    Usage:
        config = RecordingConfig.resolve(
            "ios",
            instance={"device_id": "booted"},
            overrides={"timeout": 30},
        )
        config.tool_path  # "/usr/bin/xcrun"
    """

    platform: Platform
    tool_path: str
    device_id: Optional[str] = None
    output_path: Optional[str] = None
    cancellation: Optional[CancellationSignal] = None
    timeout: Optional[float] = None
    startup_delay: float = 0.0
    stop_delay: float = 0.0
    on_error: OnErrorPolicy = ON_ERROR_THROW
    adb_path: Optional[str] = None
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self._validate()
        # Freeze the option groups too
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def _validate(self) -> None:
        if not self.tool_path:
            raise ValueError("tool_path must not be empty")

        if self.startup_delay < 0:
            raise ValueError(f"startup_delay cannot be negative: {self.startup_delay}")

        if self.stop_delay < 0:
            raise ValueError(f"stop_delay cannot be negative: {self.stop_delay}")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive: {self.timeout}")

        if self.cancellation is not None and not isinstance(self.cancellation, CancellationSignal):
            raise ValueError("cancellation must be a CancellationSignal")

        validate_on_error(self.on_error)

    @classmethod
    def resolve(
        cls,
        platform: Union[str, Platform],
        instance: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "RecordingConfig":
        """
        Merge per-call overrides, instance defaults and platform defaults.

        Args:
            platform: "ios" / "android" or Platform
            instance: Recorder instance defaults
            overrides: Per-call values

        Returns:
            Validated RecordingConfig

        Raises:
            ValueError: On unknown keys or invalid values
        """
        platform = parse_platform(platform)

        merged: Dict[str, Any] = {}
        for layer in (PLATFORM_DEFAULTS[platform], instance or {}, overrides or {}):
            merged.update(cls._normalize(platform, layer))

        option_keys = PLATFORM_OPTION_KEYS[platform]
        options = {key: merged.pop(key) for key in list(merged) if key in option_keys}

        return cls(platform=platform, options=options, **merged)

    @staticmethod
    def _normalize(platform: Platform, layer: Mapping[str, Any]) -> Dict[str, Any]:
        """Drop None values, expand shorthands and reject unknown keys"""
        allowed = BASE_KEYS | PLATFORM_KEYS[platform] | PLATFORM_OPTION_KEYS[platform]
        alias = TOOL_PATH_ALIASES[platform]

        values: Dict[str, Any] = {}
        delay_values: Dict[str, float] = {}

        for key, value in layer.items():
            if value is None:
                continue

            if key == "delay":
                delay_values = expand_delay(value)
            elif key == alias:
                values["tool_path"] = str(value)
            elif key in allowed:
                values[key] = value
            else:
                raise ValueError(f"Unknown {platform.value} recording option: {key!r}")

        # Explicit startup_delay / stop_delay beat the shorthand in the same tier
        for key, value in delay_values.items():
            values.setdefault(key, value)

        for key in ("output_path", "tool_path", "adb_path"):
            if key in values:
                values[key] = str(values[key])

        return values

    def with_overrides(self, **overrides: Any) -> "RecordingConfig":
        """New config with per-call overrides applied on top of this one"""
        current = {
            "tool_path": self.tool_path,
            "device_id": self.device_id,
            "output_path": self.output_path,
            "cancellation": self.cancellation,
            "timeout": self.timeout,
            "startup_delay": self.startup_delay,
            "stop_delay": self.stop_delay,
            "on_error": self.on_error,
            **dict(self.options),
        }
        if self.platform is Platform.ANDROID:
            current["adb_path"] = self.adb_path

        return RecordingConfig.resolve(self.platform, current, overrides)


# =============================================================================
# YAML DEFAULTS FILE
# =============================================================================


def load_config_file(config_path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load recorder instance defaults from a YAML file.

    A missing file is normal and yields no defaults. A file that cannot
    be read or parsed is logged and ignored.

    Args:
        config_path: YAML file (None = RECORDER_CONFIG_PATH)

    Returns:
        Mapping of platform tag ("ios" / "android") to defaults
    """
    config_path = Path(config_path or RECORDER_CONFIG_PATH)

    if not config_path.exists():
        logger.debug(f"No recorder config at {config_path}, using defaults")
        return {}

    try:
        with open(config_path, "r") as f:
            file_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load recorder config from {config_path}: {e}. Using defaults.")
        return {}

    if not isinstance(file_config, dict):
        logger.warning(f"Recorder config {config_path} is not a mapping, ignoring it")
        return {}

    defaults: Dict[str, Dict[str, Any]] = {}
    for platform_tag, values in file_config.items():
        try:
            platform = parse_platform(platform_tag)
        except ValueError:
            logger.warning(f"Unknown platform {platform_tag!r} in {config_path}, skipping")
            continue

        if not isinstance(values, dict):
            logger.warning(f"Section {platform_tag!r} in {config_path} is not a mapping, skipping")
            continue

        defaults[platform.value] = values

    logger.info(f"Loaded recorder config from {config_path}")
    return defaults
