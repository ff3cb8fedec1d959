"""
Recording Factory

Single place that maps a platform tag to its recorder implementation.
Instance defaults can come from config/recorder.yaml; explicit keyword
options override them.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

from recording.config import load_config_file
from recording.constants import PLATFORM_DEFAULTS, Platform
from recording.controllers.platform_recorder import PlatformRecorder
from recording.implementations.android_recorder import AndroidRecorder
from recording.implementations.ios_recorder import IOSRecorder
from recording.interfaces.recorder_interface import UnsupportedPlatformError

RECORDERS: Dict[Platform, Type[PlatformRecorder]] = {
    Platform.IOS: IOSRecorder,
    Platform.ANDROID: AndroidRecorder,
}


class RecordingFactory:
    """
    Factory for creating platform recorders.

    Usage:
        # Defaults from settings (and config/recorder.yaml if present)
        recorder = RecordingFactory.create_recorder("ios")

        # Explicit options win over the YAML file
        recorder = RecordingFactory.create_recorder(
            "android",
            device_id="emulator-5554",
            audio=False,
        )
    """

    _logger = logging.getLogger(__name__)

    @classmethod
    def create_recorder(
        cls,
        platform: Union[str, Platform],
        config_path: Optional[Path] = None,
        **options: Any,
    ) -> PlatformRecorder:
        """
        Create a recorder for a platform.

        Args:
            platform: "ios" or "android"
            config_path: YAML defaults file (None = RECORDER_CONFIG_PATH)
            **options: Instance defaults, overriding the YAML file

        Returns:
            IOSRecorder or AndroidRecorder

        Raises:
            UnsupportedPlatformError: If the platform tag is unknown
            ValueError: If an option is unknown or invalid

        Example:
            recorder = RecordingFactory.create_recorder("ios", codec="h264")
        """
        resolved = cls.parse_platform(platform)

        file_defaults = load_config_file(config_path).get(resolved.value, {})
        instance_options = {**file_defaults, **options}

        recorder_class = RECORDERS[resolved]
        cls._logger.info(f"Creating {recorder_class.__name__}")
        return recorder_class(**instance_options)

    @classmethod
    def parse_platform(cls, platform: Union[str, Platform]) -> Platform:
        """
        Convert a platform tag to Platform.

        Raises:
            UnsupportedPlatformError: If the tag is unknown
        """
        if isinstance(platform, Platform):
            return platform

        try:
            return Platform(str(platform).lower())
        except ValueError:
            raise UnsupportedPlatformError(platform) from None

    @classmethod
    def is_tool_available(cls) -> Dict[str, bool]:
        """
        Check which default recording tools are installed.

        Useful for diagnostics before recording.

        Returns:
            Dictionary like {'ios': True, 'android': False}

        Example:
            status = RecordingFactory.is_tool_available()
            if not status['android']:
                print("Warning: scrcpy not installed")
        """
        return {
            platform.value: shutil.which(defaults["tool_path"]) is not None
            for platform, defaults in PLATFORM_DEFAULTS.items()
        }


# Convenience function for quick creation

def create_recorder(platform: Union[str, Platform], **options: Any) -> PlatformRecorder:
    """
    Quick recorder creation.

    Example:
        recorder = create_recorder("ios")
        session = await recorder.start_recording()
    """
    return RecordingFactory.create_recorder(platform, **options)
