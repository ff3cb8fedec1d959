"""
Recording Options Package

Turns option mappings into command-line arguments for each platform tool.
"""

from recording.options.android_options import ANDROID_OPTION_GROUPS, build_android_args
from recording.options.ios_options import IOS_OPTION_KEYS, build_ios_args

# Public API
__all__ = [
    "ANDROID_OPTION_GROUPS",
    "IOS_OPTION_KEYS",
    "build_android_args",
    "build_ios_args",
]
