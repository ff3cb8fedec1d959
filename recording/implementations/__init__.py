"""
Recording Implementations Package

Platform recorders: iOS Simulator (xcrun simctl) and Android (scrcpy).
"""

from recording.implementations.android_recorder import AndroidRecorder
from recording.implementations.ios_recorder import IOSRecorder

# Public API
__all__ = [
    "AndroidRecorder",
    "IOSRecorder",
]
