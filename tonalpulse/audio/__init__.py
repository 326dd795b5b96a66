"""
Audio device playback and capture.

Uses sounddevice (PortAudio), loaded on first use.
"""

from .devices import play, microphone_frames, devices_available

__all__ = ['play', 'microphone_frames', 'devices_available']
