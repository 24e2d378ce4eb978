"""
Speech backends for article playback.

- devices: interfaces to the playback device (speech engine, audio player)
- backends: device, cloud and saved-audio backends with capability flags
- selector: picks the backend from credential presence and resolves voices

Architecture Overview:

    ┌──────────────┐   target()   ┌────────────────────────┐
    │ ArticlePlayer│─────────────▶│ SpeechBackendSelector  │
    └──────────────┘              └────────────────────────┘
           │                        │ credential?  │ no credential
           │ speak(chunk)           ▼              ▼
           │              ┌──────────────────┐  ┌─────────────────────┐
           └─────────────▶│CloudSpeechBackend│  │ DeviceSpeechBackend │
                          └──────────────────┘  └─────────────────────┘
                             │ synthesize           │ speak
                             ▼                      ▼
                     ┌───────────────┐       ┌──────────────┐
                     │ GoogleCloudTTS│       │ SpeechEngine │
                     └───────────────┘       └──────────────┘
                             │ MP3 buffer
                             ▼
                      ┌─────────────┐
                      │ AudioPlayer │
                      └─────────────┘

Saved articles bypass the selector: SavedAudioBackend feeds stored chunk
audio straight to the AudioPlayer.
"""

from .backends import (
    CloudSpeechBackend,
    DeviceSpeechBackend,
    PlaybackTarget,
    SavedAudioBackend,
    SpeechBackend,
    Utterance,
)
from .devices import AudioPlayer, SpeechEngine
from .selector import SpeechBackendSelector

__all__ = [
    "AudioPlayer",
    "CloudSpeechBackend",
    "DeviceSpeechBackend",
    "PlaybackTarget",
    "SavedAudioBackend",
    "SpeechBackend",
    "SpeechBackendSelector",
    "SpeechEngine",
    "Utterance",
]
