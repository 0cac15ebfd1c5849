"""Audio I/O: microphone capture, PCM codecs and scheduled playback."""

from __future__ import annotations

from ministerio.io.audio_in import MicrophoneInput
from ministerio.io.audio_out import AudioOutputSink, PlaybackScheduler
from ministerio.io.pcm import decode_pcm_blob, encode_pcm_blob, float32_to_pcm16le, pcm16le_to_float32

__all__ = [
    "AudioOutputSink",
    "MicrophoneInput",
    "PlaybackScheduler",
    "decode_pcm_blob",
    "encode_pcm_blob",
    "float32_to_pcm16le",
    "pcm16le_to_float32",
]
