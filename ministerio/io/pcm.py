from __future__ import annotations

import base64

import numpy as np


def float32_to_pcm16le(samples: np.ndarray) -> bytes:
    """Clip float samples to [-1, 1] and scale to little-endian int16."""

    arr = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    return (arr * 32767.0).astype("<i2").tobytes()


def pcm16le_to_float32(pcm: bytes, *, channels: int = 1) -> np.ndarray:
    """Decode PCM16LE into float32 frames shaped (frames, channels).

    A trailing partial frame is dropped.
    """

    frame_bytes = 2 * channels
    usable = (len(pcm) // frame_bytes) * frame_bytes
    ints = np.frombuffer(pcm[:usable], dtype="<i2")
    return (ints.astype(np.float32) / 32768.0).reshape(-1, channels)


def pcm_mime_type(sample_rate: int) -> str:
    return f"audio/pcm;rate={sample_rate}"


def encode_pcm_blob(samples: np.ndarray, *, sample_rate: int) -> dict[str, str]:
    """Float frame -> {"data": base64 PCM16LE, "mimeType": "audio/pcm;rate=N"}."""

    pcm = float32_to_pcm16le(samples)
    return {"data": base64.b64encode(pcm).decode("ascii"), "mimeType": pcm_mime_type(sample_rate)}


def decode_pcm_blob(data_b64: str, *, channels: int = 1) -> np.ndarray:
    return pcm16le_to_float32(base64.b64decode(data_b64), channels=channels)
