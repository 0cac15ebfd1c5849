from __future__ import annotations

import asyncio
import logging
import queue
from typing import Any

import numpy as np

from ministerio.core.errors import AudioDeviceError


logger = logging.getLogger(__name__)


class MicrophoneInput:
    """Microphone capture using PortAudio (sounddevice).

    Produces float32 mono blocks of ``block_frames`` frames.

    Notes:
    - The audio callback only copies the block into a bounded queue.
    - On overflow the oldest block is dropped.
    """

    def __init__(
        self,
        *,
        sample_rate: int,
        block_frames: int = 4096,
        device: str | int | None = None,
        queue_max_chunks: int = 32,
    ):
        self._sample_rate = sample_rate
        self._block_frames = block_frames
        self._device = device
        self._q: queue.Queue[np.ndarray] = queue.Queue(maxsize=queue_max_chunks)
        self._stream: Any | None = None
        self._dropped = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def _enqueue(self, block: np.ndarray) -> None:
        try:
            self._q.put_nowait(block)
        except queue.Full:
            self._dropped += 1
            try:
                self._q.get_nowait()
            except queue.Empty:
                pass
            try:
                self._q.put_nowait(block)
            except queue.Full:
                return

    def start(self) -> None:
        if self._stream is not None:
            return

        try:
            import sounddevice as sd
        except OSError as e:
            raise AudioDeviceError(f"PortAudio is not available: {e}") from e

        def _callback(indata: np.ndarray, frames: int, time_info, status) -> None:  # noqa: ANN001
            # indata is reused by PortAudio after the callback returns.
            self._enqueue(indata[:, 0].copy())

        try:
            stream = sd.InputStream(
                device=self._device,
                samplerate=self._sample_rate,
                channels=1,
                dtype="float32",
                blocksize=self._block_frames,
                callback=_callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise AudioDeviceError(f"cannot open microphone: {e}") from e

        self._stream = stream
        logger.info(
            "audio_in_started",
            extra={"device": self._device, "sample_rate": self._sample_rate, "block_frames": self._block_frames},
        )

    def stop(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.stop()
        finally:
            stream.close()

        if self._dropped:
            logger.warning("audio_in_dropped_chunks", extra={"dropped": self._dropped})
        logger.info("audio_in_stopped")

    async def get_chunk(self, *, timeout_s: float = 0.2) -> np.ndarray | None:
        """Next captured block, or None when nothing arrived within ``timeout_s``."""

        try:
            return await asyncio.to_thread(self._q.get, True, timeout_s)
        except queue.Empty:
            return None
