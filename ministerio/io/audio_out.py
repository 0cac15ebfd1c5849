from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

import numpy as np

from ministerio.core.errors import AudioDeviceError


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScheduledBuffer:
    start_frame: int
    samples: np.ndarray  # (frames, channels) float32

    @property
    def end_frame(self) -> int:
        return self.start_frame + len(self.samples)


class PlaybackScheduler:
    """Schedules decoded buffers back-to-back on an output clock.

    The clock is the number of frames rendered so far. Each buffer starts at
    the later of "now" and the previous buffer's end, so consecutive buffers
    neither overlap nor leave gaps. ``interrupt`` drops everything queued and
    resets the next start to zero.

    ``render`` runs on the PortAudio callback thread; everything else runs on
    the event loop. Both sides take ``_lock``.
    """

    def __init__(self, *, sample_rate: int, channels: int = 1):
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        self._sr = int(sample_rate)
        self._channels = int(channels)
        self._lock = threading.Lock()
        self._frames_rendered = 0
        self._next_start_frame = 0
        self._scheduled: list[ScheduledBuffer] = []

    @property
    def sample_rate(self) -> int:
        return self._sr

    @property
    def current_time(self) -> float:
        with self._lock:
            return self._frames_rendered / self._sr

    @property
    def next_start_time(self) -> float:
        with self._lock:
            return self._next_start_frame / self._sr

    def pending(self) -> int:
        with self._lock:
            return len(self._scheduled)

    def schedule(self, samples: np.ndarray) -> float:
        """Queue one buffer; returns its start time in seconds."""

        buf = np.asarray(samples, dtype=np.float32).reshape(-1, self._channels)
        with self._lock:
            start = max(self._next_start_frame, self._frames_rendered)
            if len(buf):
                self._scheduled.append(ScheduledBuffer(start_frame=start, samples=buf))
            self._next_start_frame = start + len(buf)
            return start / self._sr

    def interrupt(self) -> int:
        """Drop every scheduled buffer and reset the playback clock target.

        Returns:
            The number of buffers dropped.
        """

        with self._lock:
            dropped = len(self._scheduled)
            self._scheduled.clear()
            self._next_start_frame = 0
        return dropped

    def render(self, frames: int) -> np.ndarray:
        """Produce the next ``frames`` of output and advance the clock."""

        out = np.zeros((frames, self._channels), dtype=np.float32)
        with self._lock:
            t0 = self._frames_rendered
            t1 = t0 + frames
            still_playing: list[ScheduledBuffer] = []
            for buf in self._scheduled:
                lo = max(t0, buf.start_frame)
                hi = min(t1, buf.end_frame)
                if lo < hi:
                    out[lo - t0 : hi - t0] += buf.samples[lo - buf.start_frame : hi - buf.start_frame]
                if buf.end_frame > t1:
                    still_playing.append(buf)
            self._scheduled = still_playing
            self._frames_rendered = t1
        return out


class AudioOutputSink:
    """Speaker output driven by a ``PlaybackScheduler``."""

    def __init__(self, *, sample_rate: int, channels: int = 1, device: str | int | None = None):
        self._device = device
        self._channels = channels
        self.scheduler = PlaybackScheduler(sample_rate=sample_rate, channels=channels)
        self._stream: Any | None = None

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        if self._stream is not None:
            return

        try:
            import sounddevice as sd
        except OSError as e:
            raise AudioDeviceError(f"PortAudio is not available: {e}") from e

        def _callback(outdata: np.ndarray, frames: int, time_info, status) -> None:  # noqa: ANN001
            outdata[:] = self.scheduler.render(frames)

        try:
            stream = sd.OutputStream(
                device=self._device,
                samplerate=self.scheduler.sample_rate,
                channels=self._channels,
                dtype="float32",
                callback=_callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise AudioDeviceError(f"cannot open output device: {e}") from e

        self._stream = stream
        logger.info(
            "audio_out_started",
            extra={"device": self._device, "sample_rate": self.scheduler.sample_rate, "channels": self._channels},
        )

    def stop(self) -> None:
        self.scheduler.interrupt()
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("audio_out_stopped")
