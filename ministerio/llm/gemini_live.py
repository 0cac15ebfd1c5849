"""Gemini Live voice session over a single bidirectional WebSocket.

Microphone frames go out as base64 PCM16 ``realtimeInput`` messages; model
audio comes back in ``serverContent`` and is scheduled gap-free on the
playback clock. ``serverContent.interrupted`` discards everything queued.
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from typing import Any, Awaitable, Callable, Mapping, Protocol

import numpy as np
import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from ministerio.config.model import AudioConfig, LiveConfig
from ministerio.core.clock import monotonic_ms
from ministerio.core.errors import AudioDeviceError
from ministerio.io.audio_in import MicrophoneInput
from ministerio.io.audio_out import AudioOutputSink, PlaybackScheduler
from ministerio.io.pcm import decode_pcm_blob, encode_pcm_blob
from ministerio.llm import prompts


logger = logging.getLogger(__name__)

AUDIO_ERROR_MESSAGE = "No se pudo iniciar el audio. Verifica los permisos."
CONNECTION_ERROR_MESSAGE = "Error de conexión. Intenta de nuevo."


class VoiceState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class AudioSource(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    async def get_chunk(self, *, timeout_s: float = 0.2) -> np.ndarray | None: ...


class AudioSink(Protocol):
    scheduler: PlaybackScheduler

    def start(self) -> None: ...

    def stop(self) -> None: ...


class LiveSocket(Protocol):
    async def send(self, message: str) -> None: ...

    async def recv(self) -> str | bytes: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> Any: ...


Connector = Callable[[str], Awaitable[LiveSocket]]


async def _default_connect(url: str) -> LiveSocket:
    return await websockets.connect(url, ping_interval=20, ping_timeout=20, max_size=None)


def build_setup_message(live: LiveConfig, *, system_instruction: str) -> dict[str, Any]:
    return {
        "setup": {
            "model": f"models/{live.model}",
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": live.voice}},
                },
            },
            "systemInstruction": {"parts": [{"text": system_instruction}]},
        }
    }


def _parse_message(raw: str | bytes) -> Mapping[str, Any] | None:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("live_message_not_json", extra={"len": len(raw)})
        return None
    return data if isinstance(data, Mapping) else None


class VoiceSession:
    """One realtime voice conversation.

    State goes ``disconnected -> connecting -> connected -> disconnected``.
    Any failure is kept in ``error_message`` and forces ``disconnected``.
    ``stop`` is idempotent and also runs when the async context exits.
    """

    def __init__(
        self,
        *,
        live: LiveConfig,
        api_key: str,
        audio: AudioConfig | None = None,
        system_instruction: str = prompts.VOICE_INSTRUCTION,
        setup_timeout_s: float = 15.0,
        connect: Connector | None = None,
        mic_factory: Callable[[], AudioSource] | None = None,
        sink_factory: Callable[[], AudioSink] | None = None,
        on_state_change: Callable[[VoiceState], None] | None = None,
    ):
        audio = audio or AudioConfig()
        self._live = live
        self._api_key = api_key
        self._system_instruction = system_instruction
        self._setup_timeout_s = setup_timeout_s
        self._connect = connect or _default_connect
        self._mic_factory = mic_factory or (
            lambda: MicrophoneInput(
                sample_rate=live.input_sample_rate_hz,
                block_frames=audio.block_frames,
                device=audio.input_device,
                queue_max_chunks=audio.queue_max_chunks,
            )
        )
        self._sink_factory = sink_factory or (
            lambda: AudioOutputSink(sample_rate=live.output_sample_rate_hz, device=audio.output_device)
        )
        self._on_state_change = on_state_change

        self._state = VoiceState.DISCONNECTED
        self.error_message: str | None = None
        self._mic: AudioSource | None = None
        self._sink: AudioSink | None = None
        self._ws: LiveSocket | None = None
        self._pump_task: asyncio.Task[None] | None = None
        self._chunks_sent = 0
        self._buffers_received = 0

    @property
    def state(self) -> VoiceState:
        return self._state

    @property
    def scheduler(self) -> PlaybackScheduler | None:
        return self._sink.scheduler if self._sink is not None else None

    def _set_state(self, state: VoiceState) -> None:
        if state is self._state:
            return
        self._state = state
        logger.info("live_state", extra={"state": state.value})
        if self._on_state_change is not None:
            self._on_state_change(state)

    async def __aenter__(self) -> "VoiceSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.stop()

    async def start(self) -> bool:
        """Open audio and the socket. Returns True once the session is connected."""

        if self._state is not VoiceState.DISCONNECTED:
            return self._state is VoiceState.CONNECTED

        self.error_message = None
        self._set_state(VoiceState.CONNECTING)

        try:
            self._mic = self._mic_factory()
            self._mic.start()
            self._sink = self._sink_factory()
            self._sink.start()
        except AudioDeviceError as e:
            logger.error("live_audio_failed", extra={"error": str(e)})
            await self._fail(AUDIO_ERROR_MESSAGE)
            return False
        except Exception:
            logger.exception("live_audio_failed")
            await self._fail(AUDIO_ERROR_MESSAGE)
            raise

        started = monotonic_ms()
        try:
            self._ws = await self._connect(f"{self._live.url}?key={self._api_key}")
            setup = build_setup_message(self._live, system_instruction=self._system_instruction)
            await self._ws.send(json.dumps(setup, ensure_ascii=False))
            async with asyncio.timeout(self._setup_timeout_s):
                await self._await_setup_complete(self._ws)
        except (OSError, TimeoutError, ConnectionError, WebSocketException) as e:
            logger.error("live_connect_failed", extra={"url": self._live.url, "error": str(e)})
            await self._fail(CONNECTION_ERROR_MESSAGE)
            return False
        except asyncio.CancelledError:
            await self.stop()
            raise
        except Exception:
            logger.exception("live_connect_failed", extra={"url": self._live.url})
            await self._fail(CONNECTION_ERROR_MESSAGE)
            raise

        logger.info(
            "live_connected",
            extra={"model": self._live.model, "voice": self._live.voice, "latency_ms": monotonic_ms() - started},
        )
        self._set_state(VoiceState.CONNECTED)
        self._pump_task = asyncio.create_task(self._pump(self._ws))
        return True

    async def _await_setup_complete(self, ws: LiveSocket) -> None:
        while True:
            data = _parse_message(await ws.recv())
            if data is None:
                continue
            if "setupComplete" in data:
                return
            self.handle_server_message(data)

    async def wait_closed(self) -> None:
        """Block until the session ends (server close, error or ``stop``)."""

        task = self._pump_task
        if task is not None:
            await asyncio.wait({task})

    async def stop(self) -> None:
        task, self._pump_task = self._pump_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            await asyncio.wait({task})

        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except (OSError, WebSocketException) as e:
                logger.debug("live_close_failed", extra={"error": str(e)})

        mic, self._mic = self._mic, None
        if mic is not None:
            mic.stop()

        sink, self._sink = self._sink, None
        if sink is not None:
            # Stopping the sink drops scheduled buffers and resets the clock target.
            sink.stop()

        if self._state is not VoiceState.DISCONNECTED:
            logger.info(
                "live_stopped",
                extra={"chunks_sent": self._chunks_sent, "buffers_received": self._buffers_received},
            )
        self._set_state(VoiceState.DISCONNECTED)

    async def _fail(self, message: str) -> None:
        self.error_message = message
        await self.stop()

    async def _pump(self, ws: LiveSocket) -> None:
        sender = asyncio.create_task(self._sender(ws))
        try:
            await self._receiver(ws)
        except asyncio.CancelledError:
            raise
        except (OSError, ConnectionError, WebSocketException) as e:
            logger.warning("live_connection_lost", extra={"error": str(e)})
            self.error_message = CONNECTION_ERROR_MESSAGE
        finally:
            sender.cancel()
            await asyncio.wait({sender})

        logger.info("live_disconnected", extra={"error": self.error_message})
        self._pump_task = None
        await self.stop()

    async def _sender(self, ws: LiveSocket) -> None:
        mic = self._mic
        if mic is None:
            return
        rate = self._live.input_sample_rate_hz
        try:
            while True:
                chunk = await mic.get_chunk(timeout_s=0.2)
                if chunk is None:
                    continue
                payload = {"realtimeInput": {"audio": encode_pcm_blob(chunk, sample_rate=rate)}}
                await ws.send(json.dumps(payload))
                self._chunks_sent += 1
        except ConnectionClosed:
            # The receiver sees the same close and decides whether it was an error.
            return

    async def _receiver(self, ws: LiveSocket) -> None:
        async for raw in ws:
            data = _parse_message(raw)
            if data is not None:
                self.handle_server_message(data)

    def handle_server_message(self, data: Mapping[str, Any]) -> None:
        """Apply one decoded server message to the playback schedule."""

        content = data.get("serverContent")
        if not isinstance(content, Mapping):
            if "goAway" in data:
                logger.warning("live_go_away", extra={"go_away": data.get("goAway")})
            else:
                logger.debug("live_event", extra={"keys": sorted(data)})
            return

        scheduler = self.scheduler
        if content.get("interrupted"):
            dropped = scheduler.interrupt() if scheduler is not None else 0
            logger.info("live_interrupted", extra={"dropped_buffers": dropped})

        turn = content.get("modelTurn")
        parts = turn.get("parts") if isinstance(turn, Mapping) else None
        for part in parts or []:
            inline = part.get("inlineData") if isinstance(part, Mapping) else None
            if not isinstance(inline, Mapping) or not isinstance(inline.get("data"), str):
                continue
            samples = decode_pcm_blob(inline["data"])
            self._buffers_received += 1
            if scheduler is not None:
                scheduler.schedule(samples)

        if content.get("turnComplete"):
            logger.debug("live_turn_complete")
