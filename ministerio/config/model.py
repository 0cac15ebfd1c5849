from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

from ministerio.config.errors import ConfigError


PLACEHOLDER_MARKER = "PEGAR_TU"


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError("must be a mapping", path=name)
    return value


def _str_or_env(section: Mapping[str, Any], key: str, env_var: str) -> str:
    value = section.get(key)
    if value is None or value == "":
        value = os.getenv(env_var, "")
    return str(value).strip()


def _optional_float(value: Any, *, path: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"must be a number, got {value!r}", path=path) from e


def _number(section: Mapping[str, Any], key: str, default: float, *, path: str, kind: type = float) -> Any:
    value = section.get(key, default)
    try:
        number = kind(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise ConfigError(f"must be a number, got {value!r}", path=path) from e
    if not math.isfinite(number):
        raise ConfigError(f"must be finite, got {value!r}", path=path)
    return number


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


@dataclass(frozen=True)
class SupabaseConfig:
    url: str = ""
    anon_key: str = ""
    table: str = "informes_servicio"
    redirect_to: str | None = None
    timeout_s: float = 15.0

    @property
    def is_configured(self) -> bool:
        """False for empty, malformed or placeholder credentials.

        Auth commands refuse to run while this is False.
        """

        if not is_valid_url(self.url) or PLACEHOLDER_MARKER in self.url:
            return False
        return bool(self.anon_key) and PLACEHOLDER_MARKER not in self.anon_key


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str = ""
    base_url: str = "https://generativelanguage.googleapis.com"
    api_version: str = "v1beta"
    presentations_model: str = "gemini-2.5-flash"
    territory_model: str = "gemini-2.5-flash"
    chat_model: str = "gemini-3-pro-preview"
    timeout_s: float = 60.0

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigError("must be a non-empty string (or set GEMINI_API_KEY)", path="gemini.api_key")
        return self.api_key


@dataclass(frozen=True)
class LiveConfig:
    url: str = (
        "wss://generativelanguage.googleapis.com/ws/"
        "google.ai.generativelanguage.v1beta.GenerativeService.BidiGenerateContent"
    )
    model: str = "gemini-2.5-flash-native-audio-preview-09-2025"
    voice: str = "Kore"
    input_sample_rate_hz: int = 16000
    output_sample_rate_hz: int = 24000


@dataclass(frozen=True)
class AudioConfig:
    input_device: str | int | None = None
    output_device: str | int | None = None
    block_frames: int = 4096
    queue_max_chunks: int = 32


@dataclass(frozen=True)
class TimerConfig:
    interval_s: float = 1.0
    quantum_hours: float = 1.0 / 3600.0


@dataclass(frozen=True)
class SessionConfig:
    path: Path = field(default_factory=lambda: Path.home() / ".ministerio" / "session.json")


@dataclass(frozen=True)
class TerritoryConfig:
    latitude: float | None = None
    longitude: float | None = None


def _device(value: Any) -> str | int | None:
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text) if text.isdigit() else text


@dataclass(frozen=True)
class AppConfig:
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    live: LiveConfig = field(default_factory=LiveConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    timer: TimerConfig = field(default_factory=TimerConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    territory: TerritoryConfig = field(default_factory=TerritoryConfig)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "AppConfig":
        """Build the typed view over an expanded config mapping."""

        sb = _section(raw, "supabase")
        supabase = SupabaseConfig(
            url=_str_or_env(sb, "url", "SUPABASE_URL"),
            anon_key=_str_or_env(sb, "anon_key", "SUPABASE_ANON_KEY"),
            table=str(sb.get("table", SupabaseConfig.table)),
            redirect_to=str(sb["redirect_to"]) if sb.get("redirect_to") else None,
            timeout_s=_number(sb, "timeout_s", SupabaseConfig.timeout_s, path="supabase.timeout_s"),
        )

        gm = _section(raw, "gemini")
        models = gm.get("models") or {}
        if not isinstance(models, Mapping):
            raise ConfigError("must be a mapping", path="gemini.models")
        gemini = GeminiConfig(
            api_key=_str_or_env(gm, "api_key", "GEMINI_API_KEY"),
            base_url=str(gm.get("base_url", GeminiConfig.base_url)).rstrip("/"),
            api_version=str(gm.get("api_version", GeminiConfig.api_version)),
            presentations_model=str(models.get("presentations", GeminiConfig.presentations_model)),
            territory_model=str(models.get("territory", GeminiConfig.territory_model)),
            chat_model=str(models.get("chat", GeminiConfig.chat_model)),
            timeout_s=_number(gm, "timeout_s", GeminiConfig.timeout_s, path="gemini.timeout_s"),
        )

        lv = _section(raw, "live")
        live = LiveConfig(
            url=str(lv.get("url", LiveConfig.url)),
            model=str(lv.get("model", LiveConfig.model)),
            voice=str(lv.get("voice", LiveConfig.voice)),
            input_sample_rate_hz=_number(
                lv, "input_sample_rate_hz", LiveConfig.input_sample_rate_hz, path="live.input_sample_rate_hz", kind=int
            ),
            output_sample_rate_hz=_number(
                lv, "output_sample_rate_hz", LiveConfig.output_sample_rate_hz, path="live.output_sample_rate_hz", kind=int
            ),
        )

        au = _section(raw, "audio")
        audio = AudioConfig(
            input_device=_device(au.get("input_device")),
            output_device=_device(au.get("output_device")),
            block_frames=_number(
                au, "block_frames", AudioConfig.block_frames, path="audio.block_frames", kind=int
            ),
            queue_max_chunks=_number(
                au, "queue_max_chunks", AudioConfig.queue_max_chunks, path="audio.queue_max_chunks", kind=int
            ),
        )
        if audio.block_frames < 1:
            raise ConfigError("must be >= 1", path="audio.block_frames")

        tm = _section(raw, "timer")
        timer = TimerConfig(
            interval_s=_number(tm, "interval_s", TimerConfig.interval_s, path="timer.interval_s"),
            quantum_hours=_number(tm, "quantum_hours", TimerConfig.quantum_hours, path="timer.quantum_hours"),
        )
        if timer.interval_s <= 0:
            raise ConfigError("must be > 0", path="timer.interval_s")

        ss = _section(raw, "session")
        session = SessionConfig(path=Path(str(ss["path"])).expanduser()) if ss.get("path") else SessionConfig()

        tr = _section(raw, "territory")
        territory = TerritoryConfig(
            latitude=_optional_float(tr.get("latitude"), path="territory.latitude"),
            longitude=_optional_float(tr.get("longitude"), path="territory.longitude"),
        )

        return cls(
            supabase=supabase,
            gemini=gemini,
            live=live,
            audio=audio,
            timer=timer,
            session=session,
            territory=territory,
        )
