from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Sequence

from ministerio import __version__
from ministerio.config.errors import ConfigError
from ministerio.config.loader import PROFILES, load_config, resolve_profile_configs
from ministerio.config.model import AppConfig
from ministerio.core.errors import (
    AIServiceError,
    AudioDeviceError,
    AuthRequiredError,
    BackendError,
    GeolocationError,
)
from ministerio.observability.logging import configure_logging
from ministerio.runtime.assistant_pages import register_assistant, run_chat, run_ideas
from ministerio.runtime.auth_pages import NOT_CONFIGURED_WARNING, register_auth, run_auth, run_profile
from ministerio.runtime.context import AppContext, Console
from ministerio.runtime.record_page import register_record, run_record
from ministerio.runtime.voice_loop import run_voice


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_AUTH_REQUIRED = 3

# Everything except auth and the tooling commands needs a stored session.
PROTECTED_COMMANDS = {"ideas", "record", "voice", "chat", "profile"}

_SECRET_MARKERS = ("api_key", "anon_key", "token", "secret", "password")


def _redact_secrets(obj):  # noqa: ANN001
    """Best-effort redaction for human-facing config dumps."""

    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and any(p in k.lower() for p in _SECRET_MARKERS):
                out[k] = "<redacted>"
            else:
                out[k] = _redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [_redact_secrets(x) for x in obj]
    return obj


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ministerio",
        description="Compañero Ministerio: registro de servicio y asistente con Gemini",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )

    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--config",
        type=Path,
        help="Path to a YAML config file (skips profile resolution)",
    )
    group.add_argument(
        "--profile",
        choices=sorted(PROFILES),
        default="app",
        help="Config profile under ./configs (app loads app.yaml; dev overlays dev.yaml)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    register_auth(sub)
    register_record(sub)
    register_assistant(sub)
    sub.add_parser("voice", help="Conversación por voz en tiempo real")

    sub.add_parser("devices", help="List available audio devices")
    sub.add_parser("print-config", help="Load and print the expanded config")

    return parser


def _list_devices() -> int:
    try:
        import sounddevice as sd
    except OSError as e:
        raise AudioDeviceError(f"PortAudio is not available: {e}") from e

    devices: Any = sd.query_devices()
    sys.stdout.write(json.dumps([dict(d) for d in devices], ensure_ascii=False, indent=2))
    sys.stdout.write("\n")
    return EXIT_OK


def _dispatch(ctx: AppContext, ns: argparse.Namespace) -> int:
    if ns.command == "auth":
        return run_auth(ctx, ns)

    if not ctx.cfg.supabase.is_configured:
        ctx.console.warn(NOT_CONFIGURED_WARNING)
        raise AuthRequiredError("backend is not configured")

    session = ctx.auth.require_session()
    logger.info("session_ok", extra={"command": ns.command, "user_id": session.user.id})

    if ns.command == "record":
        return run_record(ctx, ns, session)
    if ns.command == "profile":
        return run_profile(ctx, ns, session)
    if ns.command == "ideas":
        return run_ideas(ctx, ns)
    if ns.command == "chat":
        return run_chat(ctx, ns)
    if ns.command == "voice":
        return run_voice(ctx)
    raise ValueError(f"unknown command: {ns.command}")


def main(
    argv: Sequence[str] | None = None,
    *,
    context_factory: Callable[[AppConfig], AppContext] | None = None,
) -> int:
    """CLI entrypoint referenced by pyproject.toml.

    Exit codes: 0 ok, 1 operation failed, 2 config error, 3 auth required.
    `ministerio --help` and `devices` work without any config or env vars.
    """

    parser = _build_parser()

    try:
        ns = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as e:
        # argparse has already printed help/usage to stdout/stderr.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_FAILED

    configure_logging(level=ns.log_level)

    console = Console()
    try:
        if ns.command == "devices":
            return _list_devices()

        if ns.config is not None:
            config_paths = [ns.config]
        else:
            config_paths = resolve_profile_configs(profile=ns.profile, configs_dir=Path.cwd() / "configs")

        raw = load_config(config_paths)
        logger.info("config_loaded", extra={"config_files": [str(p) for p in config_paths]})

        if ns.command == "print-config":
            sys.stdout.write(json.dumps(_redact_secrets(raw), ensure_ascii=False, indent=2))
            sys.stdout.write("\n")
            return EXIT_OK

        cfg = AppConfig.from_mapping(raw)
        ctx: AppContext = context_factory(cfg) if context_factory is not None else AppContext(cfg, console=console)
        console = ctx.console
        return _dispatch(ctx, ns)

    except ConfigError as e:
        logger.error("config_error", extra={"error": str(e)})
        console.warn(f"ConfigError: {e}")
        return EXIT_CONFIG
    except AuthRequiredError as e:
        logger.info("auth_required", extra={"command": ns.command, "reason": str(e)})
        console.warn("Debes iniciar sesión primero: ministerio auth login")
        return EXIT_AUTH_REQUIRED
    except AIServiceError as e:
        console.warn(f"Error al conectar con Gemini. Verifica tu conexión o clave API. ({e})")
        return EXIT_FAILED
    except (BackendError, AudioDeviceError, GeolocationError, ValueError) as e:
        console.warn(f"Error: {e}")
        return EXIT_FAILED
    except KeyboardInterrupt:
        console.warn("Interrumpido.")
        return EXIT_FAILED
    except Exception as e:  # noqa: BLE001
        logger.exception("fatal_error")
        console.warn(f"Fatal error: {e}")
        return EXIT_FAILED
