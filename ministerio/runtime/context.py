from __future__ import annotations

import asyncio
import getpass
import sys
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, TextIO

from ministerio.backend.auth import AuthManager
from ministerio.backend.reports import ReportService
from ministerio.backend.session_store import SessionStore
from ministerio.backend.supabase import AuthSession, SupabaseClient
from ministerio.config.model import AppConfig
from ministerio.llm.gemini_text import GeminiTextClient


@dataclass
class Console:
    """User-facing I/O. Logs go to stderr through logging; this is for people."""

    out: TextIO = field(default_factory=lambda: sys.stdout)
    err: TextIO = field(default_factory=lambda: sys.stderr)
    read_line: Callable[[str], str] = input
    read_secret: Callable[[str], str] = getpass.getpass

    def say(self, text: str = "") -> None:
        self.out.write(f"{text}\n")

    def warn(self, text: str) -> None:
        self.err.write(f"{text}\n")

    def ask(self, prompt: str) -> str:
        return self.read_line(prompt).strip()

    def confirm(self, prompt: str) -> bool:
        return self.ask(f"{prompt} [s/N] ").lower() in {"s", "si", "sí", "y", "yes"}

    async def wait_for_enter(self) -> None:
        """Resolve once a line is read (or stdin hits EOF).

        The read runs on a daemon thread so an abandoned prompt never blocks
        interpreter shutdown.
        """

        loop = asyncio.get_running_loop()
        done = loop.create_future()

        def _set() -> None:
            if not done.done():
                done.set_result(None)

        def _read() -> None:
            try:
                self.read_line("")
            except EOFError:
                pass
            try:
                loop.call_soon_threadsafe(_set)
            except RuntimeError:
                # Loop already closed.
                return

        threading.Thread(target=_read, name="stdin-enter", daemon=True).start()
        await done


class AppContext:
    """Lazily built services for one CLI invocation."""

    def __init__(
        self,
        cfg: AppConfig,
        *,
        console: Console | None = None,
        supabase_client: Any = None,
        genai_client: Any = None,
    ):
        self.cfg = cfg
        self.console = console or Console()
        self._supabase_client = supabase_client
        self._genai_client = genai_client
        self._supabase: SupabaseClient | None = None
        self._gemini: GeminiTextClient | None = None
        self._auth: AuthManager | None = None

    @property
    def supabase(self) -> SupabaseClient:
        if self._supabase is None:
            self._supabase = SupabaseClient(self.cfg.supabase, client=self._supabase_client)
        return self._supabase

    @property
    def auth(self) -> AuthManager:
        if self._auth is None:
            self._auth = AuthManager(self.supabase, SessionStore(self.cfg.session.path))
        return self._auth

    def reports(self, session: AuthSession) -> ReportService:
        return ReportService(self.supabase, session, table=self.cfg.supabase.table)

    @property
    def gemini(self) -> GeminiTextClient:
        if self._gemini is None:
            self._gemini = GeminiTextClient(self.cfg.gemini, client=self._genai_client)
        return self._gemini
