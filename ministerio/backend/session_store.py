from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from ministerio.backend.supabase import AuthSession


logger = logging.getLogger(__name__)


class SessionStore:
    """Persists the signed-in session as a small JSON file (mode 0600)."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AuthSession | None:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        try:
            return AuthSession.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            # A corrupt file means "signed out"; the next login overwrites it.
            logger.warning("session_file_unreadable", extra={"path": str(self._path), "error": str(e)})
            return None

    def save(self, session: AuthSession) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(session.to_dict()), encoding="utf-8")
        os.chmod(tmp, 0o600)
        os.replace(tmp, self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
