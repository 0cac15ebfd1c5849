from __future__ import annotations

import logging

from ministerio.backend.session_store import SessionStore
from ministerio.backend.supabase import AuthSession, SupabaseClient
from ministerio.core.errors import AuthRequiredError, BackendError


logger = logging.getLogger(__name__)


class AuthManager:
    """Session lifecycle on top of the backend client and the local store."""

    def __init__(self, client: SupabaseClient, store: SessionStore):
        self._client = client
        self._store = store

    def current_session(self) -> AuthSession | None:
        """Return the stored session, refreshing it first when expired.

        A refresh the backend rejects clears the stored session.
        """

        session = self._store.load()
        if session is None or not session.is_expired():
            return session

        try:
            session = self._client.refresh_session(session.refresh_token)
        except BackendError as e:
            if e.status_code is not None and 400 <= e.status_code < 500:
                logger.info("session_refresh_rejected", extra={"status": e.status_code})
                self._store.clear()
                return None
            raise

        self._store.save(session)
        logger.info("session_refreshed", extra={"user_id": session.user.id})
        return session

    def require_session(self) -> AuthSession:
        session = self.current_session()
        if session is None:
            raise AuthRequiredError("no active session")
        return session

    def sign_in(self, email: str, password: str) -> AuthSession:
        session = self._client.sign_in_with_password(email, password)
        self._store.save(session)
        return session

    def sign_up(self, email: str, password: str) -> AuthSession | None:
        session = self._client.sign_up(email, password)
        if session is not None:
            self._store.save(session)
        return session

    def reset_password(self, email: str, *, redirect_to: str | None = None) -> None:
        self._client.reset_password_for_email(email, redirect_to=redirect_to)

    def sign_out(self) -> None:
        session = self._store.load()
        try:
            if session is not None:
                self._client.sign_out(session.access_token)
        finally:
            self._store.clear()
