"""Supabase access (GoTrue auth + PostgREST) through the supabase-py client.

Only the handful of calls this app makes are wrapped: password
sign-in/sign-up, password-reset email, refresh, sign-out, and
select/upsert/delete on a single table. SDK and network failures surface as
``BackendError``.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence

import httpx
from supabase import AuthError, Client, ClientOptions, PostgrestAPIError, create_client

from ministerio.config.model import SupabaseConfig
from ministerio.core.errors import BackendError


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuthUser:
    id: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: int
    user: AuthUser

    def is_expired(self, *, now_s: float | None = None, leeway_s: int = 30) -> bool:
        now = time.time() if now_s is None else now_s
        return now + leeway_s >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "user": {"id": self.user.id, "email": self.user.email},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AuthSession":
        user = data.get("user") or {}
        if not isinstance(user, Mapping) or not user.get("id"):
            raise ValueError("session is missing user.id")
        return cls(
            access_token=str(data["access_token"]),
            refresh_token=str(data["refresh_token"]),
            expires_at=int(data["expires_at"]),
            user=AuthUser(id=str(user["id"]), email=user.get("email")),
        )

    @classmethod
    def from_sdk(cls, session: Any) -> "AuthSession":
        """Convert the SDK's ``Session`` model into the stored form."""

        expires_at = session.expires_at
        if expires_at is None:
            expires_at = int(time.time()) + int(session.expires_in or 3600)
        return cls(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=int(expires_at),
            user=AuthUser(id=str(session.user.id), email=session.user.email),
        )


@contextmanager
def _backend_errors(op: str) -> Iterator[None]:
    try:
        yield
    except AuthError as e:
        status = getattr(e, "status", None)
        logger.warning("backend_auth_error", extra={"op": op, "status": status, "error": str(e)})
        raise BackendError(str(e), status_code=status or None) from e
    except PostgrestAPIError as e:
        message = e.message or str(e)
        logger.warning("backend_data_error", extra={"op": op, "code": e.code, "error": message})
        raise BackendError(message) from e
    except httpx.HTTPError as e:
        logger.warning("backend_request_failed", extra={"op": op, "error": str(e)})
        raise BackendError(f"network error: {e}") from e


class SupabaseClient:
    """One project (url + anon key), with per-call user tokens for table access."""

    def __init__(self, cfg: SupabaseConfig, *, client: Client | None = None):
        self._cfg = cfg
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            options = ClientOptions(
                auto_refresh_token=False,
                persist_session=False,
                postgrest_client_timeout=self._cfg.timeout_s,
            )
            try:
                self._client = create_client(self._cfg.url, self._cfg.anon_key, options=options)
            except Exception as e:  # noqa: BLE001
                # create_client validates the url and key format.
                raise BackendError(f"invalid Supabase configuration: {e}") from e
        return self._client

    # --- auth ---------------------------------------------------------------

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        with _backend_errors("sign_in"):
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        if response.session is None:
            raise BackendError("sign-in returned no session")
        session = AuthSession.from_sdk(response.session)
        logger.info("auth_signed_in", extra={"user_id": session.user.id})
        return session

    def sign_up(self, email: str, password: str) -> AuthSession | None:
        """Register a user.

        Returns a session when the project does not require email
        confirmation; otherwise None (the user must confirm first).
        """

        with _backend_errors("sign_up"):
            response = self.client.auth.sign_up({"email": email, "password": password})
        if response.session is None:
            logger.info("auth_signup_pending_confirmation")
            return None
        return AuthSession.from_sdk(response.session)

    def reset_password_for_email(self, email: str, *, redirect_to: str | None = None) -> None:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        with _backend_errors("reset_password"):
            self.client.auth.reset_password_for_email(email, options)

    def refresh_session(self, refresh_token: str) -> AuthSession:
        with _backend_errors("refresh"):
            response = self.client.auth.refresh_session(refresh_token)
        if response.session is None:
            raise BackendError("refresh returned no session")
        return AuthSession.from_sdk(response.session)

    def sign_out(self, access_token: str) -> None:
        # The stored session is not loaded into the SDK, so revoke by token.
        with _backend_errors("sign_out"):
            self.client.auth.admin.sign_out(access_token)

    # --- tables -------------------------------------------------------------

    def _table(self, table: str, access_token: str) -> Any:
        client = self.client
        client.postgrest.auth(access_token)
        return client.table(table)

    def select(
        self,
        table: str,
        *,
        access_token: str,
        order_by: str | None = None,
        desc: bool = False,
    ) -> list[dict[str, Any]]:
        with _backend_errors("select"):
            query = self._table(table, access_token).select("*")
            if order_by:
                query = query.order(order_by, desc=desc)
            response = query.execute()
        data = response.data
        if not isinstance(data, list):
            raise BackendError(f"unexpected select response for {table}")
        return data

    def upsert(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        *,
        access_token: str,
        on_conflict: str,
    ) -> list[dict[str, Any]]:
        with _backend_errors("upsert"):
            response = self._table(table, access_token).upsert(list(rows), on_conflict=on_conflict).execute()
        return response.data if isinstance(response.data, list) else []

    def delete(self, table: str, *, access_token: str, filters: Mapping[str, Any]) -> None:
        if not filters:
            raise ValueError("refusing to delete without filters")
        with _backend_errors("delete"):
            query = self._table(table, access_token).delete()
            for column, value in filters.items():
                query = query.eq(column, value)
            query.execute()
