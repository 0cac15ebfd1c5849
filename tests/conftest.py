from __future__ import annotations

from dataclasses import replace
from types import SimpleNamespace
from typing import Any, Sequence

import pytest
from google.genai import types

from ministerio.backend.supabase import AuthSession, AuthUser
from ministerio.reporting.models import ServiceLogRow


USER_ID = "user-1"


def make_session(*, expires_at: int = 4_102_444_800, user_id: str = USER_ID) -> AuthSession:
    # Default expiry is 2100-01-01.
    return AuthSession(
        access_token="access-abc",
        refresh_token="refresh-xyz",
        expires_at=expires_at,
        user=AuthUser(id=user_id, email="ana@example.com"),
    )


class FakeReportStore:
    """In-memory stand-in for ReportService with upsert-by-(user_id, fecha)."""

    def __init__(self, rows: list[ServiceLogRow] | None = None, *, user_id: str = USER_ID):
        self._user_id = user_id
        self.rows: list[ServiceLogRow] = list(rows or [])
        self.saved: list[ServiceLogRow] = []
        self.deleted: list[str] = []
        self.loads = 0

    @property
    def user_id(self) -> str:
        return self._user_id

    def get_all_reports(self) -> list[ServiceLogRow]:
        self.loads += 1
        return sorted(self.rows, key=lambda r: r.fecha, reverse=True)

    def save_daily_report(self, row: ServiceLogRow) -> list[ServiceLogRow]:
        self.saved.append(row)
        for i, existing in enumerate(self.rows):
            if existing.fecha == row.fecha and existing.user_id == row.user_id:
                self.rows[i] = replace(row, id=existing.id, created_at=existing.created_at)
                return [self.rows[i]]
        stored = replace(row, id=f"row-{len(self.rows) + 1}", created_at="2024-02-01T00:00:00Z")
        self.rows.append(stored)
        return [stored]

    def delete_daily_report(self, fecha: str) -> None:
        self.deleted.append(fecha)
        self.rows = [r for r in self.rows if not (r.fecha == fecha and r.user_id == self._user_id)]


@pytest.fixture
def february_rows() -> list[ServiceLogRow]:
    return [
        ServiceLogRow(
            user_id=USER_ID,
            fecha="2024-02-05",
            horario_servicio=1.5,
            publicaciones=3,
            id="row-1",
            created_at="2024-02-05T10:00:00Z",
        ),
        ServiceLogRow(user_id=USER_ID, fecha="2024-02-10", horario_servicio=2.0, publicaciones=1, revisitas=2),
        ServiceLogRow(user_id=USER_ID, fecha="2024-01-20", horario_servicio=0.5, nota_del_dia="Parque"),
    ]


def sdk_session(
    *,
    access_token: str = "at-1",
    refresh_token: str = "rt-1",
    expires_at: int | None = 1_700_003_600,
    user_id: str = "u-1",
    email: str = "ana@example.com",
) -> SimpleNamespace:
    """Shaped like the Supabase SDK's ``Session`` model."""

    return SimpleNamespace(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=3600,
        expires_at=expires_at,
        user=SimpleNamespace(id=user_id, email=email),
    )


class FakeQuery:
    """Records one fluent table call chain and answers it on ``execute``."""

    def __init__(self, sdk: "FakeSupabaseSdk", table: str):
        self._sdk = sdk
        self.table = table
        self.op: str | None = None
        self.columns: tuple[str, ...] = ()
        self.ordering: tuple[str, bool] | None = None
        self.payload: list[dict[str, Any]] = []
        self.on_conflict: str | None = None
        self.filters: list[tuple[str, Any]] = []

    def select(self, *columns: str) -> "FakeQuery":
        self.op, self.columns = "select", columns
        return self

    def order(self, column: str, *, desc: bool = False) -> "FakeQuery":
        self.ordering = (column, desc)
        return self

    def upsert(self, json: list[dict[str, Any]], *, on_conflict: str = "") -> "FakeQuery":
        self.op, self.payload, self.on_conflict = "upsert", json, on_conflict
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def execute(self) -> SimpleNamespace:
        self._sdk.queries.append(self)
        if self._sdk.error is not None:
            raise self._sdk.error
        if self.op == "select":
            return SimpleNamespace(data=list(self._sdk.rows))
        if self.op == "upsert":
            return SimpleNamespace(data=list(self.payload))
        return SimpleNamespace(data=[])


class FakeAuthApi:
    def __init__(self, sdk: "FakeSupabaseSdk"):
        self._sdk = sdk
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.admin = SimpleNamespace(sign_out=lambda jwt, scope="global": self._call("admin.sign_out", jwt))

    def _call(self, name: str, *args: Any) -> SimpleNamespace:
        self.calls.append((name, args))
        if self._sdk.error is not None:
            raise self._sdk.error
        session = self._sdk.auth_session
        return SimpleNamespace(session=session, user=session.user if session is not None else None)

    def sign_in_with_password(self, credentials: dict[str, str]) -> SimpleNamespace:
        return self._call("sign_in_with_password", credentials)

    def sign_up(self, credentials: dict[str, str]) -> SimpleNamespace:
        return self._call("sign_up", credentials)

    def reset_password_for_email(self, email: str, options: dict[str, Any] | None = None) -> None:
        self._call("reset_password_for_email", email, options)

    def refresh_session(self, refresh_token: str | None = None) -> SimpleNamespace:
        return self._call("refresh_session", refresh_token)


class FakeSupabaseSdk:
    """Stand-in for ``supabase.Client``: auth namespace, postgrest token and tables."""

    def __init__(
        self,
        *,
        rows: list[dict[str, Any]] | None = None,
        auth_session: SimpleNamespace | None = None,
        error: Exception | None = None,
    ):
        self.rows = list(rows or [])
        self.auth_session = auth_session
        self.error = error
        self.queries: list[FakeQuery] = []
        self.tokens: list[str] = []
        self.auth = FakeAuthApi(self)
        self.postgrest = SimpleNamespace(auth=self.tokens.append)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def ops(self) -> list[str | None]:
        return [q.op for q in self.queries]


def genai_response(
    text: str,
    *,
    web: Sequence[tuple[str, str]] = (),
    maps: Sequence[tuple[str, str]] = (),
    thought: str | None = None,
) -> types.GenerateContentResponse:
    """A one-candidate response; ``web``/``maps`` are (title, uri) pairs."""

    parts = [types.Part(text=thought, thought=True)] if thought else []
    parts.append(types.Part(text=text))
    chunks = [types.GroundingChunk(web=types.GroundingChunkWeb(title=t, uri=u)) for t, u in web]
    chunks += [types.GroundingChunk(maps=types.GroundingChunkMaps(title=t, uri=u)) for t, u in maps]
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=parts),
                grounding_metadata=types.GroundingMetadata(grounding_chunks=chunks) if chunks else None,
            )
        ]
    )


class FakeGenaiModels:
    def __init__(self, replies: Sequence[types.GenerateContentResponse | Exception]):
        self._replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    def generate_content(self, *, model: str, contents: Any, config: Any = None) -> types.GenerateContentResponse:
        self.calls.append({"model": model, "contents": contents, "config": config})
        # The last reply repeats.
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeGenai:
    """Stand-in for ``google.genai.Client`` exposing ``models.generate_content``."""

    def __init__(self, *replies: types.GenerateContentResponse | Exception):
        self.models = FakeGenaiModels(replies)
