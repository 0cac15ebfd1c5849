from __future__ import annotations

import httpx
import pytest
from supabase import AuthApiError, PostgrestAPIError

from conftest import FakeSupabaseSdk, make_session, sdk_session
from ministerio.backend.reports import ReportService
from ministerio.backend.supabase import AuthSession, SupabaseClient
from ministerio.config.model import SupabaseConfig
from ministerio.core.errors import BackendError
from ministerio.reporting.models import ServiceLogRow


CFG = SupabaseConfig(url="https://proj.supabase.co", anon_key="anon-key")


def _client(**kwargs) -> tuple[SupabaseClient, FakeSupabaseSdk]:  # noqa: ANN003
    sdk = FakeSupabaseSdk(**kwargs)
    return SupabaseClient(CFG, client=sdk), sdk


def test_sign_in_with_password() -> None:
    client, sdk = _client(auth_session=sdk_session())

    session = client.sign_in_with_password("ana@example.com", "secret1")

    assert sdk.auth.calls == [("sign_in_with_password", ({"email": "ana@example.com", "password": "secret1"},))]
    assert session == AuthSession.from_dict(
        {
            "access_token": "at-1",
            "refresh_token": "rt-1",
            "expires_at": 1_700_003_600,
            "user": {"id": "u-1", "email": "ana@example.com"},
        }
    )


def test_session_without_expires_at_uses_expires_in() -> None:
    client, _ = _client(auth_session=sdk_session(expires_at=None))

    session = client.sign_in_with_password("ana@example.com", "secret1")

    assert not session.is_expired()
    assert session.is_expired(now_s=session.expires_at)


def test_sign_in_error_message_and_status_are_surfaced() -> None:
    client, _ = _client(error=AuthApiError("Invalid login credentials", 400, "invalid_credentials"))

    with pytest.raises(BackendError) as ei:
        client.sign_in_with_password("ana@example.com", "wrong")

    assert str(ei.value) == "Invalid login credentials"
    assert ei.value.status_code == 400


def test_network_failure_is_backend_error() -> None:
    client, _ = _client(error=httpx.ConnectError("no route"))

    with pytest.raises(BackendError) as ei:
        client.sign_out("at-1")
    assert ei.value.status_code is None


def test_sign_out_revokes_the_given_token() -> None:
    client, sdk = _client()

    client.sign_out("at-9")

    assert sdk.auth.calls == [("admin.sign_out", ("at-9",))]


def test_sign_up_without_session_requires_confirmation() -> None:
    client, sdk = _client(auth_session=None)

    assert client.sign_up("new@example.com", "secret1") is None
    assert sdk.auth.calls[0][0] == "sign_up"


def test_sign_up_with_session() -> None:
    client, _ = _client(auth_session=sdk_session())
    session = client.sign_up("ana@example.com", "secret1")
    assert session is not None and session.access_token == "at-1"


def test_reset_password_sends_redirect() -> None:
    client, sdk = _client()

    client.reset_password_for_email("ana@example.com", redirect_to="https://app.example/#/auth?type=recovery")

    assert sdk.auth.calls == [
        (
            "reset_password_for_email",
            ("ana@example.com", {"redirect_to": "https://app.example/#/auth?type=recovery"}),
        )
    ]


def test_refresh_session_passes_refresh_token() -> None:
    client, sdk = _client(auth_session=sdk_session(access_token="at-2"))

    session = client.refresh_session("rt-0")

    assert sdk.auth.calls == [("refresh_session", ("rt-0",))]
    assert session.access_token == "at-2"


def test_report_service_select_orders_by_date_desc() -> None:
    rows = [
        {"id": 7, "user_id": "user-1", "fecha": "2024-02-10", "horario_servicio": 2, "publicaciones": None},
        {"id": 6, "user_id": "user-1", "fecha": "2024-02-05", "horario_servicio": 1.5, "publicaciones": 3},
    ]
    client, sdk = _client(rows=rows)
    service = ReportService(client, make_session())

    result = service.get_all_reports()

    query = sdk.queries[0]
    assert query.table == "informes_servicio"
    assert query.op == "select"
    assert query.columns == ("*",)
    assert query.ordering == ("fecha", True)
    assert sdk.tokens == ["access-abc"]
    assert [r.fecha for r in result] == ["2024-02-10", "2024-02-05"]
    assert result[0].publicaciones == 0
    assert result[0].id == "7"


def test_report_service_upsert_merges_on_user_and_date() -> None:
    client, sdk = _client()
    service = ReportService(client, make_session())
    row = ServiceLogRow(user_id="user-1", fecha="2024-02-06", horario_servicio=1.0)

    saved = service.save_daily_report(row)

    query = sdk.queries[0]
    assert query.op == "upsert"
    assert query.on_conflict == "user_id,fecha"
    assert query.payload == [row.to_payload()]
    assert saved == [row]


def test_report_service_delete_is_scoped_to_user() -> None:
    client, sdk = _client()
    service = ReportService(client, make_session())

    service.delete_daily_report("2024-02-05")

    query = sdk.queries[0]
    assert query.op == "delete"
    assert query.filters == [("fecha", "2024-02-05"), ("user_id", "user-1")]


def test_table_error_is_backend_error() -> None:
    client, _ = _client(error=PostgrestAPIError({"message": "permission denied for table", "code": "42501"}))

    with pytest.raises(BackendError) as ei:
        ReportService(client, make_session()).get_all_reports()

    assert "permission denied" in str(ei.value)


def test_delete_without_filters_is_refused() -> None:
    client, sdk = _client()
    with pytest.raises(ValueError):
        client.delete("informes_servicio", access_token="at", filters={})
    assert sdk.queries == []
