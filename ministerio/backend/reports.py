from __future__ import annotations

import logging

from ministerio.backend.supabase import AuthSession, SupabaseClient
from ministerio.reporting.models import ServiceLogRow


logger = logging.getLogger(__name__)

ON_CONFLICT = "user_id,fecha"


class ReportService:
    """CRUD on the daily-report table for the signed-in user.

    Upserts rely on the (user_id, fecha) unique constraint.
    """

    def __init__(self, client: SupabaseClient, session: AuthSession, *, table: str = "informes_servicio"):
        self._client = client
        self._session = session
        self._table = table

    @property
    def user_id(self) -> str:
        return self._session.user.id

    def get_all_reports(self) -> list[ServiceLogRow]:
        """All of the user's rows, newest date first."""

        data = self._client.select(
            self._table,
            access_token=self._session.access_token,
            order_by="fecha",
            desc=True,
        )
        rows = [ServiceLogRow.from_api(item) for item in data]
        logger.info("reports_loaded", extra={"rows": len(rows)})
        return rows

    def save_daily_report(self, row: ServiceLogRow) -> list[ServiceLogRow]:
        data = self._client.upsert(
            self._table,
            [row.to_payload()],
            access_token=self._session.access_token,
            on_conflict=ON_CONFLICT,
        )
        logger.info("report_saved", extra={"fecha": row.fecha})
        return [ServiceLogRow.from_api(item) for item in data]

    def delete_daily_report(self, fecha: str) -> None:
        self._client.delete(
            self._table,
            access_token=self._session.access_token,
            filters={"fecha": fecha, "user_id": self.user_id},
        )
        logger.info("report_deleted", extra={"fecha": fecha})
