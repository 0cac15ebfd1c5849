from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class ServiceLogRow:
    """One `informes_servicio` row: a user's activity on one calendar date."""

    user_id: str
    fecha: str  # YYYY-MM-DD
    horario_servicio: float = 0.0
    publicaciones: int = 0
    cursos_biblicos: int = 0
    revisitas: int = 0
    nota_del_dia: str = ""
    encuentra_lugares_publicos: bool = False
    id: str | None = None
    created_at: str | None = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ServiceLogRow":
        # NULL columns come back as None; treat them as the defaults.
        return cls(
            user_id=str(data.get("user_id") or ""),
            fecha=str(data["fecha"]),
            horario_servicio=float(data.get("horario_servicio") or 0),
            publicaciones=int(data.get("publicaciones") or 0),
            cursos_biblicos=int(data.get("cursos_biblicos") or 0),
            revisitas=int(data.get("revisitas") or 0),
            nota_del_dia=str(data.get("nota_del_dia") or ""),
            encuentra_lugares_publicos=bool(data.get("encuentra_lugares_publicos") or False),
            id=str(data["id"]) if data.get("id") is not None else None,
            created_at=data.get("created_at"),
        )

    def to_payload(self) -> dict[str, Any]:
        """Upsert body: every column except the server-managed ones."""

        return {
            "user_id": self.user_id,
            "fecha": self.fecha,
            "horario_servicio": self.horario_servicio,
            "publicaciones": self.publicaciones,
            "cursos_biblicos": self.cursos_biblicos,
            "revisitas": self.revisitas,
            "nota_del_dia": self.nota_del_dia,
            "encuentra_lugares_publicos": self.encuentra_lugares_publicos,
        }


@dataclass(frozen=True, slots=True)
class DailyRecord:
    day: int
    hours: float = 0.0
    placements: int = 0
    return_visits: int = 0
    bible_studies: int = 0
    notes: str = ""
    public_places_found: bool = False

    @property
    def has_data(self) -> bool:
        return self.hours > 0 or self.placements > 0 or bool(self.notes)

    def with_field(self, name: str, value: Any) -> "DailyRecord":
        if name not in EDITABLE_FIELDS:
            raise ValueError(f"unknown daily record field: {name!r}")
        return replace(self, **{name: EDITABLE_FIELDS[name](value)})

    def to_row(self, *, user_id: str, fecha: str) -> ServiceLogRow:
        return ServiceLogRow(
            user_id=user_id,
            fecha=fecha,
            horario_servicio=self.hours or 0.0,
            publicaciones=self.placements or 0,
            cursos_biblicos=self.bible_studies or 0,
            revisitas=self.return_visits or 0,
            nota_del_dia=self.notes or "",
            encuentra_lugares_publicos=bool(self.public_places_found),
        )


EDITABLE_FIELDS: dict[str, Any] = {
    "hours": float,
    "placements": int,
    "return_visits": int,
    "bible_studies": int,
    "notes": str,
    "public_places_found": bool,
}


@dataclass(frozen=True, slots=True)
class MonthTotals:
    hours: float = 0.0
    placements: int = 0
    return_visits: int = 0
    bible_studies: int = 0

    def add(self, day: DailyRecord) -> "MonthTotals":
        return MonthTotals(
            hours=self.hours + (day.hours or 0),
            placements=self.placements + (day.placements or 0),
            return_visits=self.return_visits + (day.return_visits or 0),
            bible_studies=self.bible_studies + (day.bible_studies or 0),
        )


@dataclass(frozen=True, slots=True)
class ServiceReport:
    """Derived month view; never stored."""

    month: str
    days: list[DailyRecord] = field(default_factory=list)

    @property
    def totals(self) -> MonthTotals:
        totals = MonthTotals()
        for day in self.days:
            totals = totals.add(day)
        return totals

    def day(self, day: int) -> DailyRecord:
        for record in self.days:
            if record.day == day:
                return record
        return DailyRecord(day=day)


@dataclass(frozen=True, slots=True)
class MonthSummary:
    month: str
    hours: float
    placements: int
