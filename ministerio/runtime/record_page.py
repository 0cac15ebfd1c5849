from __future__ import annotations

import argparse
import asyncio
import logging

from ministerio.backend.supabase import AuthSession
from ministerio.core.errors import GeolocationError
from ministerio.llm.gemini_text import LatLng
from ministerio.reporting.book import ReportBook
from ministerio.reporting.formatting import format_total_hours, parse_count, parse_duration
from ministerio.reporting.models import DailyRecord
from ministerio.reporting.months import parse_month
from ministerio.reporting.timer import HourTimer
from ministerio.runtime.assistant_pages import render_result
from ministerio.runtime.context import AppContext, Console


logger = logging.getLogger(__name__)


def _add_selection_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--month", help='Mes a usar, p. ej. "Febrero 2024" o 2024-02 (por defecto el actual)')
    p.add_argument("--day", type=int, help="Día del mes (por defecto hoy, o 1 si se indica --month)")


def register_record(sub: argparse._SubParsersAction) -> None:
    rec_p = sub.add_parser("record", help="Registro diario de servicio")
    rec_sub = rec_p.add_subparsers(dest="record_action", required=True)

    show_p = rec_sub.add_parser("show", help="Mostrar el mes y el día seleccionados")
    _add_selection_args(show_p)

    set_p = rec_sub.add_parser("set", help="Editar y guardar el día seleccionado")
    _add_selection_args(set_p)
    set_p.add_argument("--hours", type=parse_duration, help="Horas: 1.5, 1:30 o 1:30:15")
    set_p.add_argument("--h", dest="hours_h", type=parse_count, help="Solo la parte de horas")
    set_p.add_argument("--m", dest="hours_m", type=parse_count, help="Solo la parte de minutos")
    set_p.add_argument("--s", dest="hours_s", type=parse_count, help="Solo la parte de segundos")
    set_p.add_argument("--placements", type=parse_count, help="Publicaciones")
    set_p.add_argument("--return-visits", type=parse_count, help="Revisitas")
    set_p.add_argument("--bible-studies", type=parse_count, help="Cursos bíblicos")
    set_p.add_argument("--notes", help="Nota del día")
    set_p.add_argument(
        "--public-places",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Encontré lugares públicos para predicar",
    )

    del_p = rec_sub.add_parser("delete", help="Borrar el registro del día seleccionado")
    _add_selection_args(del_p)
    del_p.add_argument("--yes", action="store_true", help="No pedir confirmación")

    timer_p = rec_sub.add_parser("timer", help="Cronómetro: suma tiempo al día seleccionado hasta pulsar Enter")
    _add_selection_args(timer_p)
    timer_p.add_argument("--yes", action="store_true", help="Guardar al terminar sin preguntar")

    rec_sub.add_parser("history", help="Resumen de todos los meses")

    terr_p = rec_sub.add_parser("territory", help="Buscar lugares públicos cercanos para predicar")
    terr_p.add_argument("--query", default="", help="Ej. Parques tranquilos, Paradas de bus...")
    terr_p.add_argument("--lat", type=float, help="Latitud")
    terr_p.add_argument("--lng", type=float, help="Longitud")


def _open_book(ctx: AppContext, ns: argparse.Namespace, session: AuthSession) -> ReportBook:
    book = ReportBook(ctx.reports(session))
    book.load()
    month = getattr(ns, "month", None)
    if month:
        book.switch_to_month(parse_month(month))
    day = getattr(ns, "day", None)
    if day is not None:
        book.select_day(day)
    return book


def _print_day(con: Console, book: ReportBook) -> None:
    rec = book.current_day_record
    con.say(f"Día {rec.day} ({book.selected_date})")
    con.say(f"  Horas:               {format_total_hours(rec.hours)}")
    con.say(f"  Publicaciones:       {rec.placements}")
    con.say(f"  Revisitas:           {rec.return_visits}")
    con.say(f"  Cursos bíblicos:     {rec.bible_studies}")
    con.say(f"  Lugares públicos:    {'sí' if rec.public_places_found else 'no'}")
    if rec.notes:
        con.say(f"  Nota: {rec.notes}")


def _print_month(con: Console, book: ReportBook) -> None:
    con.say(book.month.label + ("" if book.is_current_month else "  (histórico)"))
    markers = book.day_markers()
    cells = []
    for day, has_data in markers.items():
        mark = "*" if has_data else " "
        cell = f"[{day:2d}]" if day == book.selected_day else f" {day:2d}{mark}"
        cells.append(cell)
    for i in range(0, len(cells), 7):
        con.say(" ".join(cells[i : i + 7]))
    con.say()
    _print_day(con, book)
    totals = book.totals
    con.say()
    con.say(
        f"Total del mes: {format_total_hours(totals.hours)} h, {totals.placements} publicaciones, "
        f"{totals.return_visits} revisitas, {totals.bible_studies} cursos"
    )


def _apply_edits(book: ReportBook, ns: argparse.Namespace) -> DailyRecord | None:
    updated: DailyRecord | None = None
    if ns.hours is not None:
        updated = book.update_field("hours", ns.hours)
    for part, value in (("h", ns.hours_h), ("m", ns.hours_m), ("s", ns.hours_s)):
        if value is not None:
            updated = book.update_hours_part(part, value)
    for name in ("placements", "return_visits", "bible_studies", "notes"):
        value = getattr(ns, name)
        if value is not None:
            updated = book.update_field(name, value)
    if ns.public_places is not None:
        updated = book.update_field("public_places_found", ns.public_places)
    return updated


async def _run_timer(con: Console, book: ReportBook, timer: HourTimer) -> None:
    con.say(f"Cronómetro en marcha para {book.selected_date}. Pulsa Enter para detener.")
    timer.start()
    ticking = asyncio.create_task(timer.run())
    try:
        await con.wait_for_enter()
    finally:
        timer.stop()
        await ticking


def run_record(ctx: AppContext, ns: argparse.Namespace, session: AuthSession) -> int:
    con = ctx.console
    action = ns.record_action

    if action == "territory":
        return _run_territory(ctx, ns)

    book = _open_book(ctx, ns, session)

    if action == "show":
        _print_month(con, book)
        return 0

    if action == "history":
        history = book.history
        if not history:
            con.say("Sin registros todavía.")
            return 0
        for summary in history:
            con.say(f"{summary.month:<18} {format_total_hours(summary.hours):>7} h  {summary.placements} publicaciones")
        return 0

    if action == "set":
        if _apply_edits(book, ns) is None:
            con.warn("Nada que guardar: indica al menos un campo (--hours, --placements, ...).")
            return 1
        book.save()
        con.say("Guardado exitosamente.")
        _print_day(con, book)
        return 0

    if action == "delete":
        if not ns.yes and not con.confirm(f"¿Borrar el registro del {book.selected_date}?"):
            con.say("Cancelado.")
            return 1
        book.delete()
        con.say("Día reiniciado.")
        return 0

    timer = HourTimer(
        book,
        interval_s=ctx.cfg.timer.interval_s,
        quantum_hours=ctx.cfg.timer.quantum_hours,
    )
    asyncio.run(_run_timer(con, book, timer))
    con.say(f"Horas del día: {format_total_hours(book.current_day_record.hours)}")
    if ns.yes or con.confirm("¿Guardar el día?"):
        book.save()
        con.say("Guardado exitosamente.")
    return 0


def resolve_location(ctx: AppContext, ns: argparse.Namespace) -> LatLng:
    lat = ns.lat if ns.lat is not None else ctx.cfg.territory.latitude
    lng = ns.lng if ns.lng is not None else ctx.cfg.territory.longitude
    if lat is None or lng is None:
        raise GeolocationError(
            "Geolocalización no disponible: usa --lat/--lng o define territory.latitude/longitude."
        )
    return LatLng(latitude=lat, longitude=lng)


def _run_territory(ctx: AppContext, ns: argparse.Namespace) -> int:
    location = resolve_location(ctx, ns)
    logger.info("territory_search", extra={"query": ns.query})
    result = ctx.gemini.find_preaching_locations(ns.query, location)
    render_result(ctx.console, result)
    return 0
