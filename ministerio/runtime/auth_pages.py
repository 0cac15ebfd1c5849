from __future__ import annotations

import argparse

from ministerio.backend.supabase import AuthSession
from ministerio.runtime.context import AppContext


NOT_CONFIGURED_WARNING = (
    "Falta Configuración: debes definir SUPABASE_URL y SUPABASE_ANON_KEY "
    "(en configs/app.yaml o en el entorno) para poder iniciar sesión."
)
NOT_CONFIGURED_ERROR = "Error de configuración: Faltan las claves de Supabase."
MIN_PASSWORD_LEN = 6


def register_auth(sub: argparse._SubParsersAction) -> None:
    auth_p = sub.add_parser("auth", help="Iniciar sesión, registrarse o recuperar la contraseña")
    auth_sub = auth_p.add_subparsers(dest="auth_action", required=True)

    for name, help_text in (
        ("login", "Entrar con correo y contraseña"),
        ("register", "Crear una cuenta"),
        ("reset", "Enviar correo para restablecer la contraseña"),
    ):
        p = auth_sub.add_parser(name, help=help_text)
        p.add_argument("--email", help="Correo electrónico (se pregunta si falta)")

    auth_sub.add_parser("logout", help="Cerrar sesión")
    auth_sub.add_parser("status", help="Mostrar la sesión actual")

    profile_p = sub.add_parser("profile", help="Ver el perfil y cerrar sesión")
    profile_p.add_argument("--logout", action="store_true", help="Cerrar sesión")


def _read_credentials(ctx: AppContext, ns: argparse.Namespace, *, with_password: bool) -> tuple[str, str]:
    con = ctx.console
    email = (ns.email or "").strip() or con.ask("Correo electrónico: ")
    password = ""
    if with_password:
        password = con.read_secret("Contraseña: ")
        if len(password) < MIN_PASSWORD_LEN:
            raise ValueError(f"La contraseña debe tener al menos {MIN_PASSWORD_LEN} caracteres.")
    return email, password


def run_auth(ctx: AppContext, ns: argparse.Namespace) -> int:
    con = ctx.console
    action = ns.auth_action

    if action in {"login", "register", "reset"} and not ctx.cfg.supabase.is_configured:
        # No prompts while the backend credentials are missing.
        con.warn(NOT_CONFIGURED_WARNING)
        con.warn(NOT_CONFIGURED_ERROR)
        return 1

    if action == "status":
        if not ctx.cfg.supabase.is_configured:
            con.warn(NOT_CONFIGURED_WARNING)
            return 1
        session = ctx.auth.current_session()
        if session is None:
            con.say("Sin sesión. Usa: ministerio auth login")
            return 1
        con.say(f"Sesión activa: {session.user.email or session.user.id}")
        return 0

    if action == "logout":
        return _logout(ctx)

    if action == "login":
        email, password = _read_credentials(ctx, ns, with_password=True)
        session = ctx.auth.sign_in(email, password)
        con.say(f"Bienvenido, {_display_name(session)}.")
        return 0

    if action == "register":
        email, password = _read_credentials(ctx, ns, with_password=True)
        session = ctx.auth.sign_up(email, password)
        con.say("¡Registro exitoso! Por favor verifica tu correo electrónico si es necesario.")
        if session is not None:
            con.say(f"Sesión iniciada como {_display_name(session)}.")
        return 0

    email, _ = _read_credentials(ctx, ns, with_password=False)
    ctx.auth.reset_password(email, redirect_to=ctx.cfg.supabase.redirect_to)
    con.say("Se ha enviado un correo para restablecer tu contraseña.")
    return 0


def _display_name(session: AuthSession) -> str:
    email = session.user.email or ""
    return email.split("@")[0] if email else session.user.id


def _logout(ctx: AppContext) -> int:
    ctx.auth.sign_out()
    ctx.console.say("Sesión cerrada.")
    return 0


def run_profile(ctx: AppContext, ns: argparse.Namespace, session: AuthSession) -> int:
    if ns.logout:
        return _logout(ctx)

    con = ctx.console
    con.say(_display_name(session))
    con.say("Usuario Autenticado")
    con.say(f"Correo: {session.user.email or '-'}")
    con.say("Compañero Ministerio v1.0")
    return 0
