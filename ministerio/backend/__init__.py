"""Hosted backend access: auth, local session persistence and the report table."""

from __future__ import annotations

from ministerio.backend.auth import AuthManager
from ministerio.backend.reports import ReportService
from ministerio.backend.session_store import SessionStore
from ministerio.backend.supabase import AuthSession, AuthUser, SupabaseClient

__all__ = ["AuthManager", "AuthSession", "AuthUser", "ReportService", "SessionStore", "SupabaseClient"]
