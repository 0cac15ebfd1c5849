"""Compañero Ministerio.

Field-service log backed by a hosted Supabase project, monthly reports, and a
Gemini assistant (presentation ideas, territory search, chat, realtime voice).
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
