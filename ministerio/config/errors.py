from __future__ import annotations

from ministerio.core.errors import ConfigError

__all__ = ["ConfigError"]
