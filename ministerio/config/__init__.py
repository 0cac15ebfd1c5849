"""Configuration loading and schema.

- YAML-first configuration under configs/*.yaml
- Strict ${ENV_VAR} expansion (missing/empty env vars are errors)
- Backend credentials and the Gemini key may fall back to plain env vars
"""

from __future__ import annotations

from ministerio.config.errors import ConfigError
from ministerio.config.loader import PROFILES, load_config, resolve_profile_configs
from ministerio.config.model import AppConfig

__all__ = ["AppConfig", "ConfigError", "PROFILES", "load_config", "resolve_profile_configs"]
