"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _env(environ: Mapping[str, str], name: str, default: str) -> str:
    value = environ.get(name)
    if value is not None and value.strip() != "":
        return value.strip()
    return default


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    # Pause before the computer answers, applied by the web layer only.
    ai_delay: float = 0.5


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``TICTAC_*`` variables."""

    env = os.environ if environ is None else environ
    try:
        port = int(_env(env, "TICTAC_PORT", "8000"))
        ai_delay = float(_env(env, "TICTAC_AI_DELAY", "0.5"))
    except ValueError as exc:
        raise ValueError(f"Invalid TICTAC_* setting: {exc}") from exc
    return Settings(
        host=_env(env, "TICTAC_HOST", "0.0.0.0"),
        port=port,
        log_level=_env(env, "TICTAC_LOG_LEVEL", "INFO").upper(),
        ai_delay=max(0.0, ai_delay),
    )
