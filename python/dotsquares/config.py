"""Runtime settings for front ends embedding the game."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .ai import HeuristicAgent
from .match import Match
from .oracle import DEFAULT_MAX_MOVES, DEFAULT_MODEL, GeminiOracleClient, OracleAdvisor, OracleConfigError
from .snapshot import DEFAULT_KEY


LOG = logging.getLogger("dotsquares.config")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    rows: int = 4
    cols: int = 4
    oracle_enabled: bool = False
    oracle_model: str = DEFAULT_MODEL
    oracle_timeout: float = 10.0
    oracle_max_moves: int = DEFAULT_MAX_MOVES
    snapshot_key: str = DEFAULT_KEY
    log_level: str = "INFO"
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            rows=_int_setting(env, "DOTSQUARES_ROWS", defaults.rows),
            cols=_int_setting(env, "DOTSQUARES_COLS", defaults.cols),
            oracle_enabled=env.get("DOTSQUARES_ORACLE", "").strip().lower() in _TRUTHY,
            oracle_model=env.get("DOTSQUARES_MODEL", "").strip() or defaults.oracle_model,
            snapshot_key=env.get("DOTSQUARES_SNAPSHOT_KEY", "").strip() or defaults.snapshot_key,
            log_level=env.get("DOTSQUARES_LOG_LEVEL", "").strip() or defaults.log_level,
        )

    def configure_logging(self) -> None:
        configure_logging(self.log_level)


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        LOG.warning("Ignoring %s=%r; using %d", name, raw, default)
        return default
    return value if value >= 1 else default


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))


def build_match(settings: Optional[Settings] = None, api_key: Optional[str] = None) -> Match:
    settings = settings or Settings()
    advisor: Optional[OracleAdvisor] = None
    if settings.oracle_enabled:
        try:
            client = GeminiOracleClient(
                api_key=api_key,
                model=settings.oracle_model,
                timeout=settings.oracle_timeout,
            )
        except OracleConfigError as exc:
            LOG.warning("Oracle disabled: %s", exc)
        else:
            advisor = OracleAdvisor(client, max_moves=settings.oracle_max_moves)

    return Match(
        rows=settings.rows,
        cols=settings.cols,
        agent=HeuristicAgent(seed=settings.seed),
        advisor=advisor,
        snapshot_key=settings.snapshot_key,
    )


__all__ = ["Settings", "build_match", "configure_logging"]
