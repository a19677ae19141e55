from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from chesscore.search.service import EVALUATORS

ENV_PREFIX = "CHESSCORE_"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings for the search service and the HTTP app."""

    default_depth: int = 3
    max_depth: int = 8
    default_evaluator: str = "alphabeta"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        if not 1 <= self.default_depth <= self.max_depth:
            raise ValueError("default_depth must be within 1..max_depth")
        if self.default_evaluator not in EVALUATORS:
            raise ValueError(f"unknown evaluator {self.default_evaluator!r}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"unknown log level {self.log_level!r}")
        if not 0 < self.port < 65536:
            raise ValueError("port must be within 1..65535")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``CHESSCORE_*`` variables, defaults for the rest."""
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            default_depth=_int_env(env, "DEFAULT_DEPTH", defaults.default_depth),
            max_depth=_int_env(env, "MAX_DEPTH", defaults.max_depth),
            default_evaluator=env.get(ENV_PREFIX + "EVALUATOR") or defaults.default_evaluator,
            log_level=(env.get(ENV_PREFIX + "LOG_LEVEL") or defaults.log_level).upper(),
            host=env.get(ENV_PREFIX + "HOST") or defaults.host,
            port=_int_env(env, "PORT", defaults.port),
        )
