from __future__ import annotations

import os
from dataclasses import dataclass, field

from phonics.generator import DEFAULT_MAX_ATTEMPTS


@dataclass(frozen=True, slots=True)
class EngineTimings:
    # How long the "correct" banner stays before the next question.
    correct_delay_ms: int = 1500
    # How long the "try again" banner stays before input reopens.
    incorrect_delay_ms: int = 1000
    # Wheel animation length.
    spin_duration_ms: int = 3000
    # Pause between announcing the wheel winner and showing its question.
    reveal_delay_ms: int = 1500


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str = "redis://localhost:6379/0"
    timings: EngineTimings = field(default_factory=EngineTimings)
    max_generation_attempts: int = DEFAULT_MAX_ATTEMPTS
    log_level: str = "INFO"
    # 0 disables the idle sweep / the session cap.
    session_idle_timeout_s: int = 1800
    max_sessions: int = 500


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def load_settings() -> Settings:
    defaults = EngineTimings()
    timings = EngineTimings(
        correct_delay_ms=_env_int("PHONICS_CORRECT_DELAY_MS", defaults.correct_delay_ms),
        incorrect_delay_ms=_env_int("PHONICS_INCORRECT_DELAY_MS", defaults.incorrect_delay_ms),
        spin_duration_ms=_env_int("PHONICS_SPIN_DURATION_MS", defaults.spin_duration_ms),
        reveal_delay_ms=_env_int("PHONICS_REVEAL_DELAY_MS", defaults.reveal_delay_ms),
    )
    redis_url = os.environ.get("PHONICS_REDIS_URL") or os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    return Settings(
        redis_url=redis_url,
        timings=timings,
        max_generation_attempts=max(1, _env_int("PHONICS_MAX_GENERATION_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
        log_level=os.getenv("PHONICS_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        session_idle_timeout_s=_env_int("PHONICS_SESSION_IDLE_TIMEOUT_S", 1800),
        max_sessions=_env_int("PHONICS_MAX_SESSIONS", 500),
    )
