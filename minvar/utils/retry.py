"""Bounded exponential-backoff policy for rate-limited upstream calls."""

from __future__ import annotations

from dataclasses import dataclass

from minvar.config import SETTINGS


@dataclass(frozen=True)
class RetryPolicy:
    """Retry up to ``max_attempts`` times, waiting ``base ** attempt`` seconds
    after each rate-limited attempt (attempts are numbered from 1)."""

    max_attempts: int = 4
    base: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay(self, attempt: int) -> float:
        return float(self.base ** attempt)

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        cfg = SETTINGS.get("retry", {})
        return cls(
            max_attempts=int(cfg.get("max_attempts", 4)),
            base=float(cfg.get("backoff_base", 2)),
        )
