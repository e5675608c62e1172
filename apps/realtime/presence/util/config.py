"""Runtime settings for the presence companion."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class PresenceSettings:
    """Container for presence companion settings."""

    default_channel: str = "general"
    default_user: str = "anonymous"
    keepalive_seconds: float = 15.0
    retry_ms: Optional[int] = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.keepalive_seconds) or self.keepalive_seconds <= 0:
            raise ValueError("keepalive_seconds must be a positive number")
        if self.retry_ms is not None and self.retry_ms < 0:
            raise ValueError("retry_ms must not be negative")

    @classmethod
    def from_env(cls) -> "PresenceSettings":
        return cls(
            default_channel=_env_str("PRESENCE_DEFAULT_CHANNEL", default="general"),
            default_user=_env_str("PRESENCE_DEFAULT_USER", default="anonymous"),
            keepalive_seconds=_env_float("PRESENCE_KEEPALIVE_SECONDS", default=15.0),
            retry_ms=_env_int("PRESENCE_RETRY_MS", default=None),
        )


def _env_str(name: str, *, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_float(name: str, *, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, *, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default
