"""Tunable settings for the queue backends and assertion messages.

Values are module constants read from the environment at import time. Tests
monkeypatch the dicts directly (they are intentionally mutable).
"""
from __future__ import annotations

import os


def _env_flag(name: str, default: str = "") -> bool:
	return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


# --------------------------------- Queue ---------------------------------- #
QUEUE_SETTINGS: dict[str, str | float | bool | None] = {
	# Prefer the Redis backend in create_backend() when reachable.
	"use_redis": _env_flag("DELAYED_ASSERTIONS_USE_REDIS"),
	"redis_url": os.getenv("DELAYED_ASSERTIONS_REDIS_URL", "redis://localhost:6379/0"),
	# Key prefix shared with resque / resque-scheduler.
	"namespace": os.getenv("DELAYED_ASSERTIONS_NAMESPACE", "resque"),
	# Queue used when a job class declares no ``queue`` attribute.
	"default_queue": os.getenv("DELAYED_ASSERTIONS_DEFAULT_QUEUE") or None,
	"redis_health_check_timeout": float(os.getenv("DELAYED_ASSERTIONS_REDIS_TIMEOUT", "2.0")),
}

# ------------------------------- Assertions ------------------------------- #
ASSERTION_SETTINGS: dict[str, int] = {
	# Upper bound on descriptors rendered into a default failure message.
	"max_reported_jobs": 20,
}

# -------------------------------- Logging --------------------------------- #
LOG_LEVEL: str = os.getenv("DELAYED_ASSERTIONS_LOG_LEVEL", "WARNING").upper()

__all__ = [
	"QUEUE_SETTINGS",
	"ASSERTION_SETTINGS",
	"LOG_LEVEL",
]
