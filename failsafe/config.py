"""
failsafe.config — YAML Configuration Loader
============================================

**Why this file exists:**
This module reads ``config.yaml`` for the soft settings of a FailSafe
deployment (matching policy, list sizes, text-generation endpoint).
Secrets and infrastructure (``DATABASE_URL``, ``CONTENT_API_KEY``,
CORS origins) stay in the environment / ``.env``.

Usage::

    from failsafe.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    print(cfg.app_name)              # "FailSafe"
    print(cfg.content.model)         # "MiniMax-M1"
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

MATCHING_POLICIES = ("tag_overlap", "category")


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ContentConfig:
    """Where and how to reach the text-generation service."""

    base_url: str = "https://api.minimax.io/v1"
    model: str = "MiniMax-M1"
    timeout_seconds: float = 15.0


@dataclass(frozen=True, slots=True)
class FailsafeConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str = "FailSafe"

    # Matchmaking
    matching_policy: str = "tag_overlap"   # or "category"
    challenge_minutes: int = 30

    # List sizes
    feed_limit: int = 50
    leaderboard_limit: int = 20
    celebrations_limit: int = 20

    # Startup
    seed_sample_data: bool = False

    content: ContentConfig = field(default_factory=ContentConfig)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> FailsafeConfig:
    """Read *path* and return a :class:`FailsafeConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  When omitted,
        ``$FAILSAFE_CONFIG`` or ``config.yaml`` in the working directory
        is used, and a missing file simply yields the defaults.

    Raises
    ------
    FileNotFoundError
        If an explicitly requested YAML file doesn't exist.
    ValueError
        If ``matching_policy`` is not a known policy.
    """
    explicit = path is not None or bool(os.getenv("FAILSAFE_CONFIG"))
    config_path = Path(path or os.getenv("FAILSAFE_CONFIG") or DEFAULT_CONFIG_PATH)

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(
                f"Configuration file not found: {config_path.resolve()}\n"
                "Hint: copy config.yaml.example → config.yaml and edit it."
            )
        logger.info("No %s found — using built-in defaults.", config_path)
        return FailsafeConfig()

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = FailsafeConfig()
    content_raw: dict = raw.get("content") or {}
    content = ContentConfig(
        base_url=str(content_raw.get("base_url", defaults.content.base_url)).rstrip("/"),
        model=str(content_raw.get("model", defaults.content.model)),
        timeout_seconds=float(
            content_raw.get("timeout_seconds", defaults.content.timeout_seconds)
        ),
    )

    policy = str(raw.get("matching_policy", defaults.matching_policy))
    if policy not in MATCHING_POLICIES:
        raise ValueError(
            f"Unknown matching_policy {policy!r}. Must be one of {MATCHING_POLICIES}"
        )

    return FailsafeConfig(
        app_name=raw.get("app_name", defaults.app_name),
        matching_policy=policy,
        challenge_minutes=int(raw.get("challenge_minutes", defaults.challenge_minutes)),
        feed_limit=int(raw.get("feed_limit", defaults.feed_limit)),
        leaderboard_limit=int(raw.get("leaderboard_limit", defaults.leaderboard_limit)),
        celebrations_limit=int(
            raw.get("celebrations_limit", defaults.celebrations_limit)
        ),
        seed_sample_data=bool(raw.get("seed_sample_data", defaults.seed_sample_data)),
        content=content,
    )
