"""
failsafe.database.seed — Sample community seeder
=================================================

Fills an *empty* database with a handful of members and their first
posts from ``failsafe/seeds/community.yaml`` so a fresh install doesn't open on
a blank feed.  Does nothing once any user exists.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy import Engine, select

from failsafe.database.engine import get_session
from failsafe.database.models import Post, User
from failsafe.engine.naming import generate_username

logger = logging.getLogger(__name__)

# Seed fixtures ship inside the package
_SEEDS_DIR = Path(__file__).resolve().parent.parent / "seeds"


def _load_yaml(filename: str) -> Any:
    """Load a YAML file from the seeds directory."""
    path = _SEEDS_DIR / filename
    if not path.exists():
        logger.warning("Seed file not found: %s", path)
        return {}
    with open(path, encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def seed_sample_community(
    engine: Engine,
    *,
    filename: str = "community.yaml",
    rng: random.Random | None = None,
) -> int:
    """Seed sample members + posts.  Returns the number of users created."""
    rng = rng or random.Random()

    with get_session(engine) as session:
        if session.scalar(select(User.id).limit(1)) is not None:
            logger.info("Users already present — skipping sample seed.")
            return 0

        members = _load_yaml(filename).get("members", [])
        taken: set[str] = set()
        count = 0
        for m in members:
            username = generate_username(rng)
            while username in taken:
                username = generate_username(rng)
            taken.add(username)

            user = User(
                username=username,
                category=m["category"],
                goal=m["goal"],
                failures=list(m.get("failures", [])),
                failure_description=m.get("failure_description"),
                severity=m.get("severity", 3),
                points=m.get("points", 0),
                badges=list(m.get("badges", [])),
            )
            session.add(user)
            session.flush()

            post = m.get("post")
            if post:
                session.add(Post(
                    user_id=user.id,
                    username=user.username,
                    category=user.category,
                    content=post["content"],
                    severity=post.get("severity", 3),
                    encouragements=post.get("encouragements", 0),
                    encouraged_by=[],
                ))
            count += 1

    logger.info("Seeded %d sample members.", count)
    return count
