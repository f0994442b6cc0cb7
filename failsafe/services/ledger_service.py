"""
failsafe.services.ledger_service — Points, Badges & Celebrations
=================================================================

The ledger lives on the ``users`` row: ``points`` is the authoritative
running total and ``badges`` the set of earned badge keys.  Celebrations
are a display log of *why* points were earned.

* Points are added with one atomic ``UPDATE … SET points = points + :delta``,
  so concurrent grants never lose an increment.
* Badges are appended through the ORM; the ``version`` column turns the
  write into a compare-and-swap, and :func:`run_with_retry` re-runs the
  unit of work if another request got there first.
* :func:`award` applies points, badge and celebration in the caller's
  transaction, so a celebration is never missing for credited points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlalchemy.orm import Session

from failsafe.constants import Badge
from failsafe.database.engine import run_with_retry
from failsafe.database.models import Celebration, User

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

BADGE_KEYS: frozenset[str] = frozenset(b.value for b in Badge)


@dataclass(frozen=True, slots=True)
class CelebrationSpec:
    """What to write to the celebration feed alongside a grant."""

    type: str
    description: str


# ---------------------------------------------------------------------------
# Session-level primitives
# ---------------------------------------------------------------------------
def grant_points(session: Session, user_id: str, amount: int) -> User | None:
    """Add *amount* points to a user and refresh ``last_active``.

    Returns the updated user, or ``None`` if the user doesn't exist.
    """
    if amount < 0:
        raise ValueError(f"Point grants must be non-negative, got {amount}")

    result = session.execute(
        update(User)
        .where(User.id == user_id)
        .values(points=User.points + amount, last_active=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info("Point grant skipped — user %s not found", user_id)
        return None
    return session.get(User, user_id, populate_existing=True)


def grant_badge(session: Session, user_id: str, badge: str) -> User | None:
    """Add *badge* to a user's badge set if it isn't there yet.

    Returns the user (unchanged when already earned), or ``None`` if the
    user doesn't exist.
    """
    if badge not in BADGE_KEYS:
        raise ValueError(f"Unknown badge key: {badge!r}")

    user = session.get(User, user_id)
    if user is None:
        return None
    if badge in (user.badges or []):
        return user

    # Reassign (not append) so the JSON column is flagged dirty
    user.badges = [*(user.badges or []), badge]
    session.flush()
    logger.info("Badge %s granted to %s", badge, user.username)
    return user


def record_celebration(
    session: Session,
    user_id: str,
    *,
    type: str,
    description: str,
    points: int,
) -> Celebration:
    celebration = Celebration(
        user_id=user_id, type=type, description=description, points=points
    )
    session.add(celebration)
    session.flush()
    return celebration


def award(
    session: Session,
    user_id: str,
    *,
    points: int = 0,
    badge: str | None = None,
    celebration: CelebrationSpec | None = None,
) -> User | None:
    """Apply a points grant, an optional badge and an optional celebration.

    All three writes share *session*'s transaction.  Returns ``None``
    (and writes nothing) if the user doesn't exist.
    """
    user = grant_points(session, user_id, points) if points else session.get(User, user_id)
    if user is None:
        return None
    if badge is not None:
        user = grant_badge(session, user_id, badge)
    if celebration is not None:
        record_celebration(
            session,
            user_id,
            type=celebration.type,
            description=celebration.description,
            points=points,
        )
    return user


# ---------------------------------------------------------------------------
# Engine-level wrappers (own transaction, retried on contention)
# ---------------------------------------------------------------------------
def grant_points_for(engine: Engine, user_id: str, amount: int) -> User | None:
    return run_with_retry(engine, grant_points, user_id, amount)


def grant_badge_for(engine: Engine, user_id: str, badge: str) -> User | None:
    return run_with_retry(engine, grant_badge, user_id, badge)
