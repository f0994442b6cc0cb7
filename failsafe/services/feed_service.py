"""
failsafe.services.feed_service — Members, Posts & Encouragement
================================================================

Everything a member does outside a match room: onboarding, sharing a
failure, encouraging someone else's, declaring they tried again, and
the weekly check-in.  Each point-earning action goes through
:func:`ledger_service.award` so points, badge and celebration land in
one transaction.

All functions take an open :class:`Session`; routes run them through
``run_db(run_with_retry, engine, func, ...)``.
"""

from __future__ import annotations

import logging
import random

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from failsafe.constants import (
    DEFAULT_USER_CATEGORY,
    SUPPORTER_THRESHOLD,
    Badge,
    CelebrationType,
    Points,
)
from failsafe.database.models import Celebration, Post, User, WeeklyCheckin
from failsafe.engine.naming import generate_username
from failsafe.errors import NotFoundError, UsernameTakenError
from failsafe.services.ledger_service import CelebrationSpec, award

logger = logging.getLogger(__name__)

USERNAME_ATTEMPTS = 10


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
def create_user(
    session: Session,
    *,
    goal: str,
    username: str | None = None,
    category: str = DEFAULT_USER_CATEGORY,
    failures: list[str] | None = None,
    failure_description: str | None = None,
    severity: int = 3,
    learning_style: str | None = None,
    availability: str | None = None,
    accountability_style: str | None = None,
    linkedin_url: str | None = None,
    rng: random.Random | None = None,
) -> User:
    """Create a member at the end of onboarding.

    Without an explicit *username* a pseudonym is generated, retrying on
    the rare collision.  An explicit username that is taken raises
    :class:`UsernameTakenError`.
    """
    if username and session.scalar(select(User.id).where(User.username == username)):
        raise UsernameTakenError(username)

    attempts = 1 if username else USERNAME_ATTEMPTS
    for _ in range(attempts):
        candidate = username or generate_username(rng)
        user = User(
            username=candidate,
            category=category,
            goal=goal,
            failures=list(failures or []),
            failure_description=failure_description,
            severity=severity,
            learning_style=learning_style,
            availability=availability,
            accountability_style=accountability_style,
            linkedin_url=linkedin_url,
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(user)
                session.flush()
        except IntegrityError:
            # Unique index on username caught it; outer txn is still alive.
            logger.debug("Username %s already taken", candidate)
            continue
        logger.info("New member %s (%s)", user.username, user.category)
        return user

    raise UsernameTakenError(username or candidate)


def get_user(session: Session, user_id: str) -> User | None:
    return session.get(User, user_id)


def require_user(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def get_leaderboard(session: Session, limit: int = 20) -> list[User]:
    return list(
        session.scalars(
            select(User).order_by(User.points.desc(), User.created_at, User.id).limit(limit)
        ).all()
    )


def tried_again(session: Session, user_id: str) -> User:
    """Reward a member for getting back up after a setback."""
    require_user(session, user_id)
    return award(
        session,
        user_id,
        points=Points.TRIED_AGAIN,
        badge=Badge.PHOENIX,
        celebration=CelebrationSpec(
            CelebrationType.TRIED_AGAIN, "Tried again after a setback!"
        ),
    )


def record_checkin(
    session: Session,
    user_id: str,
    *,
    mood: str,
    accomplishment: str | None = None,
    need_support: str | None = None,
) -> WeeklyCheckin:
    require_user(session, user_id)
    checkin = WeeklyCheckin(
        user_id=user_id,
        mood=mood,
        accomplishment=accomplishment,
        need_support=need_support,
    )
    session.add(checkin)
    session.flush()
    award(
        session,
        user_id,
        points=Points.WEEKLY_CHECKIN,
        celebration=CelebrationSpec(
            CelebrationType.MILESTONE, "Completed a weekly check-in"
        ),
    )
    return checkin


def list_celebrations(session: Session, user_id: str, limit: int = 20) -> list[Celebration]:
    return list(
        session.scalars(
            select(Celebration)
            .where(Celebration.user_id == user_id)
            .order_by(Celebration.created_at.desc(), Celebration.id)
            .limit(limit)
        ).all()
    )


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
def list_posts(session: Session, limit: int = 50) -> list[Post]:
    return list(
        session.scalars(
            select(Post).order_by(Post.created_at.desc(), Post.id).limit(limit)
        ).all()
    )


def create_post(
    session: Session,
    *,
    user_id: str,
    content: str,
    category: str | None = None,
    severity: int = 3,
) -> Post:
    """Share a failure.  Grants the author points and the courage badge."""
    author = require_user(session, user_id)
    post = Post(
        user_id=author.id,
        username=author.username,
        category=category or author.category,
        content=content,
        severity=severity,
    )
    session.add(post)
    session.flush()

    award(
        session,
        author.id,
        points=Points.POST_FAILURE,
        badge=Badge.COURAGE,
        celebration=CelebrationSpec(
            CelebrationType.POST_FAILURE, "Shared a failure with the community"
        ),
    )
    return post


def encourage_post(session: Session, post_id: str, user_id: str) -> tuple[Post, bool]:
    """Record *user_id* encouraging a post.

    Returns ``(post, newly_encouraged)``.  A repeat encouragement leaves
    the counter, the encouraged-by list and everyone's points untouched.
    """
    post = session.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post", post_id)
    require_user(session, user_id)

    if user_id in (post.encouraged_by or []):
        return post, False

    post.encouraged_by = [*(post.encouraged_by or []), user_id]
    post.encouragements = (post.encouragements or 0) + 1
    session.flush()

    award(
        session,
        user_id,
        points=Points.GIVE_ENCOURAGEMENT,
        celebration=CelebrationSpec(
            CelebrationType.ENCOURAGEMENT_GIVEN, "Encouraged a fellow member"
        ),
    )
    award(
        session,
        post.user_id,
        points=Points.RECEIVE_ENCOURAGEMENT,
        celebration=CelebrationSpec(
            CelebrationType.ENCOURAGEMENT_RECEIVED, "Someone encouraged your post"
        ),
    )

    given = session.scalar(
        select(func.count())
        .select_from(Celebration)
        .where(
            Celebration.user_id == user_id,
            Celebration.type == CelebrationType.ENCOURAGEMENT_GIVEN.value,
        )
    ) or 0
    if given >= SUPPORTER_THRESHOLD:
        award(session, user_id, badge=Badge.SUPPORTER)

    return post, True
