"""
failsafe.services.matchmaking_service — Match & Room Lifecycle
===============================================================

Pairs a member with an accountability partner and sets up everything
the pair needs:

    1. Load the requester (NotFound if missing).
    2. Exclude the requester and everyone already matched with them.
    3. Pick a partner from the remaining pool (NoCandidates if empty).
    4. Create the ChatRoom and the Match in one transaction.  Both ids
       are generated up front, so the room points at its match from the
       very first write.
    5. Ask the content service for a shared challenge (fallback copy on
       failure) and attach it to the room.
    6. Give the requester the connector badge.

Steps 1–4 are a single unit of work: a NotFound/NoCandidates outcome
writes nothing.  Also home to the profile-reveal opt-in.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import Select, cast, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session

from failsafe.constants import Badge
from failsafe.database.engine import run_db, run_with_retry
from failsafe.database.models import Challenge, ChatRoom, Match, User, new_id
from failsafe.engine.matching import exclusion_set, select_partner, shared_category
from failsafe.engine.naming import generate_room_name
from failsafe.engine.reveal import with_opt_in
from failsafe.errors import NoCandidatesError, NotAMemberError, NotFoundError
from failsafe.services import chat_service
from failsafe.services.ledger_service import grant_badge_for

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from failsafe.services.content_service import ContentService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PairingResult:
    """Rows written by :func:`create_pairing` plus the inputs for the challenge."""

    match: Match
    room: ChatRoom
    partner: User
    challenge_tags: list[str]
    goal: str | None


@dataclass(slots=True)
class MatchOutcome:
    match: Match
    room: ChatRoom
    partner: User
    challenge: Challenge


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def active_matches_query(user_id: str, dialect_name: str) -> Select[tuple[Match]]:
    """Active matches, newest first, narrowed to *user_id* where the backend can.

    PostgreSQL stores ``user_ids`` as JSONB and filters with ``@>``.  Other
    backends get every active match and rely on the caller to filter.
    """
    stmt = (
        select(Match)
        .where(Match.is_active.is_(True))
        .order_by(Match.created_at.desc(), Match.id)
    )
    if dialect_name == "postgresql":
        stmt = stmt.where(cast(Match.user_ids, JSONB).contains([user_id]))
    return stmt


def list_matches_for_user(session: Session, user_id: str) -> list[Match]:
    """The user's active matches, newest first."""
    stmt = active_matches_query(user_id, session.get_bind().dialect.name)
    return [m for m in session.scalars(stmt).all() if m.has_member(user_id)]


def list_matches_with_rooms(
    session: Session, user_id: str
) -> list[tuple[Match, ChatRoom | None]]:
    matches = list_matches_for_user(session, user_id)
    room_ids = [m.chat_room_id for m in matches]
    rooms = {
        r.id: r
        for r in session.scalars(select(ChatRoom).where(ChatRoom.id.in_(room_ids))).all()
    } if room_ids else {}
    return [(m, rooms.get(m.chat_room_id)) for m in matches]


# ---------------------------------------------------------------------------
# Pairing (one transaction)
# ---------------------------------------------------------------------------
def create_pairing(
    session: Session,
    user_id: str,
    *,
    policy: str = "tag_overlap",
    rng: random.Random | None = None,
) -> PairingResult:
    """Select a partner and write the ChatRoom + Match pair."""
    requester = session.get(User, user_id)
    if requester is None:
        raise NotFoundError("User", user_id)

    existing = list_matches_for_user(session, user_id)
    excluded = exclusion_set(user_id, [m.user_ids for m in existing])

    pool = [
        u for u in session.scalars(select(User).order_by(User.created_at, User.id)).all()
        if u.id not in excluded
    ]
    partner = select_partner(requester, pool, policy=policy, rng=rng) if pool else None
    if partner is None:
        logger.info(
            "No partner for %s (%d excluded, %d in pool, policy=%s)",
            user_id, len(excluded), len(pool), policy,
        )
        raise NoCandidatesError(user_id)

    match_id, room_id = new_id(), new_id()
    room = ChatRoom(id=room_id, match_id=match_id, room_name=generate_room_name(rng))
    match = Match(
        id=match_id,
        user_ids=[requester.id, partner.id],
        category=shared_category(requester.failures or [], partner.failures or []),
        chat_room_id=room_id,
    )
    session.add_all([room, match])
    session.flush()

    logger.info(
        "Matched %s with %s in %r (%s)",
        requester.username, partner.username, room.room_name, match.category,
    )
    return PairingResult(
        match=match,
        room=room,
        partner=partner,
        challenge_tags=[*(requester.failures or []), *(partner.failures or [])],
        goal=requester.goal,
    )


# ---------------------------------------------------------------------------
# Full flow (async)
# ---------------------------------------------------------------------------
async def find_match(
    engine: Engine,
    content: ContentService,
    user_id: str,
    *,
    policy: str = "tag_overlap",
    challenge_minutes: int = 30,
    rng: random.Random | None = None,
) -> MatchOutcome:
    """Pair *user_id* with a partner, issue a challenge, grant the badge.

    Raises
    ------
    NotFoundError
        The requester doesn't exist.
    NoCandidatesError
        Nobody is eligible right now.
    """
    pairing = await run_db(
        run_with_retry, engine, create_pairing, user_id, policy=policy, rng=rng
    )

    # Never fails: the content service substitutes fallback copy
    text = await content.generate_challenge(pairing.challenge_tags, pairing.goal)
    challenge = await run_db(
        run_with_retry,
        engine,
        chat_service.create_challenge,
        pairing.room.id,
        text,
        challenge_minutes,
    )

    await run_db(grant_badge_for, engine, user_id, Badge.CONNECTOR)

    return MatchOutcome(
        match=pairing.match,
        room=pairing.room,
        partner=pairing.partner,
        challenge=challenge,
    )


# ---------------------------------------------------------------------------
# Profile reveal
# ---------------------------------------------------------------------------
def opt_in_reveal(session: Session, match_id: str, user_id: str) -> Match:
    """Record *user_id*'s consent to reveal their profile to the match.

    Idempotent.  Only members of the match may opt in.
    """
    match = session.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match", match_id)
    if not match.has_member(user_id):
        raise NotAMemberError(match_id, user_id)

    updated = with_opt_in(match.profiles_revealed or [], user_id)
    if updated != list(match.profiles_revealed or []):
        match.profiles_revealed = updated
        session.flush()
        logger.info(
            "%s opted in to reveal on match %s (%d/%d)",
            user_id, match_id, len(updated), len(match.user_ids),
        )
    return match
