"""
failsafe.services.chat_service — Rooms, Messages & Challenges
==============================================================

Read/write access to a match's chat room.  The room detail view is
where the profile-reveal gate is enforced: partner profiles (username +
external link) are only included once every member has opted in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from failsafe.constants import Badge, CelebrationType, Points
from failsafe.database.models import Challenge, ChatRoom, Match, Message, User
from failsafe.engine.reveal import RevealState, reveal_state
from failsafe.errors import NotFoundError
from failsafe.services.ledger_service import CelebrationSpec, award

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PartnerProfile:
    user_id: str
    username: str
    linkedin_url: str | None


@dataclass(slots=True)
class RoomDetail:
    """A room as seen by one viewer.

    ``partner_profiles`` is ``None`` until the match is fully revealed.
    """

    room: ChatRoom
    match: Match | None
    partner_usernames: list[str] = field(default_factory=list)
    profiles_revealed: list[str] = field(default_factory=list)
    state: RevealState = RevealState.NONE_REVEALED
    partner_profiles: list[PartnerProfile] | None = None

    @property
    def all_profiles_revealed(self) -> bool:
        return self.state is RevealState.FULLY_REVEALED


# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------
def require_room(session: Session, room_id: str) -> ChatRoom:
    room = session.get(ChatRoom, room_id)
    if room is None:
        raise NotFoundError("Room", room_id)
    return room


def get_room_detail(
    session: Session, room_id: str, viewer_id: str | None = None
) -> RoomDetail:
    """Load a room with its match and the partners *viewer_id* may see."""
    room = require_room(session, room_id)
    match = session.get(Match, room.match_id)
    if match is None:
        logger.warning("Room %s references missing match %s", room.id, room.match_id)
        return RoomDetail(room=room, match=None)

    members = list(match.user_ids or [])
    opted_in = list(match.profiles_revealed or [])
    partner_ids = [uid for uid in members if uid != viewer_id]
    partners = {
        u.id: u
        for u in session.scalars(select(User).where(User.id.in_(partner_ids))).all()
    } if partner_ids else {}
    ordered = [partners[uid] for uid in partner_ids if uid in partners]

    state = reveal_state(members, opted_in)
    detail = RoomDetail(
        room=room,
        match=match,
        partner_usernames=[u.username for u in ordered],
        profiles_revealed=opted_in,
        state=state,
    )
    if state is RevealState.FULLY_REVEALED:
        detail.partner_profiles = [
            PartnerProfile(user_id=u.id, username=u.username, linkedin_url=u.linkedin_url)
            for u in ordered
        ]
    return detail


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------
def list_messages(session: Session, room_id: str) -> list[Message]:
    return list(
        session.scalars(
            select(Message)
            .where(Message.chat_room_id == room_id)
            .order_by(Message.created_at, Message.id)
        ).all()
    )


def post_message(session: Session, room_id: str, user_id: str, content: str) -> Message:
    require_room(session, room_id)
    sender = session.get(User, user_id)
    if sender is None:
        raise NotFoundError("User", user_id)

    message = Message(
        chat_room_id=room_id,
        user_id=sender.id,
        username=sender.username,
        content=content,
    )
    session.add(message)
    session.flush()
    return message


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------
def create_challenge(
    session: Session, room_id: str, text: str, estimated_time: int = 30
) -> Challenge:
    challenge = Challenge(
        chat_room_id=room_id, challenge=text, estimated_time=estimated_time
    )
    session.add(challenge)
    session.flush()
    return challenge


def latest_challenge(session: Session, room_id: str) -> Challenge | None:
    """The room's current challenge; older ones are kept but not shown."""
    return session.scalar(
        select(Challenge)
        .where(Challenge.chat_room_id == room_id)
        .order_by(Challenge.created_at.desc(), Challenge.id.desc())
        .limit(1)
    )


def complete_challenge(session: Session, challenge_id: str, user_id: str) -> Challenge:
    """Mark a challenge done for *user_id*.

    Points, the action-taker badge and the celebration are only granted
    the first time a given user completes a given challenge.
    """
    challenge = session.get(Challenge, challenge_id)
    if challenge is None:
        raise NotFoundError("Challenge", challenge_id)
    if session.get(User, user_id) is None:
        raise NotFoundError("User", user_id)

    if user_id in (challenge.completed_by or []):
        return challenge

    challenge.completed_by = [*(challenge.completed_by or []), user_id]
    session.flush()

    award(
        session,
        user_id,
        points=Points.COMPLETE_CHALLENGE,
        badge=Badge.ACTION_TAKER,
        celebration=CelebrationSpec(
            CelebrationType.MILESTONE, "Completed a daily challenge"
        ),
    )
    return challenge
