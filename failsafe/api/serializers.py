"""
failsafe.api.serializers — ORM rows → JSON-ready dicts
=======================================================
"""

from __future__ import annotations

from datetime import datetime

from failsafe.database.models import (
    Celebration,
    Challenge,
    ChatRoom,
    Match,
    Message,
    Post,
    User,
    WeeklyCheckin,
)
from failsafe.engine.reveal import all_profiles_revealed
from failsafe.services.chat_service import RoomDetail


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_dict(u: User) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "category": u.category,
        "goal": u.goal,
        "failures": list(u.failures or []),
        "failure_description": u.failure_description,
        "severity": u.severity,
        "points": u.points,
        "badges": list(u.badges or []),
        "learning_style": u.learning_style,
        "availability": u.availability,
        "accountability_style": u.accountability_style,
        "last_active": _iso(u.last_active),
        "created_at": _iso(u.created_at),
    }


def post_dict(p: Post) -> dict:
    return {
        "id": p.id,
        "user_id": p.user_id,
        "username": p.username,
        "category": p.category,
        "content": p.content,
        "severity": p.severity,
        "encouragements": p.encouragements,
        "encouraged_by": list(p.encouraged_by or []),
        "created_at": _iso(p.created_at),
    }


def room_dict(r: ChatRoom) -> dict:
    return {
        "id": r.id,
        "match_id": r.match_id,
        "room_name": r.room_name,
        "created_at": _iso(r.created_at),
    }


def match_dict(m: Match) -> dict:
    return {
        "id": m.id,
        "user_ids": list(m.user_ids or []),
        "category": m.category,
        "chat_room_id": m.chat_room_id,
        "is_active": m.is_active,
        "profiles_revealed": list(m.profiles_revealed or []),
        "all_profiles_revealed": all_profiles_revealed(
            m.user_ids or [], m.profiles_revealed or []
        ),
        "created_at": _iso(m.created_at),
    }


def message_dict(msg: Message) -> dict:
    return {
        "id": msg.id,
        "chat_room_id": msg.chat_room_id,
        "user_id": msg.user_id,
        "username": msg.username,
        "content": msg.content,
        "created_at": _iso(msg.created_at),
    }


def challenge_dict(c: Challenge) -> dict:
    return {
        "id": c.id,
        "chat_room_id": c.chat_room_id,
        "challenge": c.challenge,
        "estimated_time": c.estimated_time,
        "completed_by": list(c.completed_by or []),
        "created_at": _iso(c.created_at),
    }


def celebration_dict(c: Celebration) -> dict:
    return {
        "id": c.id,
        "user_id": c.user_id,
        "type": c.type,
        "description": c.description,
        "points": c.points,
        "created_at": _iso(c.created_at),
    }


def checkin_dict(c: WeeklyCheckin) -> dict:
    return {
        "id": c.id,
        "user_id": c.user_id,
        "mood": c.mood,
        "accomplishment": c.accomplishment,
        "need_support": c.need_support,
        "created_at": _iso(c.created_at),
    }


def room_detail_dict(d: RoomDetail) -> dict:
    """Room detail; ``partner_profiles`` is omitted until fully revealed."""
    body = {
        **room_dict(d.room),
        "partner_usernames": d.partner_usernames,
        "profiles_revealed": d.profiles_revealed,
        "all_profiles_revealed": d.all_profiles_revealed,
    }
    if d.partner_profiles is not None:
        body["partner_profiles"] = [
            {"user_id": p.user_id, "username": p.username, "linkedin_url": p.linkedin_url}
            for p in d.partner_profiles
        ]
    return body
