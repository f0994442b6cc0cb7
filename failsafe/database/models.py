"""
failsafe.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- users            — Pseudonymous member profiles + points/badges ledger
- posts            — Shared failures with per-user encouragement tracking
- matches          — Accountability pairings and their reveal opt-ins
- chat_rooms       — One durable room per match
- messages         — Append-only room chat
- challenges       — Daily challenges issued to a room
- celebrations     — Append-only feed of point-earning events
- weekly_checkins  — Append-only mood check-ins

Ids are UUID strings generated in Python at construction time, so a
Match and its ChatRoom can reference each other before either row is
flushed.  Rows whose list columns are mutated concurrently (users,
posts, matches, challenges) carry a ``version`` column used by the ORM
as an optimistic-concurrency check.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSON list column: JSONB on PostgreSQL, plain JSON elsewhere (SQLite tests)
JSONList = JSON().with_variant(JSONB(), "postgresql")


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all FailSafe ORM models."""


# ---------------------------------------------------------------------------
# Users — one row per pseudonymous member
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="Other")
    goal: Mapped[str] = mapped_column(Text, nullable=False)
    failures: Mapped[list[str]] = mapped_column(JSONList, nullable=False, default=list)
    failure_description: Mapped[str | None] = mapped_column(Text, default=None)
    severity: Mapped[int] = mapped_column(Integer, default=3)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    badges: Mapped[list[str]] = mapped_column(JSONList, nullable=False, default=list)
    learning_style: Mapped[str | None] = mapped_column(String(100), default=None)
    availability: Mapped[str | None] = mapped_column(String(100), default=None)
    accountability_style: Mapped[str | None] = mapped_column(String(100), default=None)
    linkedin_url: Mapped[str | None] = mapped_column(String(500), default=None)
    last_active: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_users_points_desc", "points"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.username!r} pts={self.points}>"


# ---------------------------------------------------------------------------
# Posts — shared failures
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[int] = mapped_column(Integer, default=3)
    encouragements: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    encouraged_by: Mapped[list[str]] = mapped_column(
        JSONList, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_posts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Post id={self.id} user={self.user_id} enc={self.encouragements}>"


# ---------------------------------------------------------------------------
# Matches — accountability pairings
# ---------------------------------------------------------------------------
class Match(Base):
    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_ids: Mapped[list[str]] = mapped_column(JSONList, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    # No FK: matches and chat_rooms reference each other
    chat_room_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    profiles_revealed: Mapped[list[str]] = mapped_column(
        JSONList, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_matches_active", "is_active"),
    )

    def has_member(self, user_id: str) -> bool:
        return user_id in (self.user_ids or [])

    def __repr__(self) -> str:
        return f"<Match id={self.id} users={self.user_ids} room={self.chat_room_id}>"


# ---------------------------------------------------------------------------
# ChatRooms — one per match
# ---------------------------------------------------------------------------
class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    match_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    room_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<ChatRoom id={self.id} name={self.room_name!r}>"


# ---------------------------------------------------------------------------
# Messages — append-only room chat
# ---------------------------------------------------------------------------
class Message(Base):
    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    chat_room_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_messages_room_time", "chat_room_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Message id={self.id} room={self.chat_room_id} user={self.user_id}>"


# ---------------------------------------------------------------------------
# Challenges — issued to a room, completed per user
# ---------------------------------------------------------------------------
class Challenge(Base):
    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    chat_room_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False
    )
    challenge: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_time: Mapped[int] = mapped_column(Integer, default=30)
    completed_by: Mapped[list[str]] = mapped_column(
        JSONList, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_challenges_room_time", "chat_room_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Challenge id={self.id} room={self.chat_room_id}>"


# ---------------------------------------------------------------------------
# Celebrations — append-only feed of point-earning events
# ---------------------------------------------------------------------------
class Celebration(Base):
    __tablename__ = "celebrations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_celebrations_user_time", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Celebration id={self.id} user={self.user_id} type={self.type}>"


# ---------------------------------------------------------------------------
# WeeklyCheckins — append-only mood check-ins
# ---------------------------------------------------------------------------
class WeeklyCheckin(Base):
    __tablename__ = "weekly_checkins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    mood: Mapped[str] = mapped_column(String(20), nullable=False)
    accomplishment: Mapped[str | None] = mapped_column(Text, default=None)
    need_support: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<WeeklyCheckin id={self.id} user={self.user_id} mood={self.mood}>"
