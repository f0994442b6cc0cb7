"""Initial schema: users, posts, matches, chat rooms, messages,
challenges, celebrations, weekly check-ins

Revision ID: 5c1e0a7d9b42
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "5c1e0a7d9b42"
down_revision = None
branch_labels = None
depends_on = None

JSONList = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _id(),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("goal", sa.Text(), nullable=False),
        sa.Column("failures", JSONList, nullable=False),
        sa.Column("failure_description", sa.Text(), nullable=True),
        sa.Column("severity", sa.Integer(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("badges", JSONList, nullable=False),
        sa.Column("learning_style", sa.String(100), nullable=True),
        sa.Column("availability", sa.String(100), nullable=True),
        sa.Column("accountability_style", sa.String(100), nullable=True),
        sa.Column("linkedin_url", sa.String(500), nullable=True),
        sa.Column(
            "last_active", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        _created_at(),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index("ix_users_points_desc", "users", ["points"])

    op.create_table(
        "posts",
        _id(),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("severity", sa.Integer(), nullable=True),
        sa.Column("encouragements", sa.Integer(), nullable=False),
        sa.Column("encouraged_by", JSONList, nullable=False),
        _created_at(),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index("ix_posts_created_at", "posts", ["created_at"])

    op.create_table(
        "matches",
        _id(),
        sa.Column("user_ids", JSONList, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("chat_room_id", sa.String(36), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("profiles_revealed", JSONList, nullable=False),
        _created_at(),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index("ix_matches_active", "matches", ["is_active"])

    op.create_table(
        "chat_rooms",
        _id(),
        sa.Column("match_id", sa.String(36), nullable=False, unique=True),
        sa.Column("room_name", sa.String(100), nullable=False),
        _created_at(),
    )

    op.create_table(
        "messages",
        _id(),
        sa.Column(
            "chat_room_id",
            sa.String(36),
            sa.ForeignKey("chat_rooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_messages_room_time", "messages", ["chat_room_id", "created_at"])

    op.create_table(
        "challenges",
        _id(),
        sa.Column(
            "chat_room_id",
            sa.String(36),
            sa.ForeignKey("chat_rooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("challenge", sa.Text(), nullable=False),
        sa.Column("estimated_time", sa.Integer(), nullable=True),
        sa.Column("completed_by", JSONList, nullable=False),
        _created_at(),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index(
        "ix_challenges_room_time", "challenges", ["chat_room_id", "created_at"]
    )

    op.create_table(
        "celebrations",
        _id(),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_celebrations_user_time", "celebrations", ["user_id", "created_at"]
    )

    op.create_table(
        "weekly_checkins",
        _id(),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("mood", sa.String(20), nullable=False),
        sa.Column("accomplishment", sa.Text(), nullable=True),
        sa.Column("need_support", sa.Text(), nullable=True),
        _created_at(),
    )


def downgrade() -> None:
    op.drop_table("weekly_checkins")
    op.drop_index("ix_celebrations_user_time", table_name="celebrations")
    op.drop_table("celebrations")
    op.drop_index("ix_challenges_room_time", table_name="challenges")
    op.drop_table("challenges")
    op.drop_index("ix_messages_room_time", table_name="messages")
    op.drop_table("messages")
    op.drop_table("chat_rooms")
    op.drop_index("ix_matches_active", table_name="matches")
    op.drop_table("matches")
    op.drop_index("ix_posts_created_at", table_name="posts")
    op.drop_table("posts")
    op.drop_index("ix_users_points_desc", table_name="users")
    op.drop_table("users")
