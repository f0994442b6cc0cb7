"""
failsafe.api.routes.users — Onboarding, profile, ledger actions
================================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from failsafe.api.deps import ConfigDep, ContentDep, EngineDep
from failsafe.api.serializers import celebration_dict, checkin_dict, user_dict
from failsafe.constants import DEFAULT_USER_CATEGORY, Mood
from failsafe.database.engine import run_db, run_with_retry
from failsafe.services import feed_service

router = APIRouter(tags=["users"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class UserCreate(BaseModel):
    goal: str = Field(min_length=1)
    username: str | None = Field(default=None, min_length=3, max_length=100)
    category: str = DEFAULT_USER_CATEGORY
    failures: list[str] = Field(default_factory=list)
    failure_description: str | None = None
    severity: int = Field(default=3, ge=1, le=5)
    learning_style: str | None = None
    availability: str | None = None
    accountability_style: str | None = None
    linkedin_url: str | None = Field(default=None, max_length=500)


class CheckinCreate(BaseModel):
    mood: Mood
    accomplishment: str | None = None
    need_support: str | None = None


class GoalBody(BaseModel):
    goal: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@router.post("/users", status_code=201)
async def create_user(body: UserCreate, engine: EngineDep):
    user = await run_db(
        run_with_retry, engine, feed_service.create_user, **body.model_dump()
    )
    return user_dict(user)


@router.get("/users/{user_id}")
async def get_user(user_id: str, engine: EngineDep):
    user = await run_db(run_with_retry, engine, feed_service.get_user, user_id)
    if user is None:
        raise HTTPException(404, "User not found")
    return user_dict(user)


@router.post("/users/{user_id}/tried-again")
async def tried_again(user_id: str, engine: EngineDep):
    user = await run_db(run_with_retry, engine, feed_service.tried_again, user_id)
    return user_dict(user)


@router.post("/users/{user_id}/checkin", status_code=201)
async def weekly_checkin(user_id: str, body: CheckinCreate, engine: EngineDep):
    checkin = await run_db(
        run_with_retry,
        engine,
        feed_service.record_checkin,
        user_id,
        mood=body.mood.value,
        accomplishment=body.accomplishment,
        need_support=body.need_support,
    )
    return checkin_dict(checkin)


@router.get("/users/{user_id}/celebrations")
async def list_celebrations(user_id: str, engine: EngineDep, cfg: ConfigDep):
    rows = await run_db(
        run_with_retry,
        engine,
        feed_service.list_celebrations,
        user_id,
        cfg.celebrations_limit,
    )
    return [celebration_dict(c) for c in rows]


# ---------------------------------------------------------------------------
# Onboarding helper
# ---------------------------------------------------------------------------
@router.post("/generate-failures")
async def generate_failures(body: GoalBody, content: ContentDep):
    """Suggest four likely setbacks for a goal."""
    return {"failures": await content.generate_goal_failures(body.goal)}


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------
@router.get("/leaderboard")
async def leaderboard(engine: EngineDep, cfg: ConfigDep):
    rows = await run_db(
        run_with_retry, engine, feed_service.get_leaderboard, cfg.leaderboard_limit
    )
    return [{**user_dict(u), "rank": i + 1} for i, u in enumerate(rows)]
