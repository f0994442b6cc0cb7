"""
failsafe.api.routes.matches — Matchmaking & profile reveal
===========================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, Field

from failsafe.api.deps import ConfigDep, ContentDep, EngineDep
from failsafe.api.serializers import challenge_dict, match_dict, room_dict
from failsafe.database.engine import run_db, run_with_retry
from failsafe.services import matchmaking_service

router = APIRouter(tags=["matches"])
logger = logging.getLogger(__name__)


class MatchRequest(BaseModel):
    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))


@router.get("/matches/{user_id}")
async def list_matches(user_id: str, engine: EngineDep):
    """The user's active matches, each with its chat room."""
    pairs = await run_db(
        run_with_retry, engine, matchmaking_service.list_matches_with_rooms, user_id
    )
    return [
        {**match_dict(m), "room": room_dict(room) if room else None}
        for m, room in pairs
    ]


@router.post("/matches/find", status_code=201)
async def find_match(
    body: MatchRequest, engine: EngineDep, content: ContentDep, cfg: ConfigDep
):
    outcome = await matchmaking_service.find_match(
        engine,
        content,
        body.user_id,
        policy=cfg.matching_policy,
        challenge_minutes=cfg.challenge_minutes,
    )
    return {
        **match_dict(outcome.match),
        "room": room_dict(outcome.room),
        "challenge": challenge_dict(outcome.challenge),
    }


@router.post("/matches/{match_id}/reveal")
async def reveal_profile(match_id: str, body: MatchRequest, engine: EngineDep):
    match = await run_db(
        run_with_retry, engine, matchmaking_service.opt_in_reveal, match_id, body.user_id
    )
    return match_dict(match)
