"""
failsafe.api.routes.chat — Rooms, messages & challenges
========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import AliasChoices, BaseModel, Field

from failsafe.api.deps import EngineDep
from failsafe.api.serializers import challenge_dict, message_dict, room_detail_dict
from failsafe.database.engine import run_db, run_with_retry
from failsafe.services import chat_service

router = APIRouter(tags=["chat"])


class MessageCreate(BaseModel):
    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))
    content: str = Field(min_length=1, max_length=4000)


class CompleteBody(BaseModel):
    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))


@router.get("/chat/{room_id}/room")
async def get_room(
    room_id: str,
    engine: EngineDep,
    user_id: str | None = Query(None, description="Viewer; excluded from partners"),
):
    detail = await run_db(
        run_with_retry, engine, chat_service.get_room_detail, room_id, user_id
    )
    return room_detail_dict(detail)


@router.get("/chat/{room_id}/messages")
async def list_messages(room_id: str, engine: EngineDep):
    rows = await run_db(run_with_retry, engine, chat_service.list_messages, room_id)
    return [message_dict(m) for m in rows]


@router.post("/chat/{room_id}/messages", status_code=201)
async def post_message(room_id: str, body: MessageCreate, engine: EngineDep):
    msg = await run_db(
        run_with_retry, engine, chat_service.post_message, room_id, body.user_id, body.content
    )
    return message_dict(msg)


@router.get("/chat/{room_id}/challenge")
async def get_challenge(room_id: str, engine: EngineDep):
    challenge = await run_db(
        run_with_retry, engine, chat_service.latest_challenge, room_id
    )
    return challenge_dict(challenge) if challenge else None


@router.post("/challenges/{challenge_id}/complete")
async def complete_challenge(challenge_id: str, body: CompleteBody, engine: EngineDep):
    challenge = await run_db(
        run_with_retry, engine, chat_service.complete_challenge, challenge_id, body.user_id
    )
    return challenge_dict(challenge)
