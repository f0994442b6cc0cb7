"""
failsafe.api.routes.posts — Failure feed & encouragement
=========================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, Field

from failsafe.api.deps import ConfigDep, ContentDep, EngineDep
from failsafe.api.serializers import post_dict
from failsafe.database.engine import run_db, run_with_retry
from failsafe.services import feed_service

router = APIRouter(tags=["posts"])
logger = logging.getLogger(__name__)


class PostCreate(BaseModel):
    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))
    content: str = Field(min_length=1)
    category: str | None = None
    severity: int = Field(default=3, ge=1, le=5)


class EncourageBody(BaseModel):
    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))


@router.get("/posts")
async def list_posts(engine: EngineDep, cfg: ConfigDep):
    rows = await run_db(run_with_retry, engine, feed_service.list_posts, cfg.feed_limit)
    return [post_dict(p) for p in rows]


@router.post("/posts", status_code=201)
async def create_post(body: PostCreate, engine: EngineDep, content: ContentDep):
    """Share a failure; the reply carries a supportive note for the author."""
    post = await run_db(
        run_with_retry,
        engine,
        feed_service.create_post,
        user_id=body.user_id,
        content=body.content,
        category=body.category,
        severity=body.severity,
    )
    ai_support = await content.generate_support_response(post.content)
    return {**post_dict(post), "ai_support": ai_support, "aiSupport": ai_support}


@router.post("/posts/{post_id}/encourage")
async def encourage_post(
    post_id: str, body: EncourageBody, engine: EngineDep, content: ContentDep
):
    post, newly = await run_db(
        run_with_retry, engine, feed_service.encourage_post, post_id, body.user_id
    )
    if not newly:
        logger.debug("Repeat encouragement of %s by %s ignored", post_id, body.user_id)
    ai_encouragement = await content.generate_encouragement(post.content)
    return {
        **post_dict(post),
        "ai_encouragement": ai_encouragement,
        "aiEncouragement": ai_encouragement,
    }
