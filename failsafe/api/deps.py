"""
failsafe.api.deps — FastAPI dependency injection
=================================================

Process-wide singletons (engine, config, content service, realtime
registry) are built lazily and cached.  Tests swap any of them through
``app.dependency_overrides``.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine

from failsafe.config import FailsafeConfig, load_config
from failsafe.database.engine import create_db_engine
from failsafe.services.content_service import ContentService
from failsafe.services.relay import ConnectionRegistry


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> FailsafeConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_content_service() -> ContentService:
    return ContentService(get_config().content, api_key=os.getenv("CONTENT_API_KEY"))


@lru_cache(maxsize=1)
def get_registry() -> ConnectionRegistry:
    return ConnectionRegistry()


EngineDep = Annotated[Engine, Depends(get_engine)]
ConfigDep = Annotated[FailsafeConfig, Depends(get_config)]
ContentDep = Annotated[ContentService, Depends(get_content_service)]
RegistryDep = Annotated[ConnectionRegistry, Depends(get_registry)]
