"""
tests/test_ledger_service.py — Points, badges & celebrations
=============================================================
Uses an in-memory SQLite database via the shared conftest fixtures.
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from conftest import make_user
from failsafe.constants import Badge
from failsafe.database.engine import run_with_retry
from failsafe.database.models import Celebration, User
from failsafe.errors import ConcurrentUpdateError
from failsafe.services import ledger_service
from failsafe.services.ledger_service import CelebrationSpec


# ===========================================================================
# grant_points
# ===========================================================================
class TestGrantPoints:
    def test_accumulates(self, db_session):
        user = make_user(db_session)
        ledger_service.grant_points(db_session, user.id, 10)
        after = ledger_service.grant_points(db_session, user.id, 5)
        assert after.points == 15

    def test_never_decreases(self, db_session):
        user = make_user(db_session)
        seen = []
        for amount in [0, 3, 0, 7]:
            seen.append(ledger_service.grant_points(db_session, user.id, amount).points)
        assert seen == sorted(seen)

    def test_negative_rejected(self, db_session):
        user = make_user(db_session)
        with pytest.raises(ValueError):
            ledger_service.grant_points(db_session, user.id, -1)

    def test_missing_user_is_noop(self, db_session):
        assert ledger_service.grant_points(db_session, "no-such-user", 10) is None

    def test_engine_wrapper_commits(self, db_engine, db_session):
        user = make_user(db_session)
        ledger_service.grant_points_for(db_engine, user.id, 20)
        ledger_service.grant_points_for(db_engine, user.id, 20)
        with Session(db_engine) as fresh:
            assert fresh.get(User, user.id).points == 40


# ===========================================================================
# grant_badge
# ===========================================================================
class TestGrantBadge:
    def test_idempotent(self, db_session):
        user = make_user(db_session)
        ledger_service.grant_badge(db_session, user.id, Badge.COURAGE)
        again = ledger_service.grant_badge(db_session, user.id, Badge.COURAGE)
        assert again.badges == ["courage"]

    def test_keeps_existing_badges(self, db_session):
        user = make_user(db_session, badges=["phoenix"])
        after = ledger_service.grant_badge(db_session, user.id, Badge.SUPPORTER)
        assert after.badges == ["phoenix", "supporter"]

    def test_unknown_badge_rejected(self, db_session):
        user = make_user(db_session)
        with pytest.raises(ValueError):
            ledger_service.grant_badge(db_session, user.id, "gold_star")

    def test_missing_user_is_noop(self, db_session):
        assert ledger_service.grant_badge(db_session, "nobody", Badge.COURAGE) is None

    def test_engine_wrapper_idempotent(self, db_engine, db_session):
        user = make_user(db_session)
        ledger_service.grant_badge_for(db_engine, user.id, Badge.CONNECTOR)
        ledger_service.grant_badge_for(db_engine, user.id, Badge.CONNECTOR)
        with Session(db_engine) as fresh:
            assert fresh.get(User, user.id).badges == ["connector"]


# ===========================================================================
# award
# ===========================================================================
class TestAward:
    def test_points_badge_and_celebration_together(self, db_session):
        user = make_user(db_session)
        after = ledger_service.award(
            db_session,
            user.id,
            points=50,
            badge=Badge.PHOENIX,
            celebration=CelebrationSpec("tried_again", "Tried again"),
        )
        assert after.points == 50
        assert after.badges == ["phoenix"]
        row = db_session.scalar(select(Celebration).where(Celebration.user_id == user.id))
        assert (row.type, row.points) == ("tried_again", 50)

    def test_missing_user_writes_nothing(self, db_session):
        result = ledger_service.award(
            db_session, "ghost", points=5, celebration=CelebrationSpec("milestone", "x")
        )
        assert result is None
        assert db_session.scalar(select(Celebration)) is None


# ===========================================================================
# Optimistic retry
# ===========================================================================
class TestRunWithRetry:
    def test_retries_stale_writes_then_gives_up(self, db_engine):
        from sqlalchemy.orm.exc import StaleDataError

        calls = []

        def always_stale(session):
            calls.append(1)
            raise StaleDataError("lost the race")

        with pytest.raises(ConcurrentUpdateError):
            run_with_retry(db_engine, always_stale)
        assert len(calls) == 3

    def test_succeeds_after_one_lost_race(self, db_engine):
        from sqlalchemy.orm.exc import StaleDataError

        attempts = []

        def flaky(session):
            attempts.append(1)
            if len(attempts) == 1:
                raise StaleDataError("lost the race")
            return "ok"

        assert run_with_retry(db_engine, flaky) == "ok"
        assert len(attempts) == 2

    def test_concurrent_badge_write_detected(self, db_engine, db_session):
        """A second session writing badges from a stale read loses the CAS."""
        from sqlalchemy.orm.exc import StaleDataError

        user = make_user(db_session)
        with Session(db_engine) as a, Session(db_engine) as b:
            ua = a.get(User, user.id)
            ub = b.get(User, user.id)
            ua.badges = ["courage"]
            a.commit()
            ub.badges = ["phoenix"]
            with pytest.raises(StaleDataError):
                b.commit()
