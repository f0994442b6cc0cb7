"""
tests/test_chat_service.py — Rooms, messages & challenges
==========================================================
"""

from __future__ import annotations

import pytest

from conftest import make_user
from failsafe.database.models import ChatRoom, Match, User, new_id
from failsafe.engine.reveal import RevealState
from failsafe.errors import NotFoundError
from failsafe.services import chat_service


@pytest.fixture
def room(db_session):
    """Two members, a match and its room, written directly."""
    a = make_user(db_session, linkedin_url="https://linkedin.com/in/a")
    b = make_user(db_session, linkedin_url="https://linkedin.com/in/b")
    match_id, room_id = new_id(), new_id()
    db_session.add_all([
        ChatRoom(id=room_id, match_id=match_id, room_name="The Brave Crew"),
        Match(id=match_id, user_ids=[a.id, b.id], category="General", chat_room_id=room_id),
    ])
    db_session.commit()
    return a, b, db_session.get(ChatRoom, room_id)


# ===========================================================================
# Room detail & reveal gate
# ===========================================================================
class TestRoomDetail:
    def test_hidden_until_everyone_opts_in(self, db_session, room):
        a, b, r = room
        detail = chat_service.get_room_detail(db_session, r.id, viewer_id=a.id)
        assert detail.state is RevealState.NONE_REVEALED
        assert detail.partner_usernames == [b.username]
        assert detail.partner_profiles is None
        assert detail.all_profiles_revealed is False

    def test_partial_reveal_still_hidden(self, db_session, room):
        a, b, r = room
        match = db_session.get(Match, r.match_id)
        match.profiles_revealed = [a.id]
        db_session.commit()

        detail = chat_service.get_room_detail(db_session, r.id, viewer_id=a.id)
        assert detail.state is RevealState.PARTIALLY_REVEALED
        assert detail.partner_profiles is None

    def test_full_reveal_exposes_profiles(self, db_session, room):
        a, b, r = room
        match = db_session.get(Match, r.match_id)
        match.profiles_revealed = [b.id, a.id]
        db_session.commit()

        detail = chat_service.get_room_detail(db_session, r.id, viewer_id=a.id)
        assert detail.all_profiles_revealed is True
        assert [(p.username, p.linkedin_url) for p in detail.partner_profiles] == [
            (b.username, "https://linkedin.com/in/b")
        ]

    def test_without_viewer_lists_everyone(self, db_session, room):
        a, b, r = room
        detail = chat_service.get_room_detail(db_session, r.id)
        assert detail.partner_usernames == [a.username, b.username]

    def test_missing_room(self, db_session):
        with pytest.raises(NotFoundError):
            chat_service.get_room_detail(db_session, "nope")


# ===========================================================================
# Messages
# ===========================================================================
class TestMessages:
    def test_post_and_list_in_order(self, db_session, room):
        a, b, r = room
        chat_service.post_message(db_session, r.id, a.id, "hi")
        chat_service.post_message(db_session, r.id, b.id, "hello")
        msgs = chat_service.list_messages(db_session, r.id)
        assert [(m.username, m.content) for m in msgs] == [
            (a.username, "hi"), (b.username, "hello"),
        ]

    def test_unknown_room(self, db_session, room):
        a, _, _ = room
        with pytest.raises(NotFoundError):
            chat_service.post_message(db_session, "nope", a.id, "hi")

    def test_unknown_sender(self, db_session, room):
        _, _, r = room
        with pytest.raises(NotFoundError):
            chat_service.post_message(db_session, r.id, "ghost", "hi")


# ===========================================================================
# Challenges
# ===========================================================================
class TestChallenges:
    def test_latest_challenge(self, db_session, room):
        _, _, r = room
        assert chat_service.latest_challenge(db_session, r.id) is None
        chat_service.create_challenge(db_session, r.id, "old one")
        newest = chat_service.create_challenge(db_session, r.id, "new one", 15)
        latest = chat_service.latest_challenge(db_session, r.id)
        assert latest.id == newest.id
        assert latest.estimated_time == 15

    def test_completion_rewards_once(self, db_session, room):
        a, _, r = room
        challenge = chat_service.create_challenge(db_session, r.id, "do the thing")

        chat_service.complete_challenge(db_session, challenge.id, a.id)
        done = chat_service.complete_challenge(db_session, challenge.id, a.id)

        assert done.completed_by == [a.id]
        user = db_session.get(User, a.id)
        assert user.points == 20
        assert user.badges == ["action_taker"]

    def test_missing_challenge(self, db_session, room):
        a, _, _ = room
        with pytest.raises(NotFoundError):
            chat_service.complete_challenge(db_session, "nope", a.id)
