"""
tests/test_reveal.py — Profile reveal state machine
====================================================
"""

from __future__ import annotations

from failsafe.engine.reveal import (
    RevealState,
    all_profiles_revealed,
    reveal_state,
    with_opt_in,
)

MEMBERS = ["u1", "u2"]


class TestRevealState:
    def test_starts_hidden(self):
        assert reveal_state(MEMBERS, []) is RevealState.NONE_REVEALED

    def test_one_of_two_is_partial(self):
        assert reveal_state(MEMBERS, ["u2"]) is RevealState.PARTIALLY_REVEALED

    def test_everyone_is_full(self):
        assert reveal_state(MEMBERS, ["u2", "u1"]) is RevealState.FULLY_REVEALED

    def test_outsiders_are_ignored(self):
        assert reveal_state(MEMBERS, ["stranger"]) is RevealState.NONE_REVEALED


class TestAllProfilesRevealed:
    def test_requires_set_equality(self):
        assert all_profiles_revealed(MEMBERS, ["u1", "u2"])
        assert not all_profiles_revealed(MEMBERS, ["u1"])
        assert not all_profiles_revealed(MEMBERS, ["u1", "u2", "u3"])

    def test_empty_match_is_never_revealed(self):
        assert not all_profiles_revealed([], [])


class TestWithOptIn:
    def test_appends_once(self):
        once = with_opt_in([], "u1")
        twice = with_opt_in(once, "u1")
        assert once == ["u1"]
        assert twice == ["u1"]

    def test_does_not_mutate_input(self):
        original = ["u1"]
        with_opt_in(original, "u2")
        assert original == ["u1"]

    def test_grows_monotonically(self):
        state = []
        for uid in ["u1", "u2", "u1"]:
            nxt = with_opt_in(state, uid)
            assert set(state) <= set(nxt)
            state = nxt
        assert state == ["u1", "u2"]
