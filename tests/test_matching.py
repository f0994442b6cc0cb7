"""
tests/test_matching.py — Partner selection (pure)
==================================================
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

import pytest

from failsafe.engine.matching import (
    exclusion_set,
    rank_candidates,
    select_partner,
    shared_category,
    tag_overlap,
)


@dataclass
class FakeUser:
    id: str
    category: str = "Job Search"
    failures: list[str] = field(default_factory=list)


# ===========================================================================
# tag_overlap
# ===========================================================================
class TestTagOverlap:
    def test_counts_shared_tags(self):
        assert tag_overlap(["Burnout", "Failed interview"], ["Burnout", "Diet failed"]) == 1

    def test_duplicates_count_as_min(self):
        assert tag_overlap(["A", "A", "A"], ["A", "A"]) == 2

    def test_case_sensitive(self):
        assert tag_overlap(["burnout"], ["Burnout"]) == 0

    def test_empty_lists(self):
        assert tag_overlap([], ["A"]) == 0
        assert tag_overlap([], []) == 0


# ===========================================================================
# Exclusion
# ===========================================================================
class TestExclusionSet:
    def test_always_contains_requester(self):
        assert exclusion_set("u1", []) == {"u1"}

    def test_includes_direct_co_members(self):
        assert exclusion_set("u1", [["u1", "u2"], ["u3", "u1"]]) == {"u1", "u2", "u3"}

    def test_ignores_matches_without_requester(self):
        assert exclusion_set("u1", [["u4", "u5"]]) == {"u1"}


# ===========================================================================
# Category naming
# ===========================================================================
class TestSharedCategory:
    def test_first_requester_tag_in_partner(self):
        assert shared_category(["X", "Burnout", "Y"], ["Y", "Burnout"]) == "Burnout"

    def test_general_when_nothing_shared(self):
        assert shared_category(["X"], ["Y"]) == "General"
        assert shared_category([], []) == "General"


# ===========================================================================
# Selection
# ===========================================================================
class TestSelectPartner:
    def test_highest_overlap_wins(self):
        me = FakeUser("me", failures=["A", "B", "C"])
        pool = [
            FakeUser("low", failures=["A"]),
            FakeUser("high", failures=["A", "B"]),
            FakeUser("none", failures=["Z"]),
        ]
        assert select_partner(me, pool).id == "high"

    def test_ties_go_to_first_in_pool_order(self):
        me = FakeUser("me", failures=["A"])
        pool = [FakeUser("first", failures=["A"]), FakeUser("second", failures=["A"])]
        assert select_partner(me, pool).id == "first"

    def test_zero_overlap_still_pairs(self):
        me = FakeUser("me", failures=["A"])
        pool = [FakeUser("other", failures=["B"])]
        assert select_partner(me, pool).id == "other"

    def test_empty_pool(self):
        assert select_partner(FakeUser("me"), []) is None

    def test_rank_is_descending_and_stable(self):
        ranked = rank_candidates(
            ["A", "B"],
            [FakeUser("x", failures=["A"]), FakeUser("y", failures=["A", "B"]),
             FakeUser("z", failures=["B"])],
        )
        assert [(s.candidate.id, s.score) for s in ranked] == [("y", 2), ("x", 1), ("z", 1)]


class TestCategoryPolicy:
    def test_picks_only_same_category(self):
        me = FakeUser("me", category="Health & Fitness")
        pool = [
            FakeUser("a", category="Job Search"),
            FakeUser("b", category="Health & Fitness"),
            FakeUser("c", category="Health & Fitness"),
        ]
        rng = random.Random(7)
        picks = {select_partner(me, pool, policy="category", rng=rng).id for _ in range(30)}
        assert picks <= {"b", "c"}

    def test_none_when_no_category_peer(self):
        me = FakeUser("me", category="Other")
        assert select_partner(me, [FakeUser("a")], policy="category") is None

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_deterministic_with_seeded_rng(self, seed):
        me = FakeUser("me")
        pool = [FakeUser("a"), FakeUser("b"), FakeUser("c")]
        first = select_partner(me, pool, policy="category", rng=random.Random(seed))
        again = select_partner(me, pool, policy="category", rng=random.Random(seed))
        assert first.id == again.id
