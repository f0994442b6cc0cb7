"""
failsafe.engine.matching — Partner Selection Pipeline
======================================================

Pure calculation — no database I/O.  The matchmaking service loads the
requester, their existing matches and the user pool, then asks this
module who to pair them with.

Two policies:

* ``tag_overlap`` (default) — score every candidate by the multiset
  overlap of failure tags and take the first highest scorer.
* ``category`` — pick uniformly at random among candidates who chose
  the same goal category.  Useful while tag data is sparse.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from failsafe.constants import DEFAULT_MATCH_CATEGORY

logger = logging.getLogger(__name__)


class Candidate(Protocol):
    """Anything with the user fields matching needs (ORM ``User`` fits)."""

    id: str
    category: str
    failures: list[str]


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    candidate: Candidate
    score: int


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------
def tag_overlap(tags_a: Sequence[str], tags_b: Sequence[str]) -> int:
    """Size of the multiset intersection of two tag lists.

    Exact, case-sensitive comparison.  A tag listed twice on both sides
    counts twice.
    """
    return sum((Counter(tags_a) & Counter(tags_b)).values())


def exclusion_set(user_id: str, member_lists: Iterable[Sequence[str]]) -> set[str]:
    """The requester plus everyone already sharing a match with them.

    *member_lists* are the ``user_ids`` of the requester's active
    matches.  Only direct co-members are excluded, not their partners.
    """
    excluded = {user_id}
    for members in member_lists:
        if user_id in members:
            excluded.update(members)
    return excluded


def shared_category(tags_a: Sequence[str], tags_b: Sequence[str]) -> str:
    """First tag of *tags_a* that also appears in *tags_b*, else the default."""
    other = set(tags_b)
    for tag in tags_a:
        if tag in other:
            return tag
    return DEFAULT_MATCH_CATEGORY


def rank_candidates(
    requester_tags: Sequence[str],
    pool: Sequence[Candidate],
) -> list[ScoredCandidate]:
    """Score *pool* by tag overlap, best first.

    ``sorted`` is stable, so equal scores keep their pool order.
    """
    scored = [
        ScoredCandidate(candidate=c, score=tag_overlap(requester_tags, c.failures or []))
        for c in pool
    ]
    return sorted(scored, key=lambda s: s.score, reverse=True)


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------
def pick_by_tag_overlap(
    requester: Candidate, pool: Sequence[Candidate]
) -> Candidate | None:
    ranked = rank_candidates(requester.failures or [], pool)
    if not ranked:
        return None
    best = ranked[0]
    logger.debug(
        "Tag-overlap pick for %s → %s (score %d of %d candidates)",
        requester.id, best.candidate.id, best.score, len(ranked),
    )
    return best.candidate


def pick_by_category(
    requester: Candidate,
    pool: Sequence[Candidate],
    rng: random.Random | None = None,
) -> Candidate | None:
    same = [c for c in pool if c.category == requester.category]
    if not same:
        return None
    return (rng or random.Random()).choice(same)


def select_partner(
    requester: Candidate,
    pool: Sequence[Candidate],
    *,
    policy: str = "tag_overlap",
    rng: random.Random | None = None,
) -> Candidate | None:
    """Choose a partner for *requester* from an already-filtered *pool*.

    Returns ``None`` when the policy finds nobody.
    """
    if policy == "category":
        return pick_by_category(requester, pool, rng)
    return pick_by_tag_overlap(requester, pool)
