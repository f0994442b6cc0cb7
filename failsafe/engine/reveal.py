"""
failsafe.engine.reveal — Profile Reveal State Machine
======================================================

Matched partners start anonymous.  Each member may opt in to revealing
their profile; only when *every* member has opted in are usernames'
external profile links disclosed.  There is no way back.

    NONE_REVEALED ──opt in──▶ PARTIALLY_REVEALED ──last opt in──▶ FULLY_REVEALED

Pure calculation — the matchmaking service persists the opt-in list.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence


class RevealState(enum.StrEnum):
    NONE_REVEALED = "none_revealed"
    PARTIALLY_REVEALED = "partially_revealed"
    FULLY_REVEALED = "fully_revealed"


def reveal_state(members: Sequence[str], opted_in: Sequence[str]) -> RevealState:
    """Classify a match from its members and the ids that opted in."""
    revealed = set(opted_in) & set(members)
    if not revealed:
        return RevealState.NONE_REVEALED
    if revealed == set(members):
        return RevealState.FULLY_REVEALED
    return RevealState.PARTIALLY_REVEALED


def all_profiles_revealed(members: Sequence[str], opted_in: Sequence[str]) -> bool:
    """True iff the opted-in set equals the member set."""
    return bool(members) and set(opted_in) == set(members)


def with_opt_in(opted_in: Sequence[str], user_id: str) -> list[str]:
    """Return the opt-in list with *user_id* appended if not already present."""
    current = list(opted_in or [])
    if user_id not in current:
        current.append(user_id)
    return current
