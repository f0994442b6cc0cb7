"""
failsafe.engine.naming — Pseudonym & room-name generators
==========================================================

Pure functions over the word lists in :mod:`failsafe.constants`.  Every
generator takes an optional :class:`random.Random` so tests can pin the
output.
"""

from __future__ import annotations

import random

from failsafe.constants import (
    ROOM_NAME_ADJECTIVES,
    ROOM_NAME_NOUNS,
    USERNAME_ADJECTIVES,
    USERNAME_NOUNS,
)


def generate_username(rng: random.Random | None = None) -> str:
    """Return a pseudonym like ``Brave_Falcon_4821``."""
    rng = rng or random.Random()
    adj = rng.choice(USERNAME_ADJECTIVES)
    noun = rng.choice(USERNAME_NOUNS)
    num = rng.randint(1000, 9999)
    return f"{adj}_{noun}_{num}"


def generate_room_name(rng: random.Random | None = None) -> str:
    """Return a room name like ``The Unstoppable Guild``."""
    rng = rng or random.Random()
    return f"The {rng.choice(ROOM_NAME_ADJECTIVES)} {rng.choice(ROOM_NAME_NOUNS)}"
