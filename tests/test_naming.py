"""
tests/test_naming.py — Pseudonym & room-name generators
========================================================
"""

from __future__ import annotations

import random
import re

from failsafe.constants import (
    ROOM_NAME_ADJECTIVES,
    ROOM_NAME_NOUNS,
    USERNAME_ADJECTIVES,
    USERNAME_NOUNS,
)
from failsafe.engine.naming import generate_room_name, generate_username


def test_username_shape():
    for seed in range(20):
        name = generate_username(random.Random(seed))
        m = re.fullmatch(r"(\w+?)_(\w+)_(\d{4})", name)
        assert m, name
        assert m.group(1) in USERNAME_ADJECTIVES
        assert m.group(2) in USERNAME_NOUNS
        assert 1000 <= int(m.group(3)) <= 9999


def test_username_reproducible_with_seed():
    assert generate_username(random.Random(42)) == generate_username(random.Random(42))


def test_room_name_shape():
    for seed in range(20):
        name = generate_room_name(random.Random(seed))
        the, adj, noun = name.split(" ", 2)
        assert the == "The"
        assert adj in ROOM_NAME_ADJECTIVES
        assert noun in ROOM_NAME_NOUNS
