"""
failsafe.constants — Shared Constants
======================================

Single source of truth for point values, the badge vocabulary and the
word lists used to name people and rooms.  Import from here instead of
duplicating in services and routes.
"""

from __future__ import annotations

import enum


# ---------------------------------------------------------------------------
# Point values
# ---------------------------------------------------------------------------
class Points(enum.IntEnum):
    """Fixed point reward per action."""
    POST_FAILURE = 10
    GIVE_ENCOURAGEMENT = 5
    RECEIVE_ENCOURAGEMENT = 2
    COMPLETE_CHALLENGE = 20
    TRIED_AGAIN = 50
    WEEKLY_CHECKIN = 15


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------
class Badge(enum.StrEnum):
    COURAGE = "courage"
    SUPPORTER = "supporter"
    CONNECTOR = "connector"
    ACTION_TAKER = "action_taker"
    PHOENIX = "phoenix"
    RISING_STAR = "rising_star"
    CONSISTENT = "consistent"


BADGE_INFO: dict[str, tuple[str, str]] = {
    Badge.COURAGE: ("Courage Badge", "Posted your first failure"),
    Badge.SUPPORTER: ("Supporter Badge", "Gave 5 encouragements"),
    Badge.ACTION_TAKER: ("Action Taker Badge", "Completed first challenge"),
    Badge.RISING_STAR: ("Rising Star Badge", "Reached 100 points"),
    Badge.PHOENIX: ("Phoenix Badge", "Tried again after failure"),
    Badge.CONNECTOR: ("Connector Badge", "Joined your first chat room"),
    Badge.CONSISTENT: ("Consistency Badge", "Completed 3 weekly check-ins"),
}

# Encouragements given before the supporter badge is granted
SUPPORTER_THRESHOLD = 5


# ---------------------------------------------------------------------------
# Celebration types
# ---------------------------------------------------------------------------
class CelebrationType(enum.StrEnum):
    POST_FAILURE = "post_failure"
    ENCOURAGEMENT_GIVEN = "encouragement_given"
    ENCOURAGEMENT_RECEIVED = "encouragement_received"
    TRIED_AGAIN = "tried_again"
    MILESTONE = "milestone"


# ---------------------------------------------------------------------------
# Check-in moods
# ---------------------------------------------------------------------------
class Mood(enum.StrEnum):
    GREAT = "Great"
    GOOD = "Good"
    OKAY = "Okay"
    TOUGH = "Tough"
    VERY_TOUGH = "Very Tough"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------
CATEGORIES: tuple[str, ...] = (
    "Job Search",
    "Career Change",
    "Starting a Business",
    "Learning a Skill",
    "Academic/Certification",
    "Health & Fitness",
    "Creative Projects",
    "Relationships",
    "Other",
)

DEFAULT_USER_CATEGORY = "Other"
DEFAULT_MATCH_CATEGORY = "General"


# ---------------------------------------------------------------------------
# Word lists
# ---------------------------------------------------------------------------
USERNAME_ADJECTIVES: tuple[str, ...] = (
    "Phoenix", "Rising", "Brave", "Bold", "Determined",
    "Fearless", "Mighty", "Resilient", "Steady", "Luminous",
    "Bright", "Calm", "Noble", "Gentle", "Fierce",
)

USERNAME_NOUNS: tuple[str, ...] = (
    "Eagle", "Tiger", "Mountain", "Star", "Warrior",
    "Champion", "Explorer", "Pioneer", "Voyager", "Falcon",
    "Wolf", "River", "Summit", "Compass", "Anchor",
)

ROOM_NAME_ADJECTIVES: tuple[str, ...] = (
    "Comeback", "Rising", "Unstoppable", "Resilient", "Brave",
    "Bold", "Mighty", "Fierce", "Luminous", "Phoenix",
)

ROOM_NAME_NOUNS: tuple[str, ...] = (
    "Crew", "Squad", "Alliance", "Circle", "Guild",
    "Team", "Tribe", "Pack", "Force", "League",
)
