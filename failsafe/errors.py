"""
failsafe.errors — Domain error taxonomy
========================================

Services raise these; the API layer maps them onto HTTP responses.
:class:`ContentServiceDegraded` never leaves the content service.
"""

from __future__ import annotations


class FailsafeError(Exception):
    """Base class for every domain error."""


class NotFoundError(FailsafeError):
    """A user, match, room, post or challenge does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class NoCandidatesError(FailsafeError):
    """Matchmaking found nobody eligible to pair with."""

    def __init__(self, user_id: str) -> None:
        super().__init__("No matches found yet. Check back later!")
        self.user_id = user_id


class NotAMemberError(FailsafeError):
    """A user tried to act on a match they don't belong to."""

    def __init__(self, match_id: str, user_id: str) -> None:
        super().__init__("User is not a member of this match")
        self.match_id = match_id
        self.user_id = user_id


class UsernameTakenError(FailsafeError):
    """An explicitly chosen username already belongs to someone else."""

    def __init__(self, username: str) -> None:
        super().__init__(f"Username {username!r} is already taken")
        self.username = username


class ConcurrentUpdateError(FailsafeError):
    """Optimistic retries were exhausted for a contended row."""


class ContentServiceDegraded(FailsafeError):
    """The text-generation service failed; callers substitute fallback copy."""
