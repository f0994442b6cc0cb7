"""
failsafe.services.content_service — Text-Generation Boundary
=============================================================

Warm copy for the app (support replies, encouragement, daily challenges,
likely setbacks for a goal) comes from an OpenAI-compatible
``chat/completions`` endpoint.  That service is slow, rate-limited and
sometimes down, so every capability follows the same shape:

    1. Try the remote call (bounded by the configured timeout).
    2. On *any* failure — network error, non-200, empty or malformed
       reply — raise :class:`ContentServiceDegraded` internally.
    3. Log it and return fallback copy instead.

Nothing here ever raises to the caller; a failure only lowers the
quality of an enrichment field.
"""

from __future__ import annotations

import json
import logging
import random
import re
from collections.abc import Sequence

import httpx

from failsafe.config import ContentConfig
from failsafe.errors import ContentServiceDegraded

logger = logging.getLogger(__name__)

_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)

GOAL_FAILURE_COUNT = 4


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------
ENCOURAGEMENT_PROMPT = (
    "You are a warm, empathetic support companion in a community where people "
    "share their setbacks and failures. Generate a short, heartfelt encouragement "
    "message (2-3 sentences max) for someone who shared a setback. Be genuine, not "
    "generic. Don't use emojis. Focus on acknowledging their struggle and offering "
    "real perspective."
)

CHALLENGE_PROMPT = (
    "You are a supportive accountability coach. Generate a single specific, "
    "actionable daily challenge for two accountability partners who share similar "
    "setbacks. The challenge should be doable in 15-30 minutes, encourage "
    "collaboration between the two partners, and directly relate to overcoming "
    "their shared struggles. Keep it to 1-2 sentences. Don't use emojis."
)

SUPPORT_PROMPT = (
    "You are a compassionate AI companion in a community for people going through "
    "setbacks. When someone shares a failure, provide a brief (2-3 sentences), "
    "thoughtful response that validates their feelings, reframes the setback as a "
    "growth opportunity, and offers one small actionable next step. Be genuine and "
    "conversational, not preachy. Don't use emojis."
)

GOAL_FAILURES_PROMPT = (
    "You are a helpful assistant for a community app about overcoming setbacks. "
    "Given a user's goal, generate exactly 4 common challenges or setbacks people "
    "face when pursuing that specific goal. Return ONLY a JSON array of 4 short "
    "strings (each 2-5 words). No numbering, no explanation, just the JSON array. "
    'Example: ["Failed interview","Imposter syndrome","Burnout","Rejected promotion"]'
)


# ---------------------------------------------------------------------------
# Fallback copy
# ---------------------------------------------------------------------------
FALLBACK_ENCOURAGEMENTS: tuple[str, ...] = (
    "Every setback is a setup for a comeback. You got this.",
    "The fact that you tried means you're already ahead. Keep going.",
    "Failure is just feedback. You're learning and growing.",
    "It's okay to fall. What matters is getting back up. You're not alone.",
    "Your resilience is inspiring. Keep pushing forward.",
)

FALLBACK_CHALLENGES: tuple[str, ...] = (
    "Share one lesson you learned from your failure with your match and discuss "
    "how to apply it this week.",
    "Set a micro-goal for this week and check in with each other tomorrow to "
    "track progress.",
    "Spend 15 minutes brainstorming creative solutions to each other's biggest "
    "current obstacle.",
    "Write down 3 things you're grateful for despite the setback, then share and "
    "discuss them together.",
    "Practice your pitch or plan with each other for 5 minutes, then give honest "
    "feedback.",
)

FALLBACK_SUPPORT: tuple[str, ...] = (
    "Thank you for sharing this. It takes courage to say it out loud. Pick one "
    "small thing you can do tomorrow and let that be enough for now.",
    "What you're feeling makes sense, and it doesn't define you. Write down one "
    "thing this taught you, then take a single step toward your goal this week.",
    "Setbacks like this happen to people who are actually trying. Rest if you need "
    "to, then reach out to someone here who has been through the same thing.",
)

# (keywords, setbacks); first matching keyword group wins
GOAL_FAILURE_FALLBACKS: tuple[tuple[tuple[str, ...], list[str]], ...] = (
    (("startup", "business", "company"),
     ["Funding rejected", "Co-founder conflict", "Product-market fit issues", "Burnout"]),
    (("job", "career", "interview"),
     ["Failed interview", "Rejected promotion", "Imposter syndrome", "Burnout"]),
    (("fitness", "marathon", "health", "weight"),
     ["Quit exercise routine", "Diet failed", "Injury setback", "Lost motivation"]),
    (("learn", "study", "degree", "exam"),
     ["Failed exam", "Rejected from program", "Writer's block", "Imposter syndrome"]),
)

GENERIC_GOAL_FAILURES: list[str] = [
    "Unexpected setback", "Lost motivation", "Imposter syndrome", "Burnout",
]


def fallback_goal_failures(goal: str) -> list[str]:
    """Keyword-matched setbacks for *goal*, or a generic list."""
    lower = goal.lower()
    for keywords, setbacks in GOAL_FAILURE_FALLBACKS:
        if any(k in lower for k in keywords):
            return list(setbacks)
    return list(GENERIC_GOAL_FAILURES)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class ContentService:
    """Async client for the text-generation collaborator.

    Without an *api_key* no remote call is attempted and every method
    returns fallback copy straight away.  *transport* lets tests plug in
    an :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        config: ContentConfig,
        api_key: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.api_key = api_key
        self._transport = transport
        self._rng = rng or random.Random()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    # -- remote call --------------------------------------------------------
    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the assistant's reply text or raise ContentServiceDegraded."""
        if not self.enabled:
            raise ContentServiceDegraded("No content API key configured")

        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        transport = self._transport or httpx.AsyncHTTPTransport(retries=1)
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds, transport=transport
            ) as client:
                resp = await client.post(
                    f"{self.config.base_url}/chat/completions",
                    headers=headers,
                    json=payload,
                )
        except httpx.HTTPError as exc:
            raise ContentServiceDegraded(f"Request failed: {exc!r}") from exc

        if resp.status_code != 200:
            raise ContentServiceDegraded(f"HTTP {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ContentServiceDegraded("Malformed completion payload") from exc

        text = _THINK_RE.sub("", content or "").strip()
        if not text:
            raise ContentServiceDegraded("Empty completion")
        return text

    # -- capabilities -------------------------------------------------------
    async def generate_encouragement(self, post_text: str) -> str:
        try:
            return await self._complete(
                ENCOURAGEMENT_PROMPT,
                f'Someone shared this setback: "{post_text}". '
                "Write a brief, personal encouragement message for them.",
                max_tokens=150,
                temperature=0.8,
            )
        except ContentServiceDegraded as exc:
            logger.warning("Encouragement generation degraded: %s", exc)
            return self._rng.choice(FALLBACK_ENCOURAGEMENTS)

    async def generate_challenge(
        self, failures: Sequence[str], goal: str | None = None
    ) -> str:
        setbacks = ", ".join(failures)
        context = (
            f'Their goal is: "{goal}". Their setbacks include: {setbacks}.'
            if goal
            else f"Their setbacks include: {setbacks}."
        )
        try:
            return await self._complete(
                CHALLENGE_PROMPT,
                f"Create a daily challenge for two partners. {context}",
                max_tokens=100,
                temperature=0.9,
            )
        except ContentServiceDegraded as exc:
            logger.warning("Challenge generation degraded: %s", exc)
            return self._rng.choice(FALLBACK_CHALLENGES)

    async def generate_support_response(self, post_text: str) -> str:
        try:
            return await self._complete(
                SUPPORT_PROMPT,
                f'Someone just shared this setback: "{post_text}". '
                "Respond with empathy and a helpful nudge forward.",
                max_tokens=150,
                temperature=0.7,
            )
        except ContentServiceDegraded as exc:
            logger.warning("Support response generation degraded: %s", exc)
            return self._rng.choice(FALLBACK_SUPPORT)

    async def generate_goal_failures(self, goal: str) -> list[str]:
        """Exactly four likely setbacks for *goal*."""
        try:
            raw = await self._complete(
                GOAL_FAILURES_PROMPT,
                f'Goal: "{goal}". What are 4 common setbacks people face '
                "pursuing this goal?",
                max_tokens=150,
                temperature=0.7,
            )
            return _parse_goal_failures(raw)
        except ContentServiceDegraded as exc:
            logger.warning("Goal setback generation degraded: %s", exc)
            return fallback_goal_failures(goal)


def _parse_goal_failures(raw: str) -> list[str]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ContentServiceDegraded("Reply is not JSON") from exc
    if not isinstance(parsed, list) or len(parsed) < GOAL_FAILURE_COUNT:
        raise ContentServiceDegraded("Reply is not a list of at least 4 items")
    items = [str(item).strip() for item in parsed[:GOAL_FAILURE_COUNT]]
    if not all(items):
        raise ContentServiceDegraded("Reply contains blank items")
    return items
