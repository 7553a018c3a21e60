"""
Text-generation collaborator for the prayer tracker.

Talks to an OpenAI-compatible chat-completions endpoint (Groq by default).
Every public method returns a fixed fallback when the service is unreachable,
slow, unconfigured or answers with something unusable; none of them raise.

Usage:
    from app.ai.assistant import PrayerAssistant
    assistant = PrayerAssistant()
    result = assistant.extract_timeline("surgery in 3 days")
"""
import json
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from openai import OpenAI, OpenAIError

from app.config import settings
from app.models.enums import ReminderFrequency
from app.services.errors import CollaboratorUnavailable

logger = logging.getLogger(__name__)


FALLBACK_VERSE = (
    "\"The Lord is close to the brokenhearted and saves those who are crushed in spirit.\""
    " - Psalm 34:18"
)
FALLBACK_ENCOURAGEMENT = "We're lifting you up in prayer. God is faithful and He hears every prayer."
FALLBACK_TRENDS = "Prayer trends analysis not available."


# ── Prompts ───────────────────────────────────────────────────────────────────

TIMELINE_PROMPT = """You are a helpful assistant that extracts timeline information from prayer requests.
Extract the number of days until a deadline or event.
Examples:
- "exam in 3 days" -> 3
- "surgery on Friday" -> calculate days until Friday from today
- "interview next week" -> 7
- "ongoing" -> null

Respond ONLY with a JSON object like: {"days": 3, "deadline": "Friday"} or {"days": null, "deadline": null}"""

VERSE_PROMPT = (
    "You are a compassionate Christian prayer support assistant. Suggest ONE relevant Bible verse "
    "(with reference) that would encourage someone with this prayer need. Keep it brief and "
    "comforting. Format: \"verse text\" - Reference"
)

ENCOURAGEMENT_PROMPT = (
    "You are a compassionate Christian prayer warrior. Write a brief, heartfelt encouragement "
    "message (2-3 sentences) for someone with this prayer need. Be warm, hopeful, and Christ-centered."
)

TRENDS_PROMPT = (
    "You are a church leadership advisor. Analyze prayer request patterns and provide 3-4 bullet "
    "points of insights for church leaders. Focus on common themes, urgent needs, and pastoral "
    "care opportunities."
)

FREQUENCY_PROMPT = """You determine prayer reminder frequency.
Rules:
- Urgent/time-sensitive requests (surgery, exam, interview) -> "twice-daily"
- Ongoing critical needs (healing, financial crisis) -> "daily"
- Long-term requests (general guidance, ministry) -> "weekly"

Respond with ONLY one word: daily, twice-daily, or weekly"""


@dataclass(frozen=True)
class TimelineResult:
    days: Optional[int] = None
    deadline: Optional[str] = None


class PrayerAssistant:
    """Single-shot completions with static fallbacks."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client=None
    ):
        self.api_key = settings.GROQ_API_KEY if api_key is None else api_key
        self.base_url = base_url or settings.AI_BASE_URL
        self.model = model or settings.AI_MODEL
        self.timeout = settings.AI_TIMEOUT_SECONDS if timeout is None else timeout
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise CollaboratorUnavailable("GROQ_API_KEY is not configured")
            # No retries: a slow collaborator must not hold up a submission
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0
            )
        return self._client

    def _complete(self, system: str, user: str, temperature: float, max_tokens: int) -> str:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise CollaboratorUnavailable(f"Completion request failed: {e}") from e

        if not response.choices:
            raise CollaboratorUnavailable("Completion returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise CollaboratorUnavailable("Completion returned empty content")
        return content.strip()

    # ── Public calls ──────────────────────────────────────────────────────────

    def extract_timeline(self, text: str) -> TimelineResult:
        """Resolve free text like "exam in 3 days" to a day offset, or None."""
        try:
            raw = self._complete(TIMELINE_PROMPT, f'Extract timeline from: "{text}"', 0.1, 100)
            parsed = json.loads(raw)
        except (CollaboratorUnavailable, ValueError) as e:
            logger.warning("Timeline extraction unavailable: %s", e, extra={"operation": "extract_timeline"})
            return TimelineResult()

        if not isinstance(parsed, dict):
            logger.warning("Timeline extraction returned non-object: %r", parsed)
            return TimelineResult()

        days = parsed.get("days")
        if isinstance(days, float) and days.is_integer():
            days = int(days)
        # bool is an int subclass
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            days = None
        deadline = parsed.get("deadline")
        if not isinstance(deadline, str):
            deadline = None
        return TimelineResult(days=days, deadline=deadline)

    def suggest_verse(self, text: str, category: Optional[str] = None) -> str:
        user = f"Prayer category: {category or 'General'}\nPrayer request: {text}\n\nSuggest an encouraging Bible verse:"
        try:
            return self._complete(VERSE_PROMPT, user, 0.7, 150)
        except CollaboratorUnavailable as e:
            logger.warning("Verse suggestion unavailable: %s", e, extra={"operation": "suggest_verse"})
            return FALLBACK_VERSE

    def generate_encouragement(self, text: str) -> str:
        try:
            return self._complete(ENCOURAGEMENT_PROMPT, f"Prayer request: {text}\n\nWrite encouragement:", 0.8, 150)
        except CollaboratorUnavailable as e:
            logger.warning("Encouragement unavailable: %s", e, extra={"operation": "generate_encouragement"})
            return FALLBACK_ENCOURAGEMENT

    def analyze_trends(self, requests: Iterable) -> str:
        """Leadership insights over (category, title) pairs of recent requests."""
        summary = "\n".join(f"{r.category}: {r.title}" for r in requests)
        if not summary:
            return FALLBACK_TRENDS
        try:
            return self._complete(
                TRENDS_PROMPT,
                f"Recent prayer requests:\n{summary}\n\nProvide leadership insights:",
                0.5,
                300
            )
        except CollaboratorUnavailable as e:
            logger.warning("Trends analysis unavailable: %s", e, extra={"operation": "analyze_trends"})
            return FALLBACK_TRENDS

    def reminder_frequency(self, timeline: Optional[str], category: str) -> ReminderFrequency:
        try:
            answer = self._complete(
                FREQUENCY_PROMPT,
                f"Timeline: {timeline or 'ongoing'}\nCategory: {category}\n\nRecommend frequency:",
                0.1,
                10
            ).lower()
        except CollaboratorUnavailable as e:
            logger.warning("Reminder frequency unavailable: %s", e, extra={"operation": "reminder_frequency"})
            return ReminderFrequency.DAILY

        if "twice" in answer:
            return ReminderFrequency.TWICE_DAILY
        if "weekly" in answer:
            return ReminderFrequency.WEEKLY
        return ReminderFrequency.DAILY
