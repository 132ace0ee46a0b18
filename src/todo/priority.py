"""Local priority inference.

A cheap keyword + date-proximity score used to backstop tasks that arrive
without an explicit priority from the intent service. Pure and
deterministic for a given ``now``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from .dates import NaturalDateParser
from .models import Priority

URGENT_KEYWORDS = (
    "urgent",
    "asap",
    "immediately",
    "right away",
    "right now",
    "as soon as possible",
)
IMPACT_KEYWORDS = (
    "tax",
    "rent",
    "bill",
    "submit",
    "application",
    "deadline",
    "payment",
    "fine",
    "due",
)
LOCATION_KEYWORDS = (
    "nearby",
    "near",
    "supermarket",
    "market",
    "store",
    "grocery",
    "groceries",
)
RECURRENCE_MARKERS = ("every", "daily", "weekly")

URGENT_SCORE = 90
IMPACT_BONUS = 15
LOCATION_BONUS = 10
RECURRENCE_PENALTY = 10


@dataclass(frozen=True)
class PriorityKeywords:
    urgent: Sequence[str] = URGENT_KEYWORDS
    impact: Sequence[str] = IMPACT_KEYWORDS
    location: Sequence[str] = LOCATION_KEYWORDS
    recurrence: Sequence[str] = RECURRENCE_MARKERS


DEFAULT_KEYWORDS = PriorityKeywords()


@dataclass(frozen=True)
class PriorityResult:
    """Outcome of ``detect_priority``. ``priority`` is None when no signal was found."""

    priority: Optional[Priority]
    score: int
    reason: str

    @property
    def label(self) -> str:
        return self.priority.value if self.priority else "none"


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    words = set(re.split(r"\W+", text))
    return any(keyword in words or keyword in text for keyword in keywords)


def date_proximity_score(hours_until: float) -> int:
    if hours_until <= 0.5:
        return 40
    if hours_until <= 4:
        return 40
    if hours_until <= 24:
        return 30
    if hours_until <= 72:
        return 15
    return 5


def bucket_for_score(score: int) -> Optional[Priority]:
    if score >= 70:
        return Priority.HIGH
    if score >= 30:
        return Priority.MEDIUM
    if score >= 5:
        return Priority.LOW
    return None


def detect_priority(
    raw_text: str,
    now: Optional[datetime] = None,
    *,
    date_parser=None,
    keywords: PriorityKeywords = DEFAULT_KEYWORDS,
) -> PriorityResult:
    """Score raw command text into a priority bucket.

    Args:
        raw_text: task text or the whole transcript
        now: reference instant for date proximity (defaults to local now)
        date_parser: object with ``parse_date(text, reference)``
        keywords: keyword lists to match against

    Returns:
        PriorityResult with the bucket, the numeric score and a short reason
    """
    now = now or datetime.now().astimezone()
    parser = date_parser or NaturalDateParser()
    text = (raw_text or "").strip().lower()

    # Explicit urgency short-circuits every other signal.
    if contains_keyword(text, keywords.urgent):
        return PriorityResult(Priority.HIGH, URGENT_SCORE, "explicit urgency word detected")

    date_score = 0
    moment = parser.parse_date(text, now) if text else None
    if moment is not None:
        hours_until = (moment - now).total_seconds() / 3600
        date_score = date_proximity_score(hours_until)

    impact = IMPACT_BONUS if contains_keyword(text, keywords.impact) else 0
    location = LOCATION_BONUS if contains_keyword(text, keywords.location) else 0
    penalty = RECURRENCE_PENALTY if any(marker in text for marker in keywords.recurrence) else 0

    score = max(date_score + impact + location - penalty, 0)
    priority = bucket_for_score(score)
    if priority is None:
        return PriorityResult(None, score, "no deadline or urgency detected")
    return PriorityResult(
        priority,
        score,
        f"score {score} (date:{date_score} impact:{impact} location:{location} routine:-{penalty})",
    )
