"""
Daily Streak System

Two day-keyed counters live on the profile:
- streak / last_activity_date: days in a row with a learning post
- quest_streak / last_quest_date: days in a row with a completed quest

Logic (same for both):
- Activity already recorded today: no change
- Last activity was yesterday: streak + 1
- Never active, or a gap of 2+ days: reset to 1

total_days counts distinct calendar days with a post, so it only grows on
the first post of a day.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Tuple
import logging

from learnquest.i18n.translations import t
from learnquest.models.profile import Profile

logger = logging.getLogger(__name__)


class StreakOutcome(str, Enum):
    STARTED = "started"
    SAME_DAY = "same_day"
    CONTINUED = "continued"
    RESET = "reset"


def advance_day_streak(
    last_date: Optional[date],
    current: int,
    today: date,
) -> Tuple[int, StreakOutcome]:
    """
    Next value of a consecutive-day counter for an activity on `today`.

    Returns:
        (new streak value, what happened)
    """
    if last_date is None:
        return 1, StreakOutcome.STARTED

    if last_date == today:
        return current, StreakOutcome.SAME_DAY

    if last_date == today - timedelta(days=1):
        return current + 1, StreakOutcome.CONTINUED

    # Gap of 2+ days (or a date in the future, which cannot continue a streak)
    return 1, StreakOutcome.RESET


@dataclass(frozen=True)
class StreakUpdate:
    """Result of applying a qualifying post to a profile"""
    profile: Profile
    old_streak: int
    outcome: StreakOutcome

    @property
    def first_activity_today(self) -> bool:
        return self.outcome != StreakOutcome.SAME_DAY

    def message(self, lang: str = "en") -> str:
        if self.outcome == StreakOutcome.STARTED:
            return t("streak_started", lang)
        if self.outcome == StreakOutcome.SAME_DAY:
            return t("streak_same_day", lang, streak=self.profile.streak)
        if self.outcome == StreakOutcome.CONTINUED:
            return t("streak_continued", lang, streak=self.profile.streak)
        return t("streak_reset", lang, previous=self.old_streak)


def apply_activity(profile: Profile, today: date) -> StreakUpdate:
    """
    Apply a qualifying learning post on `today` to the profile's streak,
    total_days and last_activity_date.

    Posting again on the same day changes nothing.
    """
    new_streak, outcome = advance_day_streak(profile.last_activity_date, profile.streak, today)

    if outcome == StreakOutcome.SAME_DAY:
        return StreakUpdate(profile=profile, old_streak=profile.streak, outcome=outcome)

    updated = profile.model_copy(update={
        "streak": new_streak,
        "total_days": profile.total_days + 1,
        "last_activity_date": today,
    })

    if outcome == StreakOutcome.RESET:
        logger.info(
            f"User {profile.id} streak broken. Was {profile.streak}, "
            f"last activity {profile.last_activity_date}"
        )
    logger.debug(f"Updated streak for user {profile.id}: {profile.streak} → {new_streak} days")

    return StreakUpdate(profile=updated, old_streak=profile.streak, outcome=outcome)


def apply_quest_day(profile: Profile, today: date) -> Profile:
    """
    Apply a quest completion on `today` to quest_streak / last_quest_date.

    A second completion on the same day leaves quest_streak exactly as stored.
    """
    new_streak, outcome = advance_day_streak(profile.last_quest_date, profile.quest_streak, today)

    if outcome == StreakOutcome.SAME_DAY:
        return profile

    return profile.model_copy(update={
        "quest_streak": new_streak,
        "last_quest_date": today,
    })
