"""
Daily Quest Progress

Each "complete" click adds one unit of progress to the user's quest row for
the day. Progress is capped at the quest's target; reaching the target
completes the quest (once, permanently), credits its XP reward and advances
the quest streak.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
import logging

from learnquest.gamification.streak_system import apply_quest_day
from learnquest.gamification.transitions import QuestEvent, transition_quest
from learnquest.gamification.xp_system import XPAward, XPToLevel, credit_xp, default_xp_to_level
from learnquest.models.profile import Profile
from learnquest.models.quest import Quest, QuestStatus, UserQuest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestCompletion:
    """Rows to write after one completion click"""
    user_quest: UserQuest
    profile: Profile
    is_new_row: bool
    just_completed: bool
    xp_award: Optional[XPAward] = None


def complete_quest(
    quest: Quest,
    user_quest: Optional[UserQuest],
    profile: Profile,
    today: date,
    now: datetime,
    xp_to_level: XPToLevel = default_xp_to_level,
) -> QuestCompletion:
    """
    Advance a quest by one unit of progress.

    Args:
        quest: Quest definition
        user_quest: Existing row for this user/quest/day, or None
        profile: Current profile row
        today: Calendar date of the click
        now: Timestamp stored as completed_at
        xp_to_level: Level mapping used when XP is credited

    Raises:
        InvalidTransitionError: if the quest row is already completed or expired
    """
    is_new_row = user_quest is None

    if is_new_row:
        current = UserQuest(
            user_id=profile.id,
            quest_id=quest.id,
            assigned_date=today,
            progress=0,
            status=QuestStatus.ACTIVE,
        )
    else:
        current = user_quest

    new_progress = min(current.progress + 1, quest.target_value)
    event = QuestEvent.FINISH if new_progress >= quest.target_value else QuestEvent.PROGRESS
    # Rejects clicks on completed/expired rows
    new_status = transition_quest(current.status, event)

    just_completed = new_status == QuestStatus.COMPLETED
    updated_quest = current.model_copy(update={
        "progress": new_progress,
        "status": new_status,
        "completed_at": now if just_completed else None,
    })

    if not just_completed:
        return QuestCompletion(
            user_quest=updated_quest,
            profile=profile,
            is_new_row=is_new_row,
            just_completed=False,
        )

    xp_award = credit_xp(profile, quest.xp_reward, xp_to_level)
    updated_profile = apply_quest_day(xp_award.profile, today)

    logger.info(
        f"User {profile.id} completed quest {quest.id} (+{quest.xp_reward} XP), "
        f"quest streak {profile.quest_streak} → {updated_profile.quest_streak}"
    )

    return QuestCompletion(
        user_quest=updated_quest,
        profile=updated_profile,
        is_new_row=is_new_row,
        just_completed=True,
        xp_award=xp_award,
    )
