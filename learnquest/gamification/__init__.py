"""
Progression engine for LearnQuest

Pure bookkeeping rules applied to the rows read for a single user action:
- XP and leveling
- Daily post streak and quest streak
- Quest progress and completion
- Achievement unlocks (milestones per category)
- Mystery box reward roll
- Goal status transitions (SMART goals, weekly missions, habit stacks)

Only achievement evaluation touches the store; everything else takes rows
in and returns rows to write.
"""

from learnquest.gamification.xp_system import calculate_level_from_xp, credit_xp, default_xp_to_level
from learnquest.gamification.streak_system import advance_day_streak, apply_activity, apply_quest_day
from learnquest.gamification.quest_system import complete_quest
from learnquest.gamification.mystery_box import open_box, roll_reward
from learnquest.gamification.achievement_system import evaluate_achievements, find_unlockable

__all__ = [
    "calculate_level_from_xp",
    "credit_xp",
    "default_xp_to_level",
    "advance_day_streak",
    "apply_activity",
    "apply_quest_day",
    "complete_quest",
    "open_box",
    "roll_reward",
    "evaluate_achievements",
    "find_unlockable",
]
