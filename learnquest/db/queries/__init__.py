"""
Database queries - one module per table group, re-exported here so callers
can write `from learnquest.db import queries` and `queries.get_profile(...)`.

Module organization:
- profile.py: Profiles, row locks and progression counters
- posts.py: Posts and the feed (post insert on the caller's transaction)
- quests.py: Daily quests and per-user quest rows (guarded quest row writes)
- achievements.py: Achievement definitions and unlocks
- mystery_boxes.py: Mystery boxes (guarded open)
- motivation.py: Motivation self-ratings and emotion logs
- goals.py: SMART goals, weekly missions, habit stacks
"""

# Profile operations
from learnquest.db.queries.profile import (
    get_profile,
    lock_profile,
    write_profile_progress,
    update_profile_details,
)

# Post operations
from learnquest.db.queries.posts import (
    insert_post,
    count_user_posts,
    get_feed,
)

# Quest operations
from learnquest.db.queries.quests import (
    get_quest,
    get_daily_quests,
    get_user_quest,
    get_user_quests_for_date,
    write_quest_progress,
)

# Achievement operations
from learnquest.db.queries.achievements import (
    get_all_achievements,
    get_achievements_by_category,
    get_unlocked_achievement_ids,
    unlock_achievement,
    get_recent_unlocks,
)

# Mystery box operations
from learnquest.db.queries.mystery_boxes import (
    get_mystery_box,
    get_user_mystery_boxes,
    mark_box_opened,
)

# Motivation operations
from learnquest.db.queries.motivation import (
    insert_motivation_scores,
    get_recent_motivation_scores,
    get_recent_emotion_logs,
    has_motivation_since,
)

# Goal operations
from learnquest.db.queries.goals import (
    insert_goal,
    get_goal,
    update_goal,
    delete_goal,
    list_goals,
    get_active_goals,
)

__all__ = [
    "get_profile",
    "lock_profile",
    "write_profile_progress",
    "update_profile_details",
    "insert_post",
    "count_user_posts",
    "get_feed",
    "get_quest",
    "get_daily_quests",
    "get_user_quest",
    "get_user_quests_for_date",
    "write_quest_progress",
    "get_all_achievements",
    "get_achievements_by_category",
    "get_unlocked_achievement_ids",
    "unlock_achievement",
    "get_recent_unlocks",
    "get_mystery_box",
    "get_user_mystery_boxes",
    "mark_box_opened",
    "insert_motivation_scores",
    "get_recent_motivation_scores",
    "get_recent_emotion_logs",
    "has_motivation_since",
    "insert_goal",
    "get_goal",
    "update_goal",
    "delete_goal",
    "list_goals",
    "get_active_goals",
]
