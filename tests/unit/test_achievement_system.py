"""Unit tests for Achievement System (learnquest/gamification/achievement_system.py)"""
import pytest
from unittest.mock import AsyncMock, patch

from learnquest.gamification.achievement_system import (
    category_matches,
    evaluate_achievements,
    find_unlockable,
    get_achievement_overview,
)
from learnquest.models.achievement import Achievement

QUERIES = "learnquest.gamification.achievement_system.queries"


def make_achievement(ach_id, category, milestone, title=None):
    return Achievement(
        id=ach_id,
        category=category,
        milestone_value=milestone,
        title=title or ach_id,
        description=f"Reach {milestone}",
    )


POST_BADGES = [
    make_achievement("posts-1", "posts", 1, "First Post"),
    make_achievement("posts-10", "posts", 10, "Ten Posts"),
    make_achievement("posts-50", "posts", 50, "Fifty Posts"),
]


# ============================================================================
# Pure Helper Tests
# ============================================================================

def test_category_matches_exact():
    assert category_matches("posts", "posts")
    assert not category_matches("streak", "posts")


def test_category_matches_motivation_prefix():
    assert category_matches("motivation_risk", "motivation")
    assert category_matches("motivation_risk", "motivation_risk")
    assert not category_matches("motivation_planning", "motivation_risk")


def test_find_unlockable_sorted_and_filtered():
    found = find_unlockable(reversed(POST_BADGES), "posts", 12)

    assert [a.id for a in found] == ["posts-1", "posts-10"]


# ============================================================================
# Evaluation Tests
# ============================================================================

@pytest.mark.asyncio
async def test_evaluate_unlocks_new_milestones(test_user_id):
    """Test every crossed milestone not yet owned is inserted"""
    with patch(f"{QUERIES}.get_achievements_by_category", new=AsyncMock(return_value=POST_BADGES)), \
         patch(f"{QUERIES}.get_unlocked_achievement_ids", new=AsyncMock(return_value={"posts-1"})), \
         patch(f"{QUERIES}.unlock_achievement", new=AsyncMock(return_value=True)) as mock_unlock:

        notifications = await evaluate_achievements(test_user_id, "posts", 10)

    mock_unlock.assert_awaited_once_with(test_user_id, "posts-10")
    assert len(notifications) == 1
    assert notifications[0]["type"] == "achievement_unlocked"
    assert notifications[0]["achievement_id"] == "posts-10"
    assert "Ten Posts" in notifications[0]["description"]


@pytest.mark.asyncio
async def test_evaluate_concurrent_insert_not_reported(test_user_id):
    """Test a lost ON CONFLICT race yields no notification"""
    with patch(f"{QUERIES}.get_achievements_by_category", new=AsyncMock(return_value=POST_BADGES[:1])), \
         patch(f"{QUERIES}.get_unlocked_achievement_ids", new=AsyncMock(return_value=set())), \
         patch(f"{QUERIES}.unlock_achievement", new=AsyncMock(return_value=False)):

        notifications = await evaluate_achievements(test_user_id, "posts", 1)

    assert notifications == []


@pytest.mark.asyncio
async def test_evaluate_nothing_reached_skips_lookup(test_user_id):
    with patch(f"{QUERIES}.get_achievements_by_category", new=AsyncMock(return_value=[])), \
         patch(f"{QUERIES}.get_unlocked_achievement_ids", new=AsyncMock()) as mock_unlocked:

        notifications = await evaluate_achievements(test_user_id, "streak", 0)

    assert notifications == []
    mock_unlocked.assert_not_awaited()


@pytest.mark.asyncio
async def test_evaluate_thai_notification(test_user_id):
    with patch(f"{QUERIES}.get_achievements_by_category", new=AsyncMock(return_value=POST_BADGES[:1])), \
         patch(f"{QUERIES}.get_unlocked_achievement_ids", new=AsyncMock(return_value=set())), \
         patch(f"{QUERIES}.unlock_achievement", new=AsyncMock(return_value=True)):

        notifications = await evaluate_achievements(test_user_id, "posts", 1, lang="th")

    assert notifications[0]["title"] == "🏆 ปลดล็อกความสำเร็จ!"


# ============================================================================
# Overview Tests
# ============================================================================

@pytest.mark.asyncio
async def test_overview_counts_and_percentage(test_user_id):
    catalogue = POST_BADGES + [
        make_achievement("streak-3", "streak", 3),
        make_achievement("motivation-risk-8", "motivation_risk", 8),
    ]
    with patch(f"{QUERIES}.get_all_achievements", new=AsyncMock(return_value=catalogue)), \
         patch(f"{QUERIES}.get_unlocked_achievement_ids",
               new=AsyncMock(return_value={"posts-1", "motivation-risk-8"})):

        overview = await get_achievement_overview(test_user_id)

    assert overview["total_achievements"] == 5
    assert overview["total_unlocked"] == 2
    assert overview["percentage"] == 40
    assert overview["categories"]["posts"] == {"unlocked": 1, "total": 3}
    assert overview["categories"]["motivation"] == {"unlocked": 1, "total": 1}
    assert [a["milestone_value"] for a in overview["achievements"]] == sorted(
        a.milestone_value for a in catalogue
    )


@pytest.mark.asyncio
async def test_overview_empty_catalogue(test_user_id):
    with patch(f"{QUERIES}.get_all_achievements", new=AsyncMock(return_value=[])), \
         patch(f"{QUERIES}.get_unlocked_achievement_ids", new=AsyncMock(return_value=set())):

        overview = await get_achievement_overview(test_user_id)

    assert overview["percentage"] == 0
    assert overview["achievements"] == []
