"""Unit tests for ProgressionService"""

import asyncio
import pytest
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import psycopg

from learnquest.exceptions import (
    ConnectionError,
    InvalidTransitionError,
    ValidationError,
)
from learnquest.models.activity import MotivationScores
from learnquest.models.mystery_box import BoxRarity, MysteryBox
from learnquest.models.quest import Quest, QuestStatus, UserQuest
from learnquest.services.progression_service import ProgressionService

TODAY = date(2024, 3, 15)
NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)
SERVICE = "learnquest.services.progression_service"


@pytest.fixture
def database(mock_db_connection):
    """Database whose transaction() yields the mocked connection"""
    mocked = MagicMock()
    mocked.transaction.return_value.__aenter__.return_value = mock_db_connection
    return mocked


@pytest.fixture
def service(database):
    """ProgressionService with a fixed clock"""
    svc = ProgressionService(database)
    svc._now = lambda: NOW
    svc._today = lambda now: TODAY
    return svc


@pytest.fixture
def mock_queries():
    with patch(f"{SERVICE}.queries") as mocked:
        for name in (
            "get_profile",
            "lock_profile",
            "write_profile_progress",
            "update_profile_details",
            "insert_post",
            "count_user_posts",
            "get_feed",
            "get_quest",
            "get_user_quest",
            "write_quest_progress",
            "get_daily_quests",
            "get_user_quests_for_date",
            "get_mystery_box",
            "mark_box_opened",
            "get_user_mystery_boxes",
            "insert_motivation_scores",
            "get_recent_motivation_scores",
            "has_motivation_since",
            "get_recent_unlocks",
        ):
            setattr(mocked, name, AsyncMock())
        yield mocked


@pytest.fixture
def mock_evaluate():
    with patch(f"{SERVICE}.evaluate_achievements", new=AsyncMock(return_value=[])) as mocked:
        yield mocked


# ============================================================================
# record_post
# ============================================================================

@pytest.mark.asyncio
async def test_record_post_continues_streak(service, database, mock_queries, mock_evaluate, mock_db_cursor, profile_factory):
    profile = profile_factory(streak=2, total_days=8, last_activity_date=TODAY - timedelta(days=1))
    mock_queries.lock_profile.return_value = profile
    mock_queries.insert_post.return_value = {"id": "post-1", "content": "Photosynthesis notes"}
    mock_queries.count_user_posts.return_value = 9
    badge = {"type": "achievement_unlocked", "achievement_id": "streak-3"}
    mock_evaluate.side_effect = [[], [badge]]

    result = await service.record_post(profile.id, "  Photosynthesis notes ", lang="en")

    assert result["streak"] == 3
    assert result["streak_outcome"] == "continued"
    assert result["total_days"] == 9
    assert result["post_count"] == 9
    assert result["achievements_unlocked"] == [badge]

    database.transaction.assert_called_once_with("record_post")
    mock_queries.lock_profile.assert_awaited_once_with(mock_db_cursor, profile.id)
    mock_queries.insert_post.assert_awaited_once_with(mock_db_cursor, profile.id, "Photosynthesis notes", None)
    written = mock_queries.write_profile_progress.call_args.args[1]
    assert written.streak == 3
    mock_queries.get_profile.assert_not_awaited()

    mock_evaluate.assert_any_await(profile.id, "posts", 9, "en")
    mock_evaluate.assert_any_await(profile.id, "streak", 3, "en")
    types = [n["type"] for n in result["notifications"]]
    assert types == ["post_created", "streak", "achievement_unlocked"]


@pytest.mark.asyncio
async def test_record_post_same_day_leaves_profile(service, mock_queries, mock_evaluate, profile_factory):
    profile = profile_factory(streak=4, total_days=4, last_activity_date=TODAY)
    mock_queries.lock_profile.return_value = profile
    mock_queries.insert_post.return_value = {"id": "post-2"}
    mock_queries.count_user_posts.return_value = 5

    result = await service.record_post(profile.id, "Second post today")

    assert result["streak"] == 4
    assert result["total_days"] == 4
    mock_queries.insert_post.assert_awaited_once()
    mock_queries.write_profile_progress.assert_not_awaited()


@pytest.mark.asyncio
async def test_record_post_empty_content_rejected(service, database, mock_queries, test_user_id):
    """Test blank content never reaches the store"""
    with pytest.raises(ValidationError) as exc_info:
        await service.record_post(test_user_id, "   ", lang="th")

    assert exc_info.value.user_message == "ข้อมูล content ไม่ถูกต้อง กรุณาตรวจสอบอีกครั้ง"
    database.transaction.assert_not_called()
    mock_queries.lock_profile.assert_not_awaited()


@pytest.mark.asyncio
async def test_record_post_survives_achievement_failure(service, mock_queries, mock_evaluate, profile_factory):
    profile = profile_factory()
    mock_queries.lock_profile.return_value = profile
    mock_queries.insert_post.return_value = {"id": "post-1"}
    mock_queries.count_user_posts.side_effect = psycopg.OperationalError("connection lost")

    result = await service.record_post(profile.id, "Notes")

    assert result["post"] == {"id": "post-1"}
    assert result["streak"] == 1
    assert result["achievements_unlocked"] == []


@pytest.mark.asyncio
async def test_record_post_database_down(service, mock_queries, test_user_id):
    mock_queries.lock_profile.side_effect = psycopg.OperationalError("connection refused")

    with pytest.raises(ConnectionError) as exc_info:
        await service.record_post(test_user_id, "Notes", lang="th")

    assert exc_info.value.user_message == "ไม่สามารถเชื่อมต่อฐานข้อมูลได้ กรุณาลองใหม่อีกครั้ง"
    mock_queries.insert_post.assert_not_awaited()


# ============================================================================
# complete_quest
# ============================================================================

def read_quest(target_value=1):
    return Quest(id="q-read", title="Read for 20 minutes", target_value=target_value, xp_reward=50)


@pytest.mark.asyncio
async def test_complete_quest_first_click_completes(service, database, mock_queries, mock_db_cursor, profile_factory):
    profile = profile_factory(xp=80)
    mock_queries.get_quest.return_value = read_quest()
    mock_queries.lock_profile.return_value = profile
    mock_queries.get_user_quest.return_value = None
    mock_queries.write_quest_progress.side_effect = lambda cur, uq, prev: uq.model_copy(update={"id": "uq-1"})

    result = await service.complete_quest(profile.id, "q-read", lang="en")

    assert result["just_completed"] is True
    assert result["already_completed"] is False
    assert result["xp"]["new_total_xp"] == 130
    assert result["xp"]["leveled_up"] is True
    assert result["quest_streak"] == 1

    database.transaction.assert_called_once_with("complete_quest")
    cur, user_quest, previous = mock_queries.write_quest_progress.call_args.args
    assert cur is mock_db_cursor
    assert user_quest.status == QuestStatus.COMPLETED
    assert previous is None
    assert mock_queries.write_profile_progress.call_args.args[1].xp == 130

    types = [n["type"] for n in result["notifications"]]
    assert types == ["quest_completed", "level_up"]


@pytest.mark.asyncio
async def test_complete_quest_partial_progress(service, mock_queries, profile_factory):
    profile = profile_factory()
    existing = UserQuest(id="uq-1", user_id=profile.id, quest_id="q-read", assigned_date=TODAY, progress=1)
    mock_queries.get_quest.return_value = read_quest(target_value=3)
    mock_queries.lock_profile.return_value = profile
    mock_queries.get_user_quest.return_value = existing
    mock_queries.write_quest_progress.side_effect = lambda cur, uq, prev: uq

    result = await service.complete_quest(profile.id, "q-read", lang="en")

    assert result["just_completed"] is False
    assert result["xp"] is None
    _, user_quest, previous = mock_queries.write_quest_progress.call_args.args
    assert user_quest.progress == 2
    assert previous == 1
    mock_queries.write_profile_progress.assert_not_awaited()
    assert result["notifications"][0]["description"] == "Quest progress 2/3"


@pytest.mark.asyncio
async def test_complete_quest_already_completed_is_noop(service, mock_queries, profile_factory):
    """Test a completed quest grants nothing and writes nothing"""
    profile = profile_factory(xp=500, quest_streak=3)
    existing = UserQuest(
        id="uq-1",
        user_id=profile.id,
        quest_id="q-read",
        assigned_date=TODAY,
        progress=1,
        status=QuestStatus.COMPLETED,
        completed_at=NOW,
    )
    mock_queries.get_quest.return_value = read_quest()
    mock_queries.lock_profile.return_value = profile
    mock_queries.get_user_quest.return_value = existing

    result = await service.complete_quest(profile.id, "q-read")

    assert result["already_completed"] is True
    assert result["quest_streak"] == 3
    mock_queries.write_quest_progress.assert_not_awaited()
    mock_queries.write_profile_progress.assert_not_awaited()


@pytest.mark.asyncio
async def test_complete_quest_lost_race_propagates(service, mock_queries, profile_factory):
    profile = profile_factory()
    mock_queries.get_quest.return_value = read_quest()
    mock_queries.lock_profile.return_value = profile
    mock_queries.get_user_quest.return_value = None
    mock_queries.write_quest_progress.side_effect = InvalidTransitionError(
        "changed", entity="quest", state="changed", event="progress"
    )

    with pytest.raises(InvalidTransitionError):
        await service.complete_quest(profile.id, "q-read")

    mock_queries.write_profile_progress.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_quests_merges_progress(service, mock_queries, test_user_id):
    mock_queries.get_daily_quests.return_value = [read_quest(3), Quest(id="q-math", title="Math drill")]
    mock_queries.get_user_quests_for_date.return_value = [
        UserQuest(id="uq-1", user_id=test_user_id, quest_id="q-read", assigned_date=TODAY, progress=2)
    ]

    quests = await service.list_quests(test_user_id)

    assert quests[0]["progress"] == 2
    assert quests[1]["progress"] == 0
    assert quests[1]["status"] == "active"
    mock_queries.get_user_quests_for_date.assert_awaited_once_with(test_user_id, TODAY)


# ============================================================================
# open_mystery_box
# ============================================================================

@pytest.mark.asyncio
async def test_open_mystery_box_xp_reward(service, database, mock_queries, profile_factory):
    profile = profile_factory(xp=0)
    box = MysteryBox(id="box-1", user_id=profile.id, rarity=BoxRarity.LEGENDARY)
    mock_queries.get_mystery_box.return_value = box
    mock_queries.lock_profile.return_value = profile
    mock_queries.mark_box_opened.side_effect = lambda cur, opened: opened

    result = await service.open_mystery_box(profile.id, "box-1", lang="en", roll=10)

    assert result["box"]["reward_type"] == "xp"
    assert result["xp"]["xp_awarded"] == 1000
    database.transaction.assert_called_once_with("open_mystery_box")
    assert mock_queries.mark_box_opened.call_args.args[1].is_opened is True
    assert mock_queries.write_profile_progress.call_args.args[1].xp == 1000
    assert result["notifications"][0]["type"] == "mystery_box_opened"


@pytest.mark.asyncio
async def test_open_mystery_box_badge_skips_profile(service, mock_queries, profile_factory):
    profile = profile_factory()
    mock_queries.get_mystery_box.return_value = MysteryBox(id="box-1", user_id=profile.id)
    mock_queries.lock_profile.return_value = profile
    mock_queries.mark_box_opened.side_effect = lambda cur, opened: opened

    result = await service.open_mystery_box(profile.id, "box-1", roll=70)

    assert result["xp"] is None
    mock_queries.mark_box_opened.assert_awaited_once()
    mock_queries.write_profile_progress.assert_not_awaited()


@pytest.mark.asyncio
async def test_open_mystery_box_twice_rejected(service, mock_queries, profile_factory):
    profile = profile_factory()
    mock_queries.get_mystery_box.return_value = MysteryBox(id="box-1", user_id=profile.id, is_opened=True)
    mock_queries.lock_profile.return_value = profile

    with pytest.raises(InvalidTransitionError):
        await service.open_mystery_box(profile.id, "box-1", roll=10)

    mock_queries.mark_box_opened.assert_not_awaited()
    mock_queries.write_profile_progress.assert_not_awaited()


# ============================================================================
# Concurrent XP credits
# ============================================================================

class _Transaction:
    """Connection and cursor for one in-memory transaction"""

    def __init__(self):
        self.holds_row_lock = False

    @asynccontextmanager
    async def cursor(self):
        yield self


class InMemoryProfileStore:
    """
    One profile row with a row lock held until the locking transaction ends.

    Every store call yields to the event loop, so concurrent actions
    interleave wherever the service lets them.
    """

    def __init__(self, profile):
        self.profile = profile
        self._row_lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self, operation="unknown"):
        tx = _Transaction()
        try:
            yield tx
        finally:
            if tx.holds_row_lock:
                self._row_lock.release()

    async def lock_profile(self, cur, user_id):
        await self._row_lock.acquire()
        cur.holds_row_lock = True
        await asyncio.sleep(0)
        return self.profile.model_copy()

    async def write_profile_progress(self, cur, profile):
        await asyncio.sleep(0)
        self.profile = profile


def yielding(value_or_fn):
    async def _call(*args):
        await asyncio.sleep(0)
        return value_or_fn(*args) if callable(value_or_fn) else value_or_fn
    return _call


@pytest.mark.asyncio
async def test_concurrent_box_and_quest_both_credit_xp(mock_queries, profile_factory):
    """Test a box open and a quest completion racing on one student keep both XP credits"""
    profile = profile_factory(xp=0)
    store = InMemoryProfileStore(profile)
    svc = ProgressionService(store)
    svc._now = lambda: NOW
    svc._today = lambda now: TODAY

    mock_queries.lock_profile.side_effect = store.lock_profile
    mock_queries.write_profile_progress.side_effect = store.write_profile_progress
    mock_queries.get_mystery_box.side_effect = yielding(MysteryBox(id="box-1", user_id=profile.id))
    mock_queries.mark_box_opened.side_effect = yielding(lambda cur, opened: opened)
    mock_queries.get_quest.side_effect = yielding(read_quest())
    mock_queries.get_user_quest.side_effect = yielding(None)
    mock_queries.write_quest_progress.side_effect = yielding(
        lambda cur, uq, prev: uq.model_copy(update={"id": "uq-1"})
    )

    opened, completed = await asyncio.gather(
        svc.open_mystery_box(profile.id, "box-1", roll=10),
        svc.complete_quest(profile.id, "q-read"),
    )

    assert opened["xp"]["xp_awarded"] == 75
    assert completed["xp"]["xp_awarded"] == 50
    assert store.profile.xp == 125
    assert store.profile.quest_streak == 1


# ============================================================================
# Motivation & views
# ============================================================================

@pytest.mark.asyncio
async def test_submit_motivation_checks_each_dimension(service, mock_queries, mock_evaluate, test_user_id):
    scores = MotivationScores(risk=9, diligence=8, responsibility=7, collaboration=6, perseverance=5, planning=4)
    mock_queries.insert_motivation_scores.return_value = {"id": "ms-1"}

    result = await service.submit_motivation(test_user_id, scores, lang="en")

    categories = [c.args[1] for c in mock_evaluate.await_args_list]
    assert categories == [
        "motivation_risk",
        "motivation_diligence",
        "motivation_responsibility",
        "motivation_collaboration",
        "motivation_perseverance",
        "motivation_planning",
    ]
    mock_evaluate.assert_any_await(test_user_id, "motivation_risk", 9, "en")
    assert result["notifications"][0]["type"] == "motivation_saved"


@pytest.mark.asyncio
async def test_get_profile_summary(service, mock_queries, profile_factory):
    mock_queries.get_profile.return_value = profile_factory(xp=600, level=6)
    mock_queries.has_motivation_since.return_value = False
    recent = [{"id": "a-1", "title": "First Post"}, {"id": "a-2", "title": "3-Day Streak"}]
    mock_queries.get_recent_unlocks.return_value = recent

    summary = await service.get_profile_summary("user-1")

    assert summary["level_info"]["current_level"] == 6
    assert summary["level_info"]["level_tier"] == "silver"
    assert summary["profile"]["xp"] == 600
    assert summary["motivation_checked_in_today"] is False
    assert summary["recent_achievements"] == recent
    mock_queries.get_recent_unlocks.assert_awaited_once_with("user-1", limit=3)


@pytest.mark.asyncio
async def test_profile_summary_checks_in_from_local_midnight(service, mock_queries, profile_factory):
    mock_queries.get_profile.return_value = profile_factory()
    mock_queries.has_motivation_since.return_value = True
    mock_queries.get_recent_unlocks.return_value = []

    with patch("learnquest.utils.datetime_helpers.APP_TIMEZONE", "Asia/Bangkok"):
        summary = await service.get_profile_summary("user-1")

    assert summary["motivation_checked_in_today"] is True
    since = mock_queries.has_motivation_since.call_args.args[1]
    assert since == datetime(2024, 3, 14, 17, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_update_profile(service, mock_queries, profile_factory):
    updated = profile_factory(name="Ploy S.", class_level="M.5")
    mock_queries.update_profile_details.return_value = updated

    result = await service.update_profile(updated.id, name="  Ploy S. ", class_level="M.5", lang="en")

    mock_queries.update_profile_details.assert_awaited_once_with(updated.id, name="Ploy S.", class_level="M.5")
    assert result["profile"]["name"] == "Ploy S."
    assert result["notifications"][0]["type"] == "profile_updated"


@pytest.mark.parametrize("name,class_level", [(None, None), ("   ", None)])
@pytest.mark.asyncio
async def test_update_profile_rejects_empty(service, mock_queries, test_user_id, name, class_level):
    with pytest.raises(ValidationError):
        await service.update_profile(test_user_id, name=name, class_level=class_level)

    mock_queries.update_profile_details.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_motivation_stats_empty(service, mock_queries, test_user_id):
    mock_queries.get_recent_motivation_scores.return_value = []

    stats = await service.get_motivation_stats(test_user_id)

    assert stats["latest"] is None
    mock_queries.get_recent_motivation_scores.assert_awaited_once_with(test_user_id, limit=30)
