"""Unit tests for Mystery Box rewards (learnquest/gamification/mystery_box.py)"""
import random
import pytest
from collections import Counter
from datetime import datetime, timezone

from learnquest.exceptions import InvalidTransitionError
from learnquest.gamification.mystery_box import open_box, roll_reward
from learnquest.models.mystery_box import BoxRarity, MysteryBox, RewardType

NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


def make_box(user_id, rarity=BoxRarity.COMMON, is_opened=False):
    return MysteryBox(id="box-1", user_id=user_id, rarity=rarity, is_opened=is_opened)


# ============================================================================
# Reward Roll Tests
# ============================================================================

@pytest.mark.parametrize("rarity,amount", [
    (BoxRarity.COMMON, 75),
    (BoxRarity.RARE, 200),
    (BoxRarity.EPIC, 500),
    (BoxRarity.LEGENDARY, 1000),
])
def test_xp_amount_by_rarity(rarity, amount):
    assert roll_reward(rarity, 0) == (RewardType.XP, {"amount": amount})


@pytest.mark.parametrize("roll,reward_type", [
    (59.99, RewardType.XP),
    (60, RewardType.BADGE),
    (74.99, RewardType.BADGE),
    (75, RewardType.COSMETIC),
    (89.99, RewardType.COSMETIC),
    (90, RewardType.PRIVILEGE),
    (99.99, RewardType.PRIVILEGE),
])
def test_bucket_boundaries(roll, reward_type):
    assert roll_reward(BoxRarity.RARE, roll)[0] == reward_type


def test_fixed_reward_payloads():
    assert roll_reward(BoxRarity.COMMON, 65)[1] == {
        "name": "Mystery Badge",
        "description": "Unlocked from Mystery Box",
    }
    assert roll_reward(BoxRarity.COMMON, 80)[1] == {"type": "avatar_frame", "name": "Cosmic Frame"}
    assert roll_reward(BoxRarity.COMMON, 95)[1] == {"type": "2x_xp_boost", "duration_hours": 24}


@pytest.mark.parametrize("roll", [-0.1, 100, 150])
def test_roll_out_of_range_rejected(roll):
    with pytest.raises(ValueError):
        roll_reward(BoxRarity.COMMON, roll)


def test_distribution_with_seeded_rng(profile_factory):
    """Test 10k seeded opens land near 60/15/15/10"""
    rng = random.Random(42)
    profile = profile_factory()
    counts = Counter()

    for _ in range(10_000):
        opening = open_box(make_box(profile.id), profile, NOW, rng=rng)
        counts[opening.box.reward_type] += 1

    assert 5700 < counts[RewardType.XP] < 6300
    assert 1300 < counts[RewardType.BADGE] < 1700
    assert 1300 < counts[RewardType.COSMETIC] < 1700
    assert 800 < counts[RewardType.PRIVILEGE] < 1200


# ============================================================================
# Open Box Tests
# ============================================================================

def test_open_box_xp_credits_profile(profile_factory):
    profile = profile_factory(xp=380, level=4)

    opening = open_box(make_box(profile.id, BoxRarity.COMMON), profile, NOW, roll=10)

    assert opening.box.is_opened is True
    assert opening.box.opened_at == NOW
    assert opening.box.reward_type == RewardType.XP
    assert opening.profile.xp == 455
    assert opening.xp_award.leveled_up is True


def test_open_box_non_xp_leaves_profile(profile_factory):
    profile = profile_factory(xp=380)

    opening = open_box(make_box(profile.id), profile, NOW, roll=95)

    assert opening.box.reward_type == RewardType.PRIVILEGE
    assert opening.profile is profile
    assert opening.xp_award is None


def test_open_box_already_opened_rejected(profile_factory):
    """Test an opened box is never re-rolled"""
    profile = profile_factory()

    with pytest.raises(InvalidTransitionError):
        open_box(make_box(profile.id, is_opened=True), profile, NOW, roll=10)


def test_open_box_notification(profile_factory):
    profile = profile_factory()

    opening = open_box(make_box(profile.id, BoxRarity.EPIC), profile, NOW, roll=0)
    notification = opening.notification("en")

    assert notification["type"] == "mystery_box_opened"
    assert notification["reward_type"] == "xp"
    assert "500" in notification["description"]
