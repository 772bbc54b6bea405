"""
Mystery Box Rewards

A box is rolled exactly once, when it is opened. One uniform draw
r in [0, 100) picks the reward bucket:

    r < 60        XP (amount by rarity)
    60 <= r < 75  badge
    75 <= r < 90  cosmetic
    r >= 90       privilege (24h double XP)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
import logging
import random

from learnquest.gamification.transitions import BoxEvent, BoxState, transition_box
from learnquest.gamification.xp_system import XPAward, XPToLevel, credit_xp, default_xp_to_level
from learnquest.i18n.translations import t
from learnquest.models.mystery_box import BoxRarity, MysteryBox, RewardType
from learnquest.models.profile import Profile

logger = logging.getLogger(__name__)

XP_BY_RARITY: Dict[BoxRarity, int] = {
    BoxRarity.COMMON: 75,
    BoxRarity.RARE: 200,
    BoxRarity.EPIC: 500,
    BoxRarity.LEGENDARY: 1000,
}

# Upper bounds (exclusive) of the cumulative buckets
XP_BUCKET_END = 60
BADGE_BUCKET_END = 75
COSMETIC_BUCKET_END = 90

BADGE_REWARD = {"name": "Mystery Badge", "description": "Unlocked from Mystery Box"}
COSMETIC_REWARD = {"type": "avatar_frame", "name": "Cosmic Frame"}
PRIVILEGE_REWARD = {"type": "2x_xp_boost", "duration_hours": 24}


def roll_reward(rarity: BoxRarity, roll: float) -> Tuple[RewardType, Dict[str, Any]]:
    """
    Map a draw in [0, 100) to a reward.

    Example:
        roll_reward(BoxRarity.LEGENDARY, 10) -> (RewardType.XP, {'amount': 1000})
    """
    if not 0 <= roll < 100:
        raise ValueError(f"Roll must be in [0, 100), got {roll}")

    if roll < XP_BUCKET_END:
        return RewardType.XP, {"amount": XP_BY_RARITY[BoxRarity(rarity)]}
    if roll < BADGE_BUCKET_END:
        return RewardType.BADGE, dict(BADGE_REWARD)
    if roll < COSMETIC_BUCKET_END:
        return RewardType.COSMETIC, dict(COSMETIC_REWARD)
    return RewardType.PRIVILEGE, dict(PRIVILEGE_REWARD)


@dataclass(frozen=True)
class BoxOpening:
    """Rows to write after opening a box"""
    box: MysteryBox
    profile: Profile
    xp_award: Optional[XPAward] = None

    def notification(self, lang: str = "en") -> Dict[str, Any]:
        if self.box.reward_type == RewardType.XP:
            description = t("box_reward_xp", lang, amount=self.box.reward_data["amount"])
        else:
            description = t("box_reward_other", lang)
        return {
            "type": "mystery_box_opened",
            "box_id": self.box.id,
            "rarity": self.box.rarity.value,
            "reward_type": self.box.reward_type.value,
            "reward_data": self.box.reward_data,
            "title": t("box_opened_title", lang),
            "description": description,
        }


def open_box(
    box: MysteryBox,
    profile: Profile,
    now: datetime,
    rng: Optional[random.Random] = None,
    roll: Optional[float] = None,
    xp_to_level: XPToLevel = default_xp_to_level,
) -> BoxOpening:
    """
    Open a sealed box: draw the reward and, for XP rewards, credit the profile.

    Args:
        box: Box row; must not be opened yet
        profile: Owner's profile row
        now: Timestamp stored as opened_at
        rng: Random source (defaults to the module-level generator)
        roll: Forced draw in [0, 100), mainly for tests and replays
        xp_to_level: Level mapping used when XP is credited

    Raises:
        InvalidTransitionError: if the box is already opened
    """
    state = BoxState.OPENED if box.is_opened else BoxState.SEALED
    transition_box(state, BoxEvent.OPEN)

    if roll is None:
        roll = (rng or random).random() * 100

    reward_type, reward_data = roll_reward(box.rarity, roll)

    opened = box.model_copy(update={
        "is_opened": True,
        "reward_type": reward_type,
        "reward_data": reward_data,
        "opened_at": now,
    })

    xp_award = None
    updated_profile = profile
    if reward_type == RewardType.XP:
        xp_award = credit_xp(profile, reward_data["amount"], xp_to_level)
        updated_profile = xp_award.profile

    logger.info(
        f"User {profile.id} opened {box.rarity.value} box {box.id}: "
        f"{reward_type.value} {reward_data}"
    )

    return BoxOpening(box=opened, profile=updated_profile, xp_award=xp_award)
