"""
XP and Leveling System

XP is purely additive: quest rewards and mystery-box XP are added to the
profile total, nothing decays and nothing is capped. The stored level is
derived from cumulative XP through an injectable `xp_to_level` mapping.

Default Leveling Curve:
- Level 1-5 (Bronze): 100 XP per level
- Level 6-15 (Silver): 200 XP per level
- Level 16-30 (Gold): 500 XP per level
- Level 31+ (Platinum): 1000 XP per level
"""

from dataclasses import dataclass
from typing import Callable, Dict
import logging

from learnquest.models.profile import LevelInfo, Profile

logger = logging.getLogger(__name__)

XPToLevel = Callable[[int], int]

# (last level of the tier, xp per level, tier name)
LEVEL_TIERS = (
    (5, 100, "bronze"),
    (15, 200, "silver"),
    (30, 500, "gold"),
    (None, 1000, "platinum"),
)


def calculate_level_from_xp(total_xp: int) -> LevelInfo:
    """
    Calculate level and tier from total XP

    Example:
        calculate_level_from_xp(600) -> level 6, silver, 0 XP in level, 200 to next
    """
    level = 1
    xp_needed = 0
    xp_remaining = max(0, total_xp)

    for last_level, cost, _ in LEVEL_TIERS:
        while (last_level is None or level < last_level) and xp_remaining >= cost:
            xp_remaining -= cost
            level += 1
            xp_needed += cost

    tier = _tier_for_level(level)
    xp_for_next_level = _cost_of_next_level(level)

    return LevelInfo(
        current_level=level,
        level_tier=tier,
        xp_in_current_level=xp_remaining,
        xp_to_next_level=xp_for_next_level - xp_remaining,
        total_xp_for_next_level=xp_needed + xp_for_next_level,
    )


def _tier_for_level(level: int) -> str:
    for last_level, _, tier in LEVEL_TIERS:
        if last_level is None or level <= last_level:
            return tier
    raise AssertionError("unreachable: last tier is open-ended")


def _cost_of_next_level(level: int) -> int:
    # Leaving the last level of a tier is priced by the next tier
    for last_level, cost, _ in LEVEL_TIERS:
        if last_level is None or level < last_level:
            return cost
    raise AssertionError("unreachable: last tier is open-ended")


def default_xp_to_level(total_xp: int) -> int:
    """Level for a cumulative XP total under the tiered curve"""
    return calculate_level_from_xp(total_xp).current_level


@dataclass(frozen=True)
class XPAward:
    """Outcome of crediting XP to a profile"""
    profile: Profile
    xp_awarded: int
    old_total_xp: int
    new_total_xp: int
    old_level: int
    new_level: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level

    def to_dict(self) -> Dict[str, int | bool]:
        return {
            "xp_awarded": self.xp_awarded,
            "old_total_xp": self.old_total_xp,
            "new_total_xp": self.new_total_xp,
            "old_level": self.old_level,
            "new_level": self.new_level,
            "leveled_up": self.leveled_up,
        }


def credit_xp(
    profile: Profile,
    amount: int,
    xp_to_level: XPToLevel = default_xp_to_level,
) -> XPAward:
    """
    Add XP to a profile and re-derive its level.

    Levels never go down: the stored level is kept if the mapping would
    return something lower (e.g. after a curve change).
    """
    if amount < 0:
        raise ValueError(f"XP amount must be non-negative, got {amount}")

    new_total = profile.xp + amount
    new_level = max(profile.level, xp_to_level(new_total))
    updated = profile.model_copy(update={"xp": new_total, "level": new_level})

    if new_level > profile.level:
        logger.info(f"User {profile.id} leveled up from {profile.level} to {new_level}!")

    return XPAward(
        profile=updated,
        xp_awarded=amount,
        old_total_xp=profile.xp,
        new_total_xp=new_total,
        old_level=profile.level,
        new_level=new_level,
    )
