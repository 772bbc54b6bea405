"""Mystery box models"""
from enum import Enum
from typing import Optional, Any
from datetime import datetime
from pydantic import BaseModel


class BoxRarity(str, Enum):
    """box_rarity enum"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class RewardType(str, Enum):
    """reward_type enum"""
    XP = "xp"
    BADGE = "badge"
    COSMETIC = "cosmetic"
    PRIVILEGE = "privilege"


class MysteryBox(BaseModel):
    """Mystery box row"""
    id: str
    user_id: str
    rarity: BoxRarity = BoxRarity.COMMON
    is_opened: bool = False
    reward_type: Optional[RewardType] = None
    reward_data: Optional[dict[str, Any]] = None
    opened_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
