import uuid
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field


class XPInfo(BaseModel):
    current_level: int
    total_xp: int
    xp_progress: int
    xp_to_next_level: int
    progress_percentage: int


class MilestoneOut(BaseModel):
    level: int
    name: str
    description: Optional[str] = None
    reward: int
    achieved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LevelRewardOut(BaseModel):
    level: int
    points_awarded: int
    type: str
    awarded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LevelOverview(BaseModel):
    xp_info: XPInfo
    stats: Dict[str, int]
    recent_rewards: List[LevelRewardOut]
    milestones: List[MilestoneOut]


class AwardXPRequest(BaseModel):
    user_id: uuid.UUID
    xp_amount: int = Field(gt=0)
    source: str = "admin"


class LevelLeaderboardEntry(BaseModel):
    rank: int
    username: str
    current_level: int
    total_xp: int
