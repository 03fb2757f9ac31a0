from datetime import datetime
from typing import Dict, Literal
from pydantic import BaseModel


class TaskState(BaseModel):
    name: str
    description: str
    points: int
    completed: bool
    progress: int
    target: int


class DailyTasksOut(BaseModel):
    tasks: Dict[str, TaskState]
    total_points_earned: int
    all_tasks_completed: bool
    reset_time: datetime


class ShareRequest(BaseModel):
    type: Literal["app", "product", "social"]
    platform: str
    url: str
