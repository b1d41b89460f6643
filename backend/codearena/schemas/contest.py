"""Contest schemas"""

from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime
from codearena.core.constants import ContestStatus


class ContestProblemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    problem_id: int
    points: int
    order: int


class ContestResponse(BaseModel):
    """Contest with its clock-derived status"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    description: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: ContestStatus
    max_participants: int
    problems: List[ContestProblemResponse] = []


class ContestSolveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    problem_id: int
    solved_at: datetime
    time_penalty: int


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    username: Optional[str] = None
    score: int
    penalty: int
    solved_count: int
    last_submission_at: Optional[datetime]
    solved_problems: List[ContestSolveResponse] = []


class ContestLeaderboardResponse(BaseModel):
    contest_id: int
    contest_title: str
    status: ContestStatus
    leaderboard: List[LeaderboardEntry]
