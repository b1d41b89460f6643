"""Pydantic schemas for API validation"""

from codearena.schemas.submission import (
    SubmissionCreate,
    RunSampleRequest,
    SubmitResponse,
    SampleRunResult,
    RunSampleResponse,
    TestResultResponse,
    SubmissionResponse,
    SubmissionListItem,
    SubmissionPage,
)
from codearena.schemas.contest import ContestResponse, LeaderboardEntry, ContestLeaderboardResponse
from codearena.schemas.response import ErrorResponse, HealthResponse

__all__ = [
    "SubmissionCreate", "RunSampleRequest", "SubmitResponse", "SampleRunResult", "RunSampleResponse",
    "TestResultResponse", "SubmissionResponse", "SubmissionListItem", "SubmissionPage",
    "ContestResponse", "LeaderboardEntry", "ContestLeaderboardResponse",
    "ErrorResponse", "HealthResponse",
]
