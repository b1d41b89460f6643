"""Submission schemas"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from codearena.core.constants import LanguageEnum, Verdict


def _sanitize_code(v: str) -> str:
    return v.replace('\x00', '')


class SubmissionCreate(BaseModel):
    """Create submission schema"""
    problem_slug: str = Field(..., min_length=1, max_length=220)
    language: LanguageEnum
    code: str = Field(..., min_length=1, max_length=65536)
    contest_id: Optional[int] = None
    time_taken: int = Field(0, ge=0)

    @field_validator('code')
    @classmethod
    def sanitize_code(cls, v):
        """Strip null bytes"""
        return _sanitize_code(v)


class RunSampleRequest(BaseModel):
    """Run against sample test cases, or a single custom input"""
    problem_slug: str = Field(..., min_length=1, max_length=220)
    language: LanguageEnum
    code: str = Field(..., min_length=1, max_length=65536)
    custom_input: Optional[str] = Field(None, max_length=65536)

    @field_validator('code')
    @classmethod
    def sanitize_code(cls, v):
        return _sanitize_code(v)


class SubmitResponse(BaseModel):
    """Accepted-for-judging response"""
    success: bool = True
    submission_id: int
    verdict: Verdict = Verdict.PENDING
    message: str = "Submission received. Running test cases..."


class TestResultResponse(BaseModel):
    """Per-test-case outcome"""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    index: int = Field(validation_alias="test_case_index")
    input: str
    expected_output: Optional[str]
    actual_output: str
    verdict: str
    runtime: float
    memory: int
    stderr: str
    is_hidden: bool


class SampleRunResult(BaseModel):
    """Result of one case in a sample run; never persisted"""
    model_config = ConfigDict(from_attributes=True)

    index: int
    input: str
    expected_output: Optional[str]
    actual_output: str
    verdict: Verdict
    runtime_ms: float
    memory_kb: int
    stderr: str


class RunSampleResponse(BaseModel):
    results: List[SampleRunResult]


class SubmissionResponse(BaseModel):
    """Full submission view (owner or admin)"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    problem_id: int
    contest_id: Optional[int]
    is_contest: bool
    language: str
    code: Optional[str] = None
    verdict: str
    runtime: float
    memory: int
    compile_output: str
    passed_test_cases: int
    total_test_cases: int
    time_taken: int
    created_at: Optional[datetime]
    judged_at: Optional[datetime]
    is_terminal: bool = False
    test_results: List[TestResultResponse] = []


class SubmissionListItem(BaseModel):
    """Submission row without code or test details"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    problem_id: int
    contest_id: Optional[int]
    language: str
    verdict: str
    runtime: float
    memory: int
    passed_test_cases: int
    total_test_cases: int
    created_at: Optional[datetime]


class SubmissionPage(BaseModel):
    items: List[SubmissionListItem]
    total: int
    page: int
    limit: int
    pages: int
