"""Submission routes - judging and sample runs"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from codearena.core.database import get_db
from codearena.schemas.submission import (
    SubmissionCreate,
    SubmitResponse,
    RunSampleRequest,
    RunSampleResponse,
    SampleRunResult,
    SubmissionResponse,
    SubmissionPage,
)
from codearena.api.deps import get_current_user
from codearena.models.user import User
from codearena.services.submission_service import submission_service

router = APIRouter()


@router.post("/", response_model=SubmitResponse, status_code=status.HTTP_202_ACCEPTED)
def submit_code(
    submission: SubmissionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Queue code for judging

    Returns immediately with verdict Pending; poll GET /{submission_id}
    for the terminal verdict.
    """
    return submission_service.submit(db=db, user=current_user, submission_data=submission)


@router.post("/run", response_model=RunSampleResponse)
def run_code(
    request: RunSampleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Run against sample test cases (or a custom input) without saving"""
    results = submission_service.run_sample(db=db, request=request)
    return RunSampleResponse(results=[SampleRunResult.model_validate(r) for r in results])


@router.get("/", response_model=SubmissionPage)
def list_submissions(
    verdict: Optional[str] = None,
    language: Optional[str] = None,
    problem_slug: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List submissions. Admins see everyone's, users their own."""
    return submission_service.list_submissions(
        db,
        viewer=current_user,
        verdict=verdict,
        language=language,
        problem_slug=problem_slug,
        page=page,
        limit=limit,
    )


@router.get("/{submission_id}", response_model=SubmissionResponse)
def get_submission(
    submission_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get specific submission details

    Code is only included for the owner and admins.
    """
    return submission_service.get_submission(db, submission_id, viewer=current_user)
