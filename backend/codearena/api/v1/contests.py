"""Contest routes - registration and leaderboard"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from codearena.core.database import get_db
from codearena.schemas.contest import ContestResponse, ContestLeaderboardResponse
from codearena.api.deps import get_current_user
from codearena.models.user import User
from codearena.services.contest_service import contest_service

router = APIRouter()


@router.get("/{contest_id}", response_model=ContestResponse)
def get_contest(
    contest_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return contest_service.get_contest(db, contest_id)


@router.post("/{contest_id}/register", status_code=status.HTTP_201_CREATED)
def register_for_contest(
    contest_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Register the current user for a contest that has not ended"""
    contest_service.register(db, contest_id, current_user)
    return {"success": True, "message": "Successfully registered for contest."}


@router.get("/{contest_id}/leaderboard", response_model=ContestLeaderboardResponse)
def get_contest_leaderboard(
    contest_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Live ICPC-style standings"""
    return contest_service.leaderboard(db, contest_id)
