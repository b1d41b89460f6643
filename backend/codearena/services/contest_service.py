"""Contest service - registration and live leaderboard"""

from datetime import datetime
from typing import Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from codearena.core.clock import as_naive_utc
from codearena.core.constants import ContestStatus
from codearena.core.exceptions import (
    ContestFullError,
    ContestNotActiveError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from codearena.models.contest import Contest, ContestParticipant
from codearena.models.user import User
from codearena.schemas.contest import ContestLeaderboardResponse, ContestSolveResponse, LeaderboardEntry
import logging

logger = logging.getLogger(__name__)


def rank_participants(participants: Iterable[ContestParticipant]) -> List[ContestParticipant]:
    """Score descending, then penalty ascending, then earliest last submission."""
    return sorted(
        participants,
        key=lambda p: (
            -p.score,
            p.penalty,
            as_naive_utc(p.last_submission_at) if p.last_submission_at else datetime.min,
        ),
    )


class ContestService:
    """Service for contest participation"""

    @staticmethod
    def get_contest(db: Session, contest_id: int) -> Contest:
        contest = db.get(Contest, contest_id)
        if not contest:
            raise ResourceNotFoundError("Contest")
        return contest

    @staticmethod
    def register(db: Session, contest_id: int, user: User) -> ContestParticipant:
        """
        Register ``user`` for a contest that has not ended

        Raises:
            ContestNotActiveError: Contest already ended
            ResourceAlreadyExistsError: Already registered
            ContestFullError: Participant cap reached
        """
        contest = ContestService.get_contest(db, contest_id)
        if contest.status == ContestStatus.ENDED:
            raise ContestNotActiveError("Contest has already ended")
        if contest.participant_for(user.id) is not None:
            raise ResourceAlreadyExistsError("Registration")
        if contest.max_participants and len(contest.participants) >= contest.max_participants:
            raise ContestFullError()

        participant = ContestParticipant(contest_id=contest.id, user_id=user.id)
        db.add(participant)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ResourceAlreadyExistsError("Registration")
        db.refresh(participant)
        logger.info("User %s registered for contest %s", user.id, contest.id)
        return participant

    @staticmethod
    def leaderboard(db: Session, contest_id: int) -> ContestLeaderboardResponse:
        contest = ContestService.get_contest(db, contest_id)
        participants = (
            db.query(ContestParticipant)
            .options(joinedload(ContestParticipant.user), selectinload(ContestParticipant.solves))
            .filter(ContestParticipant.contest_id == contest.id)
            .all()
        )

        entries = [
            LeaderboardEntry(
                rank=rank,
                user_id=p.user_id,
                username=p.user.username if p.user else None,
                score=p.score,
                penalty=p.penalty,
                solved_count=p.solved_count,
                last_submission_at=p.last_submission_at,
                solved_problems=[ContestSolveResponse.model_validate(s) for s in p.solves],
            )
            for rank, p in enumerate(rank_participants(participants), 1)
        ]
        return ContestLeaderboardResponse(
            contest_id=contest.id,
            contest_title=contest.title,
            status=contest.status,
            leaderboard=entries,
        )


contest_service = ContestService()
