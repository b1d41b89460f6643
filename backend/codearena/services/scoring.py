"""Side effects of an accepted verdict: user stats, streaks, contest scores.

Every counter here is changed with a single UPDATE ... SET col = col + n (or
a CASE for minimums) so concurrent judging of the same user, problem or
contest never loses an update. "First solve" is decided by an insert into a
table with a unique key, never by a read followed by a write.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import case
from sqlalchemy.orm import Session

from codearena.core.clock import as_naive_utc, utcnow
from codearena.core.database import insert_if_absent
from codearena.models.contest import Contest, ContestParticipant, ContestSolve
from codearena.models.problem import Problem
from codearena.models.user import SolvedProblem, User

logger = logging.getLogger(__name__)

_STREAK_CAS_ATTEMPTS = 5


def next_streak(
    streak: int,
    max_streak: int,
    last_active: Optional[datetime],
    now: datetime,
) -> Tuple[int, int]:
    """
    Streak after an acceptance at ``now``

    Compares calendar days only. Same day keeps the streak, the next day
    extends it, any longer gap restarts it at 1.

    Returns:
        Tuple[int, int]: (streak, max_streak)
    """
    if last_active is None:
        return 1, max(max_streak, 1)

    gap = (as_naive_utc(now).date() - as_naive_utc(last_active).date()).days
    if gap <= 0:
        return streak, max_streak
    if gap == 1:
        extended = streak + 1
        return extended, max(max_streak, extended)
    return 1, max(max_streak, 1)


def contest_penalty_minutes(start_time: datetime, solved_at: datetime) -> int:
    """Whole minutes between contest start and ``solved_at``."""
    elapsed = as_naive_utc(solved_at) - as_naive_utc(start_time)
    return max(0, int(elapsed.total_seconds() // 60))


class ScoringService:
    """Applies accepted-verdict side effects inside the caller's transaction"""

    def on_accepted(
        self,
        db: Session,
        user_id: int,
        problem: Problem,
        language: str,
        runtime_ms: float,
        memory_kb: int,
        contest_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Record an accepted submission

        Args:
            db: Database session (not committed here)
            user_id: Owner of the submission
            problem: Solved problem
            language: Language of the accepted submission
            runtime_ms: Max runtime across test cases
            memory_kb: Max memory across test cases
            contest_id: Contest the submission belongs to, if any
            now: Acceptance time, defaults to the current UTC time

        Returns:
            bool: True if this was the user's first solve of the problem
        """
        now = now or utcnow()

        first_solve = insert_if_absent(
            db,
            SolvedProblem,
            {
                "user_id": user_id,
                "problem_id": problem.id,
                "language": language,
                "best_runtime": runtime_ms,
                "best_memory": memory_kb,
                "solved_at": now,
            },
            ("user_id", "problem_id"),
        )

        if first_solve:
            difficulty_column = getattr(User, f"{problem.difficulty.lower()}_solved")
            db.query(User).filter(User.id == user_id).update(
                {
                    User.total_solved: User.total_solved + 1,
                    difficulty_column: difficulty_column + 1,
                    User.accepted_submissions: User.accepted_submissions + 1,
                    User.total_points: User.total_points + problem.points,
                },
                synchronize_session=False,
            )
            logger.info("User %s solved problem %s for the first time (+%d points)", user_id, problem.id, problem.points)
        else:
            db.query(User).filter(User.id == user_id).update(
                {User.accepted_submissions: User.accepted_submissions + 1},
                synchronize_session=False,
            )
            db.query(SolvedProblem).filter(
                SolvedProblem.user_id == user_id,
                SolvedProblem.problem_id == problem.id,
            ).update(
                {
                    SolvedProblem.best_runtime: case(
                        (SolvedProblem.best_runtime > runtime_ms, runtime_ms),
                        else_=SolvedProblem.best_runtime,
                    ),
                    SolvedProblem.best_memory: case(
                        (SolvedProblem.best_memory > memory_kb, memory_kb),
                        else_=SolvedProblem.best_memory,
                    ),
                },
                synchronize_session=False,
            )

        self.update_streak(db, user_id, now)

        if contest_id is not None:
            self.update_contest_score(db, contest_id, user_id, problem.id, now)

        return first_solve

    def update_streak(self, db: Session, user_id: int, now: datetime) -> None:
        """Advance the solve streak and move last_active_date to ``now``."""
        for _ in range(_STREAK_CAS_ATTEMPTS):
            row = (
                db.query(User.streak, User.max_streak, User.last_active_date)
                .filter(User.id == user_id)
                .one()
            )
            streak, max_streak = next_streak(row.streak, row.max_streak, row.last_active_date, now)

            if row.last_active_date is None:
                unchanged = User.last_active_date.is_(None)
            else:
                unchanged = User.last_active_date == row.last_active_date

            updated = db.query(User).filter(User.id == user_id, unchanged).update(
                {
                    User.streak: streak,
                    User.max_streak: max_streak,
                    User.last_active_date: now,
                },
                synchronize_session=False,
            )
            if updated:
                return

        logger.warning("Gave up updating streak for user %s after concurrent modifications", user_id)

    def update_contest_score(
        self,
        db: Session,
        contest_id: int,
        user_id: int,
        problem_id: int,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Credit a contest problem to a participant on first acceptance

        Returns:
            bool: True if score changed; re-solves are no-ops
        """
        now = now or utcnow()

        contest = db.get(Contest, contest_id)
        if contest is None:
            logger.warning("Contest %s vanished before scoring user %s", contest_id, user_id)
            return False

        participant = (
            db.query(ContestParticipant)
            .filter(ContestParticipant.contest_id == contest_id, ContestParticipant.user_id == user_id)
            .first()
        )
        if participant is None:
            logger.warning("User %s is not a participant of contest %s; skipping contest scoring", user_id, contest_id)
            return False

        minutes = contest_penalty_minutes(contest.start_time, now)
        inserted = insert_if_absent(
            db,
            ContestSolve,
            {
                "participant_id": participant.id,
                "problem_id": problem_id,
                "solved_at": now,
                "time_penalty": minutes,
            },
            ("participant_id", "problem_id"),
        )
        if not inserted:
            return False

        points = contest.points_for(problem_id)
        db.query(ContestParticipant).filter(ContestParticipant.id == participant.id).update(
            {
                ContestParticipant.score: ContestParticipant.score + points,
                ContestParticipant.penalty: ContestParticipant.penalty + minutes,
                ContestParticipant.solved_count: ContestParticipant.solved_count + 1,
                ContestParticipant.last_submission_at: now,
            },
            synchronize_session=False,
        )
        logger.info(
            "Contest %s: user %s solved problem %s (+%d points, %d min penalty)",
            contest_id, user_id, problem_id, points, minutes,
        )
        return True


scoring_service = ScoringService()
