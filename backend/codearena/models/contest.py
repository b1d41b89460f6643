"""Contest models"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, validates
from codearena.core.clock import as_naive_utc, utcnow
from codearena.core.constants import ContestStatus, DEFAULT_CONTEST_PROBLEM_POINTS
from codearena.core.database import Base
from codearena.models.problem import slugify


class Contest(Base):
    """Timed event. Its status is always derived from the clock."""

    __tablename__ = "contests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), unique=True, nullable=False)
    slug = Column(String(220), unique=True, nullable=False)
    description = Column(Text, default="", nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    max_participants = Column(Integer, default=0, nullable=False)  # 0 = unlimited
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    problems = relationship(
        "ContestProblem",
        back_populates="contest",
        cascade="all, delete-orphan",
        order_by="ContestProblem.order",
    )
    participants = relationship("ContestParticipant", back_populates="contest", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_contests_start_end', 'start_time', 'end_time'),
        CheckConstraint('end_time > start_time', name='chk_contest_window'),
    )

    @validates("title")
    def _derive_slug(self, key, title):
        self.slug = slugify(title)
        return title

    def status_at(self, now: datetime) -> ContestStatus:
        now = as_naive_utc(now)
        if now < as_naive_utc(self.start_time):
            return ContestStatus.UPCOMING
        if now <= as_naive_utc(self.end_time):
            return ContestStatus.ONGOING
        return ContestStatus.ENDED

    @property
    def status(self) -> ContestStatus:
        return self.status_at(utcnow())

    @property
    def duration_minutes(self) -> int:
        return round((self.end_time - self.start_time).total_seconds() / 60)

    def points_for(self, problem_id: int) -> int:
        for contest_problem in self.problems:
            if contest_problem.problem_id == problem_id:
                return contest_problem.points or DEFAULT_CONTEST_PROBLEM_POINTS
        return DEFAULT_CONTEST_PROBLEM_POINTS

    def participant_for(self, user_id: int) -> Optional["ContestParticipant"]:
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None

    def __repr__(self):
        return f"<Contest(id={self.id}, slug='{self.slug}')>"


class ContestProblem(Base):
    __tablename__ = "contest_problems"

    id = Column(Integer, primary_key=True, index=True)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    points = Column(Integer, default=DEFAULT_CONTEST_PROBLEM_POINTS, nullable=False)
    order = Column(Integer, default=0, nullable=False)

    contest = relationship("Contest", back_populates="problems")
    problem = relationship("Problem")

    __table_args__ = (
        UniqueConstraint('contest_id', 'problem_id', name='uq_contest_problems_contest_problem'),
    )


class ContestParticipant(Base):
    """Per-user scoreboard row within a contest"""

    __tablename__ = "contest_participants"

    id = Column(Integer, primary_key=True, index=True)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    score = Column(Integer, default=0, nullable=False)
    penalty = Column(Integer, default=0, nullable=False)  # total minutes
    solved_count = Column(Integer, default=0, nullable=False)
    registered_at = Column(DateTime(timezone=True), server_default=func.now())
    last_submission_at = Column(DateTime(timezone=True))

    contest = relationship("Contest", back_populates="participants")
    user = relationship("User")
    solves = relationship("ContestSolve", back_populates="participant", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('contest_id', 'user_id', name='uq_contest_participants_contest_user'),
        CheckConstraint('score >= 0', name='chk_participant_score'),
    )

    def __repr__(self):
        return f"<ContestParticipant(contest_id={self.contest_id}, user_id={self.user_id}, score={self.score})>"


class ContestSolve(Base):
    """First acceptance of a problem by a participant"""

    __tablename__ = "contest_solves"

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("contest_participants.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    solved_at = Column(DateTime(timezone=True), nullable=False)
    time_penalty = Column(Integer, default=0, nullable=False)  # minutes since contest start

    participant = relationship("ContestParticipant", back_populates="solves")

    __table_args__ = (
        UniqueConstraint('participant_id', 'problem_id', name='uq_contest_solves_participant_problem'),
    )
