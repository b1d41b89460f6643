"""User and solved-problem models"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from codearena.core.constants import Role
from codearena.core.database import Base


class User(Base):
    """Participant with aggregate solving stats"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    role = Column(String(20), default=Role.USER.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Stats
    total_solved = Column(Integer, default=0, nullable=False)
    easy_solved = Column(Integer, default=0, nullable=False)
    medium_solved = Column(Integer, default=0, nullable=False)
    hard_solved = Column(Integer, default=0, nullable=False)
    total_submissions = Column(Integer, default=0, nullable=False)
    accepted_submissions = Column(Integer, default=0, nullable=False)
    total_points = Column(Integer, default=0, nullable=False)
    streak = Column(Integer, default=0, nullable=False)
    max_streak = Column(Integer, default=0, nullable=False)
    last_active_date = Column(DateTime(timezone=True))

    # Relationships
    submissions = relationship("Submission", back_populates="user")
    solved_problems = relationship("SolvedProblem", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_users_username', 'username'),
        Index('idx_users_total_points', 'total_points'),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @property
    def acceptance_rate(self) -> int:
        if not self.total_submissions:
            return 0
        return round(self.accepted_submissions / self.total_submissions * 100)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class SolvedProblem(Base):
    """A user's first acceptance of a problem, with their best run since"""

    __tablename__ = "solved_problems"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    language = Column(String(20), nullable=False)
    best_runtime = Column(Float, default=0, nullable=False)
    best_memory = Column(Integer, default=0, nullable=False)
    solved_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="solved_problems")
    problem = relationship("Problem")

    __table_args__ = (
        UniqueConstraint('user_id', 'problem_id', name='uq_solved_problems_user_problem'),
    )

    def __repr__(self):
        return f"<SolvedProblem(user_id={self.user_id}, problem_id={self.problem_id})>"
