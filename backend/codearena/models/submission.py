"""Submission and test result models"""

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, Boolean, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from codearena.core.constants import Verdict, TERMINAL_VERDICTS
from codearena.core.database import Base


class Submission(Base):
    """One attempt at a problem. Judging history is append-only."""

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="SET NULL"))
    is_contest = Column(Boolean, default=False, nullable=False)
    language = Column(String(20), nullable=False)
    code = Column(Text, nullable=False)
    verdict = Column(String(30), default=Verdict.PENDING.value, nullable=False)
    runtime = Column(Float, default=0, nullable=False)  # ms, max across test cases
    memory = Column(Integer, default=0, nullable=False)  # KB, max across test cases
    compile_output = Column(Text, default="", nullable=False)
    passed_test_cases = Column(Integer, default=0, nullable=False)
    total_test_cases = Column(Integer, default=0, nullable=False)
    time_taken = Column(Integer, default=0, nullable=False)  # seconds, from the submitter's timer

    # Worker queue bookkeeping
    claimed_at = Column(DateTime(timezone=True))
    judge_attempts = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    judged_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", back_populates="submissions")
    problem = relationship("Problem")
    contest = relationship("Contest")
    test_results = relationship(
        "TestResult",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="TestResult.test_case_index",
    )

    __table_args__ = (
        Index('idx_submissions_user_problem', 'user_id', 'problem_id'),
        Index('idx_submissions_problem_verdict', 'problem_id', 'verdict'),
        Index('idx_submissions_contest', 'contest_id'),
        Index('idx_submissions_verdict_created', 'verdict', 'created_at'),
        CheckConstraint('runtime >= 0', name='chk_submission_runtime'),
        CheckConstraint('memory >= 0', name='chk_submission_memory'),
        CheckConstraint('judge_attempts >= 0', name='chk_judge_attempts'),
    )

    @property
    def is_terminal(self) -> bool:
        return self.verdict in {v.value for v in TERMINAL_VERDICTS}

    def __repr__(self):
        return f"<Submission(id={self.id}, user_id={self.user_id}, problem_id={self.problem_id}, verdict='{self.verdict}')>"


class TestResult(Base):
    """Outcome of one test case, owned by its submission"""

    __test__ = False

    __tablename__ = "test_results"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False)
    test_case_index = Column(Integer, nullable=False)
    input = Column(Text, default="", nullable=False)
    expected_output = Column(Text)  # NULL: no comparison performed
    actual_output = Column(Text, default="", nullable=False)
    verdict = Column(String(30), nullable=False)
    runtime = Column(Float, default=0, nullable=False)  # ms
    memory = Column(Integer, default=0, nullable=False)  # KB
    stderr = Column(Text, default="", nullable=False)
    is_hidden = Column(Boolean, default=False, nullable=False)

    # Relationships
    submission = relationship("Submission", back_populates="test_results")

    __table_args__ = (
        Index('idx_test_results_submission', 'submission_id'),
    )

    def __repr__(self):
        return f"<TestResult(id={self.id}, submission_id={self.submission_id}, verdict='{self.verdict}')>"
