"""Problem and test case models"""

import re

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, JSON, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, validates
from codearena.core.constants import Difficulty, DIFFICULTY_POINTS
from codearena.core.database import Base


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", title.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    return re.sub(r"-+", "-", slug)


class Problem(Base):
    """Judgeable exercise"""

    __tablename__ = "problems"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), unique=True, nullable=False)
    slug = Column(String(220), unique=True, nullable=False)
    problem_number = Column(Integer, unique=True)
    description = Column(Text, default="", nullable=False)
    difficulty = Column(String(10), nullable=False)
    tags = Column(JSON, default=list)
    time_limit = Column(Integer, default=2000, nullable=False)  # ms
    memory_limit = Column(Integer, default=256, nullable=False)  # MB
    points = Column(Integer, nullable=False)
    total_submissions = Column(Integer, default=0, nullable=False)
    accepted_submissions = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    test_cases = relationship(
        "TestCase",
        back_populates="problem",
        cascade="all, delete-orphan",
        order_by="TestCase.position",
    )

    __table_args__ = (
        Index('idx_problems_difficulty_active', 'difficulty', 'is_active'),
        CheckConstraint("difficulty IN ('Easy', 'Medium', 'Hard')", name='chk_problem_difficulty'),
        CheckConstraint('time_limit > 0', name='chk_problem_time_limit'),
        CheckConstraint('memory_limit > 0', name='chk_problem_memory_limit'),
    )

    def __init__(self, **kwargs):
        # Points are fixed from the difficulty at creation time only.
        if kwargs.get("points") is None and kwargs.get("difficulty") is not None:
            kwargs["points"] = DIFFICULTY_POINTS[Difficulty(kwargs["difficulty"])]
        super().__init__(**kwargs)

    @validates("title")
    def _derive_slug(self, key, title):
        self.slug = slugify(title)
        return title

    @property
    def sample_test_cases(self):
        return [tc for tc in self.test_cases if not tc.is_hidden]

    @property
    def hidden_test_cases(self):
        return [tc for tc in self.test_cases if tc.is_hidden]

    @property
    def acceptance_rate(self) -> int:
        if not self.total_submissions:
            return 0
        return round(self.accepted_submissions / self.total_submissions * 100)

    def __repr__(self):
        return f"<Problem(id={self.id}, slug='{self.slug}', difficulty='{self.difficulty}')>"


class TestCase(Base):
    """Sample (visible) or hidden test case of a problem"""

    __test__ = False

    __tablename__ = "test_cases"

    id = Column(Integer, primary_key=True, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, default=0, nullable=False)
    input = Column(Text, default="", nullable=False)
    output = Column(Text, default="", nullable=False)
    is_hidden = Column(Boolean, default=False, nullable=False)
    explanation = Column(Text, default="", nullable=False)

    problem = relationship("Problem", back_populates="test_cases")

    __table_args__ = (
        Index('idx_test_cases_problem', 'problem_id', 'position'),
    )

    def __repr__(self):
        return f"<TestCase(id={self.id}, problem_id={self.problem_id}, hidden={self.is_hidden})>"
