"""Database models"""

from codearena.models.user import User, SolvedProblem
from codearena.models.problem import Problem, TestCase
from codearena.models.submission import Submission, TestResult
from codearena.models.contest import Contest, ContestProblem, ContestParticipant, ContestSolve

__all__ = [
    "User", "SolvedProblem",
    "Problem", "TestCase",
    "Submission", "TestResult",
    "Contest", "ContestProblem", "ContestParticipant", "ContestSolve",
]
