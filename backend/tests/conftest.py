import os
import tempfile
import threading
from datetime import timedelta

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_EMBEDDED_WORKER", "false")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "codearena-tests.log"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from codearena.core.clock import utcnow
from codearena.core.constants import LANGUAGES, Verdict
from codearena.core.database import Base
from codearena.core.exceptions import ExecutionBackendError, UnsupportedLanguageError
from codearena.models.contest import Contest, ContestParticipant, ContestProblem
from codearena.models.problem import Problem, TestCase as ProblemTestCase
from codearena.models.user import User
from codearena.services.execution_client import ExecutionResult


TWO_SUM_CASES = [
    # (input, expected output, hidden)
    ("4\n2 7 11 15\n9\n", "0 1\n", False),
    ("3\n3 2 4\n6\n", "1 2\n", False),
    ("2\n3 3\n6\n", "0 1\n", True),
]


class FakeExecutionClient:
    """In-memory stand-in for the execution backend.

    ``program`` maps stdin to a finished ExecutionResult. Each token reports
    Processing for ``pending_polls`` polls before it finishes.
    """

    def __init__(self, program, pending_polls=0, fail_submit=False, failing_polls=0):
        self.program = program
        self.pending_polls = pending_polls
        self.fail_submit = fail_submit
        self.failing_polls = failing_polls
        self.submitted = []
        self.poll_counts = {}
        self._stdin = {}
        self._lock = threading.Lock()

    def submit(self, code, language, stdin, time_limit_ms, memory_limit_mb):
        if language not in LANGUAGES:
            raise UnsupportedLanguageError(language)
        if self.fail_submit:
            raise ExecutionBackendError("connection refused")
        with self._lock:
            token = f"token-{len(self.submitted)}"
            self.submitted.append({
                "token": token,
                "stdin": stdin,
                "time_limit_ms": time_limit_ms,
                "memory_limit_mb": memory_limit_mb,
            })
            self._stdin[token] = stdin
        return token

    def poll(self, token):
        with self._lock:
            count = self.poll_counts.get(token, 0) + 1
            self.poll_counts[token] = count
        if count <= self.failing_polls:
            raise ExecutionBackendError("poll timed out")
        if count <= self.failing_polls + self.pending_polls:
            return ExecutionResult(verdict=Verdict.RUNNING)
        return self.program(self._stdin[token])


def answers(table, time_ms=12.0, memory_kb=3200):
    """Program that prints the expected answer for every known input."""
    def program(stdin):
        return ExecutionResult(
            verdict=Verdict.ACCEPTED,
            stdout=table.get(stdin, ""),
            time_ms=time_ms,
            memory_kb=memory_kb,
        )
    return program


@pytest.fixture
def two_sum_answers():
    return {inp: out for inp, out, _ in TWO_SUM_CASES}


@pytest.fixture
def answering():
    return answers


@pytest.fixture
def fake_client_cls():
    return FakeExecutionClient


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'judge.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(username="alice", role="user"):
        user = User(username=username, role=role, is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_problem(db):
    def _make_problem(title="Two Sum", difficulty="Easy", cases=TWO_SUM_CASES, **kwargs):
        problem = Problem(title=title, difficulty=difficulty, description="", **kwargs)
        for position, (inp, out, hidden) in enumerate(cases):
            problem.test_cases.append(
                ProblemTestCase(position=position, input=inp, output=out, is_hidden=hidden)
            )
        db.add(problem)
        db.commit()
        db.refresh(problem)
        return problem
    return _make_problem


@pytest.fixture
def make_contest(db):
    def _make_contest(
        title="Weekly 1",
        problems=(),
        participants=(),
        starts_in=timedelta(hours=-1),
        lasts=timedelta(hours=2),
        max_participants=0,
    ):
        start = utcnow() + starts_in
        contest = Contest(
            title=title,
            start_time=start,
            end_time=start + lasts,
            max_participants=max_participants,
        )
        for order, (problem, points) in enumerate(problems):
            contest.problems.append(ContestProblem(problem_id=problem.id, points=points, order=order))
        for user in participants:
            contest.participants.append(ContestParticipant(user_id=user.id))
        db.add(contest)
        db.commit()
        db.refresh(contest)
        return contest
    return _make_contest
