import time
from datetime import timedelta

from codearena.config import settings
from codearena.core.clock import utcnow
from codearena.core.constants import Verdict
from codearena.core.exceptions import ExecutionBackendError
from codearena.models.submission import Submission
from codearena.services.judging import JudgingWorkflow
from codearena.services.scoring import ScoringService
from codearena.services.submission_worker import SubmissionWorker


class RecordingWorkflow:
    def __init__(self):
        self.calls = []

    def judge(self, db, submission_id, allow_retry=False):
        self.calls.append((submission_id, allow_retry))
        db.query(Submission).filter(Submission.id == submission_id).update(
            {Submission.verdict: Verdict.ACCEPTED.value, Submission.claimed_at: None}
        )
        db.commit()
        return True


class BrokenBackendRunner:
    def run_all(self, **kwargs):
        raise ExecutionBackendError("judge0 unreachable")


def _queue(db, user, problem, count=1, **fields):
    submissions = [
        Submission(user_id=user.id, problem_id=problem.id, language="python3", code="pass", **fields)
        for _ in range(count)
    ]
    db.add_all(submissions)
    db.commit()
    return [s.id for s in submissions]


def test_idle_worker_does_nothing(session_factory):
    worker = SubmissionWorker(session_factory=session_factory, workflow=RecordingWorkflow(), concurrency=1)
    assert worker.process_next_submission() is False


def test_processes_oldest_pending_first(db, session_factory, make_user, make_problem):
    user = make_user()
    problem = make_problem()
    first, second = _queue(db, user, problem, count=2)
    workflow = RecordingWorkflow()
    worker = SubmissionWorker(session_factory=session_factory, workflow=workflow, concurrency=1)

    assert worker.process_next_submission() is True
    assert worker.process_next_submission() is True
    assert worker.process_next_submission() is False

    assert [call[0] for call in workflow.calls] == [first, second]
    assert worker.status()["processed_count"] == 2
    db.expire_all()
    assert db.get(Submission, first).judge_attempts == 1


def test_claimed_submission_is_skipped_until_lease_expires(db, session_factory, make_user, make_problem):
    user = make_user()
    problem = make_problem()
    (fresh,) = _queue(db, user, problem, claimed_at=utcnow())
    (stale,) = _queue(db, user, problem, claimed_at=utcnow() - timedelta(seconds=settings.WORKER_LEASE_SECONDS + 5))
    workflow = RecordingWorkflow()
    worker = SubmissionWorker(session_factory=session_factory, workflow=workflow, concurrency=1)

    assert worker.process_next_submission() is True
    assert worker.process_next_submission() is False
    assert [call[0] for call in workflow.calls] == [stale]

    db.expire_all()
    assert db.get(Submission, fresh).verdict == Verdict.PENDING.value


def _let_backoff_elapse(db, submission_id):
    db.query(Submission).filter(Submission.id == submission_id).update(
        {Submission.claimed_at: utcnow() - timedelta(seconds=settings.WORKER_LEASE_SECONDS + 1)}
    )
    db.commit()


def test_backend_outage_is_retried_then_fails(db, session_factory, make_user, make_problem, monkeypatch):
    monkeypatch.setattr(settings, "WORKER_MAX_RETRIES", 2)
    user = make_user()
    problem = make_problem()
    (submission_id,) = _queue(db, user, problem)
    workflow = JudgingWorkflow(runner=BrokenBackendRunner(), scoring=ScoringService())
    worker = SubmissionWorker(session_factory=session_factory, workflow=workflow, concurrency=1)

    for _ in range(2):
        assert worker.process_next_submission() is True
        db.expire_all()
        assert db.get(Submission, submission_id).verdict == Verdict.PENDING.value
        _let_backoff_elapse(db, submission_id)

    assert worker.process_next_submission() is True
    db.expire_all()
    submission = db.get(Submission, submission_id)
    assert submission.verdict == Verdict.RUNTIME_ERROR.value
    assert submission.judge_attempts == 3
    assert "judge0 unreachable" in submission.compile_output
    assert worker.process_next_submission() is False


def test_released_submission_waits_out_backoff(db, session_factory, make_user, make_problem, monkeypatch):
    monkeypatch.setattr(settings, "WORKER_MAX_RETRIES", 2)
    monkeypatch.setattr(settings, "WORKER_RETRY_BACKOFF_SECONDS", 30.0)
    user = make_user()
    problem = make_problem()
    (submission_id,) = _queue(db, user, problem)
    workflow = JudgingWorkflow(runner=BrokenBackendRunner(), scoring=ScoringService())
    worker = SubmissionWorker(session_factory=session_factory, workflow=workflow, concurrency=1)

    before = utcnow()
    assert worker.process_next_submission() is True
    # still inside the backoff window: nothing to claim
    assert worker.process_next_submission() is False

    db.expire_all()
    submission = db.get(Submission, submission_id)
    assert submission.verdict == Verdict.PENDING.value
    assert submission.judge_attempts == 1
    reclaimable_at = submission.claimed_at + timedelta(seconds=settings.WORKER_LEASE_SECONDS)
    assert before + timedelta(seconds=29) <= reclaimable_at <= utcnow() + timedelta(seconds=31)

    _let_backoff_elapse(db, submission_id)
    assert worker.process_next_submission() is True
    db.expire_all()
    assert db.get(Submission, submission_id).judge_attempts == 2


class SlowRunner:
    """Reports a few polling rounds, rewinding the claim as if each round took a lease."""

    def __init__(self, session_factory, rounds=3):
        self.session_factory = session_factory
        self.rounds = rounds
        self.claims_seen = []

    def run_all(self, test_cases, on_round=None, **kwargs):
        for _ in range(self.rounds):
            other = self.session_factory()
            try:
                other.query(Submission).update(
                    {Submission.claimed_at: utcnow() - timedelta(seconds=settings.WORKER_LEASE_SECONDS + 5)}
                )
                other.commit()
            finally:
                other.close()
            on_round()
            other = self.session_factory()
            try:
                self.claims_seen.append(other.query(Submission.claimed_at).scalar())
            finally:
                other.close()
        raise ExecutionBackendError("still unreachable")


def test_long_judge_keeps_its_claim(db, session_factory, make_user, make_problem, monkeypatch):
    monkeypatch.setattr(settings, "WORKER_MAX_RETRIES", 0)
    user = make_user()
    problem = make_problem()
    _queue(db, user, problem)
    runner = SlowRunner(session_factory)
    workflow = JudgingWorkflow(runner=runner, scoring=ScoringService())
    worker = SubmissionWorker(session_factory=session_factory, workflow=workflow, concurrency=1)

    started = utcnow()
    assert worker.process_next_submission() is True

    lease_cutoff = started - timedelta(seconds=settings.WORKER_LEASE_SECONDS)
    assert len(runner.claims_seen) == 3
    assert all(claimed_at > lease_cutoff for claimed_at in runner.claims_seen)


def test_queue_depth_counts_pending_only(db, session_factory, make_user, make_problem):
    user = make_user()
    problem = make_problem()
    _queue(db, user, problem, count=2)
    _queue(db, user, problem, verdict=Verdict.ACCEPTED.value)

    worker = SubmissionWorker(session_factory=session_factory, workflow=RecordingWorkflow())
    assert worker.queue_depth(db) == 2


def test_pool_drains_queue_in_background(db, session_factory, make_user, make_problem, monkeypatch):
    monkeypatch.setattr(settings, "WORKER_POLL_INTERVAL_SECONDS", 0.05)
    user = make_user()
    problem = make_problem()
    ids = _queue(db, user, problem, count=3)
    workflow = RecordingWorkflow()
    worker = SubmissionWorker(session_factory=session_factory, workflow=workflow, concurrency=1)

    worker.start()
    try:
        assert worker.is_running()
        worker.notify()
        deadline = utcnow() + timedelta(seconds=10)
        while worker.status()["processed_count"] < 3 and utcnow() < deadline:
            time.sleep(0.05)
    finally:
        worker.stop()

    assert not worker.is_running()
    assert sorted(call[0] for call in workflow.calls) == sorted(ids)
