"""Judging workflow: one Pending submission to exactly one terminal verdict"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional

from prometheus_client import Counter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from codearena.config import settings
from codearena.core.clock import utcnow
from codearena.core.constants import Verdict
from codearena.core.exceptions import ExecutionBackendError
from codearena.models.problem import Problem
from codearena.models.submission import Submission, TestResult
from codearena.services.scoring import ScoringService, scoring_service
from codearena.services.test_runner import TestCase, TestCaseResult, TestRunner, test_runner
from codearena.services.verdict import aggregate_verdict

logger = logging.getLogger(__name__)

VERDICTS_TOTAL = Counter(
    "codearena_verdicts_total",
    "Terminal verdicts recorded by the judge",
    ["verdict"],
)


def assemble_test_cases(problem: Problem) -> List[TestCase]:
    """Samples first, then hidden cases. Both are judged the same way."""
    cases = [TestCase(input=tc.input, expected_output=tc.output, is_hidden=False)
             for tc in problem.sample_test_cases]
    cases.extend(TestCase(input=tc.input, expected_output=tc.output, is_hidden=True)
                 for tc in problem.hidden_test_cases)
    return cases


class JudgingWorkflow:
    """Drives a submission from Pending to a terminal verdict.

    The Pending -> terminal transition is a conditional UPDATE, so a
    submission is finalized at most once even if two workers race on it.
    The verdict, per-test results and every accepted-verdict side effect
    commit together or not at all.
    """

    def __init__(
        self,
        runner: Optional[TestRunner] = None,
        scoring: Optional[ScoringService] = None,
    ) -> None:
        self.runner = runner or test_runner
        self.scoring = scoring or scoring_service

    def judge(self, db: Session, submission_id: int, allow_retry: bool = False) -> bool:
        """
        Judge one submission

        Args:
            db: Database session owned by the caller
            submission_id: Submission to judge
            allow_retry: Leave the submission Pending on execution backend
                failures so a later attempt can retry

        Returns:
            bool: True if the submission reached a terminal verdict in this call
        """
        submission = db.get(Submission, submission_id)
        if submission is None:
            logger.warning("Submission %s not found; nothing to judge", submission_id)
            return False
        if submission.verdict != Verdict.PENDING.value:
            logger.info("Submission %s already judged (%s)", submission_id, submission.verdict)
            return False

        attempts = submission.judge_attempts or 1
        try:
            return self._run(db, submission)
        except ExecutionBackendError as exc:
            db.rollback()
            if allow_retry:
                logger.warning("Submission %s: execution backend failure, will retry: %s", submission_id, exc.message)
                self._release(db, submission_id, attempts)
                return False
            logger.error("Submission %s: execution backend failure, giving up: %s", submission_id, exc.message)
            return self._fail(db, submission_id, exc.message)
        except Exception as exc:
            logger.exception("Submission %s: judging failed", submission_id)
            db.rollback()
            return self._fail(db, submission_id, f"Internal judge error: {exc}")

    def _run(self, db: Session, submission: Submission) -> bool:
        submission_id = submission.id
        problem = submission.problem
        test_cases = assemble_test_cases(problem)

        results = self.runner.run_all(
            code=submission.code,
            language=submission.language,
            test_cases=test_cases,
            time_limit_ms=problem.time_limit,
            memory_limit_mb=problem.memory_limit,
            on_round=lambda: self._renew_claim(db, submission_id),
        )
        verdict = aggregate_verdict(results)
        return self._finalize(db, submission, problem, results, verdict)

    def _finalize(
        self,
        db: Session,
        submission: Submission,
        problem: Problem,
        results: List[TestCaseResult],
        verdict: Verdict,
    ) -> bool:
        now = utcnow()
        max_runtime = max((r.runtime_ms for r in results), default=0.0)
        max_memory = max((r.memory_kb for r in results), default=0)
        passed = sum(1 for r in results if r.verdict == Verdict.ACCEPTED)
        compile_error = next((r for r in results if r.verdict == Verdict.COMPILATION_ERROR), None)

        updated = db.query(Submission).filter(
            Submission.id == submission.id,
            Submission.verdict == Verdict.PENDING.value,
        ).update(
            {
                Submission.verdict: verdict.value,
                Submission.runtime: max_runtime,
                Submission.memory: max_memory,
                Submission.passed_test_cases: passed,
                Submission.total_test_cases: len(results),
                Submission.compile_output: compile_error.stderr if compile_error else "",
                Submission.judged_at: now,
                Submission.claimed_at: None,
            },
            synchronize_session=False,
        )
        if not updated:
            db.rollback()
            logger.info("Submission %s was finalized concurrently; discarding this run", submission.id)
            return False

        db.add_all([
            TestResult(
                submission_id=submission.id,
                test_case_index=r.index,
                input=r.input,
                expected_output=r.expected_output,
                actual_output=r.actual_output,
                verdict=r.verdict.value,
                runtime=r.runtime_ms,
                memory=r.memory_kb,
                stderr=r.stderr,
                is_hidden=r.is_hidden,
            )
            for r in results
        ])

        if verdict == Verdict.ACCEPTED:
            db.query(Problem).filter(Problem.id == problem.id).update(
                {Problem.accepted_submissions: Problem.accepted_submissions + 1},
                synchronize_session=False,
            )
            self.scoring.on_accepted(
                db,
                user_id=submission.user_id,
                problem=problem,
                language=submission.language,
                runtime_ms=max_runtime,
                memory_kb=max_memory,
                contest_id=submission.contest_id,
                now=now,
            )

        db.commit()
        VERDICTS_TOTAL.labels(verdict.value).inc()
        logger.info(
            "Submission %s judged: %s (%d/%d passed, %.0f ms, %d KB)",
            submission.id, verdict.value, passed, len(results), max_runtime, max_memory,
        )
        return True

    def _fail(self, db: Session, submission_id: int, detail: str) -> bool:
        """Persist a terminal Runtime Error so the submission never stays Pending."""
        try:
            updated = db.query(Submission).filter(
                Submission.id == submission_id,
                Submission.verdict == Verdict.PENDING.value,
            ).update(
                {
                    Submission.verdict: Verdict.RUNTIME_ERROR.value,
                    Submission.compile_output: detail,
                    Submission.judged_at: utcnow(),
                    Submission.claimed_at: None,
                },
                synchronize_session=False,
            )
            db.commit()
        except Exception:
            # The worker lease expires and another attempt picks it up.
            logger.exception("Submission %s: could not record failure verdict", submission_id)
            db.rollback()
            return False

        if updated:
            VERDICTS_TOTAL.labels(Verdict.RUNTIME_ERROR.value).inc()
        return bool(updated)

    def _renew_claim(self, db: Session, submission_id: int) -> None:
        """Push the lease forward so a long judge is not reclaimed mid-run."""
        try:
            db.query(Submission).filter(
                Submission.id == submission_id,
                Submission.verdict == Verdict.PENDING.value,
            ).update({Submission.claimed_at: utcnow()}, synchronize_session=False)
            db.commit()
        except SQLAlchemyError:
            logger.exception("Submission %s: could not renew claim", submission_id)
            db.rollback()

    def _release(self, db: Session, submission_id: int, attempts: int = 1) -> None:
        """Hand the submission back to the queue after a backoff.

        The claim is backdated so the lease runs out ``attempts`` times
        WORKER_RETRY_BACKOFF_SECONDS from now.
        """
        backoff = settings.WORKER_RETRY_BACKOFF_SECONDS * max(1, attempts)
        reclaimable_at = utcnow() - timedelta(seconds=settings.WORKER_LEASE_SECONDS - backoff)
        try:
            db.query(Submission).filter(
                Submission.id == submission_id,
                Submission.verdict == Verdict.PENDING.value,
            ).update({Submission.claimed_at: reclaimable_at}, synchronize_session=False)
            db.commit()
        except Exception:
            logger.exception("Submission %s: could not release claim", submission_id)
            db.rollback()


judging_workflow = JudgingWorkflow()
