"""Background worker pool for queued submission judging.

Pending submissions are the queue. A worker claims one by stamping
``claimed_at`` with a compare-and-set; a claim that is never finished (the
process died) expires after WORKER_LEASE_SECONDS and is picked up again.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import timedelta
from typing import Callable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from codearena.config import settings
from codearena.core.clock import utcnow
from codearena.core.constants import Verdict
from codearena.core.database import SessionLocal
from codearena.models.submission import Submission
from codearena.services.judging import JudgingWorkflow, judging_workflow

logger = logging.getLogger(__name__)


class SubmissionWorker:
    """DB-backed submission queue worker pool."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        workflow: Optional[JudgingWorkflow] = None,
        concurrency: Optional[int] = None,
    ) -> None:
        self._session_factory = session_factory
        self._workflow = workflow or judging_workflow
        self._concurrency = max(1, concurrency or settings.WORKER_CONCURRENCY)
        self._threads: List[threading.Thread] = []
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._heartbeat: float = 0.0
        self._processed_count: int = 0
        self._lock = threading.Lock()

    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        if self.is_running():
            return
        self._stop_event.clear()
        self._threads = [
            threading.Thread(target=self._run_loop, name=f"submission-worker-{i}", daemon=True)
            for i in range(self._concurrency)
        ]
        for thread in self._threads:
            thread.start()
        logger.info("Submission worker pool started with %d threads", self._concurrency)

    def stop(self) -> None:
        self._stop_event.set()
        self._wake_event.set()
        for thread in self._threads:
            if thread.is_alive():
                thread.join(timeout=5)
        self._threads = []
        logger.info("Submission worker pool stopped")

    def notify(self) -> None:
        """Wake idle workers; called after a submission is queued."""
        self._wake_event.set()

    def status(self) -> dict:
        return {
            "running": self.is_running(),
            "threads": sum(1 for thread in self._threads if thread.is_alive()),
            "last_heartbeat": self._heartbeat,
            "processed_count": self._processed_count,
        }

    def queue_depth(self, db: Session) -> int:
        return db.query(Submission).filter(Submission.verdict == Verdict.PENDING.value).count()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                did_work = self.process_next_submission()
            except Exception:
                logger.exception("Submission worker iteration failed")
                did_work = False
            self._heartbeat = time.time()
            if not did_work:
                self._wake_event.wait(timeout=max(0.1, settings.WORKER_POLL_INTERVAL_SECONDS))
                self._wake_event.clear()

    def _claim(self, db: Session) -> Optional[Submission]:
        now = utcnow()
        lease_cutoff = now - timedelta(seconds=settings.WORKER_LEASE_SECONDS)
        candidates = (
            db.query(Submission.id, Submission.claimed_at)
            .filter(
                Submission.verdict == Verdict.PENDING.value,
                or_(Submission.claimed_at.is_(None), Submission.claimed_at < lease_cutoff),
            )
            .order_by(Submission.created_at.asc(), Submission.id.asc())
            .limit(max(1, self._concurrency))
            .all()
        )

        for candidate in candidates:
            if candidate.claimed_at is None:
                unchanged = Submission.claimed_at.is_(None)
            else:
                unchanged = Submission.claimed_at == candidate.claimed_at
            claimed = db.query(Submission).filter(
                Submission.id == candidate.id,
                Submission.verdict == Verdict.PENDING.value,
                unchanged,
            ).update(
                {
                    Submission.claimed_at: now,
                    Submission.judge_attempts: Submission.judge_attempts + 1,
                },
                synchronize_session=False,
            )
            db.commit()
            if claimed:
                return db.get(Submission, candidate.id)
        return None

    def process_next_submission(self) -> bool:
        db = self._session_factory()
        try:
            submission = self._claim(db)
            if submission is None:
                return False

            allow_retry = submission.judge_attempts <= settings.WORKER_MAX_RETRIES
            logger.info(
                "Judging submission %s (attempt %d)", submission.id, submission.judge_attempts
            )
            try:
                self._workflow.judge(db, submission.id, allow_retry=allow_retry)
            finally:
                with self._lock:
                    self._processed_count += 1
            return True
        finally:
            db.close()


submission_worker = SubmissionWorker()
