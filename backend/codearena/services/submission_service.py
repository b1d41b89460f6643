"""Submission service - accepts submissions, runs samples, serves results"""

from sqlalchemy.orm import Session
from typing import List, Optional
import math

from codearena.config import settings
from codearena.core.constants import ContestStatus, LANGUAGES, Verdict
from codearena.core.exceptions import (
    ContestNotActiveError,
    NotRegisteredError,
    ProblemConfigurationError,
    QueueFullError,
    ResourceNotFoundError,
    UnsupportedLanguageError,
    ValidationError,
)
from codearena.models.contest import Contest
from codearena.models.problem import Problem
from codearena.models.submission import Submission
from codearena.models.user import User
from codearena.schemas.submission import (
    RunSampleRequest,
    SubmissionCreate,
    SubmissionListItem,
    SubmissionPage,
    SubmissionResponse,
    SubmitResponse,
)
from codearena.services.submission_worker import submission_worker
from codearena.services.test_runner import TestCase, TestCaseResult, TestRunner, test_runner
import logging

logger = logging.getLogger(__name__)


class SubmissionService:
    """Service for handling submissions"""

    @staticmethod
    def _get_active_problem(db: Session, slug: str) -> Problem:
        problem = (
            db.query(Problem)
            .filter(Problem.slug == slug, Problem.is_active.is_(True))
            .first()
        )
        if not problem:
            raise ResourceNotFoundError(f"Problem '{slug}'")
        return problem

    @staticmethod
    def _check_language(language: str) -> None:
        if language not in LANGUAGES:
            raise UnsupportedLanguageError(language)

    @staticmethod
    def _check_code_size(code: str) -> None:
        size = len(code.encode("utf-8"))
        if size > settings.MAX_CODE_SIZE:
            raise ValidationError(
                f"Code exceeds maximum size of {settings.MAX_CODE_SIZE} bytes",
                details={"size": size},
            )

    @staticmethod
    def _check_contest(db: Session, contest_id: int, problem: Problem, user: User) -> None:
        contest = db.get(Contest, contest_id)
        if not contest:
            raise ResourceNotFoundError("Contest")
        if contest.status != ContestStatus.ONGOING:
            raise ContestNotActiveError()
        if problem.id not in {cp.problem_id for cp in contest.problems}:
            raise ValidationError(
                "Problem is not part of this contest",
                details={"contest_id": contest_id, "problem": problem.slug},
            )
        if contest.participant_for(user.id) is None:
            raise NotRegisteredError()

    @staticmethod
    def submit(db: Session, user: User, submission_data: SubmissionCreate) -> SubmitResponse:
        """
        Queue code for judging

        Everything that can be rejected is rejected here, before any record
        exists. Judging itself happens on the worker pool.

        Args:
            db: Database session
            user: Submitting user
            submission_data: Submission payload

        Returns:
            SubmitResponse: New submission id with verdict Pending
        """
        language = submission_data.language.value
        SubmissionService._check_language(language)
        SubmissionService._check_code_size(submission_data.code)
        problem = SubmissionService._get_active_problem(db, submission_data.problem_slug)
        if not problem.test_cases:
            raise ProblemConfigurationError(f"Problem '{problem.slug}' has no test cases")
        if submission_data.contest_id is not None:
            SubmissionService._check_contest(db, submission_data.contest_id, problem, user)

        if submission_worker.queue_depth(db) >= settings.MAX_QUEUE_DEPTH:
            logger.warning("Rejecting submission from user %s: judge queue is full", user.id)
            raise QueueFullError()

        submission = Submission(
            user_id=user.id,
            problem_id=problem.id,
            contest_id=submission_data.contest_id,
            is_contest=submission_data.contest_id is not None,
            language=language,
            code=submission_data.code,
            time_taken=submission_data.time_taken,
            verdict=Verdict.PENDING.value,
        )
        db.add(submission)

        db.query(Problem).filter(Problem.id == problem.id).update(
            {Problem.total_submissions: Problem.total_submissions + 1},
            synchronize_session=False,
        )
        db.query(User).filter(User.id == user.id).update(
            {User.total_submissions: User.total_submissions + 1},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(submission)

        submission_worker.notify()
        logger.info("Submission %s queued: user=%s problem=%s language=%s", submission.id, user.id, problem.slug, language)
        return SubmitResponse(submission_id=submission.id)

    @staticmethod
    def run_sample(
        db: Session,
        request: RunSampleRequest,
        runner: Optional[TestRunner] = None,
    ) -> List[TestCaseResult]:
        """
        Run code against the first few sample cases, or one custom input

        Nothing is persisted. A custom input has no expected output, so its
        result is reported as Executed.
        """
        language = request.language.value
        SubmissionService._check_language(language)
        SubmissionService._check_code_size(request.code)
        problem = SubmissionService._get_active_problem(db, request.problem_slug)

        if request.custom_input is not None:
            test_cases = [TestCase(input=request.custom_input, expected_output=None)]
        else:
            test_cases = [
                TestCase(input=tc.input, expected_output=tc.output)
                for tc in problem.sample_test_cases[:settings.SAMPLE_RUN_LIMIT]
            ]
        if not test_cases:
            raise ProblemConfigurationError(f"Problem '{problem.slug}' has no sample test cases")

        return (runner or test_runner).run_all(
            code=request.code,
            language=language,
            test_cases=test_cases,
            time_limit_ms=problem.time_limit,
            memory_limit_mb=problem.memory_limit,
        )

    @staticmethod
    def get_submission(db: Session, submission_id: int, viewer: User) -> SubmissionResponse:
        """
        Get a submission as ``viewer`` may see it

        Owners and admins get the code; everyone else gets it stripped.
        Hidden test case data is only shown to admins.
        """
        submission = db.get(Submission, submission_id)
        if not submission:
            raise ResourceNotFoundError("Submission")

        response = SubmissionResponse.model_validate(submission)

        if not viewer.is_admin:
            response.test_results = [
                result.model_copy(update={"input": "", "expected_output": None, "actual_output": ""})
                if result.is_hidden else result
                for result in response.test_results
            ]
            if submission.user_id != viewer.id:
                response = response.model_copy(update={"code": None})

        return response

    @staticmethod
    def list_submissions(
        db: Session,
        viewer: User,
        verdict: Optional[str] = None,
        language: Optional[str] = None,
        problem_slug: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> SubmissionPage:
        """Newest first, without code. Non-admins only see their own."""
        page = max(1, page)
        limit = max(1, min(100, limit))

        query = db.query(Submission)
        if not viewer.is_admin:
            query = query.filter(Submission.user_id == viewer.id)
        if verdict:
            query = query.filter(Submission.verdict == verdict)
        if language:
            query = query.filter(Submission.language == language)
        if problem_slug:
            problem = db.query(Problem).filter(Problem.slug == problem_slug).first()
            if not problem:
                return SubmissionPage(items=[], total=0, page=page, limit=limit, pages=0)
            query = query.filter(Submission.problem_id == problem.id)

        total = query.count()
        rows = (
            query.order_by(Submission.created_at.desc(), Submission.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return SubmissionPage(
            items=[SubmissionListItem.model_validate(row) for row in rows],
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        )


# Singleton instance
submission_service = SubmissionService()
