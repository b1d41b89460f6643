from codearena.core.constants import Verdict
from codearena.models.problem import Problem, slugify
from codearena.models.submission import Submission
from codearena.models.user import User


def test_slugify():
    assert slugify("Two Sum") == "two-sum"
    assert slugify("  LRU  Cache -- II! ") == "lru-cache-ii"


def test_problem_points_follow_difficulty_at_creation(db, make_problem):
    assert make_problem(title="A", difficulty="Easy").points == 10
    assert make_problem(title="B", difficulty="Medium").points == 25
    assert make_problem(title="C", difficulty="Hard").points == 50
    assert make_problem(title="D", difficulty="Hard", points=70).points == 70


def test_problem_points_are_not_recomputed(db, make_problem):
    problem = make_problem(difficulty="Easy")
    problem.difficulty = "Hard"
    db.commit()
    db.refresh(problem)
    assert problem.points == 10


def test_problem_slug_tracks_title(db, make_problem):
    problem = make_problem(title="Two Sum")
    assert problem.slug == "two-sum"
    problem.title = "Two Sum II"
    assert problem.slug == "two-sum-ii"


def test_sample_and_hidden_views(make_problem):
    problem = make_problem()
    assert [tc.is_hidden for tc in problem.sample_test_cases] == [False, False]
    assert [tc.is_hidden for tc in problem.hidden_test_cases] == [True]


def test_acceptance_rates():
    assert User(username="x", total_submissions=0, accepted_submissions=0).acceptance_rate == 0
    assert User(username="x", total_submissions=3, accepted_submissions=2).acceptance_rate == 67
    problem = Problem(title="Rate", difficulty="Easy", total_submissions=4, accepted_submissions=1)
    assert problem.acceptance_rate == 25


def test_submission_terminal_states():
    assert Submission(verdict=Verdict.PENDING.value).is_terminal is False
    assert Submission(verdict=Verdict.RUNNING.value).is_terminal is False
    assert Submission(verdict=Verdict.WRONG_ANSWER.value).is_terminal is True


def test_admin_role():
    assert User(username="root", role="admin").is_admin is True
    assert User(username="alice", role="user").is_admin is False
