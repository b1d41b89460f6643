from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from codearena.core.constants import ContestStatus
from codearena.core.exceptions import (
    ContestFullError,
    ContestNotActiveError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from codearena.models.contest import Contest, ContestParticipant
from codearena.services.contest_service import ContestService, rank_participants
from codearena.services.scoring import ScoringService


def test_status_follows_the_clock():
    start = datetime(2026, 5, 1, 12, 0)
    contest = Contest(title="Clock", start_time=start, end_time=start + timedelta(minutes=90))
    assert contest.status_at(start - timedelta(seconds=1)) == ContestStatus.UPCOMING
    assert contest.status_at(start) == ContestStatus.ONGOING
    assert contest.status_at(start + timedelta(minutes=90)) == ContestStatus.ONGOING
    assert contest.status_at(start + timedelta(minutes=91)) == ContestStatus.ENDED
    assert contest.duration_minutes == 90
    assert contest.slug == "clock"


def test_rank_by_score_then_penalty_then_last_submission():
    t0 = datetime(2026, 5, 1, 12, 0)
    rows = [
        SimpleNamespace(name="slow", score=200, penalty=90, last_submission_at=t0),
        SimpleNamespace(name="fast", score=200, penalty=40, last_submission_at=t0 + timedelta(minutes=9)),
        SimpleNamespace(name="top", score=300, penalty=500, last_submission_at=t0),
        SimpleNamespace(name="idle", score=0, penalty=0, last_submission_at=None),
        SimpleNamespace(name="early", score=200, penalty=40, last_submission_at=t0 + timedelta(minutes=2)),
    ]
    assert [r.name for r in rank_participants(rows)] == ["top", "early", "fast", "slow", "idle"]


def test_register_for_upcoming_contest(db, make_user, make_contest):
    user = make_user()
    contest = make_contest(starts_in=timedelta(hours=2))

    participant = ContestService.register(db, contest.id, user)

    assert participant.id is not None
    assert participant.score == 0
    assert participant.penalty == 0
    assert db.query(ContestParticipant).filter_by(contest_id=contest.id).count() == 1


def test_register_twice_conflicts(db, make_user, make_contest):
    user = make_user()
    contest = make_contest()
    ContestService.register(db, contest.id, user)

    with pytest.raises(ResourceAlreadyExistsError):
        ContestService.register(db, contest.id, user)


def test_register_for_ended_contest(db, make_user, make_contest):
    contest = make_contest(starts_in=timedelta(hours=-3), lasts=timedelta(hours=1))
    with pytest.raises(ContestNotActiveError):
        ContestService.register(db, contest.id, make_user())


def test_register_respects_participant_cap(db, make_user, make_contest):
    first = make_user()
    contest = make_contest(participants=[first], max_participants=1)
    with pytest.raises(ContestFullError):
        ContestService.register(db, contest.id, make_user(username="bob"))


def test_unknown_contest(db, make_user):
    with pytest.raises(ResourceNotFoundError):
        ContestService.register(db, 77, make_user())


def test_leaderboard_orders_participants(db, make_user, make_problem, make_contest):
    alice = make_user()
    bob = make_user(username="bob")
    carol = make_user(username="carol")
    p1 = make_problem()
    p2 = make_problem(title="Valid Parentheses")
    contest = make_contest(problems=[(p1, 100), (p2, 100)], participants=[alice, bob, carol])
    start = contest.start_time
    scoring = ScoringService()

    scoring.update_contest_score(db, contest.id, bob.id, p1.id, now=start + timedelta(minutes=10))
    scoring.update_contest_score(db, contest.id, bob.id, p2.id, now=start + timedelta(minutes=30))
    scoring.update_contest_score(db, contest.id, alice.id, p1.id, now=start + timedelta(minutes=5))
    scoring.update_contest_score(db, contest.id, alice.id, p2.id, now=start + timedelta(minutes=20))
    scoring.update_contest_score(db, contest.id, carol.id, p2.id, now=start + timedelta(minutes=1))
    db.commit()
    db.expire_all()

    board = ContestService.leaderboard(db, contest.id)

    assert board.status == ContestStatus.ONGOING
    assert [(e.rank, e.username, e.score, e.penalty) for e in board.leaderboard] == [
        (1, "alice", 200, 25),
        (2, "bob", 200, 40),
        (3, "carol", 100, 1),
    ]
    assert {s.problem_id for s in board.leaderboard[0].solved_problems} == {p1.id, p2.id}
