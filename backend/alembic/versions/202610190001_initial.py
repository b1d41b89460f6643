"""initial judge schema

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "202610190001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("total_solved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("easy_solved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("medium_solved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("hard_solved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_submissions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("accepted_submissions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_active_date", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("idx_users_username", "users", ["username"])
    op.create_index("idx_users_total_points", "users", ["total_points"])

    op.create_table(
        "problems",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=220), nullable=False),
        sa.Column("problem_number", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("difficulty", sa.String(length=10), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("time_limit", sa.Integer(), nullable=False, server_default=sa.text("2000")),
        sa.Column("memory_limit", sa.Integer(), nullable=False, server_default=sa.text("256")),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("total_submissions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("accepted_submissions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("title"),
        sa.UniqueConstraint("slug"),
        sa.UniqueConstraint("problem_number"),
        sa.CheckConstraint("difficulty IN ('Easy', 'Medium', 'Hard')", name="chk_problem_difficulty"),
        sa.CheckConstraint("time_limit > 0", name="chk_problem_time_limit"),
        sa.CheckConstraint("memory_limit > 0", name="chk_problem_memory_limit"),
    )
    op.create_index("ix_problems_id", "problems", ["id"])
    op.create_index("idx_problems_difficulty_active", "problems", ["difficulty", "is_active"])

    op.create_table(
        "test_cases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("problem_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("input", sa.Text(), nullable=False, server_default=""),
        sa.Column("output", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("explanation", sa.Text(), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["problem_id"], ["problems.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_cases_id", "test_cases", ["id"])
    op.create_index("idx_test_cases_problem", "test_cases", ["problem_id", "position"])

    op.create_table(
        "contests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=220), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("title"),
        sa.UniqueConstraint("slug"),
        sa.CheckConstraint("end_time > start_time", name="chk_contest_window"),
    )
    op.create_index("ix_contests_id", "contests", ["id"])
    op.create_index("idx_contests_start_end", "contests", ["start_time", "end_time"])

    op.create_table(
        "contest_problems",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("contest_id", sa.Integer(), nullable=False),
        sa.Column("problem_id", sa.Integer(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["contest_id"], ["contests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["problem_id"], ["problems.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contest_id", "problem_id", name="uq_contest_problems_contest_problem"),
    )
    op.create_index("ix_contest_problems_id", "contest_problems", ["id"])

    op.create_table(
        "contest_participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("contest_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("penalty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("solved_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("registered_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_submission_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["contest_id"], ["contests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contest_id", "user_id", name="uq_contest_participants_contest_user"),
        sa.CheckConstraint("score >= 0", name="chk_participant_score"),
    )
    op.create_index("ix_contest_participants_id", "contest_participants", ["id"])

    op.create_table(
        "contest_solves",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=False),
        sa.Column("problem_id", sa.Integer(), nullable=False),
        sa.Column("solved_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time_penalty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["participant_id"], ["contest_participants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["problem_id"], ["problems.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("participant_id", "problem_id", name="uq_contest_solves_participant_problem"),
    )
    op.create_index("ix_contest_solves_id", "contest_solves", ["id"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("problem_id", sa.Integer(), nullable=False),
        sa.Column("contest_id", sa.Integer(), nullable=True),
        sa.Column("is_contest", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("language", sa.String(length=20), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("verdict", sa.String(length=30), nullable=False, server_default="Pending"),
        sa.Column("runtime", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("memory", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("compile_output", sa.Text(), nullable=False, server_default=""),
        sa.Column("passed_test_cases", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_test_cases", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("time_taken", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("judge_attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("judged_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["problem_id"], ["problems.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["contest_id"], ["contests.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("runtime >= 0", name="chk_submission_runtime"),
        sa.CheckConstraint("memory >= 0", name="chk_submission_memory"),
        sa.CheckConstraint("judge_attempts >= 0", name="chk_judge_attempts"),
    )
    op.create_index("ix_submissions_id", "submissions", ["id"])
    op.create_index("idx_submissions_user_problem", "submissions", ["user_id", "problem_id"])
    op.create_index("idx_submissions_problem_verdict", "submissions", ["problem_id", "verdict"])
    op.create_index("idx_submissions_contest", "submissions", ["contest_id"])
    op.create_index("idx_submissions_verdict_created", "submissions", ["verdict", "created_at"])

    op.create_table(
        "test_results",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("submission_id", sa.Integer(), nullable=False),
        sa.Column("test_case_index", sa.Integer(), nullable=False),
        sa.Column("input", sa.Text(), nullable=False, server_default=""),
        sa.Column("expected_output", sa.Text(), nullable=True),
        sa.Column("actual_output", sa.Text(), nullable=False, server_default=""),
        sa.Column("verdict", sa.String(length=30), nullable=False),
        sa.Column("runtime", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("memory", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("stderr", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.ForeignKeyConstraint(["submission_id"], ["submissions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_results_id", "test_results", ["id"])
    op.create_index("idx_test_results_submission", "test_results", ["submission_id"])

    op.create_table(
        "solved_problems",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("problem_id", sa.Integer(), nullable=False),
        sa.Column("language", sa.String(length=20), nullable=False),
        sa.Column("best_runtime", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("best_memory", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("solved_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["problem_id"], ["problems.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "problem_id", name="uq_solved_problems_user_problem"),
    )
    op.create_index("ix_solved_problems_id", "solved_problems", ["id"])


def downgrade() -> None:
    op.drop_index("ix_solved_problems_id", table_name="solved_problems")
    op.drop_table("solved_problems")

    op.drop_index("idx_test_results_submission", table_name="test_results")
    op.drop_index("ix_test_results_id", table_name="test_results")
    op.drop_table("test_results")

    op.drop_index("idx_submissions_verdict_created", table_name="submissions")
    op.drop_index("idx_submissions_contest", table_name="submissions")
    op.drop_index("idx_submissions_problem_verdict", table_name="submissions")
    op.drop_index("idx_submissions_user_problem", table_name="submissions")
    op.drop_index("ix_submissions_id", table_name="submissions")
    op.drop_table("submissions")

    op.drop_index("ix_contest_solves_id", table_name="contest_solves")
    op.drop_table("contest_solves")

    op.drop_index("ix_contest_participants_id", table_name="contest_participants")
    op.drop_table("contest_participants")

    op.drop_index("ix_contest_problems_id", table_name="contest_problems")
    op.drop_table("contest_problems")

    op.drop_index("idx_contests_start_end", table_name="contests")
    op.drop_index("ix_contests_id", table_name="contests")
    op.drop_table("contests")

    op.drop_index("idx_test_cases_problem", table_name="test_cases")
    op.drop_index("ix_test_cases_id", table_name="test_cases")
    op.drop_table("test_cases")

    op.drop_index("idx_problems_difficulty_active", table_name="problems")
    op.drop_index("ix_problems_id", table_name="problems")
    op.drop_table("problems")

    op.drop_index("idx_users_total_points", table_name="users")
    op.drop_index("idx_users_username", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
