"""Initial Tutorium schema

Revision ID: 001
Revises: None
Create Date: 2025-09-01 00:00:00.000000+00:00

What:  Creates every table of the application: users, courses, topics,
       groups, lessons (with lesson_students and attachments), attendance,
       feedback, products and their enrollments.
How:   Portable column types (Uuid, DateTime(timezone=True), JSON). Enums are
       VARCHAR(32) so no CREATE TYPE is needed on PostgreSQL.

users.group_id and groups.teacher_id reference each other, so the
users → groups foreign key is added after both tables exist.

Rollback: downgrade() drops every table and all data with it.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]
    if updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.text("CURRENT_TIMESTAMP"),
                nullable=False,
            )
        )
    return columns


def _enum() -> sa.String:
    return sa.String(32)


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", _enum(), nullable=False, server_default="TEACHER"),
        sa.Column("avatar", sa.String(255), nullable=True),
        sa.Column("level", sa.String(50), nullable=True, comment="CEFR code A1..C1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("group_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_group_id", "users", ["group_id"])

    # ── courses / topics ──────────────────────────────────────────────────
    op.create_table(
        "courses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("level", sa.String(50), nullable=False),
        sa.Column("duration", sa.String(100), nullable=False),
        sa.Column("difficulty", _enum(), nullable=False, server_default="BEGINNER"),
        sa.Column("category", sa.String(100), nullable=False, server_default="Language"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_courses_level", "courses", ["level"])

    op.create_table(
        "topics",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_topics_course_id", "topics", ["course_id"])

    op.create_table(
        "course_enrollments",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "course_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
    )

    # ── groups ────────────────────────────────────────────────────────────
    op.create_table(
        "groups",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("level", sa.String(50), nullable=False),
        sa.Column("max_students", sa.Integer(), nullable=False, server_default=sa.text("20")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("teacher_id", sa.Uuid(), nullable=False),
        sa.Column("course_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["teacher_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
        sa.UniqueConstraint("name", "teacher_id", name="uq_groups_name_teacher"),
    )
    op.create_index("ix_groups_teacher_id", "groups", ["teacher_id"])
    op.create_index("ix_groups_course_id", "groups", ["course_id"])

    op.create_foreign_key(
        "fk_users_group_id", "users", "groups", ["group_id"], ["id"], ondelete="SET NULL"
    )

    # ── lessons ───────────────────────────────────────────────────────────
    op.create_table(
        "lessons",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False, server_default="00:00"),
        sa.Column("end_time", sa.String(5), nullable=False, server_default="01:00"),
        sa.Column("duration", sa.Integer(), nullable=False, server_default=sa.text("60")),
        sa.Column("status", _enum(), nullable=False, server_default="SCHEDULED"),
        sa.Column("lesson_type", _enum(), nullable=False, server_default="GROUP"),
        sa.Column("teacher_id", sa.Uuid(), nullable=False),
        sa.Column("group_id", sa.Uuid(), nullable=True),
        sa.Column("topic_id", sa.Uuid(), nullable=True),
        sa.Column("next_topic_id", sa.Uuid(), nullable=True),
        sa.Column("youtube_link", sa.String(500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("materials", sa.JSON(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("average_rating", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_feedback", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["teacher_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"]),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["next_topic_id"], ["topics.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_lessons_date", "lessons", ["date"])
    op.create_index("ix_lessons_status", "lessons", ["status"])
    op.create_index("ix_lessons_teacher_id", "lessons", ["teacher_id"])
    op.create_index("ix_lessons_group_id", "lessons", ["group_id"])
    op.create_index("ix_lessons_topic_id", "lessons", ["topic_id"])

    op.create_table(
        "lesson_students",
        sa.Column("lesson_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("lesson_id", "user_id"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "attachments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("path", sa.String(500), nullable=False, comment="Relative to STORAGE_ROOT"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("lesson_id", sa.Uuid(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_attachments_lesson_id", "attachments", ["lesson_id"])

    # ── attendance / feedback ─────────────────────────────────────────────
    op.create_table(
        "lesson_attendance",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("lesson_id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("status", _enum(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("participation", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("lesson_id", "student_id", name="uq_attendance_lesson_student"),
    )
    op.create_index("ix_lesson_attendance_lesson_id", "lesson_attendance", ["lesson_id"])
    op.create_index("ix_lesson_attendance_student_id", "lesson_attendance", ["student_id"])

    op.create_table(
        "lesson_feedback",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("lesson_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("student_id", "lesson_id", name="uq_feedback_student_lesson"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
    )
    op.create_index("ix_lesson_feedback_student_id", "lesson_feedback", ["student_id"])
    op.create_index("ix_lesson_feedback_lesson_id", "lesson_feedback", ["lesson_id"])

    # ── products ──────────────────────────────────────────────────────────
    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", _enum(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.Column("max_lessons", sa.Integer(), nullable=True),
        sa.Column("validity_days", sa.Integer(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
    )
    op.create_index("ix_products_course_id", "products", ["course_id"])

    op.create_table(
        "student_product_enrollments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column(
            "enrolled_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("student_id", "product_id", name="uq_product_enrollment"),
    )
    op.create_index(
        "ix_student_product_enrollments_student_id", "student_product_enrollments", ["student_id"]
    )
    op.create_index(
        "ix_student_product_enrollments_product_id", "student_product_enrollments", ["product_id"]
    )


def downgrade() -> None:
    op.drop_table("student_product_enrollments")
    op.drop_table("products")
    op.drop_table("lesson_feedback")
    op.drop_table("lesson_attendance")
    op.drop_table("attachments")
    op.drop_table("lesson_students")
    op.drop_table("lessons")
    op.drop_constraint("fk_users_group_id", "users", type_="foreignkey")
    op.drop_table("groups")
    op.drop_table("course_enrollments")
    op.drop_table("topics")
    op.drop_table("courses")
    op.drop_table("users")
