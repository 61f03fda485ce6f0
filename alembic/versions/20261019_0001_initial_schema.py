"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


program_status_enum = sa.Enum(
    "draft", "published", "cancelled", "completed", name="program_status_enum", native_enum=False
)
venue_type_enum = sa.Enum("in_person", "online", "hybrid", name="venue_type_enum", native_enum=False)
meeting_provider_enum = sa.Enum("zoom", "google_meet", "custom", name="meeting_provider_enum", native_enum=False)
template_format_enum = sa.Enum(
    "multi_day", "single_day", "half_day", "custom", name="template_format_enum", native_enum=False
)
booking_status_enum = sa.Enum(
    "pending_payment",
    "confirmed",
    "waitlisted",
    "waitlist_offered",
    "cancellation_requested",
    "cancelled",
    "completed",
    "no_show",
    name="booking_status_enum",
    native_enum=False,
)
payment_status_enum = sa.Enum("pending", "paid", "refunded", "waived", name="payment_status_enum", native_enum=False)
payment_method_enum = sa.Enum(
    "online", "bank_transfer", "cash", "free", name="payment_method_enum", native_enum=False
)
gender_enum = sa.Enum("male", "female", "other", name="gender_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _uuid_col(name: str, *, nullable: bool = False) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "teachers",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("auth_user_id", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("languages", postgresql.ARRAY(sa.String(length=32)), nullable=False),
        sa.Column("photo_url", sa.String(length=2048), nullable=True),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("auth_user_id", name="uq_teachers_auth_user_id"),
        sa.UniqueConstraint("email", name="uq_teachers_email"),
        sa.UniqueConstraint("slug", name="uq_teachers_slug"),
    )
    op.create_index("ix_teachers_auth_user_id", "teachers", ["auth_user_id"], unique=False)
    op.create_index("ix_teachers_email", "teachers", ["email"], unique=False)
    op.create_index("ix_teachers_slug", "teachers", ["slug"], unique=False)

    op.create_table(
        "schedule_templates",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("teacher_id", nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("format_type", template_format_enum, nullable=False),
        sa.Column("default_sessions", postgresql.JSONB(), nullable=False),
        sa.Column("default_capacity", sa.Integer(), nullable=True),
        sa.Column("default_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("default_currency", sa.String(length=3), nullable=False),
        sa.Column("default_notes", sa.Text(), nullable=True),
        sa.Column("default_what_to_bring", sa.Text(), nullable=True),
        sa.Column("default_preparation", sa.Text(), nullable=True),
        sa.Column("is_platform_template", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(
            ["teacher_id"],
            ["teachers.id"],
            name="fk_schedule_templates_teacher_id_teachers",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "(is_platform_template AND teacher_id IS NULL) "
            "OR (NOT is_platform_template AND teacher_id IS NOT NULL)",
            name="ck_schedule_templates_platform_or_owned",
        ),
    )
    op.create_index("ix_schedule_templates_teacher_id", "schedule_templates", ["teacher_id"], unique=False)

    op.create_table(
        "venues",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("teacher_id"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_shared", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["teacher_id"], ["teachers.id"], name="fk_venues_teacher_id_teachers", ondelete="CASCADE"),
    )
    op.create_index("ix_venues_teacher_id", "venues", ["teacher_id"], unique=False)

    op.create_table(
        "programs",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("teacher_id"),
        _uuid_col("template_id", nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", program_status_enum, nullable=False),
        sa.Column("venue_type", venue_type_enum, nullable=False),
        _uuid_col("venue_id", nullable=True),
        sa.Column("online_meeting_provider", meeting_provider_enum, nullable=True),
        sa.Column("online_meeting_url", sa.String(length=2048), nullable=True),
        sa.Column("sessions", postgresql.JSONB(), nullable=False),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("is_free", sa.Boolean(), nullable=False),
        sa.Column("price_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("price_currency", sa.String(length=3), nullable=False),
        sa.Column("allow_pay_at_venue", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("what_to_bring", sa.Text(), nullable=True),
        sa.Column("preparation_instructions", sa.Text(), nullable=True),
        sa.Column("cancellation_policy_text", sa.Text(), nullable=True),
        sa.Column("requires_health_form", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["teacher_id"], ["teachers.id"], name="fk_programs_teacher_id_teachers", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["template_id"],
            ["schedule_templates.id"],
            name="fk_programs_template_id_schedule_templates",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"], name="fk_programs_venue_id_venues", ondelete="SET NULL"),
        sa.UniqueConstraint("teacher_id", "slug", name="uq_programs_teacher_id_slug"),
        sa.CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_programs_capacity_positive"),
        sa.CheckConstraint(
            "is_free OR (price_amount IS NOT NULL AND price_amount > 0)",
            name="ck_programs_paid_has_price",
        ),
    )
    op.create_index("ix_programs_teacher_id", "programs", ["teacher_id"], unique=False)
    op.create_index("ix_programs_status", "programs", ["status"], unique=False)
    op.create_index("ix_programs_venue_id", "programs", ["venue_id"], unique=False)

    op.create_table(
        "students",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("teacher_id"),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", gender_enum, nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("whatsapp_phone", sa.String(length=32), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=100), nullable=True),
        sa.Column("emergency_contact_relation", sa.String(length=100), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(length=32), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.String(length=50)), nullable=False),
        sa.Column("teacher_notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["teacher_id"], ["teachers.id"], name="fk_students_teacher_id_teachers", ondelete="CASCADE"),
        sa.UniqueConstraint("teacher_id", "email", name="uq_students_teacher_id_email"),
    )
    op.create_index("ix_students_teacher_id", "students", ["teacher_id"], unique=False)

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("student_id"),
        _uuid_col("program_id"),
        _uuid_col("teacher_id"),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("payment_status", payment_status_enum, nullable=False),
        sa.Column("payment_method", payment_method_enum, nullable=False),
        sa.Column("payment_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("payment_currency", sa.String(length=3), nullable=True),
        sa.Column("cancelled_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refund_notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], name="fk_bookings_student_id_students", ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["program_id"], ["programs.id"], name="fk_bookings_program_id_programs", ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["teacher_id"], ["teachers.id"], name="fk_bookings_teacher_id_teachers", ondelete="CASCADE"),
        sa.UniqueConstraint("student_id", "program_id", name="uq_bookings_student_id_program_id"),
    )
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"], unique=False)
    op.create_index("ix_bookings_program_id", "bookings", ["program_id"], unique=False)
    op.create_index("ix_bookings_teacher_id", "bookings", ["teacher_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)

    op.create_table(
        "health_forms",
        _id_col(),
        _created_col(),
        _updated_col(),
        _uuid_col("booking_id"),
        _uuid_col("student_id"),
        sa.Column("how_did_you_hear", sa.String(length=255), nullable=True),
        sa.Column("previous_practice", sa.Text(), nullable=True),
        sa.Column("has_prior_training", sa.Boolean(), nullable=False),
        sa.Column("prior_training_details", sa.Text(), nullable=True),
        sa.Column("health_conditions", postgresql.ARRAY(sa.String(length=100)), nullable=False),
        sa.Column("condition_details", sa.Text(), nullable=True),
        sa.Column("is_pregnant", sa.Boolean(), nullable=False),
        sa.Column("had_recent_surgery", sa.Boolean(), nullable=False),
        sa.Column("consent_given", sa.Boolean(), nullable=False),
        sa.Column("consent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_reviewed", sa.Boolean(), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        _uuid_col("reviewed_by", nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name="fk_health_forms_booking_id_bookings", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], name="fk_health_forms_student_id_students", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["reviewed_by"],
            ["teachers.id"],
            name="fk_health_forms_reviewed_by_teachers",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("booking_id", name="uq_health_forms_booking_id"),
    )
    op.create_index("ix_health_forms_student_id", "health_forms", ["student_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_health_forms_student_id", table_name="health_forms")
    op.drop_table("health_forms")

    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_teacher_id", table_name="bookings")
    op.drop_index("ix_bookings_program_id", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_students_teacher_id", table_name="students")
    op.drop_table("students")

    op.drop_index("ix_programs_venue_id", table_name="programs")
    op.drop_index("ix_programs_status", table_name="programs")
    op.drop_index("ix_programs_teacher_id", table_name="programs")
    op.drop_table("programs")

    op.drop_index("ix_venues_teacher_id", table_name="venues")
    op.drop_table("venues")

    op.drop_index("ix_schedule_templates_teacher_id", table_name="schedule_templates")
    op.drop_table("schedule_templates")

    op.drop_index("ix_teachers_slug", table_name="teachers")
    op.drop_index("ix_teachers_email", table_name="teachers")
    op.drop_index("ix_teachers_auth_user_id", table_name="teachers")
    op.drop_table("teachers")
