"""Initial schema.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # The meeting exclusion constraint combines "=" on a uuid with "&&" on a range
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    # --- event_types ---
    op.create_table(
        "event_types",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("color", sa.String(7), nullable=False, server_default="#0069FF"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("duration_minutes > 0", name="ck_event_types_positive_duration"),
    )
    op.create_index("ix_event_types_slug", "event_types", ["slug"], unique=True)

    # --- availability_rules ---
    op.create_table(
        "availability_rules",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_type_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("event_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.SmallInteger, nullable=False),
        sa.Column("start_time", sa.Time, nullable=False),
        sa.Column("end_time", sa.Time, nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "event_type_id", "day_of_week", "start_time", "end_time", name="uq_availability_rules_slot"
        ),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_rules_valid_day_of_week"),
        sa.CheckConstraint("start_time < end_time", name="ck_availability_rules_chronological_range"),
    )
    op.create_index("ix_availability_rules_event_type_id", "availability_rules", ["event_type_id"])
    op.create_index("ix_availability_rules_day_of_week", "availability_rules", ["day_of_week"])

    # --- availability_overrides ---
    op.create_table(
        "availability_overrides",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_type_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("event_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("override_date", sa.Date, nullable=False),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("start_time", sa.Time, nullable=True),
        sa.Column("end_time", sa.Time, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("event_type_id", "override_date", name="uq_availability_overrides_date"),
        sa.CheckConstraint(
            "start_time IS NULL OR end_time IS NULL OR start_time < end_time",
            name="ck_availability_overrides_chronological_range",
        ),
    )
    op.create_index("ix_availability_overrides_event_type_id", "availability_overrides", ["event_type_id"])
    op.create_index("ix_availability_overrides_override_date", "availability_overrides", ["override_date"])

    # --- meetings ---
    meeting_status = postgresql.ENUM("scheduled", "cancelled", "completed", name="meeting_status", create_type=False)
    meeting_status.create(op.get_bind())

    op.create_table(
        "meetings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_type_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("event_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("invitee_name", sa.String(255), nullable=False),
        sa.Column("invitee_email", sa.String(320), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("status", meeting_status, nullable=False, server_default="scheduled"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("start_time < end_time", name="ck_meetings_chronological_range"),
    )
    op.create_index("ix_meetings_event_type_id", "meetings", ["event_type_id"])
    op.create_index("ix_meetings_invitee_email", "meetings", ["invitee_email"])
    op.create_index("ix_meetings_start_time", "meetings", ["start_time"])
    op.create_index("ix_meetings_status", "meetings", ["status"])
    op.execute(
        "ALTER TABLE meetings ADD CONSTRAINT meetings_no_overlap_per_event_type "
        "EXCLUDE USING gist (event_type_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status = 'scheduled')"
    )

    # --- audit_log ---
    op.create_table(
        "audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.String(255), nullable=True),
        sa.Column("metadata", postgresql.JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_log_entity_id", "audit_log", ["entity_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("meetings")
    op.execute("DROP TYPE IF EXISTS meeting_status")
    op.drop_table("availability_overrides")
    op.drop_table("availability_rules")
    op.drop_table("event_types")
