from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _enum(name: str, *values: str) -> postgresql.ENUM:
    enum = postgresql.ENUM(*values, name=name)
    enum.create(op.get_bind(), checkfirst=True)
    return postgresql.ENUM(*values, name=name, create_type=False)


def upgrade() -> None:
    user_role = _enum("userrole", "parent", "therapist", "admin")
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "parents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    therapist_status = _enum("therapiststatus", "pending", "active", "inactive", "suspended")
    op.create_table(
        "therapists",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("specialization", sa.String(length=128), nullable=False),
        sa.Column("experience_years", sa.Integer(), server_default="0"),
        sa.Column("base_cost_per_session", sa.Numeric(10, 2), server_default="0"),
        sa.Column("status", therapist_status, server_default="pending"),
        sa.Column("average_rating", sa.Float()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "therapist_active_times",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "therapist_id", sa.Integer(), sa.ForeignKey("therapists.id", ondelete="CASCADE")
        ),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.UniqueConstraint("therapist_id", "start_time", name="uq_therapist_active_time"),
    )

    op.create_table(
        "children",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("parents.id", ondelete="CASCADE"), index=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("address", sa.String(length=255)),
        sa.Column("condition", sa.String(length=255)),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "time_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "therapist_id", sa.Integer(), sa.ForeignKey("therapists.id", ondelete="CASCADE")
        ),
        sa.Column("slot_date", sa.Date(), index=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), index=True),
        sa.Column("ends_at", sa.DateTime(timezone=True)),
        sa.Column("is_booked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint(
            "therapist_id", "slot_date", "start_time", name="uq_time_slot_therapist_date_time"
        ),
    )

    op.create_table(
        "recurring_bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("parents.id", ondelete="CASCADE"), index=True),
        sa.Column("child_id", sa.Integer(), sa.ForeignKey("children.id", ondelete="CASCADE")),
        sa.Column(
            "therapist_id", sa.Integer(), sa.ForeignKey("therapists.id", ondelete="CASCADE")
        ),
        sa.Column("slot_time", sa.Time(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    booking_status = _enum("bookingstatus", "scheduled", "completed", "cancelled")
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("parents.id", ondelete="CASCADE"), index=True),
        sa.Column("child_id", sa.Integer(), sa.ForeignKey("children.id", ondelete="CASCADE")),
        sa.Column(
            "therapist_id",
            sa.Integer(),
            sa.ForeignKey("therapists.id", ondelete="CASCADE"),
            index=True,
        ),
        sa.Column("time_slot_id", sa.Integer(), sa.ForeignKey("time_slots.id", ondelete="CASCADE")),
        sa.Column(
            "recurring_booking_id",
            sa.Integer(),
            sa.ForeignKey("recurring_bookings.id", ondelete="SET NULL"),
            index=True,
        ),
        sa.Column("status", booking_status, server_default="scheduled"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("canceled_at", sa.DateTime(timezone=True)),
        sa.Column("canceled_by", sa.String(length=64)),
        sa.Column("cancellation_reason", sa.String(length=255)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True)),
    )
    op.create_index(
        "uq_booking_active_slot",
        "bookings",
        ["time_slot_id"],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'"),
    )

    leave_type = _enum("leavetype", "casual", "sick", "festive", "optional")
    leave_status = _enum("leavestatus", "pending", "approved", "rejected")
    op.create_table(
        "therapist_leaves",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "therapist_id",
            sa.Integer(),
            sa.ForeignKey("therapists.id", ondelete="CASCADE"),
            index=True,
        ),
        sa.Column("leave_date", sa.Date(), index=True),
        sa.Column("type", leave_type, server_default="casual"),
        sa.Column("reason", sa.Text()),
        sa.Column("status", leave_status, server_default="pending"),
        sa.Column("admin_notes", sa.Text()),
        sa.Column("decided_at", sa.DateTime(timezone=True)),
        sa.Column("decided_by", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    notification_type = _enum(
        "notificationtype",
        "booking_confirmed",
        "booking_cancelled",
        "session_cancelled_by_leave",
        "session_completed",
        "session_reminder",
        "session_report_ready",
        "leave_request_submitted",
        "leave_decided",
        "therapist_account_approved",
        "demo_booked",
    )
    notification_status = _enum("notificationstatus", "pending", "sent", "failed")
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), index=True),
        sa.Column("type", notification_type),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("send_at", sa.DateTime(timezone=True), index=True),
        sa.Column("status", notification_status, server_default="pending"),
        sa.Column("sent_at", sa.DateTime(timezone=True)),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "session_feedback",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            unique=True,
        ),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("parents.id", ondelete="CASCADE")),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text()),
        sa.Column("is_anonymous", sa.Boolean(), server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_session_feedback_rating_range"),
    )

    op.create_table(
        "session_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            unique=True,
        ),
        sa.Column(
            "therapist_id", sa.Integer(), sa.ForeignKey("therapists.id", ondelete="CASCADE")
        ),
        sa.Column("session_experience", sa.Text(), nullable=False),
        sa.Column("child_performance", sa.Text()),
        sa.Column("improvements", sa.Text()),
        sa.Column("recommendations", sa.Text()),
        sa.Column("next_steps", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    actor_type = _enum("actortype", "parent", "therapist", "admin", "system")
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_type", actor_type),
        sa.Column("actor_id", sa.Integer()),
        sa.Column("action", sa.String(length=255)),
        sa.Column("payload", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "demo_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slot_date", sa.Date(), index=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True)),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.UniqueConstraint("slot_date", "start_time", name="uq_demo_slot_date_time"),
    )

    demo_booking_status = _enum("demobookingstatus", "scheduled", "completed", "cancelled")
    op.create_table(
        "demo_bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "demo_slot_id",
            sa.Integer(),
            sa.ForeignKey("demo_slots.id", ondelete="RESTRICT"),
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("mobile", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.Text()),
        sa.Column("status", demo_booking_status, server_default="scheduled"),
        sa.Column("user_query", sa.Text()),
        sa.Column("converted", sa.Boolean(), server_default=sa.false()),
        sa.Column("additional_notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "uq_demo_booking_active_slot",
        "demo_bookings",
        ["demo_slot_id"],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'"),
    )


def downgrade() -> None:
    op.drop_index("uq_demo_booking_active_slot", table_name="demo_bookings")
    op.drop_table("demo_bookings")
    op.drop_table("demo_slots")
    op.drop_table("audit_logs")
    op.drop_table("session_reports")
    op.drop_table("session_feedback")
    op.drop_table("notifications")
    op.drop_table("therapist_leaves")
    op.drop_index("uq_booking_active_slot", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("recurring_bookings")
    op.drop_table("time_slots")
    op.drop_table("children")
    op.drop_table("therapist_active_times")
    op.drop_table("therapists")
    op.drop_table("parents")
    op.drop_table("users")
    for name in (
        "demobookingstatus",
        "actortype",
        "notificationstatus",
        "notificationtype",
        "leavestatus",
        "leavetype",
        "bookingstatus",
        "therapiststatus",
        "userrole",
    ):
        postgresql.ENUM(name=name).drop(op.get_bind(), checkfirst=True)
