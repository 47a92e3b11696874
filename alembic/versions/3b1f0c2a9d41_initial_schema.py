"""initial schema: businesses, professionals, schedules, services, clients,
loyalty points, appointments, blocked slots

Revision ID: 3b1f0c2a9d41
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1f0c2a9d41"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

STATUS_ENUM = sa.Enum(
    "confirmed", "completed", "cancelled", name="appointment_status_enum"
)


def _now():
    return sa.text("CURRENT_TIMESTAMP")


def upgrade() -> None:
    op.create_table(
        "businesses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(160), nullable=False),
        sa.Column(
            "timezone",
            sa.String(64),
            nullable=False,
            server_default="America/Sao_Paulo",
        ),
        sa.Column(
            "notifications_enabled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column("whatsapp_phone", sa.String(32)),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=_now()
        ),
    )

    op.create_table(
        "professionals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "business_id",
            sa.Integer(),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(32)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=_now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=_now()
        ),
    )
    op.create_index("ix_professionals_business_id", "professionals", ["business_id"])

    op.create_table(
        "professional_schedules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "professional_id",
            sa.Integer(),
            sa.ForeignKey("professionals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("start_time", sa.Time()),
        sa.Column("end_time", sa.Time()),
        sa.UniqueConstraint(
            "professional_id", "day_of_week", name="uq_schedule_prof_weekday"
        ),
        sa.CheckConstraint(
            "day_of_week >= 0 AND day_of_week <= 6", name="ck_schedule_weekday"
        ),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "business_id",
            sa.Integer(),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_service_duration"),
    )
    op.create_index("ix_services_business_id", "services", ["business_id"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "business_id",
            sa.Integer(),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("full_name", sa.String(160), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("email", sa.String(254)),
        sa.Column("telegram_chat_id", sa.String(64)),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=_now()
        ),
        sa.UniqueConstraint("business_id", "phone", name="uq_client_business_phone"),
    )
    op.create_index("ix_clients_business_id", "clients", ["business_id"])

    op.create_table(
        "loyalty_points",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "client_id",
            sa.Integer(),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("service_key", sa.String(255), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("client_id", "service_key", name="uq_loyalty_client_key"),
        sa.CheckConstraint("points >= 0 AND points < 10", name="ck_loyalty_range"),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "business_id",
            sa.Integer(),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "professional_id",
            sa.Integer(),
            sa.ForeignKey("professionals.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "client_id",
            sa.Integer(),
            sa.ForeignKey("clients.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("service_name", sa.String(500), nullable=False),
        sa.Column("price", sa.Numeric(10, 2)),
        sa.Column("status", STATUS_ENUM, nullable=False, server_default="confirmed"),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancellation_token", sa.String(64), nullable=False),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True)),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=_now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=_now()
        ),
        sa.CheckConstraint("end_time > start_time", name="ck_appt_time_order"),
    )
    op.create_index(
        "ux_appt_prof_start_active",
        "appointments",
        ["professional_id", "start_time"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )
    op.create_index(
        "ix_appt_professional_start", "appointments", ["professional_id", "start_time"]
    )
    op.create_index("ix_appt_client_id", "appointments", ["client_id"])

    op.create_table(
        "blocked_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "business_id",
            sa.Integer(),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "professional_id",
            sa.Integer(),
            sa.ForeignKey("professionals.id", ondelete="CASCADE"),
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(255)),
        sa.CheckConstraint("end_time > start_time", name="ck_blocked_time_order"),
    )
    op.create_index(
        "ix_blocked_slots_professional_id", "blocked_slots", ["professional_id"]
    )
    op.create_index(
        "ix_blocked_business_start", "blocked_slots", ["business_id", "start_time"]
    )


def downgrade() -> None:
    op.drop_table("blocked_slots")
    op.drop_index("ix_appt_client_id", table_name="appointments")
    op.drop_index("ix_appt_professional_start", table_name="appointments")
    op.drop_index("ux_appt_prof_start_active", table_name="appointments")
    op.drop_table("appointments")
    STATUS_ENUM.drop(op.get_bind(), checkfirst=True)
    op.drop_table("loyalty_points")
    op.drop_table("clients")
    op.drop_table("services")
    op.drop_table("professional_schedules")
    op.drop_table("professionals")
    op.drop_table("businesses")
