"""Initial schema: hotels, room types, rooms, users, holds, reservations.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "hotels",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "room_types",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("hotel_id", sa.Uuid(), sa.ForeignKey("hotels.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("max_guests", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("max_guests > 0", name="check_room_type_max_guests_positive"),
    )
    op.create_index("ix_room_types_hotel_id", "room_types", ["hotel_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("hotel_id", sa.Uuid(), sa.ForeignKey("hotels.id"), nullable=False),
        sa.Column("room_type_id", sa.Uuid(), sa.ForeignKey("room_types.id"), nullable=False),
        sa.Column("room_number", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'AVAILABLE'")),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('AVAILABLE', 'OCCUPIED', 'MAINTENANCE', 'OUT_OF_SERVICE')",
            name="room_status",
        ),
    )
    op.create_index("ix_rooms_hotel_id", "rooms", ["hotel_id"])

    op.create_table(
        "reservation_holds",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("hotel_id", sa.Uuid(), sa.ForeignKey("hotels.id"), nullable=False),
        sa.Column("room_id", sa.Uuid(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'ACTIVE'")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("end_date > start_date", name="check_hold_dates_ordered"),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'EXPIRED', 'CANCELLED', 'CONVERTED')",
            name="hold_status",
        ),
    )
    op.create_index("ix_reservation_holds_hotel_id", "reservation_holds", ["hotel_id"])
    op.create_index("ix_reservation_holds_user_id", "reservation_holds", ["user_id"])
    # Overlap query: WHERE room_id = ? AND start_date < ? AND end_date > ?
    op.create_index("ix_holds_room_dates", "reservation_holds", ["room_id", "start_date", "end_date"])
    # Sweep query: WHERE status = 'ACTIVE' AND expires_at <= now
    op.create_index("ix_holds_status_expires", "reservation_holds", ["status", "expires_at"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("hotel_id", sa.Uuid(), sa.ForeignKey("hotels.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("room_id", sa.Uuid(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("room_type_id", sa.Uuid(), sa.ForeignKey("room_types.id"), nullable=False),
        sa.Column(
            "hold_id", sa.Uuid(),
            sa.ForeignKey("reservation_holds.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("guest_count", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=True),
        sa.Column("special_requests", sa.String(2000), nullable=True),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("end_date > start_date", name="check_reservation_dates_ordered"),
        sa.CheckConstraint("guest_count > 0", name="check_reservation_guest_count_positive"),
        sa.CheckConstraint(
            "total_amount IS NULL OR total_amount >= 0",
            name="check_reservation_amount_non_negative",
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'CANCELLED', 'CHECKED_IN', 'CHECKED_OUT')",
            name="reservation_status",
        ),
    )
    op.create_index("ix_reservations_hotel_id", "reservations", ["hotel_id"])
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])
    op.create_index("ix_reservations_room_dates", "reservations", ["room_id", "start_date", "end_date"])
    op.create_index("ix_reservations_status", "reservations", ["status"])

    # EXCLUSION CONSTRAINTS: second layer under the room gate.
    # If two writers ever slipped past the gate (misconfigured gate backend,
    # manual SQL), PostgreSQL itself rejects the second overlapping live row.
    # daterange(start, end) is '[)' by default, matching the half-open overlap rule.
    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE reservations
            ADD CONSTRAINT excl_reservations_room_overlap
            EXCLUDE USING gist (room_id WITH =, daterange(start_date, end_date) WITH &&)
            WHERE (status IN ('PENDING', 'CONFIRMED', 'CHECKED_IN'))
            """
        )
        op.execute(
            """
            ALTER TABLE reservation_holds
            ADD CONSTRAINT excl_holds_room_overlap
            EXCLUDE USING gist (room_id WITH =, daterange(start_date, end_date) WITH &&)
            WHERE (status = 'ACTIVE')
            """
        )


def downgrade() -> None:
    op.drop_table("reservations")
    op.drop_table("reservation_holds")
    op.drop_table("rooms")
    op.drop_table("room_types")
    op.drop_table("users")
    op.drop_table("hotels")
