"""Create profiles, speaker_profiles, session_slots and bookings

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Initial schema for the booking service.
How:   Portable column types (string ids, non-native enum) so the same
       revision runs on PostgreSQL and SQLite.

Constraints that carry business rules:
    - profiles.email UNIQUE                       one account per address
    - uq_slot_speaker_date_hour                   one slot per speaker-hour
    - bookings.slot_id UNIQUE                     one booking per slot

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column(
            "role",
            sa.Enum("ATTENDEE", "SPEAKER", "ADMIN", name="user_role", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("otp_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("otp_hash", sa.String(255), nullable=True, comment="Set only in strict OTP mode"),
        sa.Column("otp_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)

    op.create_table(
        "speaker_profiles",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("expertise", sa.Text(), nullable=True),
        sa.Column("price_per_hour", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        sa.ForeignKeyConstraint(["id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_speaker_profiles"),
        sa.CheckConstraint("price_per_hour >= 0", name="ck_speaker_price_non_negative"),
    )

    op.create_table(
        "session_slots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("speaker_id", sa.String(64), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("hour", sa.Integer(), nullable=False),
        sa.Column("is_booked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["speaker_id"], ["speaker_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_session_slots"),
        sa.UniqueConstraint("speaker_id", "session_date", "hour", name="uq_slot_speaker_date_hour"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("slot_id", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("qr_code_url", sa.Text(), nullable=True, comment="PNG data URL of the ticket"),
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("calendar_event_id", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["slot_id"], ["session_slots.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_bookings"),
        sa.UniqueConstraint("slot_id", name="uq_bookings_slot_id"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index(
        "idx_bookings_created_at",
        "bookings",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_bookings_created_at", table_name="bookings")
    op.drop_index("ix_bookings_user_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("session_slots")
    op.drop_table("speaker_profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")
