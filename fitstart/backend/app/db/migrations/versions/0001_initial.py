from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    "userrole": ("user", "venue_owner", "admin"),
    "deviceplatform": ("android", "ios", "web"),
    "venuecategory": (
        "football",
        "basketball",
        "badminton",
        "tennis",
        "volleyball",
        "cricket",
        "swimming",
        "gym",
        "other",
    ),
    "bookingstatus": ("pending", "confirmed", "cancelled", "completed", "no_show"),
    "paymentstatus": ("pending", "completed", "failed", "refunded"),
    "paymentmethod": ("razorpay", "cash", "card", "wallet"),
    "notificationtype": ("booking", "payment", "membership", "promotion", "reminder", "system"),
    "interactiontype": ("view", "favorite", "unfavorite", "booking", "search", "share"),
    "actortype": ("user", "admin", "system"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255)),
        sa.Column("role", _enum("userrole"), server_default="user"),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("profile_image", sa.String(length=512)),
        sa.Column("notifications_enabled", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "device_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE")),
        sa.Column("token", sa.String(length=512), nullable=False),
        sa.Column("platform", _enum("deviceplatform"), server_default="android"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "token", name="uq_device_token_user_token"),
    )
    op.create_index("ix_device_tokens_user_id", "device_tokens", ["user_id"])

    op.create_table(
        "venues",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", _enum("venuecategory"), nullable=False),
        sa.Column("description", sa.Text(), server_default=""),
        sa.Column("address", sa.String(length=512), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("open_time", sa.String(length=5), nullable=False),
        sa.Column("close_time", sa.String(length=5), nullable=False),
        sa.Column("open_days", sa.String(length=64), server_default="Monday - Sunday"),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.CHAR(length=3), server_default="INR"),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("is_verified", sa.Boolean(), server_default=sa.false()),
        sa.Column("booking_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating_average", sa.Float(), server_default="0"),
        sa.Column("rating_count", sa.Integer(), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("hourly_rate >= 0", name="ck_venue_hourly_rate_non_negative"),
        sa.CheckConstraint("open_time < close_time", name="ck_venue_operating_hours"),
    )

    op.create_table(
        "user_favorites",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE")),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id", ondelete="CASCADE")),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("total_hours", sa.Integer(), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.CHAR(length=3), server_default="INR"),
        sa.Column("payment_status", _enum("paymentstatus"), nullable=False, server_default="pending"),
        sa.Column("payment_method", _enum("paymentmethod"), server_default="razorpay"),
        sa.Column("payment_receipt", sa.String(length=40), nullable=False, unique=True),
        sa.Column("provider_order_id", sa.String(length=64)),
        sa.Column("provider_payment_id", sa.String(length=128)),
        sa.Column("provider_signature", sa.String(length=256)),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.Column("booking_status", _enum("bookingstatus"), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text()),
        sa.Column("cancellation_reason", sa.String(length=255)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_by", sa.String(length=64)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("total_hours > 0", name="ck_booking_total_hours_positive"),
    )
    op.create_index("ix_booking_venue_date", "bookings", ["venue_id", "booking_date"])
    op.create_index("ix_booking_user_created", "bookings", ["user_id", "created_at"])
    op.create_index("ix_bookings_booking_status", "bookings", ["booking_status"])
    op.create_index("ix_bookings_provider_order_id", "bookings", ["provider_order_id"])

    op.create_table(
        "booking_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE")),
        sa.Column("position", sa.Integer(), server_default="0"),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.CheckConstraint("start_time < end_time", name="ck_booking_slot_range"),
    )
    op.create_index("ix_booking_slots_booking_id", "booking_slots", ["booking_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE")),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("type", _enum("notificationtype"), server_default="system"),
        sa.Column("data", sa.JSON()),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True)),
        sa.Column("sent_via_push", sa.Boolean(), server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notification_user_created", "notifications", ["user_id", "created_at"])
    op.create_index("ix_notification_user_read", "notifications", ["user_id", "is_read"])

    op.create_table(
        "interactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE")),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id", ondelete="CASCADE")),
        sa.Column("interaction_type", _enum("interactiontype")),
        sa.Column("payload", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_interaction_user_type", "interactions", ["user_id", "interaction_type", "created_at"]
    )
    op.create_index("ix_interaction_venue_type", "interactions", ["venue_id", "interaction_type"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_type", _enum("actortype")),
        sa.Column("actor_id", sa.Integer()),
        sa.Column("action", sa.String(length=255)),
        sa.Column("entity_type", sa.String(length=64)),
        sa.Column("entity_id", sa.Integer()),
        sa.Column("payload", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_entity", "audit_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_entity", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("interactions")
    op.drop_table("notifications")
    op.drop_table("booking_slots")
    op.drop_index("ix_booking_venue_date", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("user_favorites")
    op.drop_table("venues")
    op.drop_table("device_tokens")
    op.drop_table("users")
    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
