"""Aftercare initial schema: returns, repairs, tickets, chat, appointments, feedback

Revision ID: 20261019_aftercare_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_aftercare_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ------------------------------------------------------------------
    # Returns
    # ------------------------------------------------------------------
    op.create_table(
        "return_requests",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("order_id", sa.String(64), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="eligibility"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id", name="pk_return_requests"),
    )
    with op.batch_alter_table("return_requests", schema=None) as batch_op:
        batch_op.create_index("ix_return_requests_order_id", ["order_id"], unique=False)
        batch_op.create_index("ix_return_requests_status", ["status"], unique=False)
        batch_op.create_index("ix_return_requests_created_at", ["created_at"], unique=False)
        batch_op.create_index("ix_return_requests_order_status", ["order_id", "status"], unique=False)

    op.create_table(
        "return_items",
        sa.Column("rma_id", sa.String(32), nullable=False),
        sa.Column("order_item_id", sa.String(64), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.Column("condition", sa.String(16), nullable=True),
        sa.Column("disposition", sa.String(16), nullable=True),
        sa.Column("fees_cents", sa.Integer(), nullable=True),
        sa.CheckConstraint("qty > 0", name="ck_return_items_qty_positive"),
        sa.CheckConstraint("fees_cents IS NULL OR fees_cents >= 0", name="ck_return_items_fees_non_negative"),
        sa.ForeignKeyConstraint(["rma_id"], ["return_requests.id"], name="fk_return_items_rma_id_return_requests"),
        sa.PrimaryKeyConstraint("rma_id", "order_item_id", name="pk_return_items"),
    )

    # ------------------------------------------------------------------
    # Repairs
    # ------------------------------------------------------------------
    op.create_table(
        "repairs",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("order_item_id", sa.String(64), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id", name="pk_repairs"),
    )
    with op.batch_alter_table("repairs", schema=None) as batch_op:
        batch_op.create_index("ix_repairs_order_item_id", ["order_item_id"], unique=False)
        batch_op.create_index("ix_repairs_status", ["status"], unique=False)

    # ------------------------------------------------------------------
    # Support tickets
    # ------------------------------------------------------------------
    op.create_table(
        "support_tickets",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("order_id", sa.String(64), nullable=True),
        sa.Column("source", sa.String(16), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="open"),
        sa.Column("priority", sa.String(16), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id", name="pk_support_tickets"),
    )
    with op.batch_alter_table("support_tickets", schema=None) as batch_op:
        batch_op.create_index("ix_support_tickets_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_support_tickets_order_id", ["order_id"], unique=False)
        batch_op.create_index("ix_support_tickets_status_created", ["status", "created_at"], unique=False)

    op.create_table(
        "ticket_messages",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("ticket_id", sa.String(32), nullable=False),
        sa.Column("sender", sa.String(16), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["ticket_id"], ["support_tickets.id"], name="fk_ticket_messages_ticket_id_support_tickets"),
        sa.PrimaryKeyConstraint("id", name="pk_ticket_messages"),
    )
    with op.batch_alter_table("ticket_messages", schema=None) as batch_op:
        batch_op.create_index("ix_ticket_messages_ticket_id", ["ticket_id"], unique=False)

    # ------------------------------------------------------------------
    # Live chat
    # ------------------------------------------------------------------
    op.create_table(
        "chat_sessions",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("agent_id", sa.String(64), nullable=True),
        sa.Column("topic", sa.String(255), nullable=True),
        sa.Column("priority", sa.String(16), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="waiting"),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id", name="pk_chat_sessions"),
    )
    with op.batch_alter_table("chat_sessions", schema=None) as batch_op:
        batch_op.create_index("ix_chat_sessions_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_chat_sessions_status", ["status"], unique=False)
        batch_op.create_index("ix_chat_sessions_agent_status", ["agent_id", "status"], unique=False)

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("session_id", sa.String(32), nullable=False),
        sa.Column("sender_id", sa.String(64), nullable=True),
        sa.Column("sender_type", sa.String(16), nullable=False),
        sa.Column("message_type", sa.String(32), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("is_automated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["chat_sessions.id"], name="fk_chat_messages_session_id_chat_sessions"),
        sa.PrimaryKeyConstraint("id", name="pk_chat_messages"),
    )
    with op.batch_alter_table("chat_messages", schema=None) as batch_op:
        batch_op.create_index("ix_chat_messages_session_id", ["session_id"], unique=False)

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------
    op.create_table(
        "appointments",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("location_id", sa.String(64), nullable=True),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="scheduled"),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint("end_at > start_at", name="ck_appointments_end_after_start"),
        sa.PrimaryKeyConstraint("id", name="pk_appointments"),
    )
    with op.batch_alter_table("appointments", schema=None) as batch_op:
        batch_op.create_index("ix_appointments_status", ["status"], unique=False)
        batch_op.create_index("ix_appointments_user_window", ["user_id", "start_at", "end_at"], unique=False)
        batch_op.create_index("ix_appointments_location_start", ["location_id", "start_at"], unique=False)

    op.create_table(
        "booking_subjects",
        sa.Column("subject_id", sa.String(64), nullable=False),
        sa.Column("last_booked_at", sa.DateTime(), nullable=False),
        sa.Column("booking_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("subject_id", name="pk_booking_subjects"),
    )

    # Backstop for the subject lock: no two live appointments of one user may
    # overlap. tsrange defaults to '[)', matching the half-open booking rule.
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            "ALTER TABLE appointments ADD CONSTRAINT ex_appointments_user_no_overlap "
            "EXCLUDE USING gist (user_id WITH =, tsrange(start_at, end_at) WITH &&) "
            "WHERE (status <> 'cancelled')"
        )

    # ------------------------------------------------------------------
    # Feedback & goodwill
    # ------------------------------------------------------------------
    op.create_table(
        "customer_feedback",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("ticket_id", sa.String(32), nullable=True),
        sa.Column("order_id", sa.String(64), nullable=True),
        sa.Column("nps_score", sa.Integer(), nullable=True),
        sa.Column("csat_score", sa.Integer(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "nps_score IS NULL OR (nps_score >= 0 AND nps_score <= 10)",
            name="ck_customer_feedback_nps_range",
        ),
        sa.CheckConstraint(
            "csat_score IS NULL OR (csat_score >= 1 AND csat_score <= 5)",
            name="ck_customer_feedback_csat_range",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_customer_feedback"),
    )
    with op.batch_alter_table("customer_feedback", schema=None) as batch_op:
        batch_op.create_index("ix_customer_feedback_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_customer_feedback_ticket_id", ["ticket_id"], unique=False)
        batch_op.create_index("ix_customer_feedback_order_id", ["order_id"], unique=False)
        batch_op.create_index("ix_customer_feedback_created_at", ["created_at"], unique=False)

    op.create_table(
        "goodwill_records",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("order_id", sa.String(64), nullable=True),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("value_cents", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("value_cents > 0", name="ck_goodwill_records_value_positive"),
        sa.PrimaryKeyConstraint("id", name="pk_goodwill_records"),
    )
    with op.batch_alter_table("goodwill_records", schema=None) as batch_op:
        batch_op.create_index("ix_goodwill_records_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_goodwill_records_order_id", ["order_id"], unique=False)
        batch_op.create_index("ix_goodwill_records_type", ["type"], unique=False)


def downgrade():
    op.drop_table("goodwill_records")
    op.drop_table("customer_feedback")
    op.drop_table("booking_subjects")
    op.drop_table("appointments")
    op.drop_table("chat_messages")
    op.drop_table("chat_sessions")
    op.drop_table("ticket_messages")
    op.drop_table("support_tickets")
    op.drop_table("repairs")
    op.drop_table("return_items")
    op.drop_table("return_requests")
