from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


APPEND_ONLY_TABLES = ("contracts", "activity_logs", "price_history")


def _audit_columns():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "offices",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        *_audit_columns(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("office_id", sa.String(), sa.ForeignKey("offices.id"), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_audit_columns(),
    )
    op.create_index("ix_users_office_id", "users", ["office_id"])

    op.create_table(
        "listings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("office_id", sa.String(), sa.ForeignKey("offices.id"), nullable=False),
        sa.Column("transaction_kind", sa.String(length=30), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="ACTIVE"),
        sa.Column("property_type", sa.String(length=30), nullable=True),
        sa.Column("area", sa.Integer(), nullable=True),
        sa.Column("floor_number", sa.Integer(), nullable=True),
        sa.Column("total_floors", sa.Integer(), nullable=True),
        sa.Column("building_age", sa.Integer(), nullable=True),
        sa.Column("sale_price", sa.BigInteger(), nullable=True),
        sa.Column("deposit_amount", sa.BigInteger(), nullable=True),
        sa.Column("rent_amount", sa.BigInteger(), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("neighborhood", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("has_elevator", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_parking", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_storage", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_balcony", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_security", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_audit_columns(),
    )
    op.create_index("ix_listings_office_id", "listings", ["office_id"])
    op.create_index("ix_listings_status", "listings", ["status"])

    op.create_table(
        "contacts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.String(length=500), nullable=True),
    )
    op.create_index("ix_contacts_listing_id", "contacts", ["listing_id"])

    op.create_table(
        "agent_assignments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("listing_id", "user_id", name="uq_assignment_listing_user"),
    )
    op.create_index("ix_agent_assignments_listing_id", "agent_assignments", ["listing_id"])
    op.create_index("ix_agent_assignments_user_id", "agent_assignments", ["user_id"])

    op.create_table(
        "contracts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("office_id", sa.String(), sa.ForeignKey("offices.id"), nullable=False),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id"), nullable=False, unique=True),
        sa.Column("finalized_by", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("transaction_kind", sa.String(length=30), nullable=False),
        sa.Column("final_price", sa.BigInteger(), nullable=False),
        sa.Column("commission_amount", sa.BigInteger(), nullable=False),
        sa.Column("agent_share", sa.BigInteger(), nullable=False),
        sa.Column("office_share", sa.BigInteger(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("agent_share >= 0 AND agent_share <= commission_amount", name="ck_contract_agent_share"),
        sa.CheckConstraint("office_share = commission_amount - agent_share", name="ck_contract_office_share"),
    )
    op.create_index("ix_contracts_office_id", "contracts", ["office_id"])

    op.create_table(
        "share_links",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("created_by", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False, unique=True),
        sa.Column("custom_price", sa.BigInteger(), nullable=True),
        sa.Column("custom_deposit_amount", sa.BigInteger(), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_share_links_listing_id", "share_links", ["listing_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", sa.String(length=40), nullable=False),
        sa.Column("diff", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_listing_id", "activity_logs", ["listing_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])

    op.create_table(
        "price_history",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("changed_by", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("price_field", sa.String(length=30), nullable=False),
        sa.Column("old_amount", sa.BigInteger(), nullable=True),
        sa.Column("new_amount", sa.BigInteger(), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_price_history_listing_id", "price_history", ["listing_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id"), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    # Ledger tables reject UPDATE/DELETE at the database level too
    op.execute(
        """
        CREATE OR REPLACE FUNCTION reject_append_only_change() RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION '% rows are append-only', TG_TABLE_NAME;
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    for table in APPEND_ONLY_TABLES:
        op.execute(
            f"CREATE TRIGGER {table}_append_only BEFORE UPDATE OR DELETE ON {table} "
            f"FOR EACH ROW EXECUTE FUNCTION reject_append_only_change();"
        )


def downgrade() -> None:
    for table in APPEND_ONLY_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS {table}_append_only ON {table};")
    op.execute("DROP FUNCTION IF EXISTS reject_append_only_change();")

    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_price_history_listing_id", table_name="price_history")
    op.drop_table("price_history")
    op.drop_index("ix_activity_logs_action", table_name="activity_logs")
    op.drop_index("ix_activity_logs_listing_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_share_links_listing_id", table_name="share_links")
    op.drop_table("share_links")
    op.drop_index("ix_contracts_office_id", table_name="contracts")
    op.drop_table("contracts")
    op.drop_index("ix_agent_assignments_user_id", table_name="agent_assignments")
    op.drop_index("ix_agent_assignments_listing_id", table_name="agent_assignments")
    op.drop_table("agent_assignments")
    op.drop_index("ix_contacts_listing_id", table_name="contacts")
    op.drop_table("contacts")
    op.drop_index("ix_listings_status", table_name="listings")
    op.drop_index("ix_listings_office_id", table_name="listings")
    op.drop_table("listings")
    op.drop_index("ix_users_office_id", table_name="users")
    op.drop_table("users")
    op.drop_table("offices")
