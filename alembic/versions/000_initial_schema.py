"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-15

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

userrole = postgresql.ENUM("admin", "publisher", name="userrole", create_type=False)
adnetwork = postgresql.ENUM("sedo", "yandex", name="adnetwork", create_type=False)
auditaction = postgresql.ENUM(
    "login",
    "logout",
    "create_user",
    "update_user",
    "deactivate_user",
    "assign_domain",
    "unassign_domain",
    "discover_domains",
    "create_network_account",
    "update_network_account",
    "delete_network_account",
    "update_settings",
    "manual_sync",
    name="auditaction",
    create_type=False,
)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _metrics():
    return [
        sa.Column("gross_revenue", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("net_revenue", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("impressions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ctr", sa.Numeric(8, 2), nullable=True),
        sa.Column("rpm", sa.Numeric(12, 2), nullable=True),
    ]


def _ledger_columns():
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("domain", sa.String(255), nullable=True),
        *_metrics(),
        sa.Column("rev_share", sa.Numeric(5, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="estimated"),
        sa.Column(
            "account_id",
            sa.Integer(),
            sa.ForeignKey("network_accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
    ]


def upgrade() -> None:
    """Create all initial tables."""
    bind = op.get_bind()
    for enum_type in (userrole, adnetwork, auditaction):
        enum_type.create(bind, checkfirst=True)

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", userrole, nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # Network accounts (encrypted credentials)
    op.create_table(
        "network_accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("network", adnetwork, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("credentials", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_network_accounts_network", "network_accounts", ["network"])

    # Domain assignments
    op.create_table(
        "domain_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("network", adnetwork, nullable=False),
        sa.Column("rev_share", sa.Numeric(5, 2), nullable=False, server_default="80"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "account_id",
            sa.Integer(),
            sa.ForeignKey("network_accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "domain", "network", name="uq_domain_assignment_user_domain_network"),
    )
    op.create_index("ix_domain_assignments_user_id", "domain_assignments", ["user_id"])
    op.create_index("ix_domain_assignments_domain", "domain_assignments", ["domain"])
    op.create_index("ix_domain_assignments_network", "domain_assignments", ["network"])

    # Sedo ledger
    op.create_table(
        "sedo_ledger",
        *_ledger_columns(),
        sa.Column("c1", sa.String(255), nullable=True),
        sa.Column("c2", sa.String(255), nullable=True),
        sa.Column("c3", sa.String(255), nullable=True),
        sa.UniqueConstraint("date", "domain", "c1", "c2", "c3", "user_id", name="uq_sedo_ledger_key"),
    )
    op.create_index("ix_sedo_ledger_date", "sedo_ledger", ["date"])
    op.create_index("ix_sedo_ledger_user_id", "sedo_ledger", ["user_id"])
    op.create_index("ix_sedo_ledger_date_domain", "sedo_ledger", ["date", "domain"])

    # Yandex ledger
    op.create_table(
        "yandex_ledger",
        *_ledger_columns(),
        sa.Column("tag_id", sa.String(100), nullable=True),
        sa.Column("tag_name", sa.String(255), nullable=True),
        sa.UniqueConstraint("date", "domain", "tag_id", "user_id", name="uq_yandex_ledger_key"),
    )
    op.create_index("ix_yandex_ledger_date", "yandex_ledger", ["date"])
    op.create_index("ix_yandex_ledger_user_id", "yandex_ledger", ["user_id"])
    op.create_index("ix_yandex_ledger_date_domain", "yandex_ledger", ["date", "domain"])

    # Overview reports (folded from the ledgers)
    op.create_table(
        "overview_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("network", adnetwork, nullable=False),
        sa.Column("domain", sa.String(255), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False),
        *_metrics(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("date", "network", "domain", "user_id", name="uq_overview_key"),
    )
    op.create_index("ix_overview_reports_date", "overview_reports", ["date"])
    op.create_index("ix_overview_reports_network", "overview_reports", ["network"])
    op.create_index("ix_overview_reports_user_id", "overview_reports", ["user_id"])

    # System settings
    op.create_table(
        "system_settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=False),
    )

    # Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", auditaction, nullable=False),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("audit_logs")
    op.drop_table("system_settings")
    op.drop_table("overview_reports")
    op.drop_table("yandex_ledger")
    op.drop_table("sedo_ledger")
    op.drop_table("domain_assignments")
    op.drop_table("network_accounts")
    op.drop_table("users")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS auditaction")
    op.execute("DROP TYPE IF EXISTS adnetwork")
    op.execute("DROP TYPE IF EXISTS userrole")
