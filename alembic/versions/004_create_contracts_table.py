"""create contracts table

Revision ID: 004
Revises: 003
Create Date: 2025-03-05 18:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("landlord_id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=True),
        sa.Column("tenant_email", sa.String(320), nullable=False),
        sa.Column("tenant_name", sa.String(255), nullable=False),
        sa.Column("tenant_rut", sa.String(12), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("rent_amount", sa.Integer(), nullable=False),
        sa.Column("rent_payment_day", sa.Integer(), nullable=True),
        sa.Column("security_deposit_amount", sa.Integer(), nullable=True),
        sa.Column("property_usage", sa.String(20), nullable=False, server_default="residential"),
        sa.Column("ipc_adjustment", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ipc_adjustment_frequency", sa.String(20), nullable=True),
        sa.Column("prohibition_to_sublet", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("special_clauses", sa.Text(), nullable=True),
        sa.Column("signature_token", sa.String(64), nullable=False),
        sa.Column("signed_by_tenant", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tenant_signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signed_by_landlord", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("landlord_signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
        sa.ForeignKeyConstraint(["landlord_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["tenant_id"], ["users.id"]),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'finished', 'cancelled', 'archived')",
            name="ck_contracts_status",
        ),
        sa.CheckConstraint("end_date >= start_date", name="ck_contracts_end_after_start"),
        sa.CheckConstraint("rent_amount > 0", name="ck_contracts_rent_amount_positive"),
        sa.CheckConstraint(
            "rent_payment_day IS NULL OR (rent_payment_day >= 1 AND rent_payment_day <= 31)",
            name="ck_contracts_rent_payment_day_range",
        ),
        # The landlord signs only after the tenant
        sa.CheckConstraint(
            "NOT signed_by_landlord OR signed_by_tenant",
            name="ck_contracts_tenant_signs_first",
        ),
        # A contract is active only with both signatures
        sa.CheckConstraint(
            "status <> 'active' OR (signed_by_tenant AND signed_by_landlord)",
            name="ck_contracts_active_fully_signed",
        ),
    )
    op.create_index("ix_contracts_id", "contracts", ["id"], unique=False)
    op.create_index("ix_contracts_property_id", "contracts", ["property_id"], unique=False)
    op.create_index("ix_contracts_landlord_id", "contracts", ["landlord_id"], unique=False)
    op.create_index("ix_contracts_tenant_id", "contracts", ["tenant_id"], unique=False)
    op.create_index("ix_contracts_tenant_email", "contracts", ["tenant_email"], unique=False)
    op.create_index("ix_contracts_signature_token", "contracts", ["signature_token"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_contracts_signature_token", table_name="contracts")
    op.drop_index("ix_contracts_tenant_email", table_name="contracts")
    op.drop_index("ix_contracts_tenant_id", table_name="contracts")
    op.drop_index("ix_contracts_landlord_id", table_name="contracts")
    op.drop_index("ix_contracts_property_id", table_name="contracts")
    op.drop_index("ix_contracts_id", table_name="contracts")
    op.drop_table("contracts")
