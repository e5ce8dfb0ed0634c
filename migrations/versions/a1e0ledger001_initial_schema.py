"""initial ledger schema

Revision ID: a1e0ledger001
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


revision = "a1e0ledger001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ---- Catálogo ----
    op.create_table(
        "branches",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("code", sa.String(length=10), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="CAJERO"),
        sa.Column("branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("sku", sa.String(length=60), nullable=True),
        sa.Column("unit", sa.String(length=40), nullable=False, server_default="unidad"),
        sa.Column("cost_price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("retail_price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wholesale_price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sku"),
    )

    op.create_table(
        "unit_conversions",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("product_id", sa.String(length=32), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("unit_name", sa.String(length=80), nullable=False),
        sa.Column("unit_symbol", sa.String(length=20), nullable=False),
        sa.Column("conversion_factor", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("unit_type", sa.String(length=10), nullable=False),
        sa.Column("retail_price", sa.Integer(), nullable=True),
        sa.Column("wholesale_price", sa.Integer(), nullable=True),
        sa.Column("sales_type", sa.String(length=10), nullable=False, server_default="BOTH"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_unit_conversions_product_id", "unit_conversions", ["product_id"])
    op.create_index("ix_unit_conversions_product_type", "unit_conversions", ["product_id", "unit_type"])

    op.create_table(
        "customers",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=180), nullable=True),
        sa.Column("tax_id", sa.String(length=40), nullable=True),
        sa.Column("customer_type", sa.String(length=20), nullable=False, server_default="RETAIL"),
        sa.Column("credit_limit", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_debt", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customers_name", "customers", ["name"])

    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("contact_name", sa.String(length=120), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("tax_id", sa.String(length=40), nullable=True),
        sa.Column("credit_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("credit_limit", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # ---- Inventario ----
    op.create_table(
        "stocks",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("product_id", sa.String(length=32), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "branch_id", name="uq_stock_product_branch"),
        sa.CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
    )
    op.create_index("ix_stocks_branch", "stocks", ["branch_id"])

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("product_id", sa.String(length=32), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("move_type", sa.String(length=20), nullable=False),
        sa.Column("direction", sa.SmallInteger(), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("reference_id", sa.String(length=32), nullable=True),
        sa.Column("user_id", sa.String(length=32), nullable=True),
        sa.Column("note", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stock_movements_reference_id", "stock_movements", ["reference_id"])
    op.create_index(
        "ix_stock_movements_product_branch_date", "stock_movements", ["product_id", "branch_id", "created_at"]
    )

    op.create_table(
        "stock_transfers",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("from_branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("to_branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("transfer_type", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("approved_by", sa.String(length=32), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("shipped_by", sa.String(length=32), nullable=True),
        sa.Column("shipped_at", sa.DateTime(), nullable=True),
        sa.Column("completed_by", sa.String(length=32), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_by", sa.String(length=32), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("stock_transfers") as batch_op:
        batch_op.create_index(batch_op.f("ix_stock_transfers_from_branch_id"), ["from_branch_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_stock_transfers_to_branch_id"), ["to_branch_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_stock_transfers_status"), ["status"], unique=False)

    op.create_table(
        "stock_transfer_items",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("transfer_id", sa.String(length=32), sa.ForeignKey("stock_transfers.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("product_id", sa.String(length=32), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("product_name", sa.String(length=160), nullable=True),
        sa.Column("unit_id", sa.String(length=32), sa.ForeignKey("unit_conversions.id"), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column("base_quantity", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stock_transfer_items_transfer_id", "stock_transfer_items", ["transfer_id"])

    # ---- Ventas / compras ----
    op.create_table(
        "sales",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("customer_id", sa.String(length=32), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("sale_type", sa.String(length=10), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=True),
        sa.Column("subtotal", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tax", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="ACTIVE"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("cancelled_by", sa.String(length=32), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("sales") as batch_op:
        batch_op.create_index(batch_op.f("ix_sales_branch_id"), ["branch_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_sales_customer_id"), ["customer_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_sales_status"), ["status"], unique=False)
        batch_op.create_index(batch_op.f("ix_sales_created_at"), ["created_at"], unique=False)
        batch_op.create_index("ix_sales_branch_created", ["branch_id", "created_at"], unique=False)

    op.create_table(
        "sale_items",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("sale_id", sa.String(length=32), sa.ForeignKey("sales.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("product_id", sa.String(length=32), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("product_name", sa.String(length=160), nullable=True),
        sa.Column("unit_id", sa.String(length=32), sa.ForeignKey("unit_conversions.id"), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column("base_quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Integer(), nullable=False),
        sa.Column("subtotal", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sale_items_sale_id", "sale_items", ["sale_id"])
    op.create_index("ix_sale_items_product_id", "sale_items", ["product_id"])

    op.create_table(
        "purchases",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("supplier_id", sa.String(length=32), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("purchase_type", sa.String(length=10), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=True),
        sa.Column("subtotal", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tax", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="COMPLETED"),
        sa.Column("invoice_number", sa.String(length=60), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("cancelled_by", sa.String(length=32), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("purchases") as batch_op:
        batch_op.create_index(batch_op.f("ix_purchases_branch_id"), ["branch_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_purchases_supplier_id"), ["supplier_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_purchases_status"), ["status"], unique=False)
        batch_op.create_index(batch_op.f("ix_purchases_created_at"), ["created_at"], unique=False)
        batch_op.create_index("ix_purchases_branch_created", ["branch_id", "created_at"], unique=False)

    op.create_table(
        "purchase_items",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("purchase_id", sa.String(length=32), sa.ForeignKey("purchases.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("product_id", sa.String(length=32), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("product_name", sa.String(length=160), nullable=True),
        sa.Column("unit_id", sa.String(length=32), sa.ForeignKey("unit_conversions.id"), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column("base_quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Integer(), nullable=False),
        sa.Column("subtotal", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_purchase_items_purchase_id", "purchase_items", ["purchase_id"])
    op.create_index("ix_purchase_items_product_id", "purchase_items", ["product_id"])

    # ---- Finanzas ----
    op.create_table(
        "credit_accounts",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("account_type", sa.String(length=3), nullable=False),
        sa.Column("branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("supplier_id", sa.String(length=32), sa.ForeignKey("suppliers.id"), nullable=True),
        sa.Column("customer_id", sa.String(length=32), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("purchase_id", sa.String(length=32), sa.ForeignKey("purchases.id"), nullable=True),
        sa.Column("sale_id", sa.String(length=32), sa.ForeignKey("sales.id"), nullable=True),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("paid_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDIENTE"),
        sa.Column("invoice_number", sa.String(length=60), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("purchase_id"),
        sa.UniqueConstraint("sale_id"),
        sa.CheckConstraint("paid_amount >= 0 AND paid_amount <= total_amount", name="ck_credit_paid_range"),
    )
    with op.batch_alter_table("credit_accounts") as batch_op:
        batch_op.create_index(batch_op.f("ix_credit_accounts_account_type"), ["account_type"], unique=False)
        batch_op.create_index(batch_op.f("ix_credit_accounts_branch_id"), ["branch_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_credit_accounts_supplier_id"), ["supplier_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_credit_accounts_customer_id"), ["customer_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_credit_accounts_status"), ["status"], unique=False)

    op.create_table(
        "credit_payments",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("credit_account_id", sa.String(length=32), sa.ForeignKey("credit_accounts.id"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("reference", sa.String(length=80), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_credit_payments_credit_account_id", "credit_payments", ["credit_account_id"])

    op.create_table(
        "cash_movements",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("branch_id", sa.String(length=32), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("move_type", sa.String(length=10), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.String(length=32), sa.ForeignKey("sales.id"), nullable=True),
        sa.Column("purchase_id", sa.String(length=32), sa.ForeignKey("purchases.id"), nullable=True),
        sa.Column("credit_account_id", sa.String(length=32), nullable=True),
        sa.Column("reverses_id", sa.String(length=32), sa.ForeignKey("cash_movements.id"), nullable=True),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="CASH"),
        sa.Column("reference", sa.String(length=80), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount > 0", name="ck_cash_amount_positive"),
    )
    with op.batch_alter_table("cash_movements") as batch_op:
        batch_op.create_index(batch_op.f("ix_cash_movements_branch_id"), ["branch_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_cash_movements_move_type"), ["move_type"], unique=False)
        batch_op.create_index(batch_op.f("ix_cash_movements_category"), ["category"], unique=False)
        batch_op.create_index(batch_op.f("ix_cash_movements_sale_id"), ["sale_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_cash_movements_purchase_id"), ["purchase_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_cash_movements_credit_account_id"), ["credit_account_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_cash_movements_created_at"), ["created_at"], unique=False)


def downgrade():
    for table in (
        "cash_movements",
        "credit_payments",
        "credit_accounts",
        "purchase_items",
        "purchases",
        "sale_items",
        "sales",
        "stock_transfer_items",
        "stock_transfers",
        "stock_movements",
        "stocks",
        "suppliers",
        "customers",
        "unit_conversions",
        "products",
        "users",
        "branches",
    ):
        op.drop_table(table)
