"""Tutor ledger: students, groups, payments, expenses, guest codes.

- Owner-scoped tables (every row carries owner_id)
- current_owner_id() helper reading the app.owner_id GUC
- RLS policy per table: owner_id = current_owner_id()
- guest_codes: one active code per owner (partial unique index); active
  codes are readable without an owner so guests can present them
- group_paid_totals view: sum of payments carrying group_id directly
- updated_at touch trigger on guest_codes
"""

from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = "001_tutor_ledger"
down_revision = None
branch_labels = None
depends_on = None

OWNED_TABLES = ("students", "groups", "payments", "expenses", "guest_codes")


def _owner_col():
    return sa.Column("owner_id", sa.Uuid(), nullable=False)


def upgrade():
    # ---------- Helpers ----------
    op.execute("""
    CREATE OR REPLACE FUNCTION current_owner_id() RETURNS uuid
    LANGUAGE sql STABLE AS $$
      SELECT NULLIF(current_setting('app.owner_id', true), '')::uuid
    $$;
    """)

    op.execute("""
    CREATE OR REPLACE FUNCTION set_updated_at() RETURNS trigger
    LANGUAGE plpgsql AS $$
    BEGIN
      NEW.updated_at := NOW();
      RETURN NEW;
    END;
    $$;
    """)

    # ---------- Tables ----------
    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_col(),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("group_id", sa.Uuid(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_students_owner_id", "students", ["owner_id"])
    op.create_index("ix_students_group_id", "students", ["group_id"])
    op.create_index("ix_students_owner_name", "students", ["owner_id", "full_name"])

    op.create_table(
        "groups",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_col(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("due_total >= 0", name="ck_groups_due_total_non_negative"),
    )
    op.create_index("ix_groups_owner_id", "groups", ["owner_id"])
    op.create_index("ix_groups_owner_name", "groups", ["owner_id", "name"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_col(),
        sa.Column("student_id", sa.Uuid(), nullable=True),
        sa.Column("group_id", sa.Uuid(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("method", sa.String(16), nullable=False),
        sa.Column("paid_at", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        sa.CheckConstraint("method IN ('cash', 'card', 'transfer')", name="ck_payments_method"),
    )
    op.create_index("ix_payments_owner_id", "payments", ["owner_id"])
    op.create_index("ix_payments_student_id", "payments", ["student_id"])
    op.create_index("ix_payments_owner_group", "payments", ["owner_id", "group_id"])
    op.create_index("ix_payments_owner_paid_at", "payments", ["owner_id", "paid_at"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_col(),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("spent_at", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )
    op.create_index("ix_expenses_owner_id", "expenses", ["owner_id"])
    op.create_index("ix_expenses_owner_spent_at", "expenses", ["owner_id", "spent_at"])

    op.create_table(
        "guest_codes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner_col(),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_guest_codes_owner_id", "guest_codes", ["owner_id"])
    op.create_index("ix_guest_codes_code_active", "guest_codes", ["code", "active"])
    op.create_index(
        "uq_guest_codes_owner_active",
        "guest_codes",
        ["owner_id"],
        unique=True,
        postgresql_where=sa.text("active"),
    )

    op.execute("DROP TRIGGER IF EXISTS trg_guest_codes__updated_at ON guest_codes;")
    op.execute("""
      CREATE TRIGGER trg_guest_codes__updated_at
      BEFORE UPDATE ON guest_codes
      FOR EACH ROW EXECUTE FUNCTION set_updated_at();
    """)

    # ---------- Derived aggregate ----------
    op.execute("""
    CREATE OR REPLACE VIEW group_paid_totals WITH (security_invoker = true) AS
      SELECT owner_id, group_id, COALESCE(SUM(amount), 0) AS paid_total
      FROM payments
      WHERE group_id IS NOT NULL
      GROUP BY owner_id, group_id;
    """)

    # ---------- RLS ----------
    for table in OWNED_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")
        op.execute(f"DROP POLICY IF EXISTS owner_isolation ON {table};")
        op.execute(f"""
          CREATE POLICY owner_isolation ON {table}
          USING (owner_id = current_owner_id())
          WITH CHECK (owner_id = current_owner_id());
        """)

    # Guest verification looks up active codes across owners
    op.execute("DROP POLICY IF EXISTS guest_code_lookup ON guest_codes;")
    op.execute("""
      CREATE POLICY guest_code_lookup ON guest_codes
      FOR SELECT
      USING (active);
    """)


def downgrade():
    op.execute("DROP POLICY IF EXISTS guest_code_lookup ON guest_codes;")
    for table in OWNED_TABLES:
        op.execute(f"DROP POLICY IF EXISTS owner_isolation ON {table};")
        op.execute(f"ALTER TABLE IF EXISTS {table} DISABLE ROW LEVEL SECURITY;")

    op.execute("DROP VIEW IF EXISTS group_paid_totals;")
    op.execute("DROP TRIGGER IF EXISTS trg_guest_codes__updated_at ON guest_codes;")

    op.drop_table("guest_codes")
    op.drop_table("expenses")
    op.drop_table("payments")
    op.drop_table("groups")
    op.drop_table("students")

    op.execute("DROP FUNCTION IF EXISTS set_updated_at();")
    op.execute("DROP FUNCTION IF EXISTS current_owner_id();")
