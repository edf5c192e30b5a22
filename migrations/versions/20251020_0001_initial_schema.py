# migrations/versions/20251020_0001_initial_schema.py
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20251020_0001"
down_revision = None
branch_labels = None
depends_on = None


def _ts(name, **kw):
    return sa.Column(name, sa.DateTime(timezone=True), **kw)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("azure_id", sa.String(64), nullable=True),
        sa.Column("email", sa.String(160), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(80), nullable=True),
        sa.Column("last_name", sa.String(80), nullable=True),
        sa.Column("display_name", sa.String(160), nullable=True),
        sa.Column("phone_number", sa.String(30), nullable=True),
        sa.Column("avatar", sa.String(255), nullable=True),
        sa.Column("department", sa.String(120), nullable=True),
        sa.Column("position", sa.String(120), nullable=True),
        sa.Column("timezone", sa.String(60), nullable=False, server_default="Europe/Zurich"),
        sa.Column("language", sa.String(10), nullable=False, server_default="de"),
        sa.Column("theme", sa.String(20), nullable=False, server_default="light"),
        sa.Column("role", sa.String(20), nullable=False, server_default="EMPLOYEE"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("is_email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("email_verified_at", nullable=True),
        _ts("last_login", nullable=True),
        sa.Column("login_count", sa.Integer(), nullable=False, server_default="0"),
        _ts("created_at", nullable=False, server_default=sa.func.now()),
        _ts("updated_at", nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("azure_id", name="uq_users_azure_id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "sessions",
        sa.Column("token", sa.String(1024), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        _ts("expires_at", nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        _ts("created_at", nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("token", name="pk_sessions"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_sessions_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("entity", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(255), nullable=True),
        sa.Column("changes", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        _ts("created_at", nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_audit_logs_user_id_users", ondelete="SET NULL"),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    op.create_table(
        "news_articles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("excerpt", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="NORMAL"),
        sa.Column("target_roles", sa.String(255), nullable=True),
        sa.Column("target_users", sa.Text(), nullable=True),
        sa.Column("featured_image", sa.String(255), nullable=True),
        sa.Column("author_id", sa.Integer(), nullable=False),
        _ts("published_at", nullable=True),
        _ts("expires_at", nullable=True),
        _ts("created_at", nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_news_articles"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], name="fk_news_articles_author_id_users"),
    )

    op.create_table(
        "calendar_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        _ts("start_at", nullable=False),
        _ts("end_at", nullable=False),
        sa.Column("location", sa.String(160), nullable=True),
        sa.Column("organizer_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_calendar_events"),
        sa.ForeignKeyConstraint(["organizer_id"], ["users.id"], name="fk_calendar_events_organizer_id_users"),
    )
    op.create_index("ix_calendar_events_start_at", "calendar_events", ["start_at"])

    op.create_table(
        "timesheets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.PrimaryKeyConstraint("id", name="pk_timesheets"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_timesheets_user_id_users"),
    )
    op.create_index("ix_timesheets_user_id", "timesheets", ["user_id"])
    op.create_index("ix_timesheets_work_date", "timesheets", ["work_date"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        _ts("created_at", nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_expenses_user_id_users"),
    )
    op.create_index("ix_expenses_user_id", "expenses", ["user_id"])

    op.create_table(
        "uploaded_files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uploaded_by_id", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        _ts("created_at", nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_uploaded_files"),
        sa.ForeignKeyConstraint(["uploaded_by_id"], ["users.id"], name="fk_uploaded_files_uploaded_by_id_users"),
    )
    op.create_index("ix_uploaded_files_uploaded_by_id", "uploaded_files", ["uploaded_by_id"])

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(160), nullable=False),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("current_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="IN_STOCK"),
        sa.PrimaryKeyConstraint("id", name="pk_inventory_items"),
        sa.UniqueConstraint("sku", name="uq_inventory_items_sku"),
    )


def downgrade():
    for table in (
        "inventory_items",
        "uploaded_files",
        "expenses",
        "timesheets",
        "calendar_events",
        "news_articles",
        "audit_logs",
        "sessions",
        "users",
    ):
        op.drop_table(table)
