"""initial crm schema: users, role permissions, logs, clients, drone sales

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "1a2b3c4d5e6f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=True),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=32), nullable=False, server_default="EXTERNAL"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
            sa.UniqueConstraint("email", name="uq_users_email"),
        )

    if "role_permissions" not in existing_tables:
        op.create_table(
            "role_permissions",
            sa.Column("role", sa.String(length=32), primary_key=True, nullable=False),
            sa.Column("permission", sa.String(length=64), primary_key=True, nullable=False),
            sa.Column("allowed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
        )

    if "logs" not in existing_tables:
        op.create_table(
            "logs",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("request_id", sa.String(length=64), nullable=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("user_email", sa.String(length=320), nullable=True),
            sa.Column("action", sa.String(length=128), nullable=False),
            sa.Column("message", sa.String(length=512), nullable=True),
            sa.Column("entity_type", sa.String(length=64), nullable=True),
            sa.Column("entity_id", sa.String(length=64), nullable=True),
            sa.Column("level", sa.String(length=16), nullable=False, server_default="info"),
            sa.Column("metadata_json", sa.Text(), nullable=True),
        )
        op.create_index("idx_logs_created_at", "logs", ["created_at"])

    if "clients" not in existing_tables:
        op.create_table(
            "clients",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("company_name", sa.Text(), nullable=False),
            sa.Column("ico", sa.Text(), nullable=True),
            sa.Column("sales_rep_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("parent_company", sa.Text(), nullable=True),
            sa.Column("parent_company_ico", sa.Text(), nullable=True),
            sa.Column("data_box", sa.Text(), nullable=True),
            sa.Column("fve_name", sa.Text(), nullable=True),
            sa.Column("installed_power", sa.Float(), nullable=True),
            sa.Column("fve_address", sa.Text(), nullable=True),
            sa.Column("gps_coordinates", sa.Text(), nullable=True),
            sa.Column("distance_km", sa.Float(), nullable=True),
            sa.Column("service_company", sa.Text(), nullable=True),
            sa.Column("service_company_ico", sa.Text(), nullable=True),
            sa.Column("contact_person", sa.Text(), nullable=True),
            sa.Column("phone", sa.Text(), nullable=True),
            sa.Column("email", sa.Text(), nullable=True),
            sa.Column("contact_role", sa.Text(), nullable=True),
            sa.Column("sales_rep_email", sa.Text(), nullable=True),
            sa.Column("marketing_ban", sa.Boolean(), nullable=True),
            sa.Column("offer_sent", sa.Boolean(), nullable=True),
            sa.Column("offer_sent_to", sa.Text(), nullable=True),
            sa.Column("offer_sent_date", sa.Date(), nullable=True),
            sa.Column("offer_approved", sa.Boolean(), nullable=True),
            sa.Column("offer_approved_date", sa.Date(), nullable=True),
            sa.Column("offer_rejection_reason", sa.Text(), nullable=True),
            sa.Column("price_ex_vat", sa.Float(), nullable=True),
            sa.Column("data_analysis_price", sa.Float(), nullable=True),
            sa.Column("data_collection_price", sa.Float(), nullable=True),
            sa.Column("transportation_price", sa.Float(), nullable=True),
            sa.Column("margin_group", sa.Text(), nullable=True),
            sa.Column("multiple_inspections", sa.Boolean(), nullable=True),
            sa.Column("inspection_deadline", sa.Date(), nullable=True),
            sa.Column("custom_contract", sa.Boolean(), nullable=True),
            sa.Column("contract_signed_date", sa.Date(), nullable=True),
            sa.Column("ready_for_billing", sa.Boolean(), nullable=True),
            sa.Column("first_invoice_amount", sa.Float(), nullable=True),
            sa.Column("first_invoice_date", sa.Date(), nullable=True),
            sa.Column("first_invoice_due_date", sa.Date(), nullable=True),
            sa.Column("first_invoice_paid", sa.Boolean(), nullable=True),
            sa.Column("second_invoice_amount", sa.Float(), nullable=True),
            sa.Column("second_invoice_date", sa.Date(), nullable=True),
            sa.Column("second_invoice_due_date", sa.Date(), nullable=True),
            sa.Column("second_invoice_paid", sa.Boolean(), nullable=True),
            sa.Column("final_invoice_amount", sa.Float(), nullable=True),
            sa.Column("final_invoice_date", sa.Date(), nullable=True),
            sa.Column("final_invoice_due_date", sa.Date(), nullable=True),
            sa.Column("final_invoice_paid", sa.Boolean(), nullable=True),
            sa.Column("total_price_ex_vat", sa.Float(), nullable=True),
            sa.Column("total_price_inc_vat", sa.Float(), nullable=True),
            sa.Column("flight_consent_sent", sa.Boolean(), nullable=True),
            sa.Column("flight_consent_sent_date", sa.Date(), nullable=True),
            sa.Column("flight_consent_signed", sa.Boolean(), nullable=True),
            sa.Column("flight_consent_signed_date", sa.Date(), nullable=True),
            sa.Column("fve_drawings_received", sa.Boolean(), nullable=True),
            sa.Column("fve_drawings_received_date", sa.Date(), nullable=True),
            sa.Column("permission_required", sa.Boolean(), nullable=True),
            sa.Column("permission_requested", sa.Boolean(), nullable=True),
            sa.Column("permission_requested_date", sa.Date(), nullable=True),
            sa.Column("permission_request_number", sa.Text(), nullable=True),
            sa.Column("permission_status", sa.Text(), nullable=True),
            sa.Column("permission_valid_until", sa.Date(), nullable=True),
            sa.Column("assigned_to_pilot", sa.Boolean(), nullable=True),
            sa.Column("pilot_name", sa.Text(), nullable=True),
            sa.Column("pilot_assigned_date", sa.Date(), nullable=True),
            sa.Column("expected_flight_date", sa.Date(), nullable=True),
            sa.Column("photos_taken", sa.Boolean(), nullable=True),
            sa.Column("photos_date", sa.Date(), nullable=True),
            sa.Column("photos_time", sa.Text(), nullable=True),
            sa.Column("panel_temperature", sa.Float(), nullable=True),
            sa.Column("irradiance", sa.Float(), nullable=True),
            sa.Column("weather", sa.Text(), nullable=True),
            sa.Column("wind_speed", sa.Float(), nullable=True),
            sa.Column("data_uploaded", sa.Boolean(), nullable=True),
            sa.Column("analysis_started", sa.Boolean(), nullable=True),
            sa.Column("analysis_start_date", sa.Date(), nullable=True),
            sa.Column("analysis_completed", sa.Boolean(), nullable=True),
            sa.Column("analysis_completed_date", sa.Date(), nullable=True),
            sa.Column("report_created", sa.Boolean(), nullable=True),
            sa.Column("report_sent", sa.Boolean(), nullable=True),
            sa.Column("report_sent_date", sa.Date(), nullable=True),
            sa.Column("feedback_received", sa.Boolean(), nullable=True),
            sa.Column("feedback_content", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("status", sa.Text(), nullable=False, server_default="Nový"),
            sa.Column("client_type", sa.Text(), nullable=False, server_default="fve"),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
            sa.UniqueConstraint("ico", name="uq_clients_ico"),
        )
        op.create_index("idx_clients_company_name", "clients", ["company_name"])
        op.create_index("idx_clients_status", "clients", ["status"])
        op.create_index("idx_clients_sales_rep_id", "clients", ["sales_rep_id"])

    if "drone_sales" not in existing_tables:
        op.create_table(
            "drone_sales",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("company_name", sa.Text(), nullable=False),
            sa.Column("contact_person", sa.Text(), nullable=True),
            sa.Column("phone", sa.Text(), nullable=True),
            sa.Column("email", sa.Text(), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="new"),
            sa.Column("drone_model", sa.Text(), nullable=True),
            sa.Column("drone_type", sa.Text(), nullable=True),
            sa.Column("offer_sent_date", sa.Date(), nullable=True),
            sa.Column("offer_approved_date", sa.Date(), nullable=True),
            sa.Column("contract_signed_date", sa.Date(), nullable=True),
            sa.Column("invoice_date", sa.Date(), nullable=True),
            sa.Column("invoice_due_date", sa.Date(), nullable=True),
            sa.Column("delivery_date", sa.Date(), nullable=True),
            sa.Column("training_date", sa.Date(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("sales_rep_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
        )
        op.create_index("idx_drone_sales_status", "drone_sales", ["status"])
        op.create_index("idx_drone_sales_sales_rep_id", "drone_sales", ["sales_rep_id"])


def downgrade() -> None:
    op.drop_table("drone_sales")
    op.drop_table("clients")
    op.drop_table("logs")
    op.drop_table("role_permissions")
    op.drop_table("users")
