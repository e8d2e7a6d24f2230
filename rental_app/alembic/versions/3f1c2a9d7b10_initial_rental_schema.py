"""initial rental schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:12:44.310215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_APPLICATION_CLAUSE = "status IN ('pending', 'under_review', 'approved')"


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _address():
    return [
        sa.Column("street", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("state", sa.String(length=120), nullable=False),
        sa.Column("zip_code", sa.String(length=20), nullable=False),
        sa.Column("country", sa.String(length=80), nullable=False),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=True),
        sa.Column("auth_type", sa.String(length=32), nullable=False),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("email_verified", sa.DateTime(), nullable=True),
        sa.Column("onboarding", sa.DateTime(), nullable=True),
        sa.Column("password_changed_at", sa.DateTime(), nullable=True),
        sa.Column("last_logged_in", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "owners",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        *_address(),
        sa.Column("business_name", sa.String(length=120), nullable=True),
        sa.Column("business_type", sa.String(length=80), nullable=True),
        sa.Column("tax_id", sa.String(length=50), nullable=True),
        sa.Column("license_number", sa.String(length=50), nullable=True),
        sa.Column("profile_image", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        *_address(),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=100), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(length=30), nullable=True),
        sa.Column(
            "emergency_contact_relationship", sa.String(length=50), nullable=True
        ),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "apartments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        *_address(),
        sa.Column("bedrooms", sa.Integer(), nullable=False),
        sa.Column("bathrooms", sa.Integer(), nullable=False),
        sa.Column("square_feet", sa.Integer(), nullable=False),
        sa.Column("floor_number", sa.Integer(), nullable=True),
        sa.Column("total_floors", sa.Integer(), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("amenities", sa.JSON(), nullable=False),
        sa.Column("rent_amount", sa.Float(), nullable=False),
        sa.Column("rent_currency", sa.String(length=32), nullable=False),
        sa.Column("rent_period", sa.String(length=32), nullable=False),
        sa.Column("utilities_included", sa.JSON(), nullable=False),
        sa.Column("utilities_not_included", sa.JSON(), nullable=False),
        sa.Column("availability_status", sa.String(length=32), nullable=False),
        sa.Column("available_from", sa.Date(), nullable=True),
        sa.Column("lease_term", sa.String(length=50), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["owners.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_apartments_owner_id", "apartments", ["owner_id"])
    op.create_index("idx_apartments_city_state", "apartments", ["city", "state"])
    op.create_index("idx_apartments_rent_amount", "apartments", ["rent_amount"])
    op.create_index(
        "idx_apartments_availability", "apartments", ["availability_status"]
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("apartment_id", sa.Uuid(), nullable=False),
        sa.Column("move_in_date", sa.Date(), nullable=False),
        sa.Column("lease_term", sa.String(length=32), nullable=False),
        sa.Column("monthly_income", sa.Float(), nullable=False),
        sa.Column("employment_status", sa.String(length=32), nullable=False),
        sa.Column("employer_name", sa.String(length=120), nullable=True),
        sa.Column("employer_phone", sa.String(length=30), nullable=True),
        sa.Column("additional_info", sa.Text(), nullable=True),
        sa.Column("id_proof", sa.String(length=500), nullable=True),
        sa.Column("income_proof", sa.String(length=500), nullable=True),
        sa.Column("bank_statement", sa.String(length=500), nullable=True),
        sa.Column("references", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_by_id", sa.Uuid(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["apartment_id"], ["apartments.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["reviewed_by_id"], ["users.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_tenant_id", "applications", ["tenant_id"])
    op.create_index("ix_applications_apartment_id", "applications", ["apartment_id"])
    op.create_index("idx_applications_status", "applications", ["status"])
    op.create_index(
        "uq_active_application_per_tenant_apartment",
        "applications",
        ["tenant_id", "apartment_id"],
        unique=True,
        sqlite_where=sa.text(ACTIVE_APPLICATION_CLAUSE),
        postgresql_where=sa.text(ACTIVE_APPLICATION_CLAUSE),
    )


def downgrade():
    op.drop_index(
        "uq_active_application_per_tenant_apartment", table_name="applications"
    )
    op.drop_index("idx_applications_status", table_name="applications")
    op.drop_index("ix_applications_apartment_id", table_name="applications")
    op.drop_index("ix_applications_tenant_id", table_name="applications")
    op.drop_table("applications")
    op.drop_index("idx_apartments_availability", table_name="apartments")
    op.drop_index("idx_apartments_rent_amount", table_name="apartments")
    op.drop_index("idx_apartments_city_state", table_name="apartments")
    op.drop_index("ix_apartments_owner_id", table_name="apartments")
    op.drop_table("apartments")
    op.drop_table("tenants")
    op.drop_table("owners")
    op.drop_table("users")
