"""compliance checklist core

Revision ID: 3f9c2a7d1e05
Revises:
Create Date: 2025-05-22 09:42:23.000000

"""

import uuid
from datetime import datetime, timezone

from alembic import op
import sqlalchemy as sa

revision = "3f9c2a7d1e05"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Tenancy ---
    op.create_table(
        "businesses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "people",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("current_business_id", sa.UUID(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["current_business_id"], ["businesses.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "business_members",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("business_id", sa.UUID(), nullable=False),
        sa.Column("person_id", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["person_id"], ["people.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "business_id", "person_id", name="uq_business_members_business_person"
        ),
    )

    # --- Companies and tags ---
    op.create_table(
        "companies",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("business_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("registration_number", sa.String(length=32), nullable=True),
        sa.Column("alias", sa.String(length=255), nullable=True),
        sa.Column("next_annual_return", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_companies_business_id", "companies", ["business_id"])
    op.create_index(
        "ix_companies_next_annual_return", "companies", ["next_annual_return"]
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("business_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id", "name", name="uq_tags_business_name"),
    )

    op.create_table(
        "company_tags",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("company_id", sa.UUID(), nullable=False),
        sa.Column("tag_id", sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "tag_id", name="uq_company_tags_company_tag"),
    )

    # --- Checklist ---
    document_definitions = op.create_table(
        "document_definitions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("code", sa.String(length=40), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("days_from_anchor", sa.Integer(), nullable=False),
        sa.Column("is_global", sa.Boolean(), nullable=False),
        sa.Column("business_id", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_document_definitions_code"),
        sa.CheckConstraint(
            "(is_global = true AND business_id IS NULL)"
            " OR (is_global = false AND business_id IS NOT NULL)",
            name="ck_document_definitions_scope",
        ),
    )
    op.create_index(
        "ix_document_definitions_business_id", "document_definitions", ["business_id"]
    )

    op.create_table(
        "checklist_entries",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("company_id", sa.UUID(), nullable=False),
        sa.Column("definition_id", sa.UUID(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_by", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["definition_id"], ["document_definitions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["completed_by"], ["people.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "company_id",
            "definition_id",
            name="uq_checklist_entries_company_definition",
        ),
        sa.CheckConstraint(
            "(completed = true AND completed_at IS NOT NULL)"
            " OR (completed = false AND completed_at IS NULL)",
            name="ck_checklist_entries_completion",
        ),
    )
    op.create_index(
        "ix_checklist_entries_definition_id", "checklist_entries", ["definition_id"]
    )

    # --- Seed: the annual return applies to every business ---
    now = datetime.now(timezone.utc)
    op.bulk_insert(
        document_definitions,
        [
            {
                "id": uuid.uuid4(),
                "code": "B1",
                "name": "Annual Return",
                "description": (
                    "Must be filed within 56 days of the “Return Made Up To” date."
                ),
                "days_from_anchor": 56,
                "is_global": True,
                "business_id": None,
                "created_at": now,
                "updated_at": now,
            }
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_checklist_entries_definition_id", table_name="checklist_entries")
    op.drop_table("checklist_entries")

    op.drop_index(
        "ix_document_definitions_business_id", table_name="document_definitions"
    )
    op.drop_table("document_definitions")

    op.drop_table("company_tags")
    op.drop_table("tags")

    op.drop_index("ix_companies_next_annual_return", table_name="companies")
    op.drop_index("ix_companies_business_id", table_name="companies")
    op.drop_table("companies")

    op.drop_table("business_members")
    op.drop_table("people")
    op.drop_table("businesses")
