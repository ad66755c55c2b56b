import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


# ---------------------------------------------------------------------------
# Tenancy — Businesses, people and memberships
# ---------------------------------------------------------------------------


class Business(Base):
    __tablename__ = "businesses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    companies = relationship(
        "Company", back_populates="business", cascade="all", passive_deletes=True
    )
    definitions = relationship(
        "DocumentDefinition", back_populates="business", cascade="all", passive_deletes=True
    )
    tags = relationship("Tag", back_populates="business", cascade="all", passive_deletes=True)
    members = relationship(
        "BusinessMember", back_populates="business", cascade="all", passive_deletes=True
    )


class Person(Base):
    __tablename__ = "people"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(80), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    current_business_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="SET NULL")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    current_business = relationship("Business", foreign_keys=[current_business_id])
    memberships = relationship(
        "BusinessMember", back_populates="person", cascade="all", passive_deletes=True
    )


class BusinessMember(Base):
    __tablename__ = "business_members"
    __table_args__ = (
        UniqueConstraint(
            "business_id", "person_id", name="uq_business_members_business_person"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    business_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    person_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    business = relationship("Business", back_populates="members")
    person = relationship("Person", back_populates="memberships")


# ---------------------------------------------------------------------------
# Companies and tags
# ---------------------------------------------------------------------------


class Company(Base):
    __tablename__ = "companies"
    __table_args__ = (
        Index("ix_companies_business_id", "business_id"),
        Index("ix_companies_next_annual_return", "next_annual_return"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    business_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    registration_number: Mapped[str | None] = mapped_column(String(32))
    alias: Mapped[str | None] = mapped_column(String(255))
    next_annual_return: Mapped[date | None] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    business = relationship("Business", back_populates="companies")
    tags = relationship("Tag", secondary="company_tags", back_populates="companies")
    checklist_entries = relationship(
        "ChecklistEntry",
        back_populates="company",
        cascade="all",
        passive_deletes=True,
    )


class Tag(Base):
    __tablename__ = "tags"
    __table_args__ = (
        UniqueConstraint("business_id", "name", name="uq_tags_business_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    business_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    business = relationship("Business", back_populates="tags")
    companies = relationship("Company", secondary="company_tags", back_populates="tags")


class CompanyTag(Base):
    __tablename__ = "company_tags"
    __table_args__ = (
        UniqueConstraint("company_id", "tag_id", name="uq_company_tags_company_tag"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    tag_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tags.id", ondelete="CASCADE"), nullable=False
    )


# ---------------------------------------------------------------------------
# Checklist — Document definitions and per-company entries
# ---------------------------------------------------------------------------


class DocumentDefinition(Base):
    __tablename__ = "document_definitions"
    __table_args__ = (
        UniqueConstraint("code", name="uq_document_definitions_code"),
        CheckConstraint(
            "(is_global = true AND business_id IS NULL)"
            " OR (is_global = false AND business_id IS NOT NULL)",
            name="ck_document_definitions_scope",
        ),
        Index("ix_document_definitions_business_id", "business_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    code: Mapped[str] = mapped_column(String(40), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    days_from_anchor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_global: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    business_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    business = relationship("Business", back_populates="definitions")
    entries = relationship(
        "ChecklistEntry",
        back_populates="definition",
        cascade="all",
        passive_deletes=True,
    )


class ChecklistEntry(Base):
    __tablename__ = "checklist_entries"
    __table_args__ = (
        UniqueConstraint(
            "company_id", "definition_id", name="uq_checklist_entries_company_definition"
        ),
        # completed_by is left out so deleting a person can null it
        CheckConstraint(
            "(completed = true AND completed_at IS NOT NULL)"
            " OR (completed = false AND completed_at IS NULL)",
            name="ck_checklist_entries_completion",
        ),
        Index("ix_checklist_entries_definition_id", "definition_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    definition_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("document_definitions.id", ondelete="CASCADE"),
        nullable=False,
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id", ondelete="SET NULL")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    company = relationship("Company", back_populates="checklist_entries")
    definition = relationship("DocumentDefinition", back_populates="entries")
    completer = relationship("Person", foreign_keys=[completed_by])
