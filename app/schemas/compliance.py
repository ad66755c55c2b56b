from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Tag
# ---------------------------------------------------------------------------


class TagRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_id: UUID
    name: str


# ---------------------------------------------------------------------------
# DocumentDefinition
# ---------------------------------------------------------------------------


class DocumentDefinitionBase(BaseModel):
    code: str = Field(min_length=1, max_length=40)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    days_from_anchor: int = 0
    is_global: bool = False
    business_id: UUID | None = None


class DocumentDefinitionCreate(DocumentDefinitionBase):
    pass


class DocumentDefinitionUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=40)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    days_from_anchor: int | None = None


class DocumentDefinitionRead(DocumentDefinitionBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime


class DefinitionBadge(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str


# ---------------------------------------------------------------------------
# Checklist
# ---------------------------------------------------------------------------


class ChecklistItemRead(BaseModel):
    """One resolved definition for a company, with due date and completion."""

    code: str
    name: str
    description: str | None = None
    days_from_anchor: int
    due_date: date | None = None
    completed: bool
    completed_at: datetime | None = None
    completed_by: UUID | None = None


class ChecklistRead(BaseModel):
    company_id: UUID
    anchor_date: date | None = None
    items: list[ChecklistItemRead]


class ChecklistEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    company_id: UUID
    definition_code: str
    completed: bool
    completed_at: datetime | None = None
    completed_by: UUID | None = None


class ChecklistCounts(BaseModel):
    completed: int
    total: int


# ---------------------------------------------------------------------------
# Company directory
# ---------------------------------------------------------------------------


class CompanyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_id: UUID
    name: str
    registration_number: str | None = None
    alias: str | None = None
    next_annual_return: date | None = None
    tags: list[TagRead] = []
    created_at: datetime
    updated_at: datetime


class CompanySummary(CompanyRead):
    definitions: list[DefinitionBadge] = []
    checklist: ChecklistCounts


class CompanyPage(BaseModel):
    items: list[CompanySummary]
    total: int
    page: int
    page_size: int


class RefreshAccepted(BaseModel):
    status: str
    company_id: UUID
