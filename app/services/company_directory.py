from __future__ import annotations

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.errors import NotFoundError
from app.models.compliance import Company, CompanyTag, Tag
from app.services.checklist import ChecklistStore
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    escape_like,
    page_window,
    translate_storage_errors,
)
from app.services.definition_catalog import DefinitionCatalog

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Company.name,
    "registration_number": Company.registration_number,
    "next_annual_return": Company.next_annual_return,
    "alias": Company.alias,
    "created_at": Company.created_at,
}


class CompanyDirectory:
    @staticmethod
    def get(db: Session, business_id, company_id) -> Company:
        """Scoped lookup; another business's company reads as missing."""
        company = db.get(
            Company, coerce_uuid(company_id, not_found="Company not found")
        )
        if not company or company.business_id != coerce_uuid(business_id):
            raise NotFoundError("Company not found")
        return company

    @staticmethod
    def list(
        db: Session,
        business_id,
        search: str | None = None,
        tag_ids=None,
        sort_by: str = "next_annual_return",
        sort_dir: str = "asc",
        page: int = 1,
        page_size: int | None = None,
    ) -> tuple[list[Company], int, int]:
        """Return ``(companies, total, effective_page_size)`` for one business."""
        page_size, limit, offset = page_window(
            page,
            settings.directory_default_page_size if page_size is None else page_size,
            settings.directory_max_page_size,
        )
        stmt = select(Company).where(Company.business_id == coerce_uuid(business_id))

        if search:
            pattern = f"%{escape_like(search)}%"
            stmt = stmt.where(
                or_(
                    Company.name.ilike(pattern, escape="\\"),
                    Company.alias.ilike(pattern, escape="\\"),
                    Company.registration_number.ilike(pattern, escape="\\"),
                )
            )

        if tag_ids:
            tag_uuids = [coerce_uuid(tag_id) for tag_id in tag_ids]
            stmt = stmt.where(
                Company.id.in_(
                    select(CompanyTag.company_id).where(CompanyTag.tag_id.in_(tag_uuids))
                )
            )

        with translate_storage_errors():
            total = db.scalar(select(func.count()).select_from(stmt.subquery()))
            stmt = apply_ordering(
                stmt, sort_by, sort_dir, SORT_COLUMNS, tiebreaker=Company.id
            )
            stmt = stmt.options(selectinload(Company.tags))
            companies = db.scalars(apply_pagination(stmt, limit, offset)).all()
        return list(companies), total or 0, page_size

    @staticmethod
    def list_response(
        db: Session,
        business_id,
        search: str | None = None,
        tag_ids=None,
        sort_by: str = "next_annual_return",
        sort_dir: str = "asc",
        page: int = 1,
        page_size: int | None = None,
    ) -> dict:
        """Directory page with definition badges and checklist counts per company."""
        companies, total, page_size = CompanyDirectory.list(
            db, business_id, search, tag_ids, sort_by, sort_dir, page, page_size
        )
        # Every company of a business shares the same applicable definitions
        definitions = DefinitionCatalog.definitions_for_business(db, business_id)
        counts = ChecklistStore.completion_counts(db, [c.id for c in companies])
        items = [
            {
                "id": company.id,
                "business_id": company.business_id,
                "name": company.name,
                "registration_number": company.registration_number,
                "alias": company.alias,
                "next_annual_return": company.next_annual_return,
                "tags": company.tags,
                "created_at": company.created_at,
                "updated_at": company.updated_at,
                "definitions": definitions,
                "checklist": {
                    "completed": counts.get(company.id, 0),
                    "total": len(definitions),
                },
            }
            for company in companies
        ]
        return {"items": items, "total": total, "page": page, "page_size": page_size}

    @staticmethod
    def tags(db: Session, business_id) -> list[Tag]:
        stmt = (
            select(Tag)
            .where(Tag.business_id == coerce_uuid(business_id))
            .order_by(Tag.name.asc())
        )
        return db.scalars(stmt).all()


directory = CompanyDirectory()
