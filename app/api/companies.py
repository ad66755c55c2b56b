from collections.abc import Generator

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import BusinessContext, require_user_auth
from app.db import SessionLocal
from app.schemas.compliance import (
    ChecklistEntryRead,
    ChecklistRead,
    CompanyPage,
    CompanyRead,
    RefreshAccepted,
)
from app.services.checklist import checklists
from app.services.company_directory import directory
from app.services.submission_refresh import request_refresh

router = APIRouter(prefix="/companies", tags=["companies"])


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("", response_model=CompanyPage)
def list_companies(
    search: str | None = None,
    tag_ids: list[str] = Query(default=[]),
    sort_by: str = Query(default="next_annual_return"),
    sort_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    ctx: BusinessContext = Depends(require_user_auth),
    db: Session = Depends(get_db),
) -> dict:
    return directory.list_response(
        db, ctx.business_id, search, tag_ids, sort_by, sort_dir, page, page_size
    )


@router.get("/{company_id}", response_model=CompanyRead)
def get_company(
    company_id: str,
    ctx: BusinessContext = Depends(require_user_auth),
    db: Session = Depends(get_db),
) -> CompanyRead:
    return directory.get(db, ctx.business_id, company_id)


@router.get("/{company_id}/checklist", response_model=ChecklistRead)
def get_checklist(
    company_id: str,
    ctx: BusinessContext = Depends(require_user_auth),
    db: Session = Depends(get_db),
) -> dict:
    company = directory.get(db, ctx.business_id, company_id)
    return {
        "company_id": company.id,
        "anchor_date": company.next_annual_return,
        "items": checklists.checklist(db, company),
    }


@router.post("/{company_id}/checklist/{code}/toggle", response_model=ChecklistEntryRead)
def toggle_checklist_entry(
    company_id: str,
    code: str,
    ctx: BusinessContext = Depends(require_user_auth),
    db: Session = Depends(get_db),
) -> dict:
    company = directory.get(db, ctx.business_id, company_id)
    entry = checklists.toggle(db, company, code, ctx.person_id)
    return {
        "company_id": entry.company_id,
        "definition_code": code,
        "completed": entry.completed,
        "completed_at": entry.completed_at,
        "completed_by": entry.completed_by,
    }


@router.post(
    "/{company_id}/submissions/refresh",
    response_model=RefreshAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
def refresh_submissions(
    company_id: str,
    ctx: BusinessContext = Depends(require_user_auth),
    db: Session = Depends(get_db),
) -> dict:
    company = directory.get(db, ctx.business_id, company_id)
    # Best-effort: a failed enqueue is logged by the gateway, not surfaced
    request_refresh(company)
    return {"status": "accepted", "company_id": company.id}
