from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import BusinessContext, require_user_auth
from app.db import SessionLocal
from app.schemas.compliance import TagRead
from app.services.company_directory import directory

router = APIRouter(prefix="/tags", tags=["tags"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.get("", response_model=list[TagRead])
def list_tags(
    ctx: BusinessContext = Depends(require_user_auth),
    db: Session = Depends(get_db),
) -> list[TagRead]:
    return directory.tags(db, ctx.business_id)
