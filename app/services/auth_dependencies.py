import logging
import uuid
from dataclasses import dataclass

from fastapi import Header, HTTPException
from sqlalchemy import exists, select

from app.db import SessionLocal
from app.errors import PermissionDeniedError
from app.models.compliance import BusinessMember, Person

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusinessContext:
    """The acting person and the business every query is scoped to."""

    person_id: uuid.UUID
    business_id: uuid.UUID


def _parse(value: str | None, status_code: int, message: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=status_code, detail=message)


def require_user_auth(
    x_person_id: str | None = Header(default=None),
    x_business_id: str | None = Header(default=None),
) -> BusinessContext:
    if not x_person_id:
        raise HTTPException(status_code=401, detail="Missing X-Person-Id header")
    person_id = _parse(x_person_id, 401, "Invalid X-Person-Id header")

    db = SessionLocal()
    try:
        person = db.get(Person, person_id)
        if not person or not person.is_active:
            raise HTTPException(status_code=401, detail="Unknown person")

        if x_business_id:
            business_id = _parse(x_business_id, 400, "Invalid X-Business-Id header")
        elif person.current_business_id:
            business_id = person.current_business_id
        else:
            raise PermissionDeniedError("No current business selected")

        is_member = db.scalar(
            select(
                exists().where(
                    BusinessMember.business_id == business_id,
                    BusinessMember.person_id == person_id,
                )
            )
        )
        if not is_member:
            logger.info("Person %s denied access to business %s", person_id, business_id)
            raise PermissionDeniedError(
                "You do not have permission to access this business"
            )
        return BusinessContext(person_id=person_id, business_id=business_id)
    finally:
        db.close()
