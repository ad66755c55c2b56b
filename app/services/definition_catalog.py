import logging

from sqlalchemy import exists, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import InvalidArgumentError, NotFoundError
from app.models.compliance import (
    Business,
    ChecklistEntry,
    Company,
    DocumentDefinition,
)
from app.schemas.compliance import DocumentDefinitionCreate, DocumentDefinitionUpdate
from app.services.common import coerce_uuid

logger = logging.getLogger(__name__)

ANNUAL_RETURN_CODE = "B1"

GLOBAL_DEFINITIONS = (
    {
        "code": ANNUAL_RETURN_CODE,
        "name": "Annual Return",
        "description": "Must be filed within 56 days of the “Return Made Up To” date.",
        "days_from_anchor": 56,
    },
)

# Fields that stay editable once checklist entries reference a definition
_MUTABLE_WHEN_REFERENCED = {"description", "days_from_anchor"}
_REQUIRED_FIELDS = {"code", "name", "days_from_anchor"}


def resolve_company(db: Session, company) -> Company:
    if isinstance(company, Company):
        return company
    found = db.get(Company, coerce_uuid(company, not_found="Company not found"))
    if not found:
        raise NotFoundError("Company not found")
    return found


class DefinitionCatalog:
    @staticmethod
    def definitions_for_business(db: Session, business_id) -> list[DocumentDefinition]:
        stmt = (
            select(DocumentDefinition)
            .where(
                or_(
                    DocumentDefinition.is_global.is_(True),
                    DocumentDefinition.business_id == coerce_uuid(business_id),
                )
            )
            .order_by(DocumentDefinition.code.asc())
        )
        definitions = db.scalars(stmt).all()
        seen: set[str] = set()
        unique = []
        for definition in definitions:
            if definition.code in seen:
                continue
            seen.add(definition.code)
            unique.append(definition)
        return unique

    @staticmethod
    def applicable_definitions(db: Session, company) -> list[DocumentDefinition]:
        """Global definitions plus those owned by the company's business, by code."""
        company = resolve_company(db, company)
        return DefinitionCatalog.definitions_for_business(db, company.business_id)

    @staticmethod
    def get_applicable(db: Session, company, code: str) -> DocumentDefinition:
        company = resolve_company(db, company)
        definition = db.scalar(
            select(DocumentDefinition).where(
                DocumentDefinition.code == code,
                or_(
                    DocumentDefinition.is_global.is_(True),
                    DocumentDefinition.business_id == company.business_id,
                ),
            )
        )
        if not definition:
            raise NotFoundError("Document definition not found")
        return definition

    @staticmethod
    def get(db: Session, definition_id: str) -> DocumentDefinition:
        definition = db.get(
            DocumentDefinition,
            coerce_uuid(definition_id, not_found="Document definition not found"),
        )
        if not definition:
            raise NotFoundError("Document definition not found")
        return definition

    @staticmethod
    def create(db: Session, payload: DocumentDefinitionCreate) -> DocumentDefinition:
        if payload.is_global and payload.business_id is not None:
            raise InvalidArgumentError("Global definitions cannot belong to a business")
        if not payload.is_global:
            if payload.business_id is None:
                raise InvalidArgumentError(
                    "Business-owned definitions require a business_id"
                )
            if not db.get(Business, payload.business_id):
                raise NotFoundError("Business not found")
        if DefinitionCatalog._code_taken(db, payload.code):
            raise InvalidArgumentError(f"Definition code {payload.code} already exists")

        definition = DocumentDefinition(**payload.model_dump())
        try:
            db.add(definition)
            db.flush()
        except IntegrityError:
            db.rollback()
            raise InvalidArgumentError(f"Definition code {payload.code} already exists")
        db.refresh(definition)
        logger.info("Created document definition %s (%s)", definition.code, definition.id)
        _queue_backfill(definition.business_id)
        return definition

    @staticmethod
    def update(
        db: Session, definition_id: str, payload: DocumentDefinitionUpdate
    ) -> DocumentDefinition:
        definition = DefinitionCatalog.get(db, definition_id)
        data = payload.model_dump(exclude_unset=True)
        cleared = sorted(
            key for key in _REQUIRED_FIELDS if key in data and data[key] is None
        )
        if cleared:
            raise InvalidArgumentError(f"{', '.join(cleared)} cannot be null")
        changed = {
            key for key, value in data.items() if getattr(definition, key) != value
        }
        locked = changed - _MUTABLE_WHEN_REFERENCED
        if locked and DefinitionCatalog.is_referenced(db, definition):
            raise InvalidArgumentError(
                "Definition is referenced by checklist entries; only description "
                "and days_from_anchor can change"
            )
        if "code" in changed and DefinitionCatalog._code_taken(db, data["code"]):
            raise InvalidArgumentError(f"Definition code {data['code']} already exists")

        for key in changed:
            setattr(definition, key, data[key])
        db.flush()
        db.refresh(definition)
        logger.info("Updated document definition %s", definition.code)
        return definition

    @staticmethod
    def delete(db: Session, definition_id: str) -> None:
        definition = DefinitionCatalog.get(db, definition_id)
        db.delete(definition)
        db.flush()
        logger.info("Deleted document definition %s", definition.code)

    @staticmethod
    def is_referenced(db: Session, definition: DocumentDefinition) -> bool:
        return bool(
            db.scalar(
                select(
                    exists().where(ChecklistEntry.definition_id == definition.id)
                )
            )
        )

    @staticmethod
    def _code_taken(db: Session, code: str) -> bool:
        return bool(
            db.scalar(select(exists().where(DocumentDefinition.code == code)))
        )


def seed_global_definitions(db: Session) -> None:
    """Insert the contractual global definitions when they are missing."""
    created = 0
    for values in GLOBAL_DEFINITIONS:
        if DefinitionCatalog._code_taken(db, values["code"]):
            continue
        db.add(DocumentDefinition(is_global=True, business_id=None, **values))
        created += 1
    if created:
        db.commit()
        logger.info("Seeded %d global document definitions", created)


def _queue_backfill(business_id) -> None:
    try:
        from app.tasks.checklists import backfill_checklists

        backfill_checklists.delay(
            business_id=str(business_id) if business_id else None
        )
    except Exception as e:
        logger.exception("Failed to queue checklist backfill: %s", e)


catalog = DefinitionCatalog()
