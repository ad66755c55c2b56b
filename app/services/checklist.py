import logging
import uuid
from datetime import datetime, timezone

from prometheus_client import Counter
from sqlalchemy import DateTime, case, func, insert, literal, null, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import InvalidArgumentError, NotFoundError
from app.models.compliance import ChecklistEntry, Company, DocumentDefinition, Person
from app.services.common import coerce_uuid, translate_storage_errors
from app.services.definition_catalog import DefinitionCatalog, resolve_company
from app.services.due_dates import due_date_or_none

logger = logging.getLogger(__name__)

CHECKLIST_TOGGLES = Counter(
    "checklist_toggles_total",
    "Checklist entry toggles by resulting state",
    ["state"],
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ChecklistStore:
    @staticmethod
    def entries_for(
        db: Session, company, definitions: list[DocumentDefinition] | None = None
    ) -> dict[str, ChecklistEntry]:
        """Map definition code to the company's entry, creating missing entries."""
        company = resolve_company(db, company)
        with translate_storage_errors():
            if definitions is None:
                definitions = DefinitionCatalog.applicable_definitions(db, company)
            ChecklistStore._insert_missing(db, company, definitions)
            rows = db.execute(
                select(DocumentDefinition.code, ChecklistEntry)
                .join(ChecklistEntry.definition)
                .where(
                    ChecklistEntry.company_id == company.id,
                    ChecklistEntry.definition_id.in_([d.id for d in definitions]),
                )
                .order_by(DocumentDefinition.code.asc())
                .execution_options(populate_existing=True)
            ).all()
        return {code: entry for code, entry in rows}

    @staticmethod
    def checklist(db: Session, company) -> list[dict]:
        """Applicable definitions with due dates and completion state."""
        company = resolve_company(db, company)
        definitions = DefinitionCatalog.applicable_definitions(db, company)
        entries = ChecklistStore.entries_for(db, company, definitions)
        items = []
        for definition in definitions:
            entry = entries.get(definition.code)
            if entry is None:
                # Definition deleted since it was read
                continue
            items.append(
                {
                    "code": definition.code,
                    "name": definition.name,
                    "description": definition.description,
                    "days_from_anchor": definition.days_from_anchor,
                    "due_date": due_date_or_none(
                        definition, company.next_annual_return
                    ),
                    "completed": entry.completed,
                    "completed_at": entry.completed_at,
                    "completed_by": entry.completed_by,
                }
            )
        return items

    @staticmethod
    def toggle(
        db: Session,
        company,
        code: str,
        actor_id,
        now: datetime | None = None,
    ) -> ChecklistEntry:
        """Flip completion for one definition in a single conditional UPDATE.

        Every SET expression reads the pre-update row, so the flag, timestamp
        and actor always change together.
        """
        company = resolve_company(db, company)
        actor_uuid = coerce_uuid(actor_id)
        if actor_uuid is None:
            raise InvalidArgumentError("An acting person is required")
        if not db.get(Person, actor_uuid):
            raise NotFoundError("Person not found")
        now = now or datetime.now(timezone.utc)

        with translate_storage_errors():
            definition = DefinitionCatalog.get_applicable(db, company, code)
            ChecklistStore._insert_missing(db, company, [definition])

            was_completed = ChecklistEntry.completed.is_(True)
            result = db.execute(
                update(ChecklistEntry)
                .where(
                    ChecklistEntry.company_id == company.id,
                    ChecklistEntry.definition_id == definition.id,
                )
                .values(
                    completed=~ChecklistEntry.completed,
                    completed_at=case(
                        (was_completed, null()),
                        else_=literal(now, DateTime(timezone=True)),
                    ),
                    completed_by=case(
                        (was_completed, null()),
                        else_=literal(actor_uuid, UUID(as_uuid=True)),
                    ),
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("Checklist entry not found")

            entry = db.scalar(
                select(ChecklistEntry)
                .where(
                    ChecklistEntry.company_id == company.id,
                    ChecklistEntry.definition_id == definition.id,
                )
                .execution_options(populate_existing=True)
            )

        CHECKLIST_TOGGLES.labels(
            state="completed" if entry.completed else "reopened"
        ).inc()
        logger.info(
            "Toggled %s for company %s to completed=%s by %s",
            code,
            company.id,
            entry.completed,
            actor_uuid,
        )
        return entry

    @staticmethod
    def completion_counts(db: Session, company_ids) -> dict[uuid.UUID, int]:
        ids = [coerce_uuid(company_id) for company_id in company_ids]
        if not ids:
            return {}
        rows = db.execute(
            select(ChecklistEntry.company_id, func.count(ChecklistEntry.id))
            .where(
                ChecklistEntry.company_id.in_(ids),
                ChecklistEntry.completed.is_(True),
            )
            .group_by(ChecklistEntry.company_id)
        ).all()
        counts = {company_id: 0 for company_id in ids}
        counts.update({company_id: count for company_id, count in rows})
        return counts

    @staticmethod
    def _insert_missing(
        db: Session, company: Company, definitions: list[DocumentDefinition]
    ) -> None:
        """Insert-if-absent; the (company, definition) unique key absorbs races."""
        if not definitions:
            return
        now = datetime.now(timezone.utc)
        rows = [
            {
                "id": uuid.uuid4(),
                "company_id": company.id,
                "definition_id": definition.id,
                "completed": False,
                "completed_at": None,
                "completed_by": None,
                "created_at": now,
                "updated_at": now,
            }
            for definition in definitions
        ]
        dialect = db.get_bind().dialect.name
        dialect_insert = _INSERT_BY_DIALECT.get(dialect)
        if dialect_insert is None:
            inserted = ChecklistStore._insert_each(db, rows)
        else:
            stmt = dialect_insert(ChecklistEntry.__table__).values(
                rows
            ).on_conflict_do_nothing(index_elements=["company_id", "definition_id"])
            inserted = db.execute(stmt).rowcount
        if inserted:
            logger.debug(
                "Materialized %d checklist entries for company %s",
                inserted,
                company.id,
            )

    @staticmethod
    def _insert_each(db: Session, rows: list[dict]) -> int:
        """Row-by-row insert under savepoints for dialects without ON CONFLICT."""
        inserted = 0
        for row in rows:
            try:
                with db.begin_nested():
                    db.execute(insert(ChecklistEntry.__table__).values(**row))
                inserted += 1
            except IntegrityError:
                logger.debug(
                    "Checklist entry for definition %s already exists",
                    row["definition_id"],
                )
        return inserted


checklists = ChecklistStore()
