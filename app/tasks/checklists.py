import logging

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.checklists.backfill_checklists", ignore_result=True)
def backfill_checklists(business_id: str | None = None) -> None:
    """Materialize checklist entries for every company, or one business's companies.

    Queued after a definition is created and run nightly by beat.
    """
    from app.db import SessionLocal
    from app.models.compliance import Company
    from app.services.checklist import ChecklistStore
    from app.services.common import coerce_uuid

    db = SessionLocal()
    try:
        query = db.query(Company)
        if business_id:
            query = query.filter(Company.business_id == coerce_uuid(business_id))
        companies = query.all()

        count = 0
        for company in companies:
            try:
                ChecklistStore.entries_for(db, company)
                db.commit()
                count += 1
            except Exception as e:
                db.rollback()
                logger.warning("Failed to backfill checklist for %s: %s", company.id, e)
        logger.info("Backfilled checklists for %d companies", count)
    except Exception as e:
        logger.exception("Failed to backfill checklists: %s", e)
    finally:
        db.close()
