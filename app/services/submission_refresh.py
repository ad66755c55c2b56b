import logging

from app.config import settings
from app.models.compliance import Company

logger = logging.getLogger(__name__)


def request_refresh(company: Company) -> bool:
    """Fire-and-forget refresh of a company's filed submissions.

    Sends the registry worker's task by name and returns at once. Never
    raises; returns False when the task could not be queued.
    """
    try:
        from app.celery_app import celery_app

        celery_app.send_task(
            settings.submission_refresh_task,
            kwargs={
                "company_id": str(company.id),
                "business_id": str(company.business_id),
                "registration_number": company.registration_number,
            },
            queue=settings.submission_refresh_queue,
        )
        logger.info("Queued submissions refresh for company %s", company.id)
        return True
    except Exception as e:
        logger.exception(
            "Failed to queue submissions refresh for company %s: %s", company.id, e
        )
        return False
