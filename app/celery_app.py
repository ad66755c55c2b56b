from celery import Celery

from app.config import settings

celery_app = Celery(
    "cro_compliance",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.checklists"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_routes={
        settings.submission_refresh_task: {
            "queue": settings.submission_refresh_queue
        },
    },
    beat_schedule={
        "backfill-checklists-nightly": {
            "task": "app.tasks.checklists.backfill_checklists",
            "schedule": 24 * 60 * 60,
        },
    },
)
