from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from app.api.companies import router as companies_router
from app.api.tags import router as tags_router
from app.db import SessionLocal
from app.errors import register_error_handlers
from app.logging import configure_logging
from app.services.definition_catalog import seed_global_definitions


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = SessionLocal()
    try:
        seed_global_definitions(db)
    finally:
        db.close()
    yield


configure_logging()

app = FastAPI(title="CRO Compliance API", lifespan=lifespan)

register_error_handlers(app)


def _include_api_router(router, dependencies=None):
    app.include_router(router, dependencies=dependencies)
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(companies_router)
_include_api_router(tags_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
