import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db?check_same_thread=false")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db import Base, SessionLocal, engine  # noqa: E402
import app.models  # noqa: E402,F401
from app.main import app  # noqa: E402
from app.models.compliance import (  # noqa: E402
    Business,
    BusinessMember,
    Company,
    Person,
    Tag,
)
from app.services.definition_catalog import seed_global_definitions  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_global_definitions(db)
    yield


@pytest.fixture()
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _make_business(db_session, name):
    business = Business(name=name)
    db_session.add(business)
    db_session.commit()
    db_session.refresh(business)
    return business


@pytest.fixture()
def business(db_session):
    return _make_business(db_session, "Ledger & Co")


@pytest.fixture()
def other_business(db_session):
    return _make_business(db_session, "Other Practice")


@pytest.fixture()
def person(db_session, business):
    p = Person(
        first_name="Una",
        last_name="Tester",
        email=f"person-{uuid.uuid4().hex[:8]}@example.com",
        current_business_id=business.id,
    )
    db_session.add(p)
    db_session.flush()
    db_session.add(BusinessMember(business_id=business.id, person_id=p.id))
    db_session.commit()
    db_session.refresh(p)
    return p


@pytest.fixture()
def make_company(db_session):
    def _make(business, name, registration_number=None, alias=None, anchor=None, tags=()):
        company = Company(
            business_id=business.id,
            name=name,
            registration_number=registration_number,
            alias=alias,
            next_annual_return=anchor,
        )
        company.tags.extend(tags)
        db_session.add(company)
        db_session.commit()
        db_session.refresh(company)
        return company

    return _make


@pytest.fixture()
def make_tag(db_session):
    def _make(business, name):
        tag = Tag(business_id=business.id, name=name)
        db_session.add(tag)
        db_session.commit()
        db_session.refresh(tag)
        return tag

    return _make


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def auth_headers(person):
    return {"X-Person-Id": str(person.id)}
