from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.models.compliance import (
    ChecklistEntry,
    Company,
    CompanyTag,
    DocumentDefinition,
)


def _b1(db_session) -> DocumentDefinition:
    return db_session.scalar(
        select(DocumentDefinition).where(DocumentDefinition.code == "B1")
    )


# ---------------------------------------------------------------------------
# Seed
# ---------------------------------------------------------------------------


class TestSeed:
    def test_annual_return_is_seeded_globally(self, db_session) -> None:
        b1 = _b1(db_session)
        assert b1 is not None
        assert b1.name == "Annual Return"
        assert b1.days_from_anchor == 56
        assert b1.is_global is True
        assert b1.business_id is None


# ---------------------------------------------------------------------------
# DocumentDefinition
# ---------------------------------------------------------------------------


class TestDocumentDefinition:
    def test_code_is_unique(self, db_session, business) -> None:
        db_session.add(
            DocumentDefinition(
                code="B1", name="Dup", is_global=False, business_id=business.id
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_global_definition_cannot_have_business(self, db_session, business) -> None:
        db_session.add(
            DocumentDefinition(
                code="G2", name="Bad", is_global=True, business_id=business.id
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_defaults(self, db_session, business) -> None:
        d = DocumentDefinition(code="X1", name="Minutes", business_id=business.id)
        db_session.add(d)
        db_session.commit()
        db_session.refresh(d)
        assert d.days_from_anchor == 0
        assert d.is_global is False
        assert d.created_at is not None


# ---------------------------------------------------------------------------
# ChecklistEntry
# ---------------------------------------------------------------------------


class TestChecklistEntry:
    def test_one_entry_per_company_definition(
        self, db_session, business, make_company
    ) -> None:
        company = make_company(business, "Acme Ltd")
        b1 = _b1(db_session)
        db_session.add(ChecklistEntry(company_id=company.id, definition_id=b1.id))
        db_session.commit()
        db_session.add(ChecklistEntry(company_id=company.id, definition_id=b1.id))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_completed_requires_timestamp(
        self, db_session, business, make_company
    ) -> None:
        company = make_company(business, "Acme Ltd")
        db_session.add(
            ChecklistEntry(
                company_id=company.id, definition_id=_b1(db_session).id, completed=True
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_open_entry_rejects_timestamp(
        self, db_session, business, make_company
    ) -> None:
        company = make_company(business, "Acme Ltd")
        db_session.add(
            ChecklistEntry(
                company_id=company.id,
                definition_id=_b1(db_session).id,
                completed=False,
                completed_at=datetime.now(timezone.utc),
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_deleting_company_cascades(self, db_session, business, make_company) -> None:
        company = make_company(business, "Acme Ltd", anchor=date(2024, 1, 1))
        db_session.add(
            ChecklistEntry(company_id=company.id, definition_id=_b1(db_session).id)
        )
        db_session.commit()

        db_session.delete(company)
        db_session.commit()
        assert db_session.scalars(select(ChecklistEntry)).all() == []

    def test_deleting_definition_cascades(
        self, db_session, business, make_company
    ) -> None:
        company = make_company(business, "Acme Ltd")
        d = DocumentDefinition(code="X1", name="Minutes", business_id=business.id)
        db_session.add(d)
        db_session.flush()
        db_session.add(ChecklistEntry(company_id=company.id, definition_id=d.id))
        db_session.commit()

        db_session.delete(d)
        db_session.commit()
        assert db_session.scalars(select(ChecklistEntry)).all() == []


# ---------------------------------------------------------------------------
# Company / Tag
# ---------------------------------------------------------------------------


class TestCompanyTags:
    def test_company_tags_many_to_many(
        self, db_session, business, make_company, make_tag
    ) -> None:
        vip = make_tag(business, "VIP")
        dormant = make_tag(business, "Dormant")
        company = make_company(business, "Acme Ltd", tags=[vip, dormant])
        assert {t.name for t in company.tags} == {"VIP", "Dormant"}
        assert len(db_session.scalars(select(CompanyTag)).all()) == 2

    def test_deleting_business_cascades_companies(
        self, db_session, business, make_company
    ) -> None:
        make_company(business, "Acme Ltd")
        db_session.delete(business)
        db_session.commit()
        assert db_session.scalars(select(Company)).all() == []
