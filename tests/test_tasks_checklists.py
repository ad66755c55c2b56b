import uuid
from unittest.mock import MagicMock, patch

from sqlalchemy import func, select

from app.models.compliance import ChecklistEntry, DocumentDefinition


class TestBackfillChecklists:
    def test_materializes_entries_for_all_companies(
        self, db_session, business, other_business, make_company
    ) -> None:
        from app.tasks.checklists import backfill_checklists

        make_company(business, "Acme Ltd")
        make_company(other_business, "Theirs Ltd")
        db_session.add(
            DocumentDefinition(code="X1", name="Minutes", business_id=business.id)
        )
        db_session.commit()

        backfill_checklists()

        total = db_session.scalar(select(func.count(ChecklistEntry.id)))
        # Acme: B1 + X1, Theirs: B1
        assert total == 3

    def test_scoped_to_business(
        self, db_session, business, other_business, make_company
    ) -> None:
        from app.tasks.checklists import backfill_checklists

        ours = make_company(business, "Acme Ltd")
        make_company(other_business, "Theirs Ltd")

        backfill_checklists(business_id=str(business.id))

        company_ids = db_session.scalars(select(ChecklistEntry.company_id)).all()
        assert company_ids == [ours.id]

    def test_rerun_is_idempotent(self, db_session, business, make_company) -> None:
        from app.tasks.checklists import backfill_checklists

        make_company(business, "Acme Ltd")
        backfill_checklists()
        backfill_checklists()
        assert db_session.scalar(select(func.count(ChecklistEntry.id))) == 1

    @patch("app.db.SessionLocal")
    @patch("app.services.checklist.ChecklistStore.entries_for")
    def test_handles_per_company_failure(
        self, mock_entries, mock_session_cls
    ) -> None:
        from app.tasks.checklists import backfill_checklists

        mock_db = MagicMock()
        mock_session_cls.return_value = mock_db
        c1 = MagicMock()
        c1.id = uuid.uuid4()
        c2 = MagicMock()
        c2.id = uuid.uuid4()
        mock_db.query.return_value.all.return_value = [c1, c2]
        mock_entries.side_effect = [Exception("fail"), {}]

        # Should not raise
        backfill_checklists()
        assert mock_entries.call_count == 2
        mock_db.rollback.assert_called_once()
        mock_db.commit.assert_called_once()
        mock_db.close.assert_called_once()
