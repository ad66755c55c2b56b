from unittest.mock import MagicMock, patch

from app.services.submission_refresh import request_refresh


class TestRequestRefresh:
    @patch("app.celery_app.celery_app.send_task")
    def test_sends_task_by_name(self, mock_send: MagicMock, business, make_company) -> None:
        company = make_company(business, "Acme Ltd", registration_number="123456")
        assert request_refresh(company) is True
        mock_send.assert_called_once_with(
            "registry.fetch_company_submissions",
            kwargs={
                "company_id": str(company.id),
                "business_id": str(business.id),
                "registration_number": "123456",
            },
            queue="registry",
        )

    @patch("app.celery_app.celery_app.send_task", side_effect=RuntimeError("down"))
    def test_never_raises(self, mock_send: MagicMock, business, make_company) -> None:
        company = make_company(business, "Acme Ltd")
        assert request_refresh(company) is False
        mock_send.assert_called_once()
