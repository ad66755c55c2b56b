from datetime import date, datetime, timedelta

from app.errors import InvalidArgumentError
from app.models.compliance import DocumentDefinition


def due_date(definition: DocumentDefinition, anchor_date: date | None) -> date:
    """Due date is the anchor date plus the definition's day offset.

    A datetime anchor contributes only its date component.
    """
    if anchor_date is None:
        raise InvalidArgumentError("Company has no annual return date")
    if isinstance(anchor_date, datetime):
        anchor_date = anchor_date.date()
    return anchor_date + timedelta(days=definition.days_from_anchor or 0)


def due_date_or_none(
    definition: DocumentDefinition, anchor_date: date | None
) -> date | None:
    if anchor_date is None:
        return None
    return due_date(definition, anchor_date)
