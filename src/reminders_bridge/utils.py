from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence, Union

from .models import Reminder
from .notes import parse_reminder_note


# PUBLIC_INTERFACE
def collection_envelope(items: Union[Sequence[Any], Iterable[Any]]) -> Dict[str, Any]:
    """
    Build the standard envelope for collection endpoints.

    Args:
        items: The list/iterable of items to return.

    Returns:
        Dict with keys: items, total.
    """
    materialized: List[Any] = list(items) if not isinstance(items, list) else items
    return {"items": materialized, "total": len(materialized)}


def reminder_payload(reminder: Reminder) -> Dict[str, Any]:
    """Reminder fields for the API, with the note split into text and URLs."""
    payload = reminder.to_dict()
    text, urls = parse_reminder_note(reminder.notes)
    payload["notes"] = text or None
    payload["urls"] = urls
    return payload
