from datetime import date
from typing import Dict, Any, Optional
from graph.state import BookingState, CrmRecordDraft
from loguru import logger

BOOKING_CREATED = "BOOKING_CREATED"

def _response_value(responses: Dict[str, Any], key: str) -> str:
    """Value of a booking-form answer, or "" when it is missing."""
    entry = responses.get(key)
    if not isinstance(entry, dict):
        return ""
    value = entry.get("value")
    if not value:
        return ""
    return value if isinstance(value, str) else str(value)

def build_notes(how_found: str, notes: str) -> str:
    parts = []
    if how_found:
        parts.append(f"Found us: {how_found}")
    if notes:
        parts.append(notes)
    return "\n".join(parts)

def build_draft(payload: Dict[str, Any], today: Optional[date] = None) -> CrmRecordDraft:
    """Map a booking payload onto a CRM record draft."""
    attendees = payload.get("attendees")
    if not isinstance(attendees, list):
        attendees = []
    attendee = attendees[0] if attendees and isinstance(attendees[0], dict) else {}
    responses = payload.get("responses") or {}
    if not isinstance(responses, dict):
        responses = {}

    domain = _response_value(responses, "domain")

    return {
        "name": attendee.get("name") or "Unknown",
        "email": attendee.get("email") or None,
        "company": "",
        "domain_url": domain or None,
        "source": "Inbound",
        "status": "New Lead",
        "first_contacted": (today or date.today()).isoformat(),
        "notes": build_notes(
            _response_value(responses, "how_found"),
            _response_value(responses, "notes"),
        ),
    }

def capture(state: BookingState) -> BookingState:
    """Filter on the trigger event and map the booking into a CRM draft."""
    raw = state.get("raw", {})
    trigger_event = raw.get("triggerEvent")
    state["trigger_event"] = trigger_event

    if trigger_event != BOOKING_CREATED:
        logger.info(f"Skipping webhook with trigger event: {trigger_event}")
        state["skipped"] = True
        return state

    payload = raw.get("payload") or {}
    if not isinstance(payload, dict):
        payload = {}

    state["skipped"] = False
    state["draft"] = build_draft(payload)

    logger.info(f"Capture completed for booking attendee: {state['draft']['email'] or 'unknown'}")
    return state
