import pytest
import asyncio
import os
import sys
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from graph.nodes.capture import capture, build_draft, build_notes
from graph.nodes.record import record
from graph.workflow import build_workflow
from tools.notion import NotionError

class FakeCrm:
    """In-memory stand-in for the Notion client."""

    def __init__(self, error=None):
        self.drafts = []
        self.error = error

    async def create_page(self, draft):
        self.drafts.append(draft)
        if self.error:
            raise self.error
        return {"id": f"page_{len(self.drafts)}"}

class TestBuildDraft:
    """Test mapping of booking payloads onto CRM drafts."""

    def test_empty_payload_defaults(self):
        draft = build_draft({"attendees": [], "responses": {}}, today=date(2024, 3, 5))

        assert draft["name"] == "Unknown"
        assert draft["email"] is None
        assert draft["domain_url"] is None
        assert draft["notes"] == ""
        assert draft["company"] == ""
        assert draft["source"] == "Inbound"
        assert draft["status"] == "New Lead"
        assert draft["first_contacted"] == "2024-03-05"

    def test_missing_keys_and_nulls(self):
        """Absent or null fields never fail the mapping."""
        assert build_draft({})["name"] == "Unknown"
        draft = build_draft({"attendees": None, "responses": None})
        assert draft["email"] is None

        draft = build_draft({
            "attendees": [{"name": "", "email": None}],
            "responses": {"how_found": None, "notes": {"value": None}, "domain": {}}
        })
        assert draft["name"] == "Unknown"
        assert draft["email"] is None
        assert draft["domain_url"] is None
        assert draft["notes"] == ""

    @pytest.mark.parametrize("attendees", [{"name": "Jane"}, 5, "Jane"])
    def test_attendees_not_a_list(self, attendees):
        draft = build_draft({"attendees": attendees, "responses": {}})

        assert draft["name"] == "Unknown"
        assert draft["email"] is None

    def test_first_attendee_only(self):
        draft = build_draft({
            "attendees": [
                {"name": "Jane", "email": "jane@x.com"},
                {"name": "Bob", "email": "bob@x.com"}
            ],
            "responses": {"domain": {"value": "https://x.com"}}
        })

        assert draft["name"] == "Jane"
        assert draft["email"] == "jane@x.com"
        assert draft["domain_url"] == "https://x.com"

    def test_defaults_to_today(self):
        assert build_draft({})["first_contacted"] == date.today().isoformat()

    def test_notes_with_how_found(self):
        draft = build_draft({"responses": {
            "how_found": {"value": "Twitter"},
            "notes": {"value": "wants a demo"}
        }})
        assert draft["notes"] == "Found us: Twitter\nwants a demo"

    def test_notes_without_how_found(self):
        draft = build_draft({"responses": {
            "how_found": {"value": ""},
            "notes": {"value": "wants a demo"}
        }})
        assert draft["notes"] == "wants a demo"

    def test_notes_only_how_found(self):
        assert build_notes("Podcast", "") == "Found us: Podcast"

class TestCaptureNode:
    """Test the capture node filters trigger events."""

    def test_booking_created(self):
        state = {
            "raw": {
                "triggerEvent": "BOOKING_CREATED",
                "payload": {"attendees": [{"name": "Jane", "email": "jane@x.com"}]}
            },
            "errors": []
        }
        result = capture(state)

        assert result["skipped"] is False
        assert result["trigger_event"] == "BOOKING_CREATED"
        assert result["draft"]["name"] == "Jane"

    @pytest.mark.parametrize("event", ["BOOKING_CANCELLED", "BOOKING_RESCHEDULED", "booking_created", None])
    def test_other_events_skipped(self, event):
        result = capture({"raw": {"triggerEvent": event, "payload": {}}, "errors": []})

        assert result["skipped"] is True
        assert "draft" not in result

    def test_null_payload(self):
        result = capture({"raw": {"triggerEvent": "BOOKING_CREATED", "payload": None}, "errors": []})

        assert result["draft"]["name"] == "Unknown"

class TestRecordNode:
    """Test the record node creates CRM records."""

    def setup_method(self):
        self.state = {
            "raw": {"triggerEvent": "BOOKING_CREATED", "payload": {}},
            "errors": [],
            "skipped": False,
            "draft": build_draft({})
        }

    def test_record_success(self):
        crm = FakeCrm()
        result = asyncio.run(record(self.state, {"configurable": {"crm": crm}}))

        assert result["crm_record_id"] == "page_1"
        assert result["errors"] == []
        assert crm.drafts == [self.state["draft"]]

    def test_record_failure(self):
        crm = FakeCrm(error=NotionError("Notion API returned 400", status_code=400, detail="validation_error"))
        result = asyncio.run(record(self.state, {"configurable": {"crm": crm}}))

        assert result["crm_record_id"] is None
        assert len(result["errors"]) == 1
        assert "CRM operation failed" in result["errors"][0]
        assert "validation_error" in result["errors"][0]

    def test_record_unexpected_error(self):
        crm = FakeCrm(error=RuntimeError("boom"))
        result = asyncio.run(record(self.state, {"configurable": {"crm": crm}}))

        assert result["crm_record_id"] is None
        assert "boom" in result["errors"][0]

class TestWorkflow:
    """Test the complete booking workflow."""

    def setup_method(self):
        self.graph = build_workflow()

    def run(self, raw, crm):
        return asyncio.run(self.graph.ainvoke(
            {"raw": raw, "errors": []},
            config={"configurable": {"crm": crm}}
        ))

    def test_booking_created_creates_record(self):
        crm = FakeCrm()
        result = self.run({
            "triggerEvent": "BOOKING_CREATED",
            "payload": {"attendees": [{"name": "Jane", "email": "jane@x.com"}]}
        }, crm)

        assert result["crm_record_id"] == "page_1"
        assert len(crm.drafts) == 1
        assert crm.drafts[0]["email"] == "jane@x.com"

    def test_skipped_event_makes_no_call(self):
        crm = FakeCrm()
        result = self.run({"triggerEvent": "MEETING_ENDED", "payload": {}}, crm)

        assert result["skipped"] is True
        assert crm.drafts == []

    def test_failure_is_not_retried(self):
        crm = FakeCrm(error=NotionError("Notion request failed"))
        result = self.run({"triggerEvent": "BOOKING_CREATED", "payload": {}}, crm)

        assert len(crm.drafts) == 1
        assert result["errors"]

if __name__ == "__main__":
    # Run tests
    pytest.main([__file__, "-v"])
