from typing import TypedDict, Optional, List, Dict, Any

class CrmRecordDraft(TypedDict):
    """Record sent to the CRM for one booking."""
    name: str
    email: Optional[str]
    company: str
    domain_url: Optional[str]
    source: str                      # always "Inbound"
    status: str                      # always "New Lead"
    first_contacted: str             # YYYY-MM-DD
    notes: str

class BookingState(TypedDict, total=False):
    """State shape for the booking processing workflow."""
    raw: Dict[str, Any]              # verified webhook body
    trigger_event: str
    skipped: bool
    draft: CrmRecordDraft
    crm_record_id: Optional[str]
    errors: List[str]
