import httpx
from typing import Dict, Any, Optional
from loguru import logger

from graph.state import CrmRecordDraft
from tools.settings import Settings, CRM_DATABASE_ID, NOTION_VERSION, DEFAULT_TIMEOUT

class NotionError(Exception):
    """Creating a page in the Notion CRM database failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

def _rich_text(content: str) -> Dict[str, Any]:
    return {"rich_text": [{"text": {"content": content}}]}

def to_notion_properties(draft: CrmRecordDraft) -> Dict[str, Any]:
    """Render a CRM draft as Notion database page properties."""
    return {
        "Name": {"title": [{"text": {"content": draft["name"]}}]},
        "Email": {"email": draft["email"]},
        "Company": _rich_text(draft["company"]),
        "domain": {"url": draft["domain_url"]},
        "Source": {"select": {"name": draft["source"]}},
        "Status": {"select": {"name": draft["status"]}},
        "First Contacted": {"date": {"start": draft["first_contacted"]}},
        "Notes": _rich_text(draft["notes"]),
    }

class NotionClient:
    """Notion CRM integration client."""

    def __init__(
        self,
        api_key: str,
        database_id: str = CRM_DATABASE_ID,
        timeout: float = DEFAULT_TIMEOUT,
        version: str = NOTION_VERSION,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.database_id = database_id
        self.timeout = timeout
        self.version = version
        self.base_url = "https://api.notion.com/v1"
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotionClient":
        return cls(
            api_key=settings.notion_api_key or "",
            database_id=settings.notion_database_id,
            timeout=settings.notion_timeout,
            version=settings.notion_version,
        )

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for Notion API requests."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": self.version,
            "Content-Type": "application/json",
        }

    async def create_page(self, draft: CrmRecordDraft) -> Dict[str, Any]:
        """
        Create one page in the CRM database.

        Args:
            draft: Mapped CRM record

        Returns:
            The created Notion page object

        Raises:
            NotionError: on a non-success status, a transport error or a timeout
        """
        body = {
            "parent": {"database_id": self.database_id},
            "properties": to_notion_properties(draft),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/pages",
                    headers=self._get_headers(),
                    json=body,
                )
        except httpx.HTTPError as e:
            raise NotionError(f"Notion request failed: {e}") from e

        if response.is_error:
            raise NotionError(
                f"Notion API returned {response.status_code}",
                status_code=response.status_code,
                detail=response.text,
            )

        page = response.json()
        logger.info(f"Created Notion page {page.get('id')} in database {self.database_id}")
        return page
