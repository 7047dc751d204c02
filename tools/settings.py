import os
from dataclasses import dataclass
from typing import Optional, List

CRM_DATABASE_ID = "f7cabf3f-1aac-4b87-89e2-91a5431bd03d"
NOTION_VERSION = "2022-06-28"
DEFAULT_TIMEOUT = 10.0

@dataclass(frozen=True)
class Settings:
    """Process configuration, read fresh for every request."""
    webhook_secret: Optional[str]
    notion_api_key: Optional[str]
    notion_database_id: str = CRM_DATABASE_ID
    notion_timeout: float = DEFAULT_TIMEOUT
    notion_version: str = NOTION_VERSION

    def missing(self) -> List[str]:
        """Names of the required secrets that are not set."""
        missing = []
        if not self.webhook_secret:
            missing.append("CAL_WEBHOOK_SECRET")
        if not self.notion_api_key:
            missing.append("NOTION_API_KEY")
        return missing

def _timeout_from_env() -> float:
    raw = os.getenv("NOTION_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT

def get_settings() -> Settings:
    """Build settings from the environment (FastAPI dependency)."""
    return Settings(
        webhook_secret=os.getenv("CAL_WEBHOOK_SECRET"),
        notion_api_key=os.getenv("NOTION_API_KEY"),
        notion_database_id=os.getenv("NOTION_DATABASE_ID") or CRM_DATABASE_ID,
        notion_timeout=_timeout_from_env(),
    )
