from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ClickEvent(BaseModel):
    """Everything the click logger needs from one resolved request"""
    token: str = Field(..., description="Resolved token, stored as link_id")
    user_agent: str = ""
    device_os: str
    crawler: Optional[str] = Field(None, description="Bot label when the user agent is a known crawler")
    client_ip: str
    referrer: Optional[str] = None
    tracked_date: datetime

    # Attribution
    campaign_id: Optional[str] = None
    execution_id: Optional[str] = None
    recipient_id: Optional[str] = None

    @property
    def is_bot(self) -> bool:
        return self.crawler is not None
