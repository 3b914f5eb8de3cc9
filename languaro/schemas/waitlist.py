"""
Pydantic schemas for waitlist and support endpoints.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SubscribeRequest(BaseModel):
    """Waitlist signup."""
    model_config = ConfigDict(extra="forbid")

    email: Optional[str] = None


class SupportRequest(BaseModel):
    """Support message from the site's contact form."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    email: Optional[str] = None
    message: Optional[str] = None
    page_url: Optional[str] = Field(None, alias="pageUrl")
    user_agent: Optional[str] = Field(None, alias="userAgent")
