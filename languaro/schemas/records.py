"""
Records written to the Supabase store.

Unset fields are dropped on dump so a partial update never clears a column.
"""
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel

PlanLabel = Literal["pro", "monthly", "yearly", "lifetime"]


class StoreRecord(BaseModel):
    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class UserRecord(StoreRecord):
    """Row in the users table, keyed by email."""
    email: str
    is_pro: bool
    plan: Optional[PlanLabel] = None
    activated_at: Optional[datetime] = None
    subscription_expires_at: Optional[datetime] = None
    purchase_data: Optional[Dict[str, Any]] = None


class WaitlistRecord(StoreRecord):
    email: str
    created_at: datetime


class SupportRecord(StoreRecord):
    email: str
    support_message: str
    last_support_at: datetime
    source: str = "support"
    user_agent: Optional[str] = None
    page_url: Optional[str] = None
