"""
Pydantic schemas for admin endpoints.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class AddProUserRequest(BaseModel):
    """Request schema for manually granting pro access."""
    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "secret": "<ADMIN_SECRET>",
                "email": "customer@example.com",
                "plan": "lifetime"
            }
        },
    )

    secret: Optional[str] = Field(None, description="Must match ADMIN_SECRET")
    email: Optional[str] = None
    plan: Optional[str] = Field(None, description="pro, monthly, yearly or lifetime (default pro)")
