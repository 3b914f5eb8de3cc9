"""
Pydantic schemas for billing endpoints.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class CreateCheckoutRequest(BaseModel):
    """Request schema for creating a checkout session."""
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "priceId": "price_1PqXyZ...",
                "plan": "monthly",
                "email": "buyer@example.com"
            }
        },
    )

    price_id: Optional[str] = Field(None, alias="priceId", description="Stripe price ID")
    plan: Optional[str] = Field(None, description="Plan label; 'monthly' creates a subscription")
    email: Optional[str] = Field(None, description="Pre-fills the checkout email")


class CreateCheckoutResponse(BaseModel):
    """Response schema for checkout session creation."""
    ok: bool = True
    url: str = Field(..., description="Stripe checkout session URL")
    session_id: str = Field(..., alias="sessionId", description="Stripe checkout session ID")

    model_config = ConfigDict(populate_by_name=True)


class ConfirmCheckoutResponse(BaseModel):
    """Response schema for checkout confirmation."""
    ok: bool = True
    email: str
    result: Any = Field(None, description="Store representation of the upserted user")


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the payment provider."""
    ok: bool = True
    message: str
    email: Optional[str] = None
    plan: Optional[str] = None
