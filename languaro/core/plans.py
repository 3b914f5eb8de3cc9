"""
Plan labels and the rules that derive them from payment payloads.

Stripe payloads are classified from amount and recurrence; legacy Gumroad
payloads from the product name and price.
"""
import re
from typing import Any, Dict, Optional

PLAN_PRO = "pro"
PLAN_MONTHLY = "monthly"
PLAN_YEARLY = "yearly"
PLAN_LIFETIME = "lifetime"

PLANS = (PLAN_PRO, PLAN_MONTHLY, PLAN_YEARLY, PLAN_LIFETIME)

# Minor units (cents)
LIFETIME_MIN_AMOUNT = 4900
LEGACY_MONTHLY_MAX_PRICE = 1000

_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")


def classify_plan(amount: int, interval: Optional[str]) -> str:
    """
    Map an amount and recurrence interval to a plan label.

    First match wins: month -> monthly, year -> yearly,
    amount >= 4900 -> lifetime, otherwise pro.
    """
    if interval == "month":
        return PLAN_MONTHLY
    if interval == "year":
        return PLAN_YEARLY
    if amount >= LIFETIME_MIN_AMOUNT:
        return PLAN_LIFETIME
    return PLAN_PRO


def recurrence_interval(stripe_object: Dict[str, Any]) -> Optional[str]:
    """Pull a recurrence interval out of a Stripe session/invoice/price payload."""
    recurring = stripe_object.get("recurring")
    if isinstance(recurring, dict) and recurring.get("interval"):
        return recurring["interval"]
    if isinstance(recurring, str) and recurring:
        return recurring

    details = stripe_object.get("subscription_details")
    if isinstance(details, dict) and details.get("interval"):
        return details["interval"]

    items = stripe_object.get("items")
    items = (items.get("data") or []) if isinstance(items, dict) else []
    if items and isinstance(items[0], dict):
        price_recurring = (items[0].get("price") or {}).get("recurring") or {}
        if price_recurring.get("interval"):
            return price_recurring["interval"]

    return None


def amount_of(stripe_object: Dict[str, Any]) -> int:
    amount = stripe_object.get("amount_total")
    if amount is None:
        amount = stripe_object.get("amount")
    try:
        return int(amount or 0)
    except (TypeError, ValueError):
        return 0


def classify_stripe_object(stripe_object: Dict[str, Any]) -> str:
    return classify_plan(amount_of(stripe_object), recurrence_interval(stripe_object))


def parse_leading_int(value: Any) -> int:
    """Leading integer of a value, 0 when there is none ("49.00" -> 49)."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value)) if value is not None else None
    return int(match.group(1)) if match else 0


def classify_legacy_plan(product_name: Any, price: Any) -> str:
    """
    Classify a legacy Gumroad sale.

    A "lifetime" product or a price of 4900+ is lifetime; a "monthly" product
    or a price under 1000 is monthly; anything else is pro.
    """
    name = product_name.lower() if isinstance(product_name, str) else ""
    cents = parse_leading_int(price)

    if "lifetime" in name or cents >= LIFETIME_MIN_AMOUNT:
        return PLAN_LIFETIME
    if "monthly" in name or cents < LEGACY_MONTHLY_MAX_PRICE:
        return PLAN_MONTHLY
    return PLAN_PRO
