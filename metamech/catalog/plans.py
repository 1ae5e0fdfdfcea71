"""Static plan catalog shared by the ROI calculator and the checkout flow."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from metamech.models.errors import UnknownPlanError

# Sentinel for a plan whose card checkout link is not available yet.
PLACEHOLDER_LINK = "#"


@dataclass(frozen=True)
class Plan:
    """A priced product tier."""

    id: str
    display_name: str
    price_amount: float
    stripe_link: Optional[str] = None
    period: str = "per year"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_CATALOG: dict[str, Plan] = {
    plan.id: plan
    for plan in (
        Plan(
            id="trial",
            display_name="Demo / Trial",
            price_amount=0,
            period="3 days free",
        ),
        Plan(
            id="standard",
            display_name="Standard Pack",
            price_amount=999,
            stripe_link="https://buy.stripe.com/28E5kC61J4252sl6vi2Nq00",
        ),
        Plan(
            id="premium",
            display_name="Premium Pack",
            price_amount=1299,
            stripe_link="https://buy.stripe.com/4gM28qgGnaqteb38Dq2Nq01",
        ),
        Plan(
            id="plus",
            display_name="Premium Plus",
            price_amount=1599,
            stripe_link=PLACEHOLDER_LINK,
        ),
    )
}


def get_plan(plan_id: str) -> Plan:
    """Look up a plan by ID. Raises ``UnknownPlanError`` for unknown IDs."""
    try:
        return _CATALOG[plan_id]
    except KeyError:
        raise UnknownPlanError(plan_id) from None


def get_all_plans() -> list[Plan]:
    """Plans in display order (cheapest first)."""
    return list(_CATALOG.values())


def usable_stripe_link(plan: Plan) -> Optional[str]:
    """Return the card checkout link, or None when absent or a placeholder."""
    link = (plan.stripe_link or "").strip()
    if not link or link == PLACEHOLDER_LINK:
        return None
    return link
