"""Payment routing: (plan, payment method) -> what the browser should do next.

Routing is a pure decision. Opening the link or the mail client is up to
the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union
from urllib.parse import quote

from metamech.catalog.plans import get_plan, usable_stripe_link
from metamech.config.settings import Settings
from metamech.models.enums import ActionType, PaymentMethod
from metamech.models.errors import UnknownPlanError
from metamech.models.order import OrderDraft

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenExternalLink:
    url: str

    type = ActionType.OPEN_EXTERNAL_LINK

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "url": self.url}


@dataclass(frozen=True)
class ComposeEmail:
    recipient: str
    subject: str
    body: str

    type = ActionType.COMPOSE_EMAIL

    @property
    def mailto_uri(self) -> str:
        return (
            f"mailto:{self.recipient}"
            f"?subject={quote(self.subject, safe='')}"
            f"&body={quote(self.body, safe='')}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "recipient": self.recipient,
            "subject": self.subject,
            "body": self.body,
            "mailto_uri": self.mailto_uri,
        }


@dataclass(frozen=True)
class ReportError:
    message: str

    type = ActionType.REPORT_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "message": self.message}


Action = Union[OpenExternalLink, ComposeEmail, ReportError]


class PaymentRouter:
    """Resolves a payment choice to a single action. Never falls back to another method."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or Settings()

    def resolve(
        self,
        plan_id: str,
        payment_method: PaymentMethod,
        order: OrderDraft,
    ) -> Action:
        try:
            plan = get_plan(plan_id)
        except UnknownPlanError as e:
            logger.warning(f"Payment requested for unknown plan {plan_id!r}")
            return ReportError(message=str(e))

        if payment_method == PaymentMethod.CARD_REDIRECT:
            link = usable_stripe_link(plan)
            if link is None:
                logger.info(f"No card checkout link configured for plan {plan.id}")
                return ReportError(
                    message=(
                        "Card payment link not configured for this plan yet. "
                        "Please use Revolut or Request Invoice."
                    )
                )
            return OpenExternalLink(url=link)

        if payment_method == PaymentMethod.WALLET_REDIRECT:
            return OpenExternalLink(url=self._settings.wallet_payment_url)

        if payment_method == PaymentMethod.INVOICE_REQUEST:
            return self._invoice_email(plan.display_name, order)

        return ReportError(message=f"Unsupported payment method: {payment_method}")

    def _invoice_email(self, plan_name: str, order: OrderDraft) -> ComposeEmail:
        company = order.get("company")
        body = (
            "Hi MetaMech Team,\n\n"
            "I would like to request an invoice for the following:\n\n"
            f"Plan: {plan_name}\n"
            f"Company: {company}\n"
            f"Name: {order.get('name')}\n"
            f"Email: {order.get('email')}\n"
            f"Country: {order.get('country')}\n"
            f"Address: {order.get('address')}\n\n"
            "Please send the invoice to the email above.\n\n"
            "Thank you!"
        )
        return ComposeEmail(
            recipient=self._settings.contact_email,
            subject=f"Invoice Request - {plan_name} - {company}",
            body=body,
        )
