"""Order and lead form data: flow definitions, the draft record and validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .enums import FormFlow, PaymentMethod

# Contact field keys shared by every flow.
CONTACT_FIELDS = (
    "name",
    "company",
    "vat_number",
    "country",
    "address",
    "email",
    "phone",
    "message",
)


@dataclass(frozen=True)
class FlowSpec:
    """How one form flow validates and serialises its contact fields."""

    flow: FormFlow
    subject_template: str
    required_fields: tuple[str, ...]
    # contact field key -> form field name on the wire
    wire_fields: dict[str, str]
    includes_plan: bool = False

    def subject(self, fields: dict[str, str]) -> str:
        return self.subject_template.format(company=fields.get("company", ""))

    def missing_fields(self, fields: dict[str, str]) -> list[str]:
        return [
            name for name in self.required_fields
            if not (fields.get(name) or "").strip()
        ]


FLOW_SPECS: dict[FormFlow, FlowSpec] = {
    FormFlow.ORDER_DETAILS: FlowSpec(
        flow=FormFlow.ORDER_DETAILS,
        subject_template="Order Details - {company}",
        required_fields=("name", "company", "email", "country"),
        wire_fields={
            "name": "fullName",
            "company": "companyName",
            "vat_number": "vatNumber",
            "country": "country",
            "address": "address",
            "email": "email",
            "phone": "phone",
        },
        includes_plan=True,
    ),
    FormFlow.TRIAL_REQUEST: FlowSpec(
        flow=FormFlow.TRIAL_REQUEST,
        subject_template="Trial Download Request - {company}",
        required_fields=("name", "company", "country", "email"),
        wire_fields={
            "name": "name",
            "company": "company",
            "email": "email",
            "country": "country",
            "phone": "phone",
        },
    ),
    FormFlow.CONTACT_REQUEST: FlowSpec(
        flow=FormFlow.CONTACT_REQUEST,
        subject_template="Demo Request - {company}",
        required_fields=("name", "company", "email"),
        wire_fields={
            "name": "name",
            "company": "company",
            "email": "email",
            "phone": "phone",
            "message": "message",
        },
    ),
}


def get_flow_spec(flow: FormFlow) -> FlowSpec:
    return FLOW_SPECS[flow]


@dataclass
class OrderDraft:
    """In-progress order. Mutated only through ``CheckoutWizard`` setters."""

    contact_fields: dict[str, str] = field(default_factory=dict)
    plan_id: str = "standard"
    payment_method: Optional[PaymentMethod] = None

    def get(self, name: str) -> str:
        return self.contact_fields.get(name, "")

    def snapshot(self) -> dict[str, str]:
        """Copy of the contact fields, safe to hand to other components."""
        return dict(self.contact_fields)
