from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from metamech.models.enums import FormFlow
from metamech.models.order import get_flow_spec


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one remote form submission."""

    success: bool
    message: Optional[str] = None


def build_payload(
    flow: FormFlow,
    fields: dict[str, str],
    access_key: str,
    plan_id: Optional[str] = None,
) -> dict[str, str]:
    """Form-encoded body for a flow: credential, subject, sender, then flow fields."""
    flow_spec = get_flow_spec(flow)
    payload = {
        "access_key": access_key,
        "subject": flow_spec.subject(fields),
        "from_name": fields.get("name", ""),
        "from_email": fields.get("email", ""),
    }
    if flow_spec.includes_plan:
        payload["plan"] = plan_id or ""
    for key, wire_name in flow_spec.wire_fields.items():
        payload[wire_name] = fields.get(key, "")
    return payload


class SubmissionClientBase(ABC):
    """Abstract base for the remote form endpoint."""

    @abstractmethod
    async def submit(
        self,
        flow: FormFlow,
        fields: dict[str, str],
        plan_id: Optional[str] = None,
    ) -> SubmissionResult:
        """Send one submission. Must not raise: failures come back as results."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
