"""One-shot lead forms (trial download, demo request) and the submission guard
shared with the checkout wizard."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from metamech.config.settings import Settings
from metamech.models.enums import FormFlow
from metamech.models.errors import InvalidTransitionError
from metamech.models.order import CONTACT_FIELDS, get_flow_spec
from metamech.storage.channels import PrefillChannel
from metamech.submission.base import SubmissionClientBase, SubmissionResult

logger = logging.getLogger(__name__)


def fallback_message(settings: Settings) -> str:
    """User-facing text shown when a remote submission fails."""
    return f"Something went wrong. Please email us directly at {settings.contact_email}"


def missing_fields_message(missing: list[str]) -> str:
    return "Please fill in the required fields: " + ", ".join(missing)


class SubmissionGuard:
    """Allows one remote submission at a time and drops results after disposal."""

    def __init__(self, client: SubmissionClientBase):
        self._client = client
        self._in_flight = False
        self._pending: Optional[asyncio.Future] = None
        self._disposed = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def run(
        self,
        flow: FormFlow,
        fields: dict[str, str],
        plan_id: Optional[str] = None,
    ) -> Optional[SubmissionResult]:
        """Submit once. Returns None if skipped (already running or disposed)."""
        if self._disposed or self._in_flight:
            return None

        self._in_flight = True
        try:
            self._pending = asyncio.ensure_future(
                self._client.submit(flow, fields, plan_id=plan_id)
            )
            result = await self._pending
        except asyncio.CancelledError:
            if self._disposed:
                logger.debug(f"{flow.value} submission cancelled on teardown")
                return None
            raise
        except Exception as e:
            logger.error(f"{flow.value} submission raised: {e}")
            result = SubmissionResult(success=False, message=str(e))
        finally:
            self._in_flight = False
            self._pending = None

        if self._disposed:
            return None
        return result

    def dispose(self) -> None:
        self._disposed = True
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()


class LeadForm:
    """Trial-request or contact/demo-request form.

    Same validation and single in-flight rule as the checkout wizard, but a
    successful submission just marks the form as submitted.
    """

    def __init__(
        self,
        flow: FormFlow,
        client: SubmissionClientBase,
        settings: Optional[Settings] = None,
        prefill: Optional[PrefillChannel] = None,
    ):
        if flow == FormFlow.ORDER_DETAILS:
            raise ValueError("Order details are handled by CheckoutWizard")
        self._flow = flow
        self._spec = get_flow_spec(flow)
        self._settings = settings or Settings()
        self._guard = SubmissionGuard(client)
        self._prefill = prefill
        self._fields: dict[str, str] = {}
        self.submitted = False
        self.error: Optional[str] = None
        self.missing_fields: list[str] = []

    @property
    def flow(self) -> FormFlow:
        return self._flow

    @property
    def fields(self) -> dict[str, str]:
        return dict(self._fields)

    @property
    def is_submitting(self) -> bool:
        return self._guard.in_flight

    def set_field(self, name: str, value: str) -> None:
        if self.submitted:
            raise InvalidTransitionError(f"{self._flow.value} form was already submitted")
        if self._guard.in_flight:
            raise InvalidTransitionError(f"{self._flow.value} form is being submitted")
        if name not in CONTACT_FIELDS:
            raise ValueError(f"Unknown field: {name}")
        self._fields[name] = value

    def update_fields(self, **fields: str) -> None:
        for name, value in fields.items():
            self.set_field(name, value)

    def activate(self) -> Optional[str]:
        """Called when the section comes into view. Consumes a pending enquiry subject."""
        if self._prefill is None:
            return None
        subject = self._prefill.take()
        if subject is None:
            return None
        message = f"I'm interested in {subject}."
        self._fields["message"] = message
        return message

    def validate(self) -> list[str]:
        return self._spec.missing_fields(self._fields)

    async def submit(self) -> bool:
        """Validate and send. Returns True once the request has been accepted."""
        if self.submitted or self._guard.in_flight:
            return False

        missing = self.validate()
        self.missing_fields = missing
        if missing:
            self.error = missing_fields_message(missing)
            return False

        self.error = None
        result = await self._guard.run(self._flow, dict(self._fields))
        if result is None:
            return False
        if not result.success:
            logger.warning(f"{self._flow.value} submission failed: {result.message}")
            self.error = fallback_message(self._settings)
            return False

        self.submitted = True
        return True

    def dispose(self) -> None:
        self._guard.dispose()
