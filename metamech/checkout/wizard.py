"""CheckoutWizard -- two-step order flow: details, then payment.

Details
    -> submit_details(): validation passes and the remote submission succeeds
Payment
    -> go_back(): always allowed, keeps every entered field

Payment options only become available after the order details have been
accepted by the submission endpoint.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from metamech.catalog.plans import get_plan
from metamech.config.settings import Settings
from metamech.models.enums import FormFlow, PaymentMethod, WizardStep
from metamech.models.errors import InvalidTransitionError, WizardLockedError
from metamech.models.order import CONTACT_FIELDS, OrderDraft, get_flow_spec
from metamech.submission.base import SubmissionClientBase

from .forms import SubmissionGuard, fallback_message, missing_fields_message
from .router import Action, PaymentRouter

logger = logging.getLogger(__name__)

# (event_name, data)
WizardListener = Callable[[str, dict[str, Any]], None]

STEP_CHANGED = "wizard_step_changed"
SUBMISSION_FAILED = "submission_failed"


class CheckoutWizard:
    """Owns the ``OrderDraft`` and gates payment on a successful submission."""

    def __init__(
        self,
        client: SubmissionClientBase,
        router: Optional[PaymentRouter] = None,
        settings: Optional[Settings] = None,
        plan_id: str = "standard",
    ) -> None:
        self._settings = settings or Settings()
        self._router = router or PaymentRouter(settings=self._settings)
        self._guard = SubmissionGuard(client)
        self._spec = get_flow_spec(FormFlow.ORDER_DETAILS)
        self._draft = OrderDraft(plan_id=get_plan(plan_id).id)
        self._step = WizardStep.DETAILS
        self._listeners: list[WizardListener] = []
        self.error: Optional[str] = None
        self.missing_fields: list[str] = []

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def draft(self) -> OrderDraft:
        """A copy of the draft; edits go through the setters."""
        return OrderDraft(
            contact_fields=self._draft.snapshot(),
            plan_id=self._draft.plan_id,
            payment_method=self._draft.payment_method,
        )

    @property
    def is_submitting(self) -> bool:
        return self._guard.in_flight

    @property
    def confirmed(self) -> bool:
        """True once the details were accepted and payment routing is open."""
        return self._step == WizardStep.PAYMENT

    def subscribe(self, listener: WizardListener) -> None:
        self._listeners.append(listener)

    # -- Details step ---------------------------------------------------

    def set_field(self, name: str, value: str) -> None:
        self._require_editable()
        if name not in CONTACT_FIELDS:
            raise ValueError(f"Unknown field: {name}")
        self._draft.contact_fields[name] = value

    def update_fields(self, **fields: str) -> None:
        for name, value in fields.items():
            self.set_field(name, value)

    def set_plan(self, plan_id: str) -> None:
        self._require_editable()
        self._draft.plan_id = get_plan(plan_id).id

    def validate(self) -> list[str]:
        return self._spec.missing_fields(self._draft.contact_fields)

    async def submit_details(self) -> bool:
        """Send the order details. Returns True if the wizard moved to Payment.

        A call made while a submission is already running does nothing.
        """
        if self._step != WizardStep.DETAILS:
            logger.debug("submit_details ignored outside the details step")
            return False
        if self._guard.in_flight:
            logger.debug("submit_details ignored: submission already in flight")
            return False

        missing = self.validate()
        self.missing_fields = missing
        if missing:
            self.error = missing_fields_message(missing)
            return False

        self.error = None
        result = await self._guard.run(
            FormFlow.ORDER_DETAILS,
            self._draft.snapshot(),
            plan_id=self._draft.plan_id,
        )
        if result is None:
            return False
        if not result.success:
            logger.warning(f"Order details submission failed: {result.message}")
            self.error = fallback_message(self._settings)
            self._emit(SUBMISSION_FAILED, {"flow": FormFlow.ORDER_DETAILS.value, "error": self.error})
            return False

        self._transition(WizardStep.PAYMENT)
        return True

    # -- Payment step ---------------------------------------------------

    def go_back(self) -> None:
        if self._step == WizardStep.DETAILS:
            return
        self._draft.payment_method = None
        self._transition(WizardStep.DETAILS)

    def select_payment_method(self, method: PaymentMethod) -> None:
        if self._step != WizardStep.PAYMENT:
            raise InvalidTransitionError("Payment methods are available after order details are submitted")
        self._draft.payment_method = PaymentMethod(method)

    def pay(self, method: Optional[PaymentMethod] = None) -> Action:
        """Resolve the selected payment method for the confirmed order."""
        if method is not None:
            self.select_payment_method(method)
        if self._step != WizardStep.PAYMENT:
            raise InvalidTransitionError("Order details have not been submitted")
        if self._draft.payment_method is None:
            raise InvalidTransitionError("No payment method selected")
        return self._router.resolve(self._draft.plan_id, self._draft.payment_method, self.draft)

    def dispose(self) -> None:
        """Tear down: cancel a pending submission and ignore its result."""
        self._guard.dispose()
        self._listeners.clear()

    # -- internals ------------------------------------------------------

    def _require_editable(self) -> None:
        if self._step != WizardStep.DETAILS:
            raise WizardLockedError("Order details are confirmed; go back to edit them")
        if self._guard.in_flight:
            raise WizardLockedError("Order details are being submitted")

    def _transition(self, new_step: WizardStep) -> None:
        old_step = self._step
        self._step = new_step
        logger.info(f"Checkout wizard: {old_step.value} -> {new_step.value}")
        self._emit(STEP_CHANGED, {"from": old_step.value, "to": new_step.value})

    def _emit(self, event: str, data: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, data)
            except Exception:
                logger.exception(f"Wizard listener failed for {event}")
