"""ViewSession -- everything one open browser page needs, torn down together."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional
from uuid import uuid4

from metamech.checkout.forms import LeadForm
from metamech.checkout.router import PaymentRouter
from metamech.checkout.wizard import STEP_CHANGED, SUBMISSION_FAILED, CheckoutWizard
from metamech.config.settings import Settings
from metamech.engine.pipeline import ROIPipeline
from metamech.engine.tween import ValueTweenController
from metamech.models.enums import FormFlow
from metamech.models.roi import AnimatedROIResult
from metamech.storage.channels import PrefillChannel
from metamech.storage.stores import InMemoryStore
from metamech.streaming.events import SiteEventType, SSEEvent
from metamech.streaming.manager import StreamManager
from metamech.submission.base import SubmissionClientBase
from metamech.submission.web3forms_client import Web3FormsClient

logger = logging.getLogger(__name__)

_WIZARD_EVENTS = {
    STEP_CHANGED: SiteEventType.WIZARD_STEP_CHANGED,
    SUBMISSION_FAILED: SiteEventType.SUBMISSION_FAILED,
}


class ViewSession:
    """Composes the ROI pipeline, the checkout wizard and the lead forms.

    The two pipelines share nothing but the plan catalog. The prefill
    channel lives in a page-lifetime store owned by the session.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        stream_manager: Optional[StreamManager] = None,
        client: Optional[SubmissionClientBase] = None,
        submission_endpoint: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or str(uuid4())
        self._settings = settings or Settings()
        self._stream_manager = stream_manager
        self._seq = 0
        self._closed = False
        self.last_active = time.monotonic()

        self._client = client or Web3FormsClient(
            settings=self._settings, endpoint=submission_endpoint
        )
        self._owns_client = client is None

        tween = ValueTweenController(
            duration_ms=self._settings.tween_duration_ms,
            frame_interval_ms=self._settings.tween_frame_interval_ms,
        )
        tween.subscribe(self._on_frame)
        self.roi = ROIPipeline(tween=tween)

        self.wizard = CheckoutWizard(
            client=self._client,
            router=PaymentRouter(settings=self._settings),
            settings=self._settings,
        )
        self.wizard.subscribe(self._on_wizard_event)

        self.prefill = PrefillChannel(InMemoryStore())
        self.trial_form = LeadForm(FormFlow.TRIAL_REQUEST, self._client, settings=self._settings)
        self.contact_form = LeadForm(
            FormFlow.CONTACT_REQUEST,
            self._client,
            settings=self._settings,
            prefill=self.prefill,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def touch(self) -> None:
        """Mark the session as in use by its page."""
        self.last_active = time.monotonic()

    def idle_seconds(self, now: Optional[float] = None) -> float:
        if now is None:
            now = time.monotonic()
        return now - self.last_active

    def lead_form(self, flow: FormFlow) -> LeadForm:
        if flow == FormFlow.TRIAL_REQUEST:
            return self.trial_form
        if flow == FormFlow.CONTACT_REQUEST:
            return self.contact_form
        raise ValueError(f"No lead form for {flow.value}")

    def update_roi(self, plan_id: Optional[str] = None, **raw: Any) -> None:
        """Apply a plan switch and/or raw input changes, in that order."""
        if plan_id is not None:
            self.roi.select_plan(plan_id)
        if raw:
            self.roi.update(**raw)
        self._publish(
            SiteEventType.ROI_RETARGETED,
            {"plan_id": self.roi.plan_id, "target": self.roi.result.to_dict()},
        )

    def roi_snapshot(self) -> dict[str, Any]:
        displayed = self.roi.tween.displayed
        return {
            "plan_id": self.roi.plan_id,
            "inputs": self.roi.inputs.to_dict(),
            "target": self.roi.result.to_dict(),
            "displayed": displayed.to_dict(),
            "display": displayed.rounded(),
            "animating": self.roi.tween.is_animating,
        }

    async def close(self) -> None:
        """Stop animations, cancel pending submissions and end event streams."""
        if self._closed:
            return
        self._closed = True
        self.roi.tween.dispose()
        self.wizard.dispose()
        self.trial_form.dispose()
        self.contact_form.dispose()
        if self._stream_manager is not None:
            self._publish(SiteEventType.SESSION_CLOSED, {"session_id": self.session_id}, force=True)
            self._stream_manager.close(self.session_id)
        if self._owns_client:
            await self._client.aclose()
        logger.info(f"Closed view session {self.session_id}")

    def _on_frame(self, values: AnimatedROIResult, settled: bool) -> None:
        event_type = SiteEventType.ROI_SETTLED if settled else SiteEventType.ROI_FRAME
        self._publish(event_type, {"values": values.to_dict(), "display": values.rounded()})

    def _on_wizard_event(self, event: str, data: dict[str, Any]) -> None:
        event_type = _WIZARD_EVENTS.get(event)
        if event_type is not None:
            self._publish(event_type, data)

    def _publish(self, event_type: SiteEventType, data: dict[str, Any], force: bool = False) -> None:
        if self._stream_manager is None or (self._closed and not force):
            return
        self._seq += 1
        self._stream_manager.publish(
            self.session_id,
            SSEEvent(event_type=event_type, data=data, sequence_id=self._seq),
        )
