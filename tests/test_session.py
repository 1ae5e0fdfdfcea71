"""Tests for ViewSession wiring and teardown."""

import asyncio

import pytest
from unittest.mock import patch

from metamech.models.enums import FormFlow, WizardStep
from metamech.session import ViewSession
from metamech.streaming.manager import StreamManager
from tests.helpers import FakeSubmissionClient


async def _drain(queue):
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


@pytest.fixture
def manager():
    return StreamManager()


class TestViewSession:
    @pytest.mark.asyncio
    async def test_update_roi_publishes_retarget(self, settings, manager, fake_client):
        session = ViewSession(settings=settings, stream_manager=manager, client=fake_client)
        queue = await manager.subscribe(session.session_id)

        session.update_roi(engineer_count="10")

        first = await asyncio.wait_for(queue.get(), timeout=1.0)
        assert first.event_type.value == "roi_retargeted"
        assert first.data["target"]["weekly_savings"] == 7500
        await session.close()

    @pytest.mark.asyncio
    async def test_counters_settle_on_target(self, settings, manager, fake_client):
        settings.tween_duration_ms = 30.0
        settings.tween_frame_interval_ms = 5.0
        session = ViewSession(settings=settings, stream_manager=manager, client=fake_client)
        queue = await manager.subscribe(session.session_id)

        session.roi.start()
        settled = None
        while settled is None:
            event = await asyncio.wait_for(queue.get(), timeout=2.0)
            if event.event_type.value == "roi_settled":
                settled = event

        assert settled.data["display"]["weekly_savings"] == 3750
        assert session.roi_snapshot()["animating"] is False
        await session.close()

    @pytest.mark.asyncio
    async def test_plan_switch_updates_tool_cost(self, settings, fake_client):
        session = ViewSession(settings=settings, client=fake_client)
        session.update_roi(plan_id="plus")
        snapshot = session.roi_snapshot()
        assert snapshot["plan_id"] == "plus"
        assert snapshot["inputs"]["tool_cost_amount"] == 1599
        await session.close()

    @pytest.mark.asyncio
    async def test_enquiry_prefills_contact_form(self, settings, fake_client):
        session = ViewSession(settings=settings, client=fake_client)
        session.prefill.write("Mechanical Design Services")
        assert session.contact_form.activate() == "I'm interested in Mechanical Design Services."
        assert session.trial_form.activate() is None
        await session.close()

    @pytest.mark.asyncio
    async def test_lead_form_lookup(self, settings, fake_client):
        session = ViewSession(settings=settings, client=fake_client)
        assert session.lead_form(FormFlow.TRIAL_REQUEST) is session.trial_form
        with pytest.raises(ValueError):
            session.lead_form(FormFlow.ORDER_DETAILS)
        await session.close()

    @pytest.mark.asyncio
    async def test_wizard_step_change_is_streamed(self, settings, manager, fake_client, order_fields):
        session = ViewSession(settings=settings, stream_manager=manager, client=fake_client)
        queue = await manager.subscribe(session.session_id)

        session.wizard.update_fields(**order_fields)
        assert await session.wizard.submit_details() is True

        events = await _drain(queue)
        steps = [e for e in events if e.event_type.value == "wizard_step_changed"]
        assert steps[0].data == {"from": "details", "to": "payment"}
        await session.close()


class TestTeardown:
    @pytest.mark.asyncio
    async def test_close_cancels_pending_work(self, settings, manager, order_fields):
        client = FakeSubmissionClient(gate=asyncio.Event())
        session = ViewSession(settings=settings, stream_manager=manager, client=client)
        session.wizard.update_fields(**order_fields)
        session.roi.start()

        pending = asyncio.create_task(session.wizard.submit_details())
        await asyncio.sleep(0.01)
        await session.close()

        assert await pending is False
        assert session.wizard.step == WizardStep.DETAILS
        assert session.roi.tween.disposed
        assert session.closed

    @pytest.mark.asyncio
    async def test_close_ends_stream_with_closed_event(self, settings, manager, fake_client):
        session = ViewSession(settings=settings, stream_manager=manager, client=fake_client)
        queue = await manager.subscribe(session.session_id)
        await session.close()

        events = await _drain(queue)
        assert events[-2].event_type.value == "session_closed"
        assert events[-1] is None

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self, settings, fake_client):
        session = ViewSession(settings=settings, client=fake_client)
        await session.close()
        assert fake_client.closed is False

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self, settings):
        with patch("metamech.session.Web3FormsClient") as MockClient:
            owned = FakeSubmissionClient()
            MockClient.return_value = owned
            session = ViewSession(settings=settings, submission_endpoint="https://formspree.io/f/x")
            await session.close()

        MockClient.assert_called_once_with(settings=settings, endpoint="https://formspree.io/f/x")
        assert owned.closed is True

    @pytest.mark.asyncio
    async def test_close_twice_is_harmless(self, settings, fake_client):
        session = ViewSession(settings=settings, client=fake_client)
        await session.close()
        await session.close()
