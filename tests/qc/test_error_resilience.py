"""Tests for graceful degradation when the form endpoint misbehaves."""

import asyncio

import pytest
from unittest.mock import patch, AsyncMock, MagicMock

import httpx

from metamech.checkout.wizard import CheckoutWizard
from metamech.engine.roi import ROIEngine, coerce_inputs
from metamech.models.enums import WizardStep
from metamech.submission.base import SubmissionResult
from metamech.submission.web3forms_client import Web3FormsClient
from tests.helpers import FakeSubmissionClient


class TestSubmissionFailures:
    """A failing endpoint never advances the wizard and never raises."""

    @pytest.mark.asyncio
    async def test_timeout_keeps_wizard_on_details(self, settings, order_fields):
        with patch("metamech.submission.web3forms_client.httpx.AsyncClient") as MockClient:
            mock_client = AsyncMock()
            mock_client.post = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))
            MockClient.return_value = mock_client

            wizard = CheckoutWizard(client=Web3FormsClient(settings=settings), settings=settings)
            wizard.update_fields(**order_fields)
            assert await wizard.submit_details() is False

        assert wizard.step == WizardStep.DETAILS
        assert "hi@metamechsolutions.com" in wizard.error
        assert not wizard.is_submitting

    @pytest.mark.asyncio
    async def test_html_error_page_keeps_wizard_on_details(self, settings, order_fields):
        with patch("metamech.submission.web3forms_client.httpx.AsyncClient") as MockClient:
            mock_client = AsyncMock()
            mock_resp = MagicMock()
            mock_resp.status_code = 503
            mock_resp.json.side_effect = ValueError("Expecting value")
            mock_client.post = AsyncMock(return_value=mock_resp)
            MockClient.return_value = mock_client

            wizard = CheckoutWizard(client=Web3FormsClient(settings=settings), settings=settings)
            wizard.update_fields(**order_fields)
            assert await wizard.submit_details() is False

        assert wizard.step == WizardStep.DETAILS

    @pytest.mark.asyncio
    async def test_retry_after_failure_succeeds(self, settings, order_fields):
        client = FakeSubmissionClient(results=[SubmissionResult(success=False, message="HTTP 500")])
        wizard = CheckoutWizard(client=client, settings=settings)
        wizard.update_fields(**order_fields)

        assert await wizard.submit_details() is False
        assert await wizard.submit_details() is True
        assert wizard.error is None
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_late_result_after_teardown_is_ignored(self, settings, order_fields):
        gate = asyncio.Event()
        client = FakeSubmissionClient(gate=gate)
        wizard = CheckoutWizard(client=client, settings=settings)
        wizard.update_fields(**order_fields)
        events = []
        wizard.subscribe(lambda event, data: events.append(event))

        pending = asyncio.create_task(wizard.submit_details())
        await asyncio.sleep(0.01)
        wizard.dispose()
        gate.set()

        assert await pending is False
        assert wizard.step == WizardStep.DETAILS
        assert events == []


class TestHostileInputs:
    """Whatever the user types, the calculator produces finite numbers."""

    @pytest.mark.parametrize("raw", ["abc", "-5", "nan", "inf", None, "  ", True])
    def test_garbage_coerces_to_zero(self, raw):
        inputs = coerce_inputs({"engineer_count": raw})
        result = ROIEngine().compute(inputs)
        assert inputs.engineer_count == 0
        assert result.weekly_savings == 0
        assert result.break_even_weeks == 0
