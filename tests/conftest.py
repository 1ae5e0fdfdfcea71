"""Shared test fixtures for the MetaMech test suite."""

import pytest

from metamech.config.settings import Settings
from tests.helpers import VALID_ORDER_FIELDS, FakeClock, FakeSubmissionClient


@pytest.fixture
def settings() -> Settings:
    return Settings(
        submission_endpoint="https://forms.example.test/submit",
        submission_access_key="test-key",
        contact_email="hi@metamechsolutions.com",
        wallet_payment_url="https://revolut.me/saviosyl",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_client() -> FakeSubmissionClient:
    return FakeSubmissionClient()


@pytest.fixture
def order_fields() -> dict[str, str]:
    return dict(VALID_ORDER_FIELDS)
