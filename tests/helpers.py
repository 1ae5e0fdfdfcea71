"""Test doubles and builders shared across the suite."""

import asyncio
from typing import Optional

from metamech.models.enums import FormFlow
from metamech.models.roi import ROIResult
from metamech.submission.base import SubmissionClientBase, SubmissionResult


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


class FakeSubmissionClient(SubmissionClientBase):
    """Records calls; optionally blocks on a gate until the test releases it."""

    def __init__(
        self,
        results: Optional[list[SubmissionResult]] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.calls: list[tuple[FormFlow, dict[str, str], Optional[str]]] = []
        self._results = list(results or [])
        self.gate = gate
        self.closed = False

    async def submit(self, flow, fields, plan_id=None):
        self.calls.append((flow, dict(fields), plan_id))
        if self.gate is not None:
            await self.gate.wait()
        if self._results:
            return self._results.pop(0)
        return SubmissionResult(success=True)

    async def aclose(self):
        self.closed = True


def make_result(weekly: float = 0.0, break_even: int = 0) -> ROIResult:
    """ROIResult with monthly/annual derived the way the engine does it (48 weeks)."""
    return ROIResult(
        weekly_savings=weekly,
        monthly_savings=weekly * 4.33,
        annual_savings=weekly * 48,
        break_even_weeks=break_even,
    )


VALID_ORDER_FIELDS = {
    "name": "Ada Lovelace",
    "company": "Analytical Engines Ltd",
    "vat_number": "IE1234567X",
    "country": "Ireland",
    "address": "1 Dock Road, Dublin",
    "email": "ada@example.com",
    "phone": "+353 1 234 5678",
}
