"""ROI engine and input sanitation.

The engine is a pure function of ``ROIInputs``. Raw form values go through
``coerce_inputs`` first so the engine never sees empty, negative or
non-numeric input.
"""

from __future__ import annotations

import logging
import math
import sys
from typing import Any, Mapping

from metamech.models.roi import ROIInputs, ROIResult

logger = logging.getLogger(__name__)

# Average weeks per month used for the monthly figure. Not calendar-exact.
WEEKS_PER_MONTH = 4.33

MIN_WORKING_WEEKS = 1
MAX_WORKING_WEEKS = 52

# Upper bound for any single calculator input. Keeps every derived figure finite.
MAX_INPUT_VALUE = 1_000_000_000

_DEFAULTS = ROIInputs()


def _bounded(value: float) -> float:
    """Clamp overflowed products to the largest finite float."""
    if math.isnan(value):
        return 0.0
    return min(value, sys.float_info.max)


class ROIEngine:
    """Stateless savings calculator."""

    def compute(self, inputs: ROIInputs) -> ROIResult:
        """Derive weekly, monthly and annual savings plus weeks to break even."""
        weekly = _bounded(inputs.engineer_count * inputs.hours_saved_per_week * inputs.hourly_cost)
        monthly = _bounded(weekly * WEEKS_PER_MONTH)
        annual = _bounded(weekly * inputs.working_weeks_per_year)

        if inputs.tool_cost_amount > 0 and weekly > 0:
            break_even = math.ceil(_bounded(inputs.tool_cost_amount / weekly))
        else:
            break_even = 0

        return ROIResult(
            weekly_savings=weekly,
            monthly_savings=monthly,
            annual_savings=annual,
            break_even_weeks=break_even,
        )


def _to_number(value: Any) -> float:
    """Coerce a raw form value to a float in [0, MAX_INPUT_VALUE] (0 on failure)."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        logger.debug(f"Ignoring non-numeric ROI input {value!r}")
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return min(number, MAX_INPUT_VALUE)


def coerce_inputs(raw: Mapping[str, Any]) -> ROIInputs:
    """Build ``ROIInputs`` from raw values, falling back to defaults for absent keys.

    A key that is present but empty counts as a cleared field and becomes 0.
    """

    def pick(name: str) -> float:
        if name not in raw:
            return float(getattr(_DEFAULTS, name))
        return _to_number(raw[name])

    weeks = int(pick("working_weeks_per_year"))
    weeks = min(max(weeks, MIN_WORKING_WEEKS), MAX_WORKING_WEEKS)

    return ROIInputs(
        engineer_count=int(pick("engineer_count")),
        hours_saved_per_week=pick("hours_saved_per_week"),
        hourly_cost=pick("hourly_cost"),
        working_weeks_per_year=weeks,
        tool_cost_amount=pick("tool_cost_amount"),
    )
