"""ROI calculator pipeline: raw inputs -> engine -> animated counters."""

from __future__ import annotations

import logging
from typing import Any, Optional

from metamech.catalog.plans import get_plan
from metamech.models.roi import ROIInputs, ROIResult

from .roi import ROIEngine, coerce_inputs
from .tween import ValueTweenController

logger = logging.getLogger(__name__)

INPUT_FIELDS = (
    "engineer_count",
    "hours_saved_per_week",
    "hourly_cost",
    "working_weeks_per_year",
    "tool_cost_amount",
)


class ROIPipeline:
    """Keeps the calculator's raw inputs and pushes every change to the tween.

    Updates are handled synchronously in the order they arrive, so the
    counters always ease toward the result of the most recent input.
    """

    def __init__(
        self,
        tween: Optional[ValueTweenController] = None,
        engine: Optional[ROIEngine] = None,
        plan_id: str = "standard",
    ) -> None:
        self._engine = engine or ROIEngine()
        self._tween = tween or ValueTweenController()
        plan = get_plan(plan_id)
        self._plan_id = plan.id
        self._raw: dict[str, Any] = {"tool_cost_amount": plan.price_amount}
        self._inputs: ROIInputs = coerce_inputs(self._raw)
        self._result: ROIResult = self._engine.compute(self._inputs)

    @property
    def tween(self) -> ValueTweenController:
        return self._tween

    @property
    def inputs(self) -> ROIInputs:
        return self._inputs

    @property
    def result(self) -> ROIResult:
        return self._result

    @property
    def plan_id(self) -> str:
        return self._plan_id

    def start(self) -> ROIResult:
        """Animate the counters from zero to the initial result."""
        self._tween.retarget(self._result)
        return self._result

    def update(self, **raw: Any) -> ROIResult:
        """Apply raw field values (strings allowed) and retarget the counters."""
        unknown = set(raw) - set(INPUT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown ROI inputs: {sorted(unknown)}")
        self._raw.update(raw)
        return self._recompute()

    def select_plan(self, plan_id: str) -> ROIResult:
        """Switch plan and use its price as the tool cost."""
        plan = get_plan(plan_id)
        self._plan_id = plan.id
        self._raw["tool_cost_amount"] = plan.price_amount
        return self._recompute()

    def _recompute(self) -> ROIResult:
        self._inputs = coerce_inputs(self._raw)
        self._result = self._engine.compute(self._inputs)
        logger.debug(f"ROI recomputed: {self._inputs} -> {self._result}")
        self._tween.retarget(self._result)
        return self._result
