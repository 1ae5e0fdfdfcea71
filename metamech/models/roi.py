"""Value objects for the ROI calculator pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class ROIInputs:
    """Sanitised calculator inputs. Build with ``coerce_inputs`` from raw form values."""

    engineer_count: int = 5
    hours_saved_per_week: float = 10.0
    hourly_cost: float = 75.0
    working_weeks_per_year: int = 48
    tool_cost_amount: float = 999.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ROIResult:
    """Derived savings projection. Fully determined by ``ROIInputs``."""

    weekly_savings: float
    monthly_savings: float
    annual_savings: float
    break_even_weeks: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AnimatedROIResult:
    """Values currently on screen while counters ease toward an ``ROIResult``."""

    weekly_savings: float = 0.0
    monthly_savings: float = 0.0
    annual_savings: float = 0.0
    break_even_weeks: float = 0.0

    @classmethod
    def from_result(cls, result: ROIResult) -> AnimatedROIResult:
        return cls(
            weekly_savings=result.weekly_savings,
            monthly_savings=result.monthly_savings,
            annual_savings=result.annual_savings,
            break_even_weeks=float(result.break_even_weeks),
        )

    def rounded(self) -> dict[str, int]:
        """Whole-number view used by the counters (currency has no decimals)."""
        return {key: round(value) for key, value in asdict(self).items()}

    def to_dict(self) -> dict[str, float]:
        return asdict(self)
