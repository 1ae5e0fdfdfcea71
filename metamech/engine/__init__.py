from .pipeline import ROIPipeline
from .roi import ROIEngine, coerce_inputs
from .tween import ValueTweenController, ease_out_cubic

__all__ = ["ROIEngine", "ROIPipeline", "ValueTweenController", "coerce_inputs", "ease_out_cubic"]
