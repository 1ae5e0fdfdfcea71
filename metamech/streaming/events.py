"""SSE event types and serialization for a view session."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class SiteEventType(str, Enum):
    """All event types pushed to a browser page."""

    # ROI counters
    ROI_RETARGETED = "roi_retargeted"
    ROI_FRAME = "roi_frame"
    ROI_SETTLED = "roi_settled"

    # Checkout wizard
    WIZARD_STEP_CHANGED = "wizard_step_changed"
    SUBMISSION_FAILED = "submission_failed"

    # Lifecycle
    SESSION_CLOSED = "session_closed"


@dataclass
class SSEEvent:
    """A single Server-Sent Event ready for wire serialization."""

    event_type: SiteEventType
    data: dict[str, Any]
    sequence_id: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    def to_sse_string(self) -> str:
        """Serialize to SSE wire format.

        Format:
            event: <type>
            data: <json>
            id: <seq>

            (terminated by double newline)
        """
        payload = {
            **self.data,
            "timestamp": self.timestamp.isoformat(),
        }
        data_json = json.dumps(payload, default=str)
        return f"event: {self.event_type.value}\ndata: {data_json}\nid: {self.sequence_id}\n\n"
