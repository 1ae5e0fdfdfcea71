from .events import SiteEventType, SSEEvent
from .manager import StreamManager

__all__ = ["SiteEventType", "SSEEvent", "StreamManager"]
