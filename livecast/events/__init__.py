"""Live event fan-out.

Note: Router is not exported here to avoid circular imports.
Import directly from livecast.events.router when needed.
"""

from .broadcaster import EventBroadcaster, Subscriber
from .models import Event, EventType


__all__ = ["Event", "EventBroadcaster", "EventType", "Subscriber"]
