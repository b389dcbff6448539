from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from leadform.core.logging import get_structlog_logger
from leadform.schemas.lead import AttributionParams

logger = get_structlog_logger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class EventTracker:
    """
    Pushes analytics events onto a tag-manager style data layer.
    Without a data layer, events are only logged.
    """

    def __init__(
        self,
        data_layer: Optional[List[Dict[str, Any]]] = None,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.data_layer = data_layer
        self.clock = clock

    def track(self, event_name: str, **event_data: Any) -> Dict[str, Any]:
        event = {"event": event_name, **event_data, "timestamp": self.clock()}
        if self.data_layer is not None:
            self.data_layer.append(event)
        logger.debug("analytics.event", name=event_name, data=event_data)
        return event


def track_page_view(tracker: EventTracker, params: AttributionParams) -> Dict[str, Any]:
    return tracker.track(
        "page_view",
        page="landing",
        utm_source=params.utm_source,
        utm_medium=params.utm_medium,
        utm_campaign=params.utm_campaign,
    )
