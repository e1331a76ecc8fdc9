"""Fire-and-forget domain events over EventBridge.

Publishing never raises: cache layers and CRM integrations consume these
events on their own schedule, and a failed publish must not fail the
request that produced it.
"""

import json
import os
from dataclasses import asdict, dataclass
from typing import Any

import boto3
import structlog
from botocore.config import Config

logger = structlog.get_logger()

TEMPLATE_SOURCE = "nextcrm.templates"
PROFILE_SOURCE = "nextcrm.profiles"

# Publishing sits on the request path: short timeouts and a single attempt.
EVENTS_CONFIG = Config(
    connect_timeout=float(os.environ.get("EVENTS_CONNECT_TIMEOUT", "1")),
    read_timeout=float(os.environ.get("EVENTS_READ_TIMEOUT", "2")),
    retries={"mode": "standard", "total_max_attempts": 1},
)

_events_client = None


def get_events_client():
    """Get the shared EventBridge client."""
    global _events_client
    if _events_client is None:
        _events_client = boto3.client("events", config=EVENTS_CONFIG)
    return _events_client


def publish_event(source: str, detail_type: str, detail: dict[str, Any]) -> bool:
    """Publish one event to the configured bus.

    Returns:
        True if the event was accepted, False otherwise.
    """
    event_bus_name = os.environ.get("EVENT_BUS_NAME", "default")
    try:
        response = get_events_client().put_events(
            Entries=[
                {
                    "Source": source,
                    "DetailType": detail_type,
                    "Detail": json.dumps(detail, default=str),
                    "EventBusName": event_bus_name,
                }
            ]
        )
    except Exception as e:
        logger.warning("Failed to publish event", source=source, detail_type=detail_type, error=str(e))
        return False

    if response.get("FailedEntryCount"):
        logger.warning(
            "Event rejected by bus",
            source=source,
            detail_type=detail_type,
            entries=response.get("Entries"),
        )
        return False

    logger.debug("Event published", source=source, detail_type=detail_type)
    return True


@dataclass(frozen=True)
class TemplateInvalidation:
    """Signal that listings for a template scope are stale."""

    action: str
    template_id: str
    workspace_id: str | None
    scope_key: str


def publish_template_invalidation(signal: TemplateInvalidation) -> None:
    """Default invalidator: publish the signal for whatever cache consumes it."""
    publish_event(TEMPLATE_SOURCE, "templates.invalidated", asdict(signal))
