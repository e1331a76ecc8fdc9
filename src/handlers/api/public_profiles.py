"""Public profiles API handler (no authentication required).

Serves anonymous traffic: nothing raised below this module reaches the
caller as a fault.
"""

import json
import os
from typing import Any

import structlog

from nextcrm.services.lead_capture import capture_lead
from nextcrm.services.profile_page import render_not_found_page, render_profile_page, render_unavailable_page
from nextcrm.services.profile_resolver import ProfileResolver
from nextcrm.utils.exceptions import NextCRMError, PersistenceError
from nextcrm.utils.responses import error, from_exception, html_response, success

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle public profile requests.

    Routes:
        GET  /public/p/{slug}   - Rendered profile page (HTML)
        POST /public/leads      - Capture a lead for a profile
    """
    http_method = event.get("httpMethod", "").upper()
    path = event.get("path", "")
    path_params = event.get("pathParameters", {}) or {}

    if http_method == "GET" and "/public/p/" in path:
        return get_profile_page(path_params.get("slug") or "")
    elif http_method == "POST" and path.rstrip("/").endswith("/public/leads"):
        return submit_lead(event)
    else:
        return error("Not found", 404)


def get_profile_page(slug: str) -> dict:
    """Render a profile by slug, or the not-found page on a miss."""
    try:
        view = ProfileResolver().resolve_by_slug(slug)
        if view is None:
            return html_response(render_not_found_page(), status_code=404)

        page = render_profile_page(view, api_url=os.environ.get("API_URL", ""))
    except PersistenceError:
        return html_response(render_unavailable_page(), status_code=503)
    except Exception as e:
        logger.exception("Profile page render failed", slug=slug, error=str(e))
        return html_response(render_unavailable_page(), status_code=500)

    logger.info("Profile page served", slug=slug, profile_id=view.profile_id)
    return html_response(page)


def _get_client_ip(event: dict) -> str | None:
    headers = event.get("headers") or {}
    forwarded = headers.get("X-Forwarded-For") or headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return ((event.get("requestContext") or {}).get("identity") or {}).get("sourceIp")


def submit_lead(event: dict) -> dict:
    """Validate and store a visitor's contact."""
    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError:
        return error("Invalid JSON body", 400, error_code="VALIDATION_ERROR")

    headers = event.get("headers") or {}
    try:
        result = capture_lead(
            body,
            visitor_ip=_get_client_ip(event),
            user_agent=(headers.get("User-Agent") or headers.get("user-agent") or "")[:500] or None,
        )
    except NextCRMError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("Lead capture failed", error=str(e))
        return error("Internal server error", 500)

    return success(result, status_code=201)
