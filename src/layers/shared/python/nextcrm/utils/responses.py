"""API response helper functions.

JSON bodies follow one result shape: ``{"success": true, "data": ...}`` or
``{"success": false, "error": "...", "error_code": "...", "details": {...}}``.
Callers treat ``success`` as authoritative, whatever the HTTP status.
"""

import json
import os
from datetime import datetime
from typing import Any

from pydantic import BaseModel as PydanticBaseModel

from nextcrm.utils.exceptions import NextCRMError

_ALLOWED_ORIGIN = os.environ.get("CORS_ALLOWED_ORIGIN", "https://dev.nextcrm.app")
_STAGE = os.environ.get("STAGE", "dev")


def _get_cors_origin(request_origin: str | None = None) -> str:
    """Get the CORS origin; dev also allows localhost."""
    if _STAGE == "dev" and request_origin and request_origin.startswith("http://localhost:"):
        return request_origin
    return _ALLOWED_ORIGIN


def get_cors_headers(request_origin: str | None = None) -> dict:
    """Get CORS headers with the appropriate origin."""
    return {
        "Access-Control-Allow-Origin": _get_cors_origin(request_origin),
        "Access-Control-Allow-Headers": "Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token",
        "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
        "Access-Control-Allow-Credentials": "true",
        "Content-Type": "application/json",
    }


CORS_HEADERS = get_cors_headers()


def _json_serializer(obj: Any) -> Any:
    """JSON serializer for objects not serializable by default."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, PydanticBaseModel):
        return obj.model_dump(mode="json")
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def _serialize(data: Any) -> str:
    return json.dumps(data, default=_json_serializer)


def success(data: Any = None, status_code: int = 200) -> dict:
    """Create a successful API response.

    Args:
        data: Response data (dict, list, or Pydantic model). Omitted when None.
        status_code: HTTP status code (default 200).

    Returns:
        API Gateway response dict.
    """
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data.model_dump(mode="json") if isinstance(data, PydanticBaseModel) else data

    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": _serialize(body),
    }


def result_response(result: PydanticBaseModel, status_code: int = 200) -> dict:
    """Respond with an operation result model such as TemplateResult."""
    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": _serialize(result.model_dump(mode="json", exclude_none=True)),
    }


def error(
    message: str,
    status_code: int = 500,
    error_code: str | None = None,
    details: dict | None = None,
) -> dict:
    """Create an error API response.

    Args:
        message: Error message.
        status_code: HTTP status code.
        error_code: Machine-readable error code.
        details: Additional error details.

    Returns:
        API Gateway response dict.
    """
    body: dict[str, Any] = {
        "success": False,
        "error": message,
    }
    if error_code:
        body["error_code"] = error_code
    if details:
        body["details"] = details

    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": _serialize(body),
    }


def from_exception(exc: NextCRMError) -> dict:
    """Convert a NextCRM error into its result-shaped response."""
    return error(exc.message, exc.status_code, exc.error_code, exc.details)


def html_response(body: str, status_code: int = 200, cache_seconds: int = 60) -> dict:
    """Create an HTML page response.

    Error pages are never cached.
    """
    cache_control = f"public, max-age={cache_seconds}" if status_code == 200 else "no-store"
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "text/html; charset=utf-8",
            "Cache-Control": cache_control,
            "X-Content-Type-Options": "nosniff",
        },
        "body": body,
    }
