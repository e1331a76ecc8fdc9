"""Templates API handler (admin, authenticated)."""

import json
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from nextcrm.models.profile import PublishProfileRequest
from nextcrm.models.template import DeleteResult, SaveTemplateContentRequest, TemplateResult
from nextcrm.services.template_store import TemplateStore
from nextcrm.utils.auth import (
    AuthContext,
    get_auth_context,
    require_scope_read,
    require_scope_write,
    require_workspace_access,
)
from nextcrm.utils.exceptions import NextCRMError, ValidationError
from nextcrm.utils.responses import error, from_exception, result_response, success

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle templates API requests.

    Routes:
        GET    /templates?workspace_id={workspace_id}
        POST   /templates
        GET    /templates/{template_id}
        PUT    /templates/{template_id}/content
        POST   /templates/{template_id}/duplicate
        POST   /templates/{template_id}/profiles
        DELETE /templates/{template_id}
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}
        template_id = path_params.get("template_id")

        logger.info("Templates request", method=http_method, path=path, template_id=template_id)

        auth = get_auth_context(event)
        store = TemplateStore()

        if http_method == "POST" and template_id and path.rstrip("/").endswith("/duplicate"):
            return duplicate_template(store, auth, template_id)
        elif http_method == "POST" and template_id and path.rstrip("/").endswith("/profiles"):
            return publish_profile(store, auth, template_id, event)
        elif http_method == "PUT" and template_id and path.rstrip("/").endswith("/content"):
            return save_template_content(store, auth, template_id, event)
        elif http_method == "GET" and template_id:
            return get_template(store, auth, template_id)
        elif http_method == "GET":
            return list_templates(store, auth, event)
        elif http_method == "POST" and not template_id:
            return create_template(store, auth, event)
        elif http_method == "DELETE" and template_id:
            return delete_template(store, auth, template_id)
        else:
            return error("Method not allowed", 405)

    except NextCRMError as e:
        if e.status_code >= 500:
            logger.error("Templates request failed", error_code=e.error_code, error=e.message)
        return from_exception(e)
    except Exception as e:
        logger.exception("Templates handler error", error=str(e))
        return error("Internal server error", 500)


def _parse_body(event: dict) -> dict:
    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON body", error=str(e))
        raise ValidationError(
            "Invalid JSON body", errors=[{"field": "body", "message": "Invalid JSON", "type": "json_invalid"}]
        ) from e
    if not isinstance(body, dict):
        raise ValidationError(errors=[{"field": "body", "message": "Body must be an object", "type": "dict_type"}])
    return body


MAX_LIST_LIMIT = 100


def _parse_limit(value: str | None) -> int:
    if value is None or value == "":
        return MAX_LIST_LIMIT
    try:
        limit = int(value)
    except (TypeError, ValueError):
        limit = 0
    if not 1 <= limit <= MAX_LIST_LIMIT:
        raise ValidationError(
            f"limit must be an integer between 1 and {MAX_LIST_LIMIT}",
            errors=[{"field": "limit", "message": f"Must be an integer between 1 and {MAX_LIST_LIMIT}", "type": "limit_invalid"}],
        )
    return limit


def list_templates(store: TemplateStore, auth: AuthContext, event: dict) -> dict:
    """List global templates plus the requested workspace's templates."""
    query_params = event.get("queryStringParameters", {}) or {}
    workspace_id = query_params.get("workspace_id") or None
    limit = _parse_limit(query_params.get("limit"))

    if workspace_id:
        require_workspace_access(auth, workspace_id)

    templates = store.list_templates(workspace_id, limit=limit)
    return success([template.to_summary() for template in templates])


def create_template(store: TemplateStore, auth: AuthContext, event: dict) -> dict:
    """Create a template in a workspace, or globally for admins."""
    body = _parse_body(event)
    workspace_id = body.get("workspaceId", body.get("workspace_id")) or None
    require_scope_write(auth, workspace_id)

    template = store.create(
        name=body.get("name"),
        template_type=body.get("type"),
        description=body.get("description"),
        workspace_id=workspace_id,
        created_by=auth.user_id,
        content=body.get("content"),
    )
    return result_response(TemplateResult(success=True, data=template.to_summary()), status_code=201)


def get_template(store: TemplateStore, auth: AuthContext, template_id: str) -> dict:
    """Get a template with its content tree."""
    template = store.get(template_id)
    require_scope_read(auth, template.workspace_id)
    return success(template.to_detail())


def save_template_content(store: TemplateStore, auth: AuthContext, template_id: str, event: dict) -> dict:
    """Replace a template's content tree."""
    template = store.get(template_id)
    require_scope_write(auth, template.workspace_id)

    try:
        request = SaveTemplateContentRequest.model_validate(_parse_body(event))
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e

    template = store.save_content(template_id, request.content, expected_version=request.version)
    data = template.to_detail()
    data["version"] = template.version
    return result_response(TemplateResult(success=True, data=data))


def duplicate_template(store: TemplateStore, auth: AuthContext, template_id: str) -> dict:
    """Duplicate a template into its own scope."""
    source = store.get(template_id)
    require_scope_write(auth, source.workspace_id)

    duplicate = store.duplicate(template_id, created_by=auth.user_id)
    return result_response(TemplateResult(success=True, data=duplicate.to_summary()), status_code=201)


def delete_template(store: TemplateStore, auth: AuthContext, template_id: str) -> dict:
    """Delete a template; published profiles keep their content."""
    template = store.get(template_id)
    require_scope_write(auth, template.workspace_id)

    store.delete(template_id)
    return result_response(DeleteResult(success=True))


def publish_profile(store: TemplateStore, auth: AuthContext, template_id: str, event: dict) -> dict:
    """Publish a template as a public profile in the caller's workspace."""
    template = store.get(template_id)
    require_scope_read(auth, template.workspace_id)

    try:
        request = PublishProfileRequest.model_validate(_parse_body(event))
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e
    require_workspace_access(auth, request.workspace_id)

    profile = store.instantiate_profile(
        template_id,
        slug=request.slug,
        owner=request.owner,
        workspace_id=request.workspace_id,
        socials=request.socials,
        bio=request.bio,
    )
    return success({"id": profile.id, "slug": profile.slug, "template_id": template_id}, status_code=201)
