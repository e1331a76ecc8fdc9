"""Authentication context helpers."""

from dataclasses import dataclass
from typing import Any

import structlog

from nextcrm.utils.exceptions import ForbiddenError, UnauthorizedError

logger = structlog.get_logger()


@dataclass
class AuthContext:
    """Caller identity extracted from the API Gateway authorizer."""

    user_id: str
    email: str | None = None
    workspace_ids: list[str] | None = None
    is_admin: bool = False

    def has_workspace_access(self, workspace_id: str) -> bool:
        """Check if the caller belongs to a workspace. Admins belong to all."""
        if self.is_admin:
            return True
        return bool(self.workspace_ids) and workspace_id in self.workspace_ids


def get_auth_context(event: dict[str, Any]) -> AuthContext:
    """Extract authentication context from API Gateway event.

    Raises:
        UnauthorizedError: If the event carries no user identity.
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    context = authorizer.get("lambda", authorizer)

    user_id = context.get("userId") or context.get("user_id") or context.get("sub")
    if not user_id:
        logger.warning("No user ID in auth context")
        raise UnauthorizedError()

    workspace_ids_raw = context.get("workspaceIds") or context.get("workspace_ids")
    workspace_ids = None
    if isinstance(workspace_ids_raw, str):
        workspace_ids = [ws.strip() for ws in workspace_ids_raw.split(",") if ws.strip()]
    elif isinstance(workspace_ids_raw, list):
        workspace_ids = workspace_ids_raw

    is_admin = context.get("isAdmin", False) or context.get("is_admin", False)
    if isinstance(is_admin, str):
        is_admin = is_admin.lower() == "true"

    return AuthContext(
        user_id=user_id,
        email=context.get("email"),
        workspace_ids=workspace_ids,
        is_admin=bool(is_admin),
    )


def require_scope_write(auth: AuthContext, workspace_id: str | None) -> None:
    """Ensure the caller may create or change templates in a scope.

    The global scope (None) is reserved for platform admins.

    Raises:
        ForbiddenError: If the caller lacks access.
    """
    if workspace_id is None:
        if not auth.is_admin:
            logger.warning("Global template write denied", user_id=auth.user_id)
            raise ForbiddenError(
                message="Only platform admins can manage global templates",
                resource_type="Template",
                action="write",
            )
        return
    require_workspace_access(auth, workspace_id)


def require_scope_read(auth: AuthContext, workspace_id: str | None) -> None:
    """Ensure the caller may read a scope. Global templates are readable by everyone."""
    if workspace_id is not None:
        require_workspace_access(auth, workspace_id)


def require_workspace_access(auth: AuthContext, workspace_id: str) -> None:
    """Ensure user has access to a workspace.

    Raises:
        ForbiddenError: If user doesn't have access.
    """
    if not auth.has_workspace_access(workspace_id):
        logger.warning(
            "Workspace access denied",
            user_id=auth.user_id,
            workspace_id=workspace_id,
            user_workspaces=auth.workspace_ids,
        )
        raise ForbiddenError(
            message=f"You don't have access to workspace '{workspace_id}'",
            resource_type="Workspace",
            action="access",
        )
