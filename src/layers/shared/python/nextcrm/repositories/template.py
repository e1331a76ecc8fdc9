"""Template repository for DynamoDB operations."""

import structlog

from nextcrm.models.template import GLOBAL_SCOPE, Template, TemplateType, scope_key
from nextcrm.repositories.base import BaseRepository, TransactionCancelled
from nextcrm.utils.exceptions import ConflictError

logger = structlog.get_logger()


def name_conflict(workspace_id: str | None, template_type: str, name: str) -> ConflictError:
    """Conflict naming the offending (workspace_id, type, name) tuple."""
    template_type = TemplateType(template_type).value
    scope = workspace_id if workspace_id is not None else "global"
    return ConflictError(
        f"A {template_type} template named '{name}' already exists in {scope} scope "
        f"(workspace_id={workspace_id!r}, type={template_type!r}, name={name!r})",
        conflict_type="template_name",
        details={"workspace_id": workspace_id, "type": template_type, "name": name},
    )


class TemplateRepository(BaseRepository[Template]):
    """Repository for Template entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize template repository."""
        super().__init__(Template, table_name)

    def get_by_id(self, template_id: str) -> Template | None:
        """Get template by ID."""
        return self.get(pk=f"TEMPLATE#{template_id}", sk=f"TEMPLATE#{template_id}")

    def list_by_scope(self, workspace_id: str | None, limit: int = 100) -> list[Template]:
        """List templates stored in exactly one scope, newest first.

        Args:
            workspace_id: Workspace ID, or None for the global scope.
            limit: Maximum templates to return.
        """
        templates: list[Template] = []
        last_key = None
        while len(templates) < limit:
            items, last_key = self.query(
                pk=f"TEMPLATES#{scope_key(workspace_id)}",
                index_name="GSI1",
                scan_forward=False,
                limit=limit - len(templates),
                last_key=last_key,
            )
            templates.extend(items)
            if not last_key:
                break
        return templates

    def list_visible(self, workspace_id: str | None, limit: int = 100) -> list[Template]:
        """List global templates plus the workspace's own, newest first.

        Args:
            workspace_id: The caller's workspace, or None for global only.
            limit: Maximum templates to return.
        """
        templates = self.list_by_scope(None, limit)
        if workspace_id and workspace_id != GLOBAL_SCOPE:
            templates.extend(self.list_by_scope(workspace_id, limit))

        templates.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return templates[:limit]

    def create_template(self, template: Template) -> Template:
        """Create a template and reserve its (scope, type, name) in one transaction.

        Args:
            template: The template to create.

        Returns:
            The created template.

        Raises:
            ConflictError: If the name is already taken in the scope.
        """
        template.update_timestamp()
        reservation = template.get_name_reservation_keys()
        reservation["template_id"] = template.id

        try:
            self.transact_write(
                [
                    {"Put": {"Item": self.build_item(template), "ConditionExpression": "attribute_not_exists(PK)"}},
                    {"Put": {"Item": reservation, "ConditionExpression": "attribute_not_exists(PK)"}},
                ]
            )
        except TransactionCancelled as e:
            if e.failed_condition(1):
                raise name_conflict(template.workspace_id, template.type, template.name) from e
            raise ConflictError("Template already exists", conflict_type="template_id") from e

        logger.debug("Template created with name reservation", template_id=template.id, name=template.name)
        return template

    def delete_template(self, template: Template) -> bool:
        """Delete a template and release its name reservation.

        Returns:
            True if deleted, False if it was already gone.
        """
        reservation = template.get_name_reservation_keys()
        try:
            self.transact_write(
                [
                    {"Delete": {"Key": template.get_keys(), "ConditionExpression": "attribute_exists(PK)"}},
                    {"Delete": {"Key": reservation}},
                ]
            )
        except TransactionCancelled as e:
            if e.failed_condition(0):
                return False
            raise
        logger.debug("Template deleted", template_id=template.id)
        return True
