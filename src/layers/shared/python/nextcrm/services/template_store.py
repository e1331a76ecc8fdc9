"""Template lifecycle: create, duplicate, delete, list and content replace.

Name uniqueness per (workspace_id, type, name) is enforced by the repository
transaction, never by a read-then-write check here. Every mutation emits a
``TemplateInvalidation`` through the injected invalidator; this module keeps
no cache of its own.
"""

from collections.abc import Callable, Iterator
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from nextcrm.models.block_content import BlockContent, StoredContent, validate_block_content
from nextcrm.models.profile import Profile, ProfileOwner
from nextcrm.models.template import CreateTemplateRequest, Template, scope_key
from nextcrm.repositories.profile import ProfileRepository
from nextcrm.repositories.template import TemplateRepository
from nextcrm.services.events import TemplateInvalidation, publish_template_invalidation
from nextcrm.services.tree_engine import clone_with_new_identities, count_elements
from nextcrm.utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger()

MAX_NAME_LENGTH = 255
MAX_COPY_ATTEMPTS = 10


def copy_names(name: str, attempts: int = MAX_COPY_ATTEMPTS) -> Iterator[str]:
    """Yield candidate names for a duplicate: "X (copy)", "X (copy 2)", ..."""
    for n in range(1, attempts + 1):
        suffix = " (copy)" if n == 1 else f" (copy {n})"
        yield name[: MAX_NAME_LENGTH - len(suffix)].rstrip() + suffix


class TemplateStore:
    """Persistence and lifecycle of templates."""

    def __init__(
        self,
        repository: TemplateRepository | None = None,
        profile_repository: ProfileRepository | None = None,
        invalidator: Callable[[TemplateInvalidation], None] = publish_template_invalidation,
    ):
        self.repository = repository or TemplateRepository()
        self.profile_repository = profile_repository or ProfileRepository()
        self.invalidator = invalidator

    def _invalidate(self, action: str, template: Template) -> None:
        signal = TemplateInvalidation(
            action=action,
            template_id=template.id,
            workspace_id=template.workspace_id,
            scope_key=scope_key(template.workspace_id),
        )
        try:
            self.invalidator(signal)
        except Exception as e:
            logger.warning("Template invalidation failed", action=action, template_id=template.id, error=str(e))

    def get(self, template_id: str) -> Template:
        """Load a template.

        Raises:
            NotFoundError: If the template does not exist.
        """
        template = self.repository.get_by_id(template_id)
        if template is None:
            raise NotFoundError("Template", template_id)
        return template

    def list_templates(self, workspace_id: str | None, limit: int = 100) -> list[Template]:
        """Templates visible to a workspace: global ones plus its own, newest first."""
        return self.repository.list_visible(workspace_id, limit=limit)

    def create(
        self,
        name: str,
        template_type: str,
        description: str | None = None,
        workspace_id: str | None = None,
        created_by: str | None = None,
        content: Any = None,
    ) -> Template:
        """Create a template.

        Args:
            name: Template name, 3-255 characters.
            template_type: One of the TemplateType values.
            description: Optional description.
            workspace_id: Owning workspace, or None for a global template.
            created_by: ID of the creating user.
            content: Optional raw block content; defaults to an empty tree.

        Raises:
            ValidationError: If the input or content is invalid.
            ConflictError: If the name is taken for (workspace_id, type).
        """
        try:
            request = CreateTemplateRequest(
                name=name,
                type=template_type,
                description=description,
                workspace_id=workspace_id,
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        if content is None:
            block_content = BlockContent.empty(request.name, request.description)
        else:
            block_content = validate_block_content(content)

        template = Template(
            name=request.name,
            description=request.description,
            type=request.type,
            workspace_id=request.workspace_id,
            created_by=created_by,
            content=StoredContent.from_content(block_content),
        )
        self.repository.create_template(template)

        logger.info(
            "Template created",
            template_id=template.id,
            workspace_id=template.workspace_id,
            template_type=template.type,
            elements=count_elements(block_content.elements),
        )
        self._invalidate("created", template)
        return template

    def duplicate(self, template_id: str, created_by: str | None = None) -> Template:
        """Copy a template into the same scope with fresh element ids.

        The copy is named "<name> (copy)", falling back to numbered copies
        when that name is taken.

        Raises:
            NotFoundError: If the source does not exist.
            ConflictError: If every candidate name is taken.
        """
        source = self.get(template_id)
        cloned = clone_with_new_identities(source.get_content())

        conflict: ConflictError | None = None
        for candidate in copy_names(source.name):
            candidate_template = Template(
                name=candidate,
                description=source.description,
                type=source.type,
                workspace_id=source.workspace_id,
                created_by=created_by,
                content=StoredContent.from_content(cloned),
            )
            try:
                self.repository.create_template(candidate_template)
            except ConflictError as e:
                if e.details.get("conflict_type") != "template_name":
                    raise
                conflict = e
                continue

            logger.info(
                "Template duplicated",
                source_template_id=source.id,
                template_id=candidate_template.id,
                workspace_id=candidate_template.workspace_id,
            )
            self._invalidate("duplicated", candidate_template)
            return candidate_template

        raise conflict

    def delete(self, template_id: str) -> None:
        """Delete a template.

        Profiles derived from it keep their materialized content.

        Raises:
            NotFoundError: If the template does not exist.
        """
        template = self.get(template_id)
        if not self.repository.delete_template(template):
            raise NotFoundError("Template", template_id)

        logger.info("Template deleted", template_id=template_id, workspace_id=template.workspace_id)
        self._invalidate("deleted", template)

    def save_content(self, template_id: str, raw_content: Any, expected_version: int | None = None) -> Template:
        """Replace a template's whole content tree after re-validating it.

        Raises:
            NotFoundError: If the template does not exist.
            ValidationError: If the content is invalid.
            ConflictError: If the template changed since ``expected_version``.
        """
        content = validate_block_content(raw_content)
        template = self.get(template_id)
        if expected_version is not None and expected_version != template.version:
            raise ConflictError(
                "Template was modified by another process",
                conflict_type="version",
                details={"expected_version": expected_version, "current_version": template.version},
            )

        template.set_content(content)
        self.repository.update(template)

        logger.info("Template content saved", template_id=template.id, version=template.version)
        self._invalidate("content_saved", template)
        return template

    def instantiate_profile(
        self,
        template_id: str,
        slug: str,
        owner: ProfileOwner | dict,
        workspace_id: str,
        socials: list | None = None,
        bio: str | None = None,
    ) -> Profile:
        """Publish a template as a profile holding its own cloned copy of the content.

        Raises:
            NotFoundError: If the template does not exist.
            ValidationError: If the profile fields are invalid.
            ConflictError: If the slug is taken.
        """
        template = self.get(template_id)
        content = clone_with_new_identities(template.get_content())

        try:
            profile = Profile(
                workspace_id=workspace_id,
                slug=slug,
                owner=owner,
                template_id=template.id,
                content=StoredContent.from_content(content),
                socials=socials or [],
                bio=bio,
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        self.profile_repository.create_profile(profile)
        logger.info("Profile published from template", profile_id=profile.id, template_id=template.id, slug=slug)
        return profile
