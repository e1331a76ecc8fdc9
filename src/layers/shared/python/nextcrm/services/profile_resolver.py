"""Resolve public slugs to renderable profile views.

Resolution is read-only: it never writes to profiles or templates, and a
page view leaves no trace in storage.
"""

from dataclasses import dataclass, field

import structlog

from nextcrm.models.block_content import BlockContent, BlockMetadata
from nextcrm.models.block_schemas import SocialLink
from nextcrm.models.profile import ProfileOwner, is_valid_slug
from nextcrm.repositories.profile import ProfileRepository
from nextcrm.repositories.template import TemplateRepository

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProfileView:
    """Everything the public page needs, with content fully materialized."""

    profile_id: str
    slug: str
    workspace_id: str
    owner: ProfileOwner
    content: BlockContent
    socials: list[SocialLink] = field(default_factory=list)
    bio: str | None = None


class ProfileResolver:
    """Maps a public slug to its profile view."""

    def __init__(
        self,
        profile_repository: ProfileRepository | None = None,
        template_repository: TemplateRepository | None = None,
    ):
        self.profile_repository = profile_repository or ProfileRepository()
        self.template_repository = template_repository or TemplateRepository()

    def resolve_by_slug(self, slug: str) -> ProfileView | None:
        """Resolve a slug exactly and case-sensitively.

        Returns:
            The profile view, or None on a miss. Callers must render the
            not-found state for None.
        """
        if not is_valid_slug(slug):
            logger.info("Rejected malformed profile slug", slug=slug)
            return None

        profile = self.profile_repository.get_by_slug(slug)
        if profile is None or profile.slug != slug:
            logger.info("Profile not found", slug=slug)
            return None

        content = profile.get_content()
        if content is None:
            content = self._template_content(profile.template_id, fallback_name=profile.owner.name)

        return ProfileView(
            profile_id=profile.id,
            slug=profile.slug,
            workspace_id=profile.workspace_id,
            owner=profile.owner,
            content=content,
            socials=list(profile.socials),
            bio=profile.bio,
        )

    def _template_content(self, template_id: str | None, fallback_name: str) -> BlockContent:
        """Content of the template a profile points at; empty if it is gone."""
        template = self.template_repository.get_by_id(template_id) if template_id else None
        if template is None:
            logger.warning("Profile template missing, rendering empty content", template_id=template_id)
            return BlockContent.model_construct(elements=[], metadata=BlockMetadata(name=fallback_name))
        return template.get_content()
