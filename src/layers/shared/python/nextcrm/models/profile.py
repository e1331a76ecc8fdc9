"""Profile model for public digital profile pages."""

import re
from typing import ClassVar

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field

from nextcrm.models.base import BaseModel
from nextcrm.models.block_content import BlockContent, StoredContent
from nextcrm.models.block_schemas import SocialLink

# URL-safe slug; lookups are exact and case-sensitive
SLUG_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,99}$")


def is_valid_slug(slug: str | None) -> bool:
    """Check a slug against the URL-safe slug format."""
    return bool(slug) and bool(SLUG_PATTERN.match(slug))


class ProfileOwner(PydanticBaseModel):
    """Public identity of the user that owns a profile."""

    user_id: str | None = None
    name: str = Field(..., min_length=1, max_length=255)
    image: str | None = None
    email: str | None = None
    phone: str | None = None


class Profile(BaseModel):
    """Profile entity - a public page resolved by slug.

    ``content`` holds a materialized copy of the tree. When it is None the
    profile shows the content of ``template_id`` directly.

    Key Pattern:
        PK: PROFILE#{id}
        SK: PROFILE#{id}
        GSI1PK: PROFILE_SLUG#{slug}
        GSI1SK: PROFILE#{id}

    Slug reservation item:
        PK: SLUG#{slug}
        SK: PROFILE_SLUG
    """

    _json_fields: ClassVar[tuple[str, ...]] = ("content",)

    workspace_id: str = Field(..., description="Workspace that owns the profile and its leads")
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN.pattern)
    owner: ProfileOwner
    template_id: str | None = Field(None, description="Template the profile was derived from")
    content: StoredContent | None = None
    socials: list[SocialLink] = Field(default_factory=list)
    bio: str | None = Field(None, max_length=1000)

    def get_pk(self) -> str:
        """Get partition key: PROFILE#{id}."""
        return f"PROFILE#{self.id}"

    def get_sk(self) -> str:
        """Get sort key: PROFILE#{id}."""
        return f"PROFILE#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for slug lookup."""
        return {
            "GSI1PK": f"PROFILE_SLUG#{self.slug}",
            "GSI1SK": f"PROFILE#{self.id}",
        }

    def get_slug_reservation_keys(self) -> dict[str, str]:
        return {"PK": f"SLUG#{self.slug}", "SK": "PROFILE_SLUG"}

    def get_content(self) -> BlockContent | None:
        """Materialize the profile's own content tree, if it has one."""
        return self.content.to_content() if self.content is not None else None


class PublishProfileRequest(PydanticBaseModel):
    """Request model for publishing a template as a profile."""

    model_config = ConfigDict(populate_by_name=True)

    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN.pattern)
    workspace_id: str = Field(..., alias="workspaceId")
    owner: ProfileOwner
    socials: list[SocialLink] = Field(default_factory=list)
    bio: str | None = Field(None, max_length=1000)
