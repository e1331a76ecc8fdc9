"""Pydantic models for NextCRM entities."""

from nextcrm.models.base import BaseModel, TimestampMixin
from nextcrm.models.block_content import (
    BlockContent,
    BlockMetadata,
    ContentNode,
    EditorElement,
    StoredContent,
    validate_block_content,
    walk_elements,
)
from nextcrm.models.block_schemas import (
    BLOCK_SCHEMAS,
    BlockKind,
    resolve_block_kind,
    validate_block_props,
)
from nextcrm.models.lead import CaptureLeadRequest, Lead
from nextcrm.models.profile import Profile, ProfileOwner, PublishProfileRequest, is_valid_slug
from nextcrm.models.template import (
    CreateTemplateRequest,
    DeleteResult,
    SaveTemplateContentRequest,
    Template,
    TemplateResult,
    TemplateType,
)

__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    # Block content
    "BlockContent",
    "BlockMetadata",
    "ContentNode",
    "EditorElement",
    "StoredContent",
    "validate_block_content",
    "walk_elements",
    # Block schemas
    "BLOCK_SCHEMAS",
    "BlockKind",
    "resolve_block_kind",
    "validate_block_props",
    # Lead
    "CaptureLeadRequest",
    "Lead",
    # Profile
    "Profile",
    "ProfileOwner",
    "PublishProfileRequest",
    "is_valid_slug",
    # Template
    "CreateTemplateRequest",
    "DeleteResult",
    "SaveTemplateContentRequest",
    "Template",
    "TemplateResult",
    "TemplateType",
]
