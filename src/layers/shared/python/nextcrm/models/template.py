"""Template model for reusable block content definitions."""

from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field, field_validator

from nextcrm.models.base import BaseModel
from nextcrm.models.block_content import BlockContent, StoredContent

GLOBAL_SCOPE = "GLOBAL"


class TemplateType(str, Enum):
    """Template type enum."""

    PROFILE_TEMPLATE = "profile_template"
    CONTENT_BLOCK = "content_block"


def scope_key(workspace_id: str | None) -> str:
    """Storage scope for a workspace, with None meaning global."""
    return workspace_id or GLOBAL_SCOPE


class Template(BaseModel):
    """Template entity - a named, persisted block content tree.

    Key Pattern:
        PK: TEMPLATE#{id}
        SK: TEMPLATE#{id}
        GSI1PK: TEMPLATES#{workspace_id or GLOBAL}
        GSI1SK: {created_at}#{id}

    Name reservation item:
        PK: TEMPLATE_NAME#{workspace_id or GLOBAL}#{type}
        SK: NAME#{name}
    """

    _json_fields: ClassVar[tuple[str, ...]] = ("content",)

    name: str = Field(..., min_length=3, max_length=255, description="Template name")
    description: str | None = Field(None, max_length=1000, description="Template description")
    type: TemplateType = Field(..., description="Template type")
    workspace_id: str | None = Field(None, description="Owning workspace; None for global templates")
    created_by: str | None = Field(None, description="User who created the template")
    content: StoredContent = Field(..., description="Block content in arena form")

    @property
    def is_global(self) -> bool:
        return self.workspace_id is None

    @property
    def scope(self) -> str:
        return scope_key(self.workspace_id)

    def get_pk(self) -> str:
        """Get partition key: TEMPLATE#{id}."""
        return f"TEMPLATE#{self.id}"

    def get_sk(self) -> str:
        """Get sort key: TEMPLATE#{id}."""
        return f"TEMPLATE#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for listing a scope newest first."""
        return {
            "GSI1PK": f"TEMPLATES#{self.scope}",
            "GSI1SK": f"{self.created_at.isoformat()}#{self.id}",
        }

    def get_name_reservation_keys(self) -> dict[str, str]:
        """Keys of the item that reserves (scope, type, name)."""
        return {
            "PK": f"TEMPLATE_NAME#{self.scope}#{TemplateType(self.type).value}",
            "SK": f"NAME#{self.name}",
        }

    def get_content(self) -> BlockContent:
        """Materialize the content tree."""
        return self.content.to_content()

    def set_content(self, content: BlockContent) -> None:
        """Replace the whole content tree."""
        self.content = StoredContent.from_content(content)

    def to_summary(self) -> dict[str, Any]:
        """Public data for create/duplicate results."""
        data = {
            "id": self.id,
            "name": self.name,
            "type": TemplateType(self.type).value,
            "workspace_id": self.workspace_id,
            "created_at": self.created_at.isoformat(),
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    def to_detail(self) -> dict[str, Any]:
        """Summary plus the nested content tree."""
        data = self.to_summary()
        data["content"] = self.get_content().to_dict()
        return data


class CreateTemplateRequest(PydanticBaseModel):
    """Request model for creating a template."""

    name: str = Field(..., min_length=3, max_length=255)
    description: str | None = Field(None, max_length=1000)
    type: TemplateType
    workspace_id: str | None = Field(None, alias="workspaceId")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Name must be at least 3 characters")
        return v


class SaveTemplateContentRequest(PydanticBaseModel):
    """Request model for replacing a template's content tree."""

    content: dict[str, Any]
    version: int | None = Field(None, ge=1, description="Expected version for optimistic locking")


class TemplateResult(PydanticBaseModel):
    """Result shape for create, duplicate and read operations."""

    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None


class DeleteResult(PydanticBaseModel):
    """Result shape for delete."""

    success: bool
    error: str | None = None
