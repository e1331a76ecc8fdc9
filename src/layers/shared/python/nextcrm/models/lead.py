"""Lead model for contacts captured on public profiles."""

import re

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field, field_validator

from nextcrm.models.base import BaseModel

# Crockford base32 ULID
ULID_PATTERN = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


class Lead(BaseModel):
    """Lead entity - a visitor-submitted contact. Append-only.

    Key Pattern:
        PK: PROFILE#{profile_id}
        SK: LEAD#{created_at}#{id}
        GSI1PK: WS#{workspace_id}#LEADS
        GSI1SK: {created_at}#{id}
    """

    profile_id: str = Field(..., description="Profile the lead was captured on")
    workspace_id: str = Field(..., description="Workspace of the profile owner")
    name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(..., min_length=10, max_length=30)
    interest: str | None = Field(None, max_length=1000)
    origin: str = Field(default="digital_profile")
    visitor_ip: str | None = None
    user_agent: str | None = None

    def get_pk(self) -> str:
        """Get partition key: PROFILE#{profile_id}."""
        return f"PROFILE#{self.profile_id}"

    def get_sk(self) -> str:
        """Get sort key: LEAD#{created_at}#{id}."""
        return f"LEAD#{self.created_at.isoformat()}#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for listing a workspace's leads."""
        return {
            "GSI1PK": f"WS#{self.workspace_id}#LEADS",
            "GSI1SK": f"{self.created_at.isoformat()}#{self.id}",
        }


class CaptureLeadRequest(PydanticBaseModel):
    """Request model for a public lead submission.

    Every field is checked independently so a failure lists all of them.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(..., min_length=10, max_length=30)
    interest: str | None = Field(None, max_length=1000)
    profile_id: str = Field(..., alias="profileId")
    website: str | None = Field(None, description="Honeypot; real visitors leave it empty")

    @field_validator("profile_id")
    @classmethod
    def validate_profile_id(cls, v: str) -> str:
        if not ULID_PATTERN.match(v):
            raise ValueError("Invalid profile ID")
        return v

    @field_validator("interest")
    @classmethod
    def empty_interest_to_none(cls, v: str | None) -> str | None:
        return v or None
