"""Typed props schemas for the known editor element types.

Each known ``EditorElement.type`` maps to a props model. Props travel in
camelCase on the wire; defaults are filled on validation and keys the schema
does not know are dropped. Types missing from ``BLOCK_SCHEMAS`` are opaque and
their props pass through untouched.
"""

import re
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from nextcrm.utils.exceptions import ValidationError

HexColor = Annotated[str, StringConstraints(pattern=r"^#(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")]

URL_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*:[^\s]+$", re.IGNORECASE)


class BlockKind(str, Enum):
    """Known editor element types."""

    SECTION = "Section"
    CONTAINER = "Container"
    HEADING = "Heading"
    TEXT = "Text"
    BUTTON = "Button"
    IMAGE = "Image"
    SOCIAL_LINKS = "SocialLinks"
    LEAD_FORM = "LeadForm"


def resolve_block_kind(element_type: str) -> BlockKind | None:
    """Map an element type tag to a known kind, or None for opaque types."""
    try:
        return BlockKind(element_type)
    except ValueError:
        return None


def _check_url(value: str | None, allow_empty: bool) -> str | None:
    if value is None or (allow_empty and value == ""):
        return value
    if not URL_PATTERN.match(value):
        raise ValueError("Must be an absolute URL")
    return value


def _promote_alias(data: Any, alias: str) -> Any:
    """Use a legacy alias as `text` when `text` itself is missing."""
    if isinstance(data, dict) and "text" not in data and data.get(alias):
        return {**data, "text": data[alias]}
    return data


class BlockProps(PydanticBaseModel):
    """Base for element props: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FourSided(BlockProps):
    """Padding for the four sides of a box, in pixels."""

    top: float = Field(default=0, ge=0, le=1000)
    right: float = Field(default=0, ge=0, le=1000)
    bottom: float = Field(default=0, ge=0, le=1000)
    left: float = Field(default=0, ge=0, le=1000)


class Margin(BlockProps):
    """Margin for the four sides of a box, in pixels; may be negative."""

    top: float = Field(default=0, ge=-1000, le=1000)
    right: float = Field(default=0, ge=-1000, le=1000)
    bottom: float = Field(default=0, ge=-1000, le=1000)
    left: float = Field(default=0, ge=-1000, le=1000)


class LayoutStyle(BlockProps):
    mode: Literal["full-width", "contained"] = "contained"
    padding: FourSided = Field(default_factory=FourSided)
    margin: Margin = Field(default_factory=Margin)


class BackgroundStyle(BlockProps):
    type: Literal["solid", "gradient"] = "solid"
    solid_color: HexColor = "#ffffff"
    gradient_color1: HexColor = "#ffffff"
    gradient_color2: HexColor = "#000000"
    gradient_angle: float = Field(default=90, ge=0, le=360)


class BorderStyle(BlockProps):
    width: float = Field(default=0, ge=0, le=20)
    radius: float = Field(default=0, ge=0, le=100)
    style: Literal["solid", "dashed", "dotted"] = "solid"
    color: HexColor = "#000000"
    color_hover: HexColor | None = None


class SectionStyle(BlockProps):
    layout: LayoutStyle = Field(default_factory=LayoutStyle)
    background: BackgroundStyle = Field(default_factory=BackgroundStyle)
    border: BorderStyle = Field(default_factory=BorderStyle)


class AdvancedSettings(BlockProps):
    custom_class: str | None = Field(None, max_length=200, pattern=r"^[A-Za-z0-9_\- ]*$")
    # Devices the section is hidden on.
    visibility: list[Literal["mobile", "tablet", "desktop"]] = Field(default_factory=list)


class SectionProps(BlockProps):
    layer_name: str = "Section"
    style: SectionStyle = Field(default_factory=SectionStyle)
    advanced: AdvancedSettings = Field(default_factory=AdvancedSettings)


class ContainerProps(BlockProps):
    layer_name: str = "Container"
    display: Literal["flex", "grid", "block"] = "flex"
    gap: float = Field(default=16, ge=0, le=100)
    padding: FourSided | None = None


class HeadingProps(BlockProps):
    layer_name: str = "Heading"
    text: str = Field(default="New Heading", min_length=1, max_length=500)
    content: str | None = Field(None, max_length=500)
    level: Literal["h1", "h2", "h3", "h4", "h5", "h6"] = "h2"
    alignment: Literal["left", "center", "right"] = "left"
    color: HexColor | None = None
    font_size: float | None = Field(None, ge=12, le=120)
    font_weight: str | None = None

    @model_validator(mode="before")
    @classmethod
    def promote_content(cls, data: Any) -> Any:
        return _promote_alias(data, "content")


class TextProps(BlockProps):
    layer_name: str = "Text"
    content: str = Field(default="Type your text here...", min_length=1, max_length=10000)
    alignment: Literal["left", "center", "right", "justify"] = "left"
    color: HexColor | None = None
    font_size: float | None = Field(None, ge=8, le=72)
    font_weight: str | None = None


class ButtonProps(BlockProps):
    layer_name: str = "Button"
    text: str = Field(default="Click here", min_length=1, max_length=200)
    label: str | None = Field(None, max_length=200)
    url: str = ""
    variant: Literal["primary", "secondary", "outline", "ghost"] = "primary"
    size: Literal["sm", "md", "lg"] = "md"
    full_width: bool = False
    background_color: HexColor | None = None
    text_color: HexColor | None = None

    @model_validator(mode="before")
    @classmethod
    def promote_label(cls, data: Any) -> Any:
        return _promote_alias(data, "label")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _check_url(v, allow_empty=True)


class ImageProps(BlockProps):
    layer_name: str = "Image"
    src: str
    alt: str = ""
    width: float | None = Field(None, ge=1, le=2000)
    height: float | None = Field(None, ge=1, le=2000)
    object_fit: Literal["cover", "contain", "fill", "none"] = "cover"

    @field_validator("src")
    @classmethod
    def validate_src(cls, v: str) -> str:
        return _check_url(v, allow_empty=False)


class SocialLink(BlockProps):
    network: Literal["instagram", "facebook", "linkedin", "whatsapp", "x", "youtube", "tiktok", "website"]
    url: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _check_url(v, allow_empty=False)


class SocialLinksProps(BlockProps):
    layer_name: str = "Social Links"
    links: list[SocialLink] = Field(default_factory=list, max_length=20)
    alignment: Literal["left", "center", "right"] = "center"


class LeadFormProps(BlockProps):
    layer_name: str = "Lead Form"
    title: str = Field(default="Let's talk?", max_length=200)
    submit_text: str = Field(default="Send", min_length=1, max_length=50)
    show_interest: bool = True
    success_message: str = Field(default="Contact saved successfully!", max_length=500)


BLOCK_SCHEMAS: dict[BlockKind, type[BlockProps]] = {
    BlockKind.SECTION: SectionProps,
    BlockKind.CONTAINER: ContainerProps,
    BlockKind.HEADING: HeadingProps,
    BlockKind.TEXT: TextProps,
    BlockKind.BUTTON: ButtonProps,
    BlockKind.IMAGE: ImageProps,
    BlockKind.SOCIAL_LINKS: SocialLinksProps,
    BlockKind.LEAD_FORM: LeadFormProps,
}


def validate_block_props(kind: BlockKind, props: dict[str, Any], path: str = "props") -> tuple[dict[str, Any], list[dict]]:
    """Validate props for a known element kind.

    Args:
        kind: The element kind.
        props: Raw props mapping.
        path: Dotted path prefix used in error fields.

    Returns:
        Tuple of (normalized props, errors). Errors is empty on success and
        the normalized props are empty on failure.
    """
    schema = BLOCK_SCHEMAS[kind]
    try:
        model = schema.model_validate(props)
    except PydanticValidationError as e:
        return {}, ValidationError.pydantic_errors(e, prefix=path)
    return dump_block_props(model), []


def parse_block_props(kind: BlockKind, props: dict[str, Any]) -> BlockProps:
    """Parse props into their typed model, raising Pydantic's ValidationError."""
    return BLOCK_SCHEMAS[kind].model_validate(props)


def dump_block_props(model: BlockProps) -> dict[str, Any]:
    """Dump typed props back to their camelCase wire form."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
