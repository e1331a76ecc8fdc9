"""Render block content to a presentation tree and HTML.

``render`` is pure: the same content always yields the same tree, in
document order. Known element kinds dispatch to their presenter; unknown
kinds, and known kinds whose props no longer validate, become a neutral
passthrough container that still renders its children.
"""

import html as html_module
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from nextcrm.models.block_content import BlockContent, EditorElement
from nextcrm.models.block_schemas import (
    BlockKind,
    ButtonProps,
    ContainerProps,
    HeadingProps,
    ImageProps,
    LeadFormProps,
    SectionProps,
    SocialLinksProps,
    TextProps,
    parse_block_props,
)

logger = structlog.get_logger()

VOID_TAGS = frozenset({"img", "input", "br", "hr"})

DEFAULT_LEAD_ENDPOINT = "/public/leads"


@dataclass
class RenderNode:
    """One node of the presentation tree."""

    component: str
    tag: str = "div"
    element_id: str | None = None
    element_type: str | None = None
    attrs: dict[str, str] = field(default_factory=dict)
    text: str | None = None
    children: list["RenderNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form for snapshots and JSON."""
        root: dict[str, Any] = {}
        stack: list[tuple[RenderNode, dict[str, Any]]] = [(self, root)]
        while stack:
            node, out = stack.pop()
            out.update(
                component=node.component,
                tag=node.tag,
                element_id=node.element_id,
                element_type=node.element_type,
                attrs=dict(node.attrs),
                text=node.text,
                children=[],
            )
            for child in node.children:
                child_out: dict[str, Any] = {}
                out["children"].append(child_out)
                stack.append((child, child_out))
        return root


@dataclass(frozen=True)
class RenderContext:
    """Per-page values some presenters need."""

    profile_id: str | None = None
    lead_endpoint: str = DEFAULT_LEAD_ENDPOINT


def escape_html(value: str | None) -> str:
    if value is None:
        return ""
    return html_module.escape(str(value))


def sanitize_url(url: str | None) -> str:
    """Return the URL, or '#' for empty or script-bearing URLs."""
    if not url:
        return "#"
    url = str(url).strip()
    if url.lower().startswith(("javascript:", "data:", "vbscript:")):
        return "#"
    return url


def _sanitize_color(color: str | None, default: str | None = None) -> str | None:
    if not color:
        return default
    color = str(color).strip()
    if re.match(r"^#[0-9a-fA-F]{3,8}$", color):
        return color
    return default


def _style(**declarations: Any) -> str:
    """Build an inline style from keyword declarations, skipping None values."""
    return ";".join(
        f"{name.replace('_', '-')}:{value}" for name, value in declarations.items() if value is not None
    )


def _css_token(value: str | None) -> str | None:
    if value and re.match(r"^[A-Za-z0-9-]+$", value):
        return value
    return None


def _num(value: float) -> str:
    """Format a number without a trailing .0 for whole values."""
    return str(int(value)) if float(value).is_integer() else str(value)


def _px(value: float | None) -> str | None:
    return f"{_num(value)}px" if value is not None else None


def _box(sides: Any) -> str | None:
    if sides is None:
        return None
    return " ".join(_px(side) for side in (sides.top, sides.right, sides.bottom, sides.left))


def _base(element: EditorElement, component: str, tag: str, **attrs: str) -> RenderNode:
    node_attrs = {"data-element-id": element.id}
    node_attrs.update({k.rstrip("_").replace("_", "-"): v for k, v in attrs.items() if v})
    return RenderNode(
        component=component,
        tag=tag,
        element_id=element.id,
        element_type=element.type,
        attrs=node_attrs,
    )


# =============================================================================
# Presenters
# =============================================================================


def _present_section(element: EditorElement, props: SectionProps, context: RenderContext) -> RenderNode:
    style = props.style
    if style.background.type == "gradient":
        background = (
            f"linear-gradient({_num(style.background.gradient_angle)}deg, "
            f"{style.background.gradient_color1}, {style.background.gradient_color2})"
        )
    else:
        background = style.background.solid_color

    classes = ["nc-section", f"nc-section--{style.layout.mode}"]
    classes.extend(f"nc-hidden-{device}" for device in props.advanced.visibility)
    if props.advanced.custom_class:
        classes.append(props.advanced.custom_class.strip())

    border = None
    if style.border.width:
        border = f"{_px(style.border.width)} {style.border.style} {style.border.color}"

    return _base(
        element,
        "section",
        "section",
        class_=" ".join(classes),
        style=_style(
            background=background,
            padding=_box(style.layout.padding),
            margin=_box(style.layout.margin),
            border=border,
            border_radius=_px(style.border.radius) if style.border.radius else None,
        ),
        aria_label=props.layer_name,
    )


def _present_container(element: EditorElement, props: ContainerProps, context: RenderContext) -> RenderNode:
    return _base(
        element,
        "container",
        "div",
        class_="nc-container",
        style=_style(display=props.display, gap=_px(props.gap), padding=_box(props.padding)),
    )


def _present_heading(element: EditorElement, props: HeadingProps, context: RenderContext) -> RenderNode:
    node = _base(
        element,
        "heading",
        props.level,
        class_="nc-heading",
        style=_style(
            text_align=props.alignment,
            color=_sanitize_color(props.color),
            font_size=_px(props.font_size),
            font_weight=_css_token(props.font_weight),
        ),
    )
    node.text = props.text
    return node


def _present_text(element: EditorElement, props: TextProps, context: RenderContext) -> RenderNode:
    node = _base(
        element,
        "text",
        "div",
        class_="nc-text",
        style=_style(
            text_align=props.alignment,
            color=_sanitize_color(props.color),
            font_size=_px(props.font_size),
            font_weight=_css_token(props.font_weight),
            white_space="pre-line",
        ),
    )
    node.text = props.content
    return node


def _present_button(element: EditorElement, props: ButtonProps, context: RenderContext) -> RenderNode:
    classes = f"nc-button nc-button--{props.variant} nc-button--{props.size}"
    if props.full_width:
        classes += " nc-button--full"
    node = _base(
        element,
        "button",
        "a",
        class_=classes,
        href=sanitize_url(props.url),
        style=_style(
            background=_sanitize_color(props.background_color),
            color=_sanitize_color(props.text_color),
        ),
    )
    node.text = props.text
    return node


def _present_image(element: EditorElement, props: ImageProps, context: RenderContext) -> RenderNode:
    node = _base(element, "image", "figure", class_="nc-image")
    img_attrs = {
        "src": sanitize_url(props.src),
        "alt": props.alt,
        "loading": "lazy",
        "style": _style(object_fit=props.object_fit),
    }
    if props.width:
        img_attrs["width"] = _num(props.width)
    if props.height:
        img_attrs["height"] = _num(props.height)
    node.children.append(RenderNode(component="img", tag="img", attrs=img_attrs))
    return node


def _present_social_links(element: EditorElement, props: SocialLinksProps, context: RenderContext) -> RenderNode:
    node = _base(element, "social_links", "nav", class_="nc-social", style=_style(text_align=props.alignment))
    for link in props.links:
        node.children.append(
            RenderNode(
                component="social_link",
                tag="a",
                attrs={
                    "href": sanitize_url(link.url),
                    "class": f"nc-social__link nc-social__link--{link.network}",
                    "rel": "noopener",
                    "target": "_blank",
                },
                text=link.network,
            )
        )
    return node


def lead_form_node(props: LeadFormProps, context: RenderContext, element: EditorElement | None = None) -> RenderNode:
    """Build the lead capture form, inline or as the page's default form."""
    if element is not None:
        node = _base(element, "lead_form", "form", class_="nc-lead-form")
    else:
        node = RenderNode(component="lead_form", tag="form", attrs={"class": "nc-lead-form"})
    node.attrs.update(
        {
            "data-lead-form": "true",
            "data-endpoint": sanitize_url(context.lead_endpoint),
            "data-success-message": props.success_message,
        }
    )

    fields = []
    if props.title:
        fields.append(
            RenderNode(component="lead_form_title", tag="h3", attrs={"class": "nc-lead-form__title"}, text=props.title)
        )
    fields += [
        RenderNode(
            component="input",
            tag="input",
            attrs={"name": "name", "type": "text", "placeholder": "Your name", "minlength": "2", "required": "required"},
        ),
        RenderNode(
            component="input",
            tag="input",
            attrs={"name": "phone", "type": "tel", "placeholder": "Phone", "minlength": "10", "required": "required"},
        ),
    ]
    if props.show_interest:
        fields.append(
            RenderNode(
                component="textarea",
                tag="textarea",
                attrs={"name": "interest", "placeholder": "What are you interested in?", "rows": "3"},
            )
        )
    fields.extend(
        [
            RenderNode(component="input", tag="input", attrs={"name": "profileId", "type": "hidden", "value": context.profile_id or ""}),
            RenderNode(
                component="input",
                tag="input",
                attrs={"name": "website", "type": "text", "tabindex": "-1", "autocomplete": "off", "class": "nc-hp"},
            ),
            RenderNode(component="submit", tag="button", attrs={"type": "submit", "class": "nc-button nc-button--primary"}, text=props.submit_text),
        ]
    )
    node.children.extend(fields)
    return node


def _present_lead_form(element: EditorElement, props: LeadFormProps, context: RenderContext) -> RenderNode:
    return lead_form_node(props, context, element)


PRESENTERS: dict[BlockKind, Callable[[EditorElement, Any, RenderContext], RenderNode]] = {
    BlockKind.SECTION: _present_section,
    BlockKind.CONTAINER: _present_container,
    BlockKind.HEADING: _present_heading,
    BlockKind.TEXT: _present_text,
    BlockKind.BUTTON: _present_button,
    BlockKind.IMAGE: _present_image,
    BlockKind.SOCIAL_LINKS: _present_social_links,
    BlockKind.LEAD_FORM: _present_lead_form,
}


def _passthrough(element: EditorElement, render_error: str | None = None) -> RenderNode:
    node = RenderNode(
        component="passthrough",
        tag="div",
        element_id=element.id,
        element_type=element.type,
        attrs={
            "data-element-id": element.id,
            "data-block-type": element.type,
            "class": "nc-passthrough",
        },
    )
    if render_error:
        node.attrs["data-render-error"] = render_error
    return node


def _render_element(element: EditorElement, context: RenderContext) -> RenderNode:
    """Render one element without its children. Never raises."""
    kind = element.kind
    presenter = PRESENTERS.get(kind) if kind is not None else None
    if presenter is None:
        return _passthrough(element)

    try:
        props = parse_block_props(kind, element.props)
        return presenter(element, props, context)
    except Exception as e:
        logger.warning(
            "Element render failed, using passthrough",
            element_id=element.id,
            element_type=element.type,
            error=str(e),
        )
        return _passthrough(element, render_error="invalid-props")


def render(content: BlockContent, context: RenderContext | None = None) -> RenderNode:
    """Render content to a presentation tree rooted at a "page" node.

    Args:
        content: Validated block content. It is not modified.
        context: Page values for presenters that need them.

    Returns:
        The presentation tree; children keep document order.
    """
    context = context or RenderContext()
    root = RenderNode(component="page", tag="div", attrs={"class": "nc-content"})

    stack: list[tuple[EditorElement, list[RenderNode]]] = [
        (element, root.children) for element in reversed(content.elements)
    ]
    while stack:
        element, siblings = stack.pop()
        node = _render_element(element, context)
        siblings.append(node)
        for child in reversed(element.children):
            stack.append((child, node.children))

    return root


def _open_tag(node: RenderNode) -> str:
    attrs = "".join(f' {name}="{escape_html(value)}"' for name, value in node.attrs.items())
    return f"<{node.tag}{attrs}>"


def render_html(root: RenderNode) -> str:
    """Serialize a presentation tree to HTML, escaping all text and attributes."""
    parts: list[str] = []
    stack: list[RenderNode | str] = [root]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue

        parts.append(_open_tag(item))
        if item.tag in VOID_TAGS:
            continue
        if item.text:
            parts.append(escape_html(item.text))
        stack.append(f"</{item.tag}>")
        stack.extend(reversed(item.children))

    return "".join(parts)


def contains_kind(content: BlockContent, kind: BlockKind) -> bool:
    """Whether any element in the content is of the given kind."""
    stack = list(content.elements)
    while stack:
        element = stack.pop()
        if element.kind is kind:
            return True
        stack.extend(element.children)
    return False
