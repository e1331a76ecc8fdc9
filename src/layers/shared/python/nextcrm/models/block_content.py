"""Block content tree: editor elements, metadata and their persisted form.

A ``BlockContent`` is a forest of ``EditorElement`` nodes plus descriptive
metadata. Trees come from authors, so their depth is untrusted: everything
here walks them with an explicit stack and never recurses per node.

Element nodes are assembled with ``model_construct`` after the raw input has
been checked by ``validate_block_content``; pydantic's own recursive
validation is never run over a whole tree.
"""

import copy
from collections.abc import Iterator
from typing import Any, Optional

from pydantic import BaseModel as PydanticBaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from nextcrm.models.block_schemas import BlockKind, resolve_block_kind, validate_block_props
from nextcrm.utils.exceptions import ValidationError


class BlockMetadata(PydanticBaseModel):
    """Descriptive metadata for a block content tree."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)


class EditorElement(PydanticBaseModel):
    """One node of the authored content tree."""

    id: str
    type: str
    props: dict[str, Any] = Field(default_factory=dict)
    children: list["EditorElement"] = Field(default_factory=list)

    @property
    def kind(self) -> BlockKind | None:
        """Known kind for this element, or None when the type is opaque."""
        return resolve_block_kind(self.type)

    @classmethod
    def build(
        cls,
        element_id: str,
        element_type: str,
        props: dict[str, Any] | None = None,
        children: list["EditorElement"] | None = None,
    ) -> "EditorElement":
        """Assemble an element without re-validating its subtree."""
        return cls.model_construct(
            id=element_id,
            type=element_type,
            props=props if props is not None else {},
            children=children if children is not None else [],
        )


class BlockContent(PydanticBaseModel):
    """The persisted unit: an ordered element forest plus metadata."""

    elements: list[EditorElement] = Field(default_factory=list)
    metadata: BlockMetadata

    @classmethod
    def empty(cls, name: str, description: str | None = None) -> "BlockContent":
        """Create content with no elements."""
        return cls.model_construct(
            elements=[],
            metadata=BlockMetadata(name=name, description=description),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the nested JSON wire form."""
        elements: list[dict[str, Any]] = []
        stack: list[tuple[EditorElement, list[dict[str, Any]]]] = [
            (element, elements) for element in reversed(self.elements)
        ]
        while stack:
            element, siblings = stack.pop()
            node = {
                "id": element.id,
                "type": element.type,
                "props": copy.deepcopy(element.props),
                "children": [],
            }
            siblings.append(node)
            for child in reversed(element.children):
                stack.append((child, node["children"]))

        return {
            "elements": elements,
            "metadata": self.metadata.model_dump(mode="json", exclude_none=True),
        }


class ContentNode(PydanticBaseModel):
    """One element in the flat arena form; ``parent`` indexes into the node list."""

    id: str
    type: str
    props: dict[str, Any] = Field(default_factory=dict)
    parent: Optional[int] = None


class StoredContent(PydanticBaseModel):
    """Arena form of ``BlockContent`` used for storage.

    Nodes are listed in pre-order, so every parent precedes its children and
    siblings keep their document order.
    """

    metadata: BlockMetadata
    nodes: list[ContentNode] = Field(default_factory=list)

    @classmethod
    def from_content(cls, content: BlockContent) -> "StoredContent":
        """Flatten a content tree into arena form."""
        nodes: list[ContentNode] = []
        stack: list[tuple[EditorElement, int | None]] = [
            (element, None) for element in reversed(content.elements)
        ]
        while stack:
            element, parent = stack.pop()
            index = len(nodes)
            nodes.append(
                ContentNode(
                    id=element.id,
                    type=element.type,
                    props=copy.deepcopy(element.props),
                    parent=parent,
                )
            )
            for child in reversed(element.children):
                stack.append((child, index))

        return cls(metadata=content.metadata.model_copy(), nodes=nodes)

    def to_content(self) -> BlockContent:
        """Rebuild the content tree from arena form.

        Raises:
            ValueError: If a node points at a parent that does not precede it.
        """
        built: list[EditorElement] = []
        roots: list[EditorElement] = []
        for index, node in enumerate(self.nodes):
            element = EditorElement.build(node.id, node.type, copy.deepcopy(node.props))
            if node.parent is None:
                roots.append(element)
            elif 0 <= node.parent < index:
                built[node.parent].children.append(element)
            else:
                raise ValueError(f"Node {index} has invalid parent index {node.parent}")
            built.append(element)

        return BlockContent.model_construct(elements=roots, metadata=self.metadata.model_copy())


def walk_elements(elements: list[EditorElement]) -> Iterator[tuple[EditorElement, str]]:
    """Yield every element in document (pre-)order with its dotted path."""
    stack = [(element, f"elements.{i}") for i, element in reversed(list(enumerate(elements)))]
    while stack:
        element, path = stack.pop()
        yield element, path
        for i in range(len(element.children) - 1, -1, -1):
            stack.append((element.children[i], f"{path}.children.{i}"))


def _error(field: str, message: str, error_type: str) -> dict:
    return {"field": field, "message": message, "type": error_type}


def validate_block_content(raw: Any) -> BlockContent:
    """Validate an untyped JSON-like value into ``BlockContent``.

    Every node is checked even after an error is found, so the raised
    ValidationError lists all offending paths. Elements with an unknown
    ``type`` keep their props verbatim; their ``id`` and ``children`` shape is
    still checked.

    Args:
        raw: Decoded JSON value.

    Returns:
        The validated content.

    Raises:
        ValidationError: With one entry per offending path.
    """
    if isinstance(raw, BlockContent):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        raise ValidationError(errors=[_error("", "Block content must be an object", "dict_type")])

    errors: list[dict] = []

    metadata = None
    try:
        metadata = BlockMetadata.model_validate(raw.get("metadata"))
    except PydanticValidationError as e:
        errors.extend(ValidationError.pydantic_errors(e, prefix="metadata"))

    raw_elements = raw.get("elements")
    roots: list[EditorElement] = []
    if not isinstance(raw_elements, list):
        errors.append(_error("elements", "Elements must be a list", "list_type"))
        raw_elements = []

    # (raw node, path, sibling list the built element is appended to)
    stack: list[tuple[Any, str, list[EditorElement]]] = [
        (node, f"elements.{i}", roots) for i, node in reversed(list(enumerate(raw_elements)))
    ]
    seen_ids: dict[str, str] = {}
    seen_nodes: set[int] = set()

    while stack:
        node, path, siblings = stack.pop()

        if not isinstance(node, dict):
            errors.append(_error(path, "Element must be an object", "dict_type"))
            continue
        if id(node) in seen_nodes:
            errors.append(_error(path, "Element appears more than once in the tree", "shared_node"))
            continue
        seen_nodes.add(id(node))

        element_id = node.get("id")
        if not isinstance(element_id, str) or not element_id.strip():
            errors.append(_error(f"{path}.id", "Element id must be a non-empty string", "string_type"))
            element_id = ""
        elif element_id in seen_ids:
            errors.append(
                _error(
                    f"{path}.id",
                    f"Duplicate element id '{element_id}' (first used at {seen_ids[element_id]})",
                    "duplicate_id",
                )
            )
        else:
            seen_ids[element_id] = path

        element_type = node.get("type")
        if not isinstance(element_type, str) or not element_type.strip():
            errors.append(_error(f"{path}.type", "Element type must be a non-empty string", "string_type"))
            element_type = ""

        raw_props = node.get("props", {})
        props: dict[str, Any] = {}
        if raw_props is None:
            raw_props = {}
        if not isinstance(raw_props, dict):
            errors.append(_error(f"{path}.props", "Props must be an object", "dict_type"))
        else:
            kind = resolve_block_kind(element_type) if element_type else None
            if kind is None:
                props = copy.deepcopy(raw_props)
            else:
                props, prop_errors = validate_block_props(kind, raw_props, path=f"{path}.props")
                errors.extend(prop_errors)

        raw_children = node.get("children")
        if not isinstance(raw_children, list):
            message = "Field required" if "children" not in node else "Children must be a list"
            errors.append(_error(f"{path}.children", message, "list_type"))
            raw_children = []

        element = EditorElement.build(element_id, element_type, props)
        siblings.append(element)
        for i in range(len(raw_children) - 1, -1, -1):
            stack.append((raw_children[i], f"{path}.children.{i}", element.children))

    if errors:
        raise ValidationError(message="Block content is invalid", errors=errors)

    return BlockContent.model_construct(elements=roots, metadata=metadata)
