"""Operations over block content trees.

All traversals use an explicit stack; authored trees may be arbitrarily deep.
"""

import copy
import uuid
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from nextcrm.models.block_content import BlockContent, EditorElement, walk_elements


def new_element_id() -> str:
    """Generate a fresh element id."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class StructuralDifference:
    """One difference between two trees, ignoring element ids."""

    path: str
    field: str
    left: Any = None
    right: Any = None


def count_elements(elements: list[EditorElement]) -> int:
    """Count every element in the forest."""
    return sum(1 for _ in walk_elements(elements))


def clone_with_new_identities(
    content: BlockContent,
    id_factory: Callable[[], str] = new_element_id,
) -> BlockContent:
    """Deep-clone content, giving every element a fresh id.

    Type, props, sibling order and parent/child shape are preserved. Runs in
    one linear pass.

    Args:
        content: Source content. It is not modified.
        id_factory: Callable producing new ids.

    Returns:
        The cloned content.
    """
    roots: list[EditorElement] = []
    stack: list[tuple[EditorElement, list[EditorElement]]] = [
        (element, roots) for element in reversed(content.elements)
    ]
    while stack:
        source, siblings = stack.pop()
        clone = EditorElement.build(id_factory(), source.type, copy.deepcopy(source.props))
        siblings.append(clone)
        for child in reversed(source.children):
            stack.append((child, clone.children))

    return BlockContent.model_construct(elements=roots, metadata=content.metadata.model_copy())


def find_duplicate_ids(elements: list[EditorElement]) -> set[str]:
    """Return the ids used by more than one element; empty means valid."""
    counts = Counter(element.id for element, _ in walk_elements(elements))
    return {element_id for element_id, count in counts.items() if count > 1}


def collect_ids(elements: list[EditorElement]) -> set[str]:
    """Return every element id in the forest."""
    return {element.id for element, _ in walk_elements(elements)}


def diff_structure(a: BlockContent, b: BlockContent) -> list[StructuralDifference]:
    """Compare two trees by type, props and child order, ignoring ids.

    Metadata is descriptive and not compared.

    Returns:
        Differences found; an empty list means the trees are structurally equal.
    """
    differences: list[StructuralDifference] = []
    stack: list[tuple[list[EditorElement], list[EditorElement], str]] = [(a.elements, b.elements, "elements")]

    while stack:
        left_list, right_list, path = stack.pop()

        if len(left_list) != len(right_list):
            parent = path.rsplit(".", 1)[0] if "." in path else path
            differences.append(
                StructuralDifference(path=parent, field="children", left=len(left_list), right=len(right_list))
            )
        for i in range(len(left_list), len(right_list)):
            differences.append(StructuralDifference(path=f"{path}.{i}", field="extra", right=right_list[i].type))
        for i in range(len(right_list), len(left_list)):
            differences.append(StructuralDifference(path=f"{path}.{i}", field="missing", left=left_list[i].type))

        for i in range(min(len(left_list), len(right_list)) - 1, -1, -1):
            left, right = left_list[i], right_list[i]
            node_path = f"{path}.{i}"
            if left.type != right.type:
                differences.append(StructuralDifference(path=node_path, field="type", left=left.type, right=right.type))
            if left.props != right.props:
                differences.append(StructuralDifference(path=node_path, field="props", left=left.props, right=right.props))
            stack.append((left.children, right.children, f"{node_path}.children"))

    differences.sort(key=lambda d: (d.path, d.field))
    return differences
