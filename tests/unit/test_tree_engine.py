"""Tests for tree engine operations."""

import itertools

from nextcrm.models.block_content import BlockContent, BlockMetadata, EditorElement, validate_block_content
from nextcrm.services.tree_engine import (
    StructuralDifference,
    clone_with_new_identities,
    collect_ids,
    count_elements,
    diff_structure,
    find_duplicate_ids,
)


def _chain(depth: int) -> BlockContent:
    """Build a single-branch tree without validation."""
    root = EditorElement.build("n0", "Container", {"gap": 0})
    node = root
    for i in range(1, depth):
        child = EditorElement.build(f"n{i}", "Container", {"gap": i % 100})
        node.children.append(child)
        node = child
    return BlockContent.model_construct(elements=[root], metadata=BlockMetadata(name="Deep"))


class TestCloneWithNewIdentities:
    """Tests for clone_with_new_identities."""

    def test_all_ids_fresh(self, sample_content):
        """Test the clone shares no ids with the source."""
        clone = clone_with_new_identities(sample_content)

        assert collect_ids(clone.elements).isdisjoint(collect_ids(sample_content.elements))
        assert count_elements(clone.elements) == count_elements(sample_content.elements) == 4

    def test_structure_preserved(self, sample_content):
        """Test the clone is structurally equal to the source."""
        clone = clone_with_new_identities(sample_content)

        assert diff_structure(sample_content, clone) == []
        assert clone.metadata == sample_content.metadata

    def test_source_not_modified(self, sample_content):
        """Test cloning leaves the source untouched and unshared."""
        before = sample_content.to_dict()
        clone = clone_with_new_identities(sample_content)
        clone.elements[0].props["layerName"] = "Changed"

        assert sample_content.to_dict() == before

    def test_custom_id_factory(self, sample_content):
        """Test ids come from the factory in document order."""
        counter = itertools.count(1)
        clone = clone_with_new_identities(sample_content, id_factory=lambda: f"copy-{next(counter)}")

        assert [e.id for e in clone.elements] == ["copy-1"]
        assert [c.id for c in clone.elements[0].children] == ["copy-2", "copy-3", "copy-4"]

    def test_empty_content(self):
        """Test cloning empty content."""
        content = BlockContent.empty("Blank")
        clone = clone_with_new_identities(content)

        assert clone.elements == []
        assert clone.metadata.name == "Blank"

    def test_deep_tree(self):
        """Test cloning 10k nested elements without recursion."""
        content = _chain(10_000)

        clone = clone_with_new_identities(content)

        assert count_elements(clone.elements) == 10_000
        assert find_duplicate_ids(clone.elements) == set()
        assert collect_ids(clone.elements).isdisjoint(collect_ids(content.elements))
        assert diff_structure(content, clone) == []


class TestFindDuplicateIds:
    """Tests for find_duplicate_ids."""

    def test_unique(self, sample_content):
        """Test a valid tree has no duplicates."""
        assert find_duplicate_ids(sample_content.elements) == set()

    def test_duplicates_found(self):
        """Test repeated ids are returned."""
        root = EditorElement.build("a", "Section", children=[EditorElement.build("a", "Text"), EditorElement.build("b", "Text")])

        assert find_duplicate_ids([root, EditorElement.build("b", "Text")]) == {"a", "b"}


class TestDiffStructure:
    """Tests for diff_structure."""

    def test_ids_ignored(self, sample_content_dict):
        """Test trees differing only by ids are equal."""
        a = validate_block_content(sample_content_dict)
        sample_content_dict["elements"][0]["id"] = "other-section"
        b = validate_block_content(sample_content_dict)

        assert diff_structure(a, b) == []

    def test_props_change(self, sample_content_dict):
        """Test a prop change is reported at its path."""
        a = validate_block_content(sample_content_dict)
        sample_content_dict["elements"][0]["children"][0]["props"]["text"] = "Hello there"
        b = validate_block_content(sample_content_dict)

        differences = diff_structure(a, b)

        assert len(differences) == 1
        assert differences[0].path == "elements.0.children.0"
        assert differences[0].field == "props"
        assert differences[0].right["text"] == "Hello there"

    def test_type_change(self):
        """Test a type change is reported."""
        a = BlockContent.model_construct(elements=[EditorElement.build("x", "Text")], metadata=BlockMetadata(name="A"))
        b = BlockContent.model_construct(elements=[EditorElement.build("x", "Heading")], metadata=BlockMetadata(name="A"))

        assert diff_structure(a, b) == [StructuralDifference(path="elements.0", field="type", left="Text", right="Heading")]

    def test_extra_and_missing_children(self, sample_content_dict):
        """Test child count changes report the parent and each extra node."""
        a = validate_block_content(sample_content_dict)
        sample_content_dict["elements"][0]["children"].append(
            {"id": "extra", "type": "Text", "props": {}, "children": []}
        )
        b = validate_block_content(sample_content_dict)

        assert diff_structure(a, b) == [
            StructuralDifference(path="elements.0", field="children", left=3, right=4),
            StructuralDifference(path="elements.0.children.3", field="extra", right="Text"),
        ]
        assert diff_structure(b, a) == [
            StructuralDifference(path="elements.0", field="children", left=4, right=3),
            StructuralDifference(path="elements.0.children.3", field="missing", left="Text"),
        ]

    def test_metadata_ignored(self, sample_content):
        """Test metadata is not compared."""
        other = BlockContent.model_construct(elements=sample_content.elements, metadata=BlockMetadata(name="Other"))

        assert diff_structure(sample_content, other) == []
