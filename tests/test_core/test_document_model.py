"""
Tests for the document tree: root scale, relinking, transform chains
and inherited style.
"""

import copy
import unittest

from svgtoolpath.core import Circle, Document, Group, InstructionKind, Path, Rect, Transform


def build_tree(document):
    """svg > g#outer > (g#inner > rect#r1), path#p1; plus a top-level circle."""
    inner = Group(id="inner", stroke_width=2)
    rect = Rect(x=1, y=1, width=2, height=2, id="r1")
    inner.elements.append(rect)

    outer = Group(id="outer", stroke="red")
    path = Path(d="M 0 0 L 1 0", id="p1")
    outer.elements.extend([inner, path])

    circle = Circle(cx=0, cy=0, r=1, id="c1")
    document.elements.append(circle)
    document.groups.append(outer)
    return outer, inner, rect, path, circle


class TestDocumentScale(unittest.TestCase):
    """Root transform from the scale factor."""

    def test_zero_scale_is_identity(self):
        document = Document.create("d", 0)
        self.assertTrue(document.transform.is_identity())
        self.assertEqual(document.scale, 0.0)

    def test_positive_scale(self):
        document = Document.create("d", 2.0)
        self.assertEqual(document.transform, Transform.scaling(2.0))
        self.assertEqual(document.scale, 2.0)

    def test_negative_scale_is_reciprocal(self):
        document = Document.create("d", -2.0)
        self.assertEqual(document.transform, Transform.scaling(0.5))
        self.assertEqual(document.scale, 0.5)

    def test_non_finite_scale_is_ignored(self):
        for scale in (float('inf'), float('-inf'), float('nan')):
            with self.assertLogs("svgtoolpath.core.document", level="WARNING"):
                document = Document.create("d", scale)
            self.assertTrue(document.transform.is_identity())
            self.assertEqual(document.scale, 0.0)

    def test_default_document_has_transform(self):
        self.assertIsNotNone(Document().transform)
        self.assertTrue(Document().transform.is_identity())


class TestRelink(unittest.TestCase):
    """Test Document.relink()."""

    def test_relink_sets_owner_parent_and_group(self):
        document = Document.create("d")
        outer, inner, rect, path, circle = build_tree(document)
        self.assertFalse(document.linked)

        document.relink()

        self.assertTrue(document.linked)
        self.assertIs(outer.owner, document)
        self.assertIsNone(outer.parent)
        self.assertIs(inner.owner, document)
        self.assertIs(inner.parent, outer)
        self.assertIs(rect.group, inner)
        self.assertIs(rect.owner, document)
        self.assertIs(path.group, outer)
        self.assertIsNone(circle.group)
        self.assertIs(circle.owner, document)

    def test_relink_replaces_transient_owner(self):
        """Back-references captured against a throwaway document are repaired."""
        transient = Document.create("transient")
        document = Document.create("final")
        outer, inner, rect, _, _ = build_tree(document)
        outer.owner = transient
        inner.owner = transient
        rect.owner = transient

        document.relink()

        for group in document.iter_groups():
            self.assertIs(group.owner, document)
        self.assertIs(rect.owner, document)

    def test_relink_points_children_at_copied_parent(self):
        """After a group is copied into the tree, children follow the copy."""
        document = Document.create("d")
        original = Group(id="g")
        child = Group(id="child", parent=original)
        shape = Rect(width=1, height=1)
        shape.group = original
        original.elements.extend([child, shape])

        placed = copy.copy(original)
        document.groups.append(placed)
        document.relink()

        self.assertIs(child.parent, placed)
        self.assertIs(shape.group, placed)

    def test_relink_is_idempotent(self):
        document = Document.create("d")
        outer, inner, rect, path, circle = build_tree(document)
        document.relink()
        first = [(g, g.owner, g.parent, g.transform) for g in document.iter_groups()]
        shape_refs = [(s, s.group, s.owner) for s in document.get_all_shapes()]

        document.relink()

        second = [(g, g.owner, g.parent, g.transform) for g in document.iter_groups()]
        for before, after in zip(first, second):
            for a, b in zip(before, after):
                self.assertIs(a, b)
        for (s, group, owner) in shape_refs:
            self.assertIs(s.group, group)
            self.assertIs(s.owner, owner)

    def test_relink_defaults_missing_transform(self):
        document = Document.create("d")
        outer, inner, _, _, _ = build_tree(document)
        inner.transform = Transform.translation(3, 4)
        self.assertIsNone(outer.transform)

        document.relink()

        self.assertTrue(outer.transform.is_identity())
        self.assertEqual(inner.transform, Transform.translation(3, 4))


class TestTreeQueries(unittest.TestCase):
    """Test lookups over the tree."""

    def setUp(self):
        self.document = Document.create("d")
        self.outer, self.inner, self.rect, self.path, self.circle = build_tree(self.document)
        self.document.relink()

    def test_iter_groups_depth_first(self):
        self.assertEqual([g.id for g in self.document.iter_groups()], ["outer", "inner"])

    def test_get_all_shapes_in_draw_order(self):
        self.assertEqual([s.id for s in self.document.get_all_shapes()], ["c1", "r1", "p1"])

    def test_get_group_by_id(self):
        self.assertIs(self.document.get_group_by_id("inner"), self.inner)
        self.assertIsNone(self.document.get_group_by_id("missing"))


class TestTransformChain(unittest.TestCase):
    """Effective transforms and inherited style resolved through back-references."""

    def test_group_chain_and_root_scale(self):
        document = Document.create("d", 2.0)
        group = Group(id="g", transform=Transform.translation(10, 0))
        rect = Rect(x=1, y=1, width=1, height=1, id="r")
        group.elements.append(rect)
        document.groups.append(group)
        document.relink()

        self.assertEqual(rect.effective_transform().apply(1, 1), (22.0, 2.0))
        with document.parse_drawing_instructions() as stream:
            first = next(stream)
        self.assertEqual(first.kind, InstructionKind.MOVE)
        self.assertEqual(first.point, (22.0, 2.0))

    def test_top_level_shape_uses_root_transform(self):
        document = Document.create("d", 2.0)
        document.add_element(Rect(x=1, y=1, width=1, height=1, id="r"))
        document.relink()
        with document.parse_drawing_instructions() as stream:
            self.assertEqual(next(stream).point, (2.0, 2.0))

    def test_style_inherited_from_groups(self):
        document = Document.create("d")
        outer = Group(id="outer", stroke="red", fill="none")
        inner = Group(id="inner", stroke_width=3)
        path = Path(d="M 0 0 L 5 0", id="p", fill="blue")
        inner.elements.append(path)
        outer.elements.append(inner)
        document.groups.append(outer)
        document.relink()

        paint = list(document.parse_drawing_instructions())[-1]
        self.assertEqual(paint.kind, InstructionKind.PAINT)
        self.assertEqual(paint.stroke, "red")
        self.assertEqual(paint.stroke_width, 3.0)
        self.assertEqual(paint.fill, "blue")
        self.assertEqual(paint.source_id, "p")

    def test_flattening_unlinked_document_warns(self):
        document = Document.create("d")
        build_tree(document)
        with self.assertLogs("svgtoolpath.core.document", level="WARNING"):
            stream = document.parse_drawing_instructions()
        stream.close()


if __name__ == '__main__':
    unittest.main()
