"""
Tests for affine transforms and the transform attribute parser.
"""

import math
import unittest

from svgtoolpath.core.transform import Transform, TransformParseError, parse_transform


class TestTransform(unittest.TestCase):
    """Test Transform values."""

    def test_identity(self):
        """Identity leaves points alone."""
        t = Transform.identity()
        self.assertTrue(t.is_identity())
        self.assertEqual(t.apply(3.0, -4.0), (3.0, -4.0))

    def test_from_values_layout(self):
        """matrix(a b c d e f) maps x' = a*x + c*y + e, y' = b*x + d*y + f."""
        t = Transform.from_values(1, 2, 3, 4, 5, 6)
        self.assertEqual(t.apply(1, 1), (1 + 3 + 5, 2 + 4 + 6))
        self.assertEqual(t.values, (1.0, 2.0, 3.0, 4.0, 5.0, 6.0))

    def test_composition_order(self):
        """a @ b applies b first."""
        t = Transform.translation(10, 0) @ Transform.scaling(2)
        self.assertEqual(t.apply(1, 1), (12.0, 2.0))

    def test_scale_returns_new_transform(self):
        """scale() does not mutate the original."""
        base = Transform.identity()
        scaled = base.scale(2, 2)
        self.assertTrue(base.is_identity())
        self.assertEqual(scaled, Transform.scaling(2))

    def test_rotation_about_center(self):
        """Rotation around a centre keeps the centre fixed."""
        t = Transform.rotation(90, 1, 1)
        x, y = t.apply(1, 1)
        self.assertAlmostEqual(x, 1.0)
        self.assertAlmostEqual(y, 1.0)
        x, y = t.apply(2, 1)
        self.assertAlmostEqual(x, 1.0)
        self.assertAlmostEqual(y, 2.0)

    def test_scale_factor(self):
        """Uniform scale equivalent of a transform."""
        self.assertAlmostEqual(Transform.scaling(2).scale_factor, 2.0)
        self.assertAlmostEqual(Transform.scaling(2, 8).scale_factor, 4.0)
        self.assertAlmostEqual(Transform.rotation(30).scale_factor, 1.0)

    def test_equality_is_tolerant(self):
        """Equality ignores floating point noise."""
        t = Transform.rotation(360)
        self.assertEqual(t, Transform.identity())
        self.assertNotEqual(Transform.translation(1, 0), Transform.identity())


class TestParseTransform(unittest.TestCase):
    """Test the transform attribute parser."""

    def test_empty_is_identity(self):
        self.assertTrue(parse_transform("").is_identity())
        self.assertTrue(parse_transform("   ").is_identity())

    def test_translate(self):
        self.assertEqual(parse_transform("translate(5, 6)"), Transform.translation(5, 6))
        self.assertEqual(parse_transform("translate(5)"), Transform.translation(5, 0))

    def test_scale_single_argument(self):
        self.assertEqual(parse_transform("scale(3)"), Transform.scaling(3, 3))

    def test_matrix(self):
        self.assertEqual(parse_transform("matrix(1 0 0 1 5 6)"), Transform.translation(5, 6))

    def test_list_applies_rightmost_first(self):
        """'translate(10) scale(2)' scales the point before translating it."""
        t = parse_transform("translate(10,0) scale(2)")
        self.assertEqual(t.apply(1, 1), (12.0, 2.0))

    def test_comma_separated_list(self):
        t = parse_transform("translate(10,0), scale(2)")
        self.assertEqual(t, parse_transform("translate(10,0) scale(2)"))

    def test_rotate(self):
        x, y = parse_transform("rotate(90)").apply(1, 0)
        self.assertAlmostEqual(x, 0.0)
        self.assertAlmostEqual(y, 1.0)

    def test_skew(self):
        x, y = parse_transform("skewX(45)").apply(0, 1)
        self.assertAlmostEqual(x, math.tan(math.radians(45)))
        self.assertAlmostEqual(y, 1.0)

    def test_scientific_notation(self):
        self.assertEqual(parse_transform("translate(1e1 -2.5E0)"), Transform.translation(10, -2.5))

    def test_invalid_inputs(self):
        """Malformed transforms raise TransformParseError."""
        for text in ("translate(1,2,3)", "spin(4)", "scale(a)", "translate(1) junk",
                     "rotate(1, 2)", "matrix(1 2 3)", "translate(1"):
            with self.subTest(text=text):
                with self.assertRaises(TransformParseError):
                    parse_transform(text)

    def test_error_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_transform("nope")


if __name__ == '__main__':
    unittest.main()
