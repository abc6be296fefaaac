"""
Affine Transforms for svgtoolpath

2D affine transforms stored as 3x3 numpy matrices, plus the parser for
SVG ``transform`` attributes.
"""

import math
import re
from typing import List, Tuple

import numpy as np


class TransformParseError(ValueError):
    """Raised when a transform attribute cannot be parsed."""


class Transform:
    """
    An affine 2D transform.

    The matrix layout follows SVG: [[a, c, e], [b, d, f], [0, 0, 1]].
    Transforms are treated as values - every operation returns a new
    Transform and leaves the original untouched.
    """

    __slots__ = ('matrix',)

    def __init__(self, matrix=None):
        if matrix is None:
            self.matrix = np.identity(3)
        else:
            self.matrix = np.array(matrix, dtype=float).reshape(3, 3)

    @classmethod
    def identity(cls) -> 'Transform':
        return cls()

    @classmethod
    def from_values(cls, a: float, b: float, c: float,
                    d: float, e: float, f: float) -> 'Transform':
        """Build a transform from SVG matrix(a b c d e f) values."""
        return cls([[a, c, e], [b, d, f], [0.0, 0.0, 1.0]])

    @classmethod
    def translation(cls, tx: float, ty: float = 0.0) -> 'Transform':
        return cls.from_values(1.0, 0.0, 0.0, 1.0, tx, ty)

    @classmethod
    def scaling(cls, sx: float, sy: float = None) -> 'Transform':
        if sy is None:
            sy = sx
        return cls.from_values(sx, 0.0, 0.0, sy, 0.0, 0.0)

    @classmethod
    def rotation(cls, degrees: float, cx: float = 0.0, cy: float = 0.0) -> 'Transform':
        """Rotation by an angle in degrees around (cx, cy)."""
        angle = math.radians(degrees)
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        rotate = cls.from_values(cos_a, sin_a, -sin_a, cos_a, 0.0, 0.0)
        if cx == 0 and cy == 0:
            return rotate
        return cls.translation(cx, cy) @ rotate @ cls.translation(-cx, -cy)

    @classmethod
    def skew_x(cls, degrees: float) -> 'Transform':
        return cls.from_values(1.0, 0.0, math.tan(math.radians(degrees)), 1.0, 0.0, 0.0)

    @classmethod
    def skew_y(cls, degrees: float) -> 'Transform':
        return cls.from_values(1.0, math.tan(math.radians(degrees)), 0.0, 1.0, 0.0, 0.0)

    def multiply(self, other: 'Transform') -> 'Transform':
        """Compose: the result applies ``other`` first, then ``self``."""
        return Transform(self.matrix @ other.matrix)

    def __matmul__(self, other: 'Transform') -> 'Transform':
        return self.multiply(other)

    def scale(self, sx: float, sy: float = None) -> 'Transform':
        """Return this transform with a scale applied in local space."""
        return self @ Transform.scaling(sx, sy)

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        """Transform a point."""
        px, py, _ = self.matrix @ np.array([x, y, 1.0])
        return float(px), float(py)

    @property
    def scale_factor(self) -> float:
        """Uniform scale equivalent, used for radii and stroke widths."""
        return math.sqrt(abs(np.linalg.det(self.matrix[:2, :2])))

    @property
    def values(self) -> Tuple[float, float, float, float, float, float]:
        """The (a, b, c, d, e, f) values of the matrix."""
        m = self.matrix
        return (float(m[0, 0]), float(m[1, 0]), float(m[0, 1]),
                float(m[1, 1]), float(m[0, 2]), float(m[1, 2]))

    def is_identity(self) -> bool:
        return bool(np.allclose(self.matrix, np.identity(3)))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Transform):
            return NotImplemented
        return bool(np.allclose(self.matrix, other.matrix))

    __hash__ = None

    def __repr__(self) -> str:
        a, b, c, d, e, f = self.values
        return f"Transform(matrix({a:g} {b:g} {c:g} {d:g} {e:g} {f:g}))"


_NUMBER = r'[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?'
_FUNCTION_PATTERN = re.compile(r'\s*([A-Za-z]+)\s*\(([^)]*)\)\s*,?')
_NUMBER_PATTERN = re.compile(_NUMBER)
_SEPARATOR_PATTERN = re.compile(r'[\s,]+')

# name -> allowed argument counts
_ARITY = {
    'matrix': (6,),
    'translate': (1, 2),
    'scale': (1, 2),
    'rotate': (1, 3),
    'skewX': (1,),
    'skewY': (1,),
}


def _parse_arguments(name: str, text: str) -> List[float]:
    parts = [p for p in _SEPARATOR_PATTERN.split(text.strip()) if p]
    args = []
    for part in parts:
        if not _NUMBER_PATTERN.fullmatch(part):
            raise TransformParseError(f"invalid number {part!r} in {name}()")
        args.append(float(part))
    if len(args) not in _ARITY[name]:
        expected = " or ".join(str(n) for n in _ARITY[name])
        raise TransformParseError(
            f"{name}() takes {expected} arguments, got {len(args)}"
        )
    return args


def parse_transform(text: str) -> Transform:
    """
    Parse an SVG transform attribute such as
    ``"translate(10, 20) rotate(45) scale(2)"``.

    Functions are composed left to right, so the rightmost one is applied
    to the geometry first.
    """
    result = Transform.identity()
    pos = 0
    text = text or ''
    while pos < len(text):
        if not text[pos:].strip():
            break
        match = _FUNCTION_PATTERN.match(text, pos)
        if not match:
            raise TransformParseError(f"unexpected text {text[pos:].strip()!r} in transform")
        name = match.group(1)
        if name not in _ARITY:
            raise TransformParseError(f"unknown transform function {name!r}")
        args = _parse_arguments(name, match.group(2))

        if name == 'matrix':
            step = Transform.from_values(*args)
        elif name == 'translate':
            step = Transform.translation(args[0], args[1] if len(args) > 1 else 0.0)
        elif name == 'scale':
            step = Transform.scaling(args[0], args[1] if len(args) > 1 else None)
        elif name == 'rotate':
            if len(args) == 3:
                step = Transform.rotation(args[0], args[1], args[2])
            else:
                step = Transform.rotation(args[0])
        elif name == 'skewX':
            step = Transform.skew_x(args[0])
        else:
            step = Transform.skew_y(args[0])

        result = result @ step
        pos = match.end()
    return result
