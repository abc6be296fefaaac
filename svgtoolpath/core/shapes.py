"""
svgtoolpath Shapes Module

Leaf nodes of the document tree: rect, circle and path. Each shape keeps
a back-reference to the group it was declared in and knows how to turn
itself into drawing instructions.
"""

from abc import abstractmethod
from typing import Dict, Iterator, Mapping, Optional, Type, TYPE_CHECKING
import re

from .instructions import (
    DrawingInstruction, DrawingInstructionProducer, InstructionKind, InstructionStream
)
from .path_data import iter_path_instructions
from .transform import Transform

if TYPE_CHECKING:
    from .document import Document
    from .group import Group


class ShapeAttributeError(ValueError):
    """A shape attribute could not be interpreted."""

    def __init__(self, attribute: str, value: str, reason: str = ""):
        self.attribute = attribute
        self.value = value
        self.reason = reason
        message = f"invalid {attribute}={value!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


_LENGTH_PATTERN = re.compile(
    r'\s*([-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?)(px|pt|pc|mm|cm|in|em|ex|%)?\s*'
)


def parse_length(value: str, attribute: str = "length") -> float:
    """Parse an SVG length; any unit suffix, including %, is dropped without conversion."""
    match = _LENGTH_PATTERN.fullmatch(value or '')
    if not match:
        raise ShapeAttributeError(attribute, value, "not a length")
    return float(match.group(1))


def get_style_value(attrs: Mapping[str, str], name: str) -> Optional[str]:
    """Look up a presentation value, checking the direct attribute then ``style``."""
    value = attrs.get(name)
    if value:
        return value.strip()

    style = attrs.get('style', '')
    # Parse style="fill:black;stroke:none"
    for part in style.split(';'):
        if ':' in part:
            key, val = part.split(':', 1)
            if key.strip() == name:
                return val.strip()
    return None


class Shape(DrawingInstructionProducer):
    """
    Base class for leaf shapes.

    Subclasses declare the element tag they decode from and implement
    from_attributes() and _generate().
    """

    TAG = ""

    def __init__(self, id: str = "", transform_string: str = "",
                 stroke: Optional[str] = None, fill: Optional[str] = None,
                 stroke_width: Optional[float] = None):
        self.id = id
        self.transform_string = transform_string
        self.transform: Optional[Transform] = None
        self.stroke = stroke
        self.fill = fill
        self.stroke_width = stroke_width

        # Back-references, maintained by the decoder and Document.relink()
        self.group: Optional['Group'] = None
        self.owner: Optional['Document'] = None

    @classmethod
    @abstractmethod
    def from_attributes(cls, attrs: Mapping[str, str]) -> 'Shape':
        """Build the shape from its element attributes."""
        pass

    @classmethod
    def _common_kwargs(cls, attrs: Mapping[str, str]) -> dict:
        stroke_width = get_style_value(attrs, 'stroke-width')
        return {
            'id': attrs.get('id', ''),
            'transform_string': attrs.get('transform', ''),
            'stroke': get_style_value(attrs, 'stroke'),
            'fill': get_style_value(attrs, 'fill'),
            'stroke_width': (parse_length(stroke_width, 'stroke-width')
                             if stroke_width is not None else None),
        }

    @abstractmethod
    def _generate(self, transform: Transform) -> Iterator[DrawingInstruction]:
        """Yield the geometry instructions in document space."""
        pass

    def effective_transform(self) -> Transform:
        """Root, group chain and own transform composed together."""
        if self.group is not None:
            base = self.group.effective_transform()
        elif self.owner is not None:
            base = self.owner.transform
        else:
            base = Transform.identity()
        if self.transform is None:
            return base
        return base @ self.transform

    def _inherited(self, attr: str):
        value = getattr(self, attr)
        node = self.group
        while value is None and node is not None:
            value = getattr(node, attr)
            node = node.parent
        return value

    def paint_instruction(self, transform: Transform) -> DrawingInstruction:
        """Resolved style of this shape, inherited from its groups where unset."""
        stroke_width = self._inherited('stroke_width')
        if stroke_width is not None:
            stroke_width = stroke_width * transform.scale_factor
        return DrawingInstruction(
            InstructionKind.PAINT,
            stroke=self._inherited('stroke'),
            stroke_width=stroke_width,
            fill=self._inherited('fill'),
            source_id=self.id,
        )

    def _instructions(self) -> Iterator[DrawingInstruction]:
        transform = self.effective_transform()
        emitted = False
        for instruction in self._generate(transform):
            emitted = True
            yield instruction
        if emitted:
            yield self.paint_instruction(transform)

    def parse_drawing_instructions(self) -> InstructionStream:
        return InstructionStream(self._instructions, name=f"{self.TAG}#{self.id}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class Rect(Shape):
    """An SVG rect. Rounded corners are kept but not drawn."""

    TAG = "rect"

    def __init__(self, x: float = 0.0, y: float = 0.0,
                 width: float = 0.0, height: float = 0.0,
                 rx: float = 0.0, ry: float = 0.0, **kwargs):
        super().__init__(**kwargs)
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.rx = rx
        self.ry = ry

    @classmethod
    def from_attributes(cls, attrs: Mapping[str, str]) -> 'Rect':
        values = {}
        for name in ('x', 'y', 'width', 'height', 'rx', 'ry'):
            values[name] = parse_length(attrs.get(name, '0'), name)
        for name in ('width', 'height'):
            if values[name] < 0:
                raise ShapeAttributeError(name, attrs[name], "must not be negative")
        return cls(**values, **cls._common_kwargs(attrs))

    def _generate(self, transform: Transform) -> Iterator[DrawingInstruction]:
        if self.width == 0 or self.height == 0:
            return
        corners = [
            (self.x, self.y),
            (self.x + self.width, self.y),
            (self.x + self.width, self.y + self.height),
            (self.x, self.y + self.height),
        ]
        yield DrawingInstruction(InstructionKind.MOVE,
                                 point=transform.apply(*corners[0]), source_id=self.id)
        for corner in corners[1:]:
            yield DrawingInstruction(InstructionKind.LINE,
                                     point=transform.apply(*corner), source_id=self.id)
        yield DrawingInstruction(InstructionKind.CLOSE, source_id=self.id)


class Circle(Shape):
    """An SVG circle."""

    TAG = "circle"

    def __init__(self, cx: float = 0.0, cy: float = 0.0, r: float = 0.0, **kwargs):
        super().__init__(**kwargs)
        self.cx = cx
        self.cy = cy
        self.r = r

    @classmethod
    def from_attributes(cls, attrs: Mapping[str, str]) -> 'Circle':
        values = {name: parse_length(attrs.get(name, '0'), name) for name in ('cx', 'cy', 'r')}
        if values['r'] < 0:
            raise ShapeAttributeError('r', attrs['r'], "must not be negative")
        return cls(**values, **cls._common_kwargs(attrs))

    def _generate(self, transform: Transform) -> Iterator[DrawingInstruction]:
        if self.r == 0:
            return
        yield DrawingInstruction(
            InstructionKind.CIRCLE,
            point=transform.apply(self.cx, self.cy),
            radius=self.r * transform.scale_factor,
            source_id=self.id,
        )


class Path(Shape):
    """An SVG path; its data is interpreted when instructions are produced."""

    TAG = "path"

    def __init__(self, d: str = "", **kwargs):
        super().__init__(**kwargs)
        self.d = d

    @classmethod
    def from_attributes(cls, attrs: Mapping[str, str]) -> 'Path':
        return cls(d=attrs.get('d', ''), **cls._common_kwargs(attrs))

    def _generate(self, transform: Transform) -> Iterator[DrawingInstruction]:
        if not self.d.strip():
            return
        yield from iter_path_instructions(self.d, transform, source_id=self.id)


# Element tag -> shape class
SHAPE_TYPES: Dict[str, Type[Shape]] = {
    cls.TAG: cls for cls in (Rect, Circle, Path)
}
