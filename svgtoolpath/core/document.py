"""
svgtoolpath Document Model

The Document class is the root of a decoded SVG tree.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional
import logging
import math

from .group import Group
from .instructions import DrawingInstruction, DrawingInstructionProducer, InstructionStream, forward
from .shapes import Shape
from .transform import Transform

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Document(DrawingInstructionProducer):
    """
    The root document.

    Shapes declared directly under the svg element live in ``elements``;
    top-level groups live in ``groups``. Flattening emits all top-level
    shapes first, then the groups.
    """
    DEFAULT_BUFFER_SIZE = 100

    title: str = ""
    name: str = ""
    transform: Transform = field(default_factory=Transform.identity)
    scale: float = 0.0
    elements: List[Shape] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)

    # True once relink() has run
    linked: bool = False

    @classmethod
    def create(cls, name: str = "", scale: float = 0.0) -> 'Document':
        """
        Create an empty document with its root scale applied.

        A positive scale is applied as is, a negative scale applies the
        reciprocal of its magnitude and zero leaves the identity. Infinite
        and NaN scales are ignored with a warning.
        """
        document = cls(name=name)
        if not math.isfinite(scale):
            logger.warning(f"Ignoring non-finite scale {scale!r} for document {name!r}")
        elif scale > 0:
            document.transform = document.transform.scale(scale, scale)
            document.scale = scale
        elif scale < 0:
            document.transform = document.transform.scale(1.0 / -scale, 1.0 / -scale)
            document.scale = 1.0 / -scale
        return document

    def add_element(self, shape: Shape) -> None:
        """Add a top-level shape."""
        shape.group = None
        shape.owner = self
        self.elements.append(shape)

    def add_group(self, group: Group) -> None:
        """Add a top-level group."""
        group.parent = None
        group.owner = self
        self.groups.append(group)

    def relink(self) -> None:
        """
        Point every back-reference in the tree at this document's nodes.

        Must run after decoding and before anything resolves inherited
        style or transforms. Running it again changes nothing.
        """
        for shape in self.elements:
            shape.group = None
            shape.owner = self
        for group in self.groups:
            group.set_owner(self)
        self.linked = True

    def iter_groups(self) -> Iterator[Group]:
        """Every group in the document, depth first in declaration order."""
        for group in self.groups:
            yield from group.iter_groups()

    def get_all_shapes(self) -> List[Shape]:
        """Flatten all shapes, in the order they are drawn."""
        shapes = list(self.elements)
        for group in self.groups:
            shapes.extend(group.iter_shapes())
        return shapes

    def get_group_by_id(self, group_id: str) -> Optional[Group]:
        """Find a group by its id."""
        for group in self.iter_groups():
            if group.id == group_id:
                return group
        return None

    def _instructions(self) -> Iterator[DrawingInstruction]:
        producers = [shape.parse_drawing_instructions for shape in self.elements]
        producers.extend(group.parse_drawing_instructions for group in self.groups)
        return forward(producers)

    def parse_drawing_instructions(self, buffer_size: int = None) -> InstructionStream:
        """
        Flatten the whole document into one ordered instruction stream.

        The producer may run up to ``buffer_size`` instructions ahead of
        the consumer.
        """
        if not self.linked:
            logger.warning(f"Flattening document {self.name!r} before relink(); "
                           f"back-references may be stale")
        if buffer_size is None:
            buffer_size = self.DEFAULT_BUFFER_SIZE
        return InstructionStream(self._instructions, buffer_size=buffer_size,
                                 name=f"svg#{self.name}")
