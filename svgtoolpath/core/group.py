"""
svgtoolpath Group Node

A group of shapes and nested groups sharing style and a local transform.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union, TYPE_CHECKING

from .instructions import DrawingInstruction, DrawingInstructionProducer, InstructionStream, forward
from .shapes import Shape
from .transform import Transform

if TYPE_CHECKING:
    from .document import Document


@dataclass(eq=False)
class Group(DrawingInstructionProducer):
    """
    An SVG ``g`` element.

    Children keep their declaration order. ``parent`` and ``owner`` are
    lookup-only back-references; Document.relink() makes them point at the
    final tree.
    """
    id: str = ""
    stroke: Optional[str] = None
    stroke_width: Optional[int] = None
    fill: Optional[str] = None
    fill_rule: Optional[str] = None
    transform_string: str = ""
    # None until resolved; relinking defaults it to identity
    transform: Optional[Transform] = None
    elements: List[Union[Shape, 'Group']] = field(default_factory=list)

    parent: Optional['Group'] = field(default=None, repr=False)
    owner: Optional['Document'] = field(default=None, repr=False)

    def add_element(self, element: Union[Shape, 'Group']) -> None:
        """Append a child and point its back-references at this group."""
        if isinstance(element, Group):
            element.parent = self
            element.owner = self.owner
        else:
            element.group = self
            element.owner = self.owner
        self.elements.append(element)

    def set_owner(self, document: 'Document', parent: Optional['Group'] = None) -> None:
        """
        Relink this subtree: owner, parent and child back-references are
        rewritten to the nodes actually reachable from ``document``.
        """
        self.owner = document
        self.parent = parent
        if self.transform is None:
            self.transform = Transform.identity()
        for element in self.elements:
            if isinstance(element, Group):
                element.set_owner(document, self)
            else:
                element.group = self
                element.owner = document

    def iter_groups(self) -> Iterator['Group']:
        """This group and every nested group, depth first."""
        yield self
        for element in self.elements:
            if isinstance(element, Group):
                yield from element.iter_groups()

    def iter_shapes(self) -> Iterator[Shape]:
        """Every shape in this subtree in declaration order."""
        for element in self.elements:
            if isinstance(element, Group):
                yield from element.iter_shapes()
            else:
                yield element

    def effective_transform(self) -> Transform:
        """Transform from this group's local space to document space."""
        if self.parent is not None:
            base = self.parent.effective_transform()
        elif self.owner is not None:
            base = self.owner.transform
        else:
            base = Transform.identity()
        if self.transform is None:
            return base
        return base @ self.transform

    def _instructions(self) -> Iterator[DrawingInstruction]:
        return forward(element.parse_drawing_instructions for element in self.elements)

    def parse_drawing_instructions(self) -> InstructionStream:
        """Children's instructions, one child at a time, in declaration order."""
        return InstructionStream(self._instructions, buffer_size=0, name=f"g#{self.id}")
