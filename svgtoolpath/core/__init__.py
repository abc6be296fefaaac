"""
svgtoolpath Core Module

Contains the core data structures:
- Transform: affine transforms and the transform attribute parser
- Drawing instructions and the streams that carry them
- Shapes: Rect, Circle, Path
- Group: nested shapes sharing style and transform
- Document: root of the tree
"""

# Import order matters - shapes first, then group, then document
from .transform import Transform, TransformParseError, parse_transform
from .instructions import (
    InstructionKind, DrawingInstruction, DrawingInstructionProducer, InstructionStream
)
from .path_data import PathDataError
from .shapes import Shape, Rect, Circle, Path, ShapeAttributeError, SHAPE_TYPES
from .group import Group
from .document import Document

__all__ = [
    'Transform', 'TransformParseError', 'parse_transform',
    'InstructionKind', 'DrawingInstruction', 'DrawingInstructionProducer', 'InstructionStream',
    'PathDataError',
    'Shape', 'Rect', 'Circle', 'Path', 'ShapeAttributeError', 'SHAPE_TYPES',
    'Group',
    'Document',
]
