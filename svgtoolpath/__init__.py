"""
svgtoolpath

Decode SVG documents into a typed tree and flatten them into an ordered
stream of drawing instructions for toolpath generation.
"""

from .core import Document, Group, Transform, DrawingInstruction, InstructionKind
from .io import SVGParser, parse_svg, parse_svg_from_reader, DecodeError

__version__ = "0.1.0"

__all__ = [
    'Document', 'Group', 'Transform', 'DrawingInstruction', 'InstructionKind',
    'SVGParser', 'parse_svg', 'parse_svg_from_reader', 'DecodeError',
]
