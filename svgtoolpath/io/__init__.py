"""
svgtoolpath I/O Module

Decodes SVG markup into documents.
"""

from .svg_parser import (
    SVGParser, ParserSettings, UnknownElementPolicy, ParseWarning, WarningKind,
    DecodeError, StructuralDecodeError, AttributeDecodeError,
    parse_svg, parse_svg_from_reader
)

__all__ = [
    'SVGParser', 'ParserSettings', 'UnknownElementPolicy', 'ParseWarning', 'WarningKind',
    'DecodeError', 'StructuralDecodeError', 'AttributeDecodeError',
    'parse_svg', 'parse_svg_from_reader',
]
