"""
SVG Parser for svgtoolpath

Decodes SVG markup into a Document tree. Decoding is incremental: text
or a readable stream is fed to an XML pull parser and the tree is built by
recursive descent, one call per nested group.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Tuple
from xml.etree import ElementTree as ET
import logging
import re

from ..core.document import Document
from ..core.group import Group
from ..core.shapes import SHAPE_TYPES, Shape, ShapeAttributeError
from ..core.transform import Transform, TransformParseError, parse_transform

logger = logging.getLogger(__name__)

Event = Tuple[str, ET.Element]


class DecodeError(Exception):
    """Base class for failures while decoding a document."""

    phase = "tree"

    def __init__(self, message: str, element: str = ""):
        self.element = element
        if element:
            message = f"{message} (at {element})"
        super().__init__(message)


class StructuralDecodeError(DecodeError):
    """Malformed or truncated markup, or an element that cannot be placed."""


class AttributeDecodeError(StructuralDecodeError):
    """A required attribute failed to parse."""

    phase = "attribute"

    def __init__(self, attribute: str, value: str, reason: str, element: str = ""):
        self.attribute = attribute
        self.value = value
        super().__init__(f"invalid {attribute}={value!r}: {reason}", element)


class UnknownElementPolicy(Enum):
    """What to do with elements the decoder has no node type for."""
    WARN = "warn"     # skip the element and its children, record a warning
    ERROR = "error"   # fail the decode


class WarningKind(Enum):
    TRANSFORM = "transform"
    UNKNOWN_ELEMENT = "unknown-element"


@dataclass(frozen=True)
class ParseWarning:
    """A non-fatal problem found while decoding."""
    kind: WarningKind
    message: str
    element: str = ""


@dataclass
class ParserSettings:
    """Settings for SVG decoding."""
    scale: float = 0.0               # root scale; negative means 1/|scale|, 0 means none
    unknown_elements: UnknownElementPolicy = UnknownElementPolicy.WARN
    read_chunk_size: int = 64 * 1024  # bytes/characters per read from a stream


_INT32_PATTERN = re.compile(r'[-+]?[0-9]+')
_INT32_MIN = -2 ** 31
_INT32_MAX = 2 ** 31 - 1


def parse_int32(value: str, attribute: str, element: str = "") -> int:
    """Parse a base-10 32-bit integer attribute."""
    if not _INT32_PATTERN.fullmatch(value):
        raise AttributeDecodeError(attribute, value, "not a base-10 integer", element)
    number = int(value, 10)
    if not _INT32_MIN <= number <= _INT32_MAX:
        raise AttributeDecodeError(attribute, value, "out of range", element)
    return number


def local_name(tag: str) -> str:
    """Strip the namespace from an element tag."""
    if tag.startswith('{'):
        return tag.split('}', 1)[1]
    return tag


class SVGParser:
    """Parse SVG markup into svgtoolpath documents."""

    # Bookkeeping elements with no geometry; skipped at any depth
    IGNORED_ELEMENTS = frozenset({'title', 'desc', 'metadata', 'defs', 'style'})

    def __init__(self, settings: Optional[ParserSettings] = None):
        self.settings = settings or ParserSettings()
        self.warnings: List[ParseWarning] = []
        self._warning_callbacks: List[Callable[[ParseWarning], None]] = []
        self._path: List[str] = []

    def add_warning_callback(self, callback: Callable[[ParseWarning], None]) -> None:
        """Register a callback for non-fatal decode problems."""
        self._warning_callbacks.append(callback)

    def remove_warning_callback(self, callback: Callable[[ParseWarning], None]) -> None:
        if callback in self._warning_callbacks:
            self._warning_callbacks.remove(callback)

    def parse_string(self, svg_string: str, name: str = "",
                     scale: Optional[float] = None) -> Document:
        """Parse SVG text and return a linked Document."""
        return self._parse([svg_string], name, scale)

    def parse_reader(self, reader, name: str = "",
                     scale: Optional[float] = None) -> Document:
        """Parse SVG from a readable text or binary stream."""
        return self._parse(self._read_chunks(reader), name, scale)

    def parse_file(self, filepath: str, name: Optional[str] = None,
                   scale: Optional[float] = None) -> Document:
        """Parse an SVG file; the document name defaults to the file path."""
        with open(filepath, 'rb') as fh:
            return self.parse_reader(fh, name if name is not None else str(filepath), scale)

    def _read_chunks(self, reader) -> Iterator:
        while True:
            chunk = reader.read(self.settings.read_chunk_size)
            if not chunk:
                return
            yield chunk

    def _parse(self, chunks: Iterable, name: str, scale: Optional[float]) -> Document:
        if scale is None:
            scale = self.settings.scale
        self.warnings = []
        self._path = []

        document = Document.create(name=name, scale=scale)
        try:
            self._decode_document(self._events(chunks), document)
        except ET.ParseError as e:
            raise StructuralDecodeError(f"malformed SVG: {e}", self._context()) from e

        document.relink()
        logger.debug(f"Decoded {name!r}: {len(document.elements)} top-level shapes, "
                     f"{len(document.groups)} top-level groups")
        return document

    def _events(self, chunks: Iterable) -> Iterator[Event]:
        parser = ET.XMLPullParser(events=('start', 'end'))
        for chunk in chunks:
            parser.feed(chunk)
            yield from parser.read_events()
        parser.close()
        yield from parser.read_events()

    # Context for error messages and warnings

    def _context(self) -> str:
        return "/".join(self._path)

    @staticmethod
    def _describe(element: ET.Element) -> str:
        tag = local_name(element.tag)
        element_id = element.get('id')
        return f"{tag}#{element_id}" if element_id else tag

    def _warn(self, kind: WarningKind, message: str) -> None:
        warning = ParseWarning(kind=kind, message=message, element=self._context())
        logger.warning(f"{message} (at {warning.element})")
        self.warnings.append(warning)
        for callback in self._warning_callbacks:
            callback(warning)

    # Recursive descent

    def _next_event(self, events: Iterator[Event]) -> Event:
        try:
            return next(events)
        except StopIteration:
            raise StructuralDecodeError("unexpected end of document", self._context()) from None

    def _skip_element(self, events: Iterator[Event], element: ET.Element) -> str:
        """Consume events up to and including the end of ``element``; returns its text."""
        while True:
            event, elem = self._next_event(events)
            if event == 'end' and elem is element:
                text = element.text or ''
                element.clear()
                return text

    def _decode_document(self, events: Iterator[Event], document: Document) -> None:
        try:
            event, root = next(events)
        except StopIteration:
            raise StructuralDecodeError("empty document") from None
        if local_name(root.tag) != 'svg':
            raise StructuralDecodeError(f"root element is <{local_name(root.tag)}>, expected <svg>")
        self._path.append(self._describe(root))

        while True:
            event, elem = self._next_event(events)
            if event == 'end':
                if elem is root:
                    self._path.pop()
                    return
                continue

            tag = local_name(elem.tag)
            if tag == 'g':
                group = Group(owner=document)
                self._decode_group(events, elem, group)
                document.add_group(group)
            elif tag in SHAPE_TYPES:
                document.add_element(self._decode_shape(events, elem))
            elif tag == 'title':
                title = self._skip_element(events, elem).strip()
                if not document.title:
                    document.title = title
            else:
                self._skip_unhandled(events, elem)

    def _decode_group(self, events: Iterator[Event], start: ET.Element, group: Group) -> None:
        """Decode a g element; returns once its closing tag has been consumed."""
        self._path.append(self._describe(start))
        self._apply_group_attributes(start, group)

        while True:
            event, elem = self._next_event(events)
            if event == 'end':
                if elem is start:
                    start.clear()
                    self._path.pop()
                    return
                continue

            tag = local_name(elem.tag)
            if tag == 'g':
                child = Group(parent=group, owner=group.owner)
                self._decode_group(events, elem, child)
                group.add_element(child)
            elif tag in SHAPE_TYPES:
                group.add_element(self._decode_shape(events, elem))
            else:
                self._skip_unhandled(events, elem)

    def _apply_group_attributes(self, element: ET.Element, group: Group) -> None:
        for attr, value in element.attrib.items():
            attr = local_name(attr)
            if attr == 'id':
                group.id = value
            elif attr == 'stroke':
                group.stroke = value
            elif attr == 'stroke-width':
                group.stroke_width = parse_int32(value, attr, self._context())
            elif attr == 'fill':
                group.fill = value
            elif attr == 'fill-rule':
                group.fill_rule = value
            elif attr == 'transform':
                group.transform_string = value
                group.transform = self._resolve_transform(value)

    def _resolve_transform(self, value: str) -> Transform:
        try:
            return parse_transform(value)
        except TransformParseError as e:
            self._warn(WarningKind.TRANSFORM,
                       f"Ignoring transform {value!r}: {e}; using identity")
            return Transform.identity()

    def _decode_shape(self, events: Iterator[Event], element: ET.Element) -> Shape:
        tag = local_name(element.tag)
        self._path.append(self._describe(element))
        try:
            shape = SHAPE_TYPES[tag].from_attributes(element.attrib)
        except ShapeAttributeError as e:
            raise AttributeDecodeError(e.attribute, e.value, e.reason or "invalid value",
                                       self._context()) from e
        if shape.transform_string:
            shape.transform = self._resolve_transform(shape.transform_string)
        self._path.pop()
        self._skip_element(events, element)
        return shape

    def _skip_unhandled(self, events: Iterator[Event], element: ET.Element) -> None:
        tag = local_name(element.tag)
        if tag not in self.IGNORED_ELEMENTS:
            self._path.append(self._describe(element))
            if self.settings.unknown_elements == UnknownElementPolicy.ERROR:
                raise StructuralDecodeError(f"unsupported element <{tag}>", self._context())
            self._warn(WarningKind.UNKNOWN_ELEMENT, f"Skipping unsupported element <{tag}>")
            self._path.pop()
        self._skip_element(events, element)


def parse_svg(svg_string: str, name: str = "", scale: float = 0.0,
              settings: Optional[ParserSettings] = None) -> Document:
    """Parse SVG text into a linked Document."""
    return SVGParser(settings).parse_string(svg_string, name, scale)


def parse_svg_from_reader(reader, name: str = "", scale: float = 0.0,
                          settings: Optional[ParserSettings] = None) -> Document:
    """Parse SVG from a readable stream into a linked Document."""
    return SVGParser(settings).parse_reader(reader, name, scale)
