#!/usr/bin/env python3
"""
svgtoolpath - Main Entry Point

Decodes an SVG file and writes its drawing instructions or G-code.
Run with: python -m svgtoolpath.main FILE
"""

import argparse
import logging
import sys

from .core.instructions import DrawingInstruction
from .io.svg_parser import DecodeError, ParserSettings, SVGParser, UnknownElementPolicy
from .laser.gcode_generator import GCodeGenerator, GCodeSettings

logger = logging.getLogger("svgtoolpath")


def format_instruction(instruction: DrawingInstruction) -> str:
    """One line of text per instruction."""
    parts = [instruction.kind.value]
    for name in ('point', 'c1', 'c2'):
        value = getattr(instruction, name)
        if value is not None:
            parts.append(f"{name}=({value[0]:.3f},{value[1]:.3f})")
    if instruction.radius is not None:
        parts.append(f"r={instruction.radius:.3f}")
    for name in ('stroke', 'stroke_width', 'fill'):
        value = getattr(instruction, name)
        if value is not None:
            parts.append(f"{name}={value}")
    if instruction.source_id:
        parts.append(f"[{instruction.source_id}]")
    return " ".join(parts)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="svgtoolpath",
        description="Flatten an SVG document into drawing instructions or G-code.",
    )
    parser.add_argument("file", help="SVG file to read")
    parser.add_argument("--name", default=None, help="document name (defaults to the file path)")
    parser.add_argument("--scale", type=float, default=0.0,
                        help="root scale; negative values scale by 1/|scale|")
    parser.add_argument("--format", choices=("instructions", "gcode"), default="instructions")
    parser.add_argument("-o", "--output", default=None, help="write output here instead of stdout")
    parser.add_argument("--strict", action="store_true",
                        help="fail on unsupported elements instead of skipping them")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv=None):
    """Main entry point for the svgtoolpath command."""
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = ParserSettings(
        scale=args.scale,
        unknown_elements=UnknownElementPolicy.ERROR if args.strict else UnknownElementPolicy.WARN,
    )
    try:
        document = SVGParser(settings).parse_file(args.file, name=args.name)
    except DecodeError as e:
        logger.error(f"Could not decode {args.file}: {e}")
        return 1
    except OSError as e:
        logger.error(f"Could not read {args.file}: {e}")
        return 1

    if args.format == "gcode":
        gcode, warnings = GCodeGenerator(GCodeSettings()).generate(document)
        for warning in warnings:
            logger.warning(warning)
        lines = gcode.splitlines()
    else:
        with document.parse_drawing_instructions() as stream:
            lines = [format_instruction(instruction) for instruction in stream]

    output = "\n".join(lines) + "\n"
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
    else:
        sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
