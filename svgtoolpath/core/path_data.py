"""
SVG Path Data

Interprets the ``d`` attribute of a path element into MOVE, LINE, CURVE
and CLOSE drawing instructions. Quadratic curves are raised to cubics and
elliptical arcs are converted to cubic segments.
"""

import math
import re
from typing import Iterator, List, Optional, Tuple

from .instructions import DrawingInstruction, InstructionKind
from .transform import Transform


class PathDataError(ValueError):
    """Raised when path data is malformed."""


_TOKEN_PATTERN = re.compile(
    r'([MmZzLlHhVvCcSsQqTtAa])'
    r'|([-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?)'
    r'|([\s,]+)'
    r'|(.)'
)

# Arc flags are single characters and may be packed: "a5 5 0 1010 0"
_FLAG_PATTERN = re.compile(r'[\s,]*([01])')
_FLAG_ARGS = (3, 4)

# command -> number of arguments per repetition
_ARG_COUNTS = {
    'M': 2, 'L': 2, 'H': 1, 'V': 1, 'C': 6,
    'S': 4, 'Q': 4, 'T': 2, 'A': 7, 'Z': 0,
}


def tokenize_path(d: str) -> List[str]:
    """Split path data into command letters and number strings."""
    tokens = []
    pos = 0
    # Position within the current arc's seven arguments, None outside arcs
    arc_arg = None
    while pos < len(d):
        if arc_arg in _FLAG_ARGS:
            match = _FLAG_PATTERN.match(d, pos)
            if match is None:
                raise PathDataError(f"expected an arc flag at offset {pos}")
            tokens.append(match.group(1))
            arc_arg += 1
            pos = match.end()
            continue

        match = _TOKEN_PATTERN.match(d, pos)
        command, number, _separator, junk = match.groups()
        if junk is not None:
            raise PathDataError(f"unexpected character {junk!r} at offset {pos}")
        if command:
            tokens.append(command)
            arc_arg = 0 if command in ('A', 'a') else None
        elif number:
            tokens.append(number)
            if arc_arg is not None:
                arc_arg = (arc_arg + 1) % 7
        pos = match.end()
    return tokens


def parse_path_commands(d: str) -> List[Tuple[str, List[float]]]:
    """
    Group path tokens into (command, arguments) pairs.

    Implicit repetitions are expanded, so ``"M 0 0 10 10"`` becomes a
    move followed by a line.
    """
    tokens = tokenize_path(d)
    commands = []
    i = 0
    if tokens and tokens[0] not in ('M', 'm'):
        raise PathDataError("path data must begin with a moveto command")
    while i < len(tokens):
        command = tokens[i]
        if not command.isalpha():
            raise PathDataError(f"expected a command, got {command!r}")
        i += 1
        count = _ARG_COUNTS[command.upper()]
        if count == 0:
            commands.append((command, []))
            continue
        first = True
        while first or (i < len(tokens) and not tokens[i].isalpha()):
            args = tokens[i:i + count]
            if len(args) < count or any(a.isalpha() for a in args):
                raise PathDataError(
                    f"command {command!r} needs {count} arguments"
                )
            commands.append((command, [float(a) for a in args]))
            i += count
            if first and command in ('M', 'm'):
                # Extra coordinate pairs after a moveto are implicit linetos
                command = 'L' if command == 'M' else 'l'
            first = False
    return commands


def arc_to_bezier(x1: float, y1: float, rx: float, ry: float,
                  phi: float, large_arc: int, sweep: int,
                  x2: float, y2: float) -> List[Tuple[Tuple[float, float], ...]]:
    """Convert an SVG arc to a list of (cp1, cp2, end) cubic segments."""
    if rx == 0 or ry == 0:
        # Degenerate case - straight line
        return [((x1, y1), (x2, y2), (x2, y2))]

    phi_rad = math.radians(phi)
    cos_phi = math.cos(phi_rad)
    sin_phi = math.sin(phi_rad)

    dx = (x1 - x2) / 2
    dy = (y1 - y2) / 2
    x1p = cos_phi * dx + sin_phi * dy
    y1p = -sin_phi * dx + cos_phi * dy

    # Scale radii up if they cannot span the endpoints
    lambda_ = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lambda_ > 1:
        rx *= math.sqrt(lambda_)
        ry *= math.sqrt(lambda_)

    denominator = (rx * rx * y1p * y1p) + (ry * ry * x1p * x1p)
    sq = max(0.0, ((rx * rx * ry * ry) - denominator) / denominator) if denominator else 0.0
    coef = math.sqrt(sq)
    if large_arc == sweep:
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx

    cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2
    cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2

    def angle(ux, uy, vx, vy):
        n = math.hypot(ux, uy) * math.hypot(vx, vy)
        if n == 0:
            return 0.0
        c = (ux * vx + uy * vy) / n
        s = ux * vy - uy * vx
        return math.atan2(s, max(-1.0, min(1.0, c)))

    theta1 = angle(1, 0, (x1p - cxp) / rx, (y1p - cyp) / ry)
    dtheta = angle((x1p - cxp) / rx, (y1p - cyp) / ry,
                   (-x1p - cxp) / rx, (-y1p - cyp) / ry)

    if sweep == 0 and dtheta > 0:
        dtheta -= 2 * math.pi
    elif sweep == 1 and dtheta < 0:
        dtheta += 2 * math.pi

    # At most 90 degrees per cubic
    segments = max(1, int(math.ceil(abs(dtheta) / (math.pi / 2))))
    delta = dtheta / segments
    alpha = math.sin(delta) * (math.sqrt(4 + 3 * math.tan(delta / 2) ** 2) - 1) / 3

    def to_user_space(px, py):
        x = px * rx
        y = py * ry
        return (cos_phi * x - sin_phi * y + cx, sin_phi * x + cos_phi * y + cy)

    curves = []
    for i in range(segments):
        t1 = theta1 + i * delta
        t2 = theta1 + (i + 1) * delta
        cos1, sin1 = math.cos(t1), math.sin(t1)
        cos2, sin2 = math.cos(t2), math.sin(t2)
        curves.append((
            to_user_space(cos1 - alpha * sin1, sin1 + alpha * cos1),
            to_user_space(cos2 + alpha * sin2, sin2 - alpha * cos2),
            to_user_space(cos2, sin2),
        ))
    # Land exactly on the requested end point
    cp1, cp2, _ = curves[-1]
    curves[-1] = (cp1, cp2, (x2, y2))
    return curves


def iter_path_instructions(d: str, transform: Optional[Transform] = None,
                           source_id: Optional[str] = None) -> Iterator[DrawingInstruction]:
    """
    Yield the drawing instructions for a path's data in document space.

    The whole of ``d`` is validated before the first instruction is
    yielded, so malformed data raises PathDataError without partial output.
    """
    if transform is None:
        transform = Transform.identity()
    apply = transform.apply

    def move(x, y):
        return DrawingInstruction(InstructionKind.MOVE, point=apply(x, y), source_id=source_id)

    def line(x, y):
        return DrawingInstruction(InstructionKind.LINE, point=apply(x, y), source_id=source_id)

    def curve(c1, c2, end):
        return DrawingInstruction(
            InstructionKind.CURVE, c1=apply(*c1), c2=apply(*c2),
            point=apply(*end), source_id=source_id
        )

    current_x, current_y = 0.0, 0.0
    start_x, start_y = 0.0, 0.0
    last_control = None
    last_command = None

    for command, args in parse_path_commands(d):
        is_relative = command.islower()
        cmd = command.upper()
        ox, oy = (current_x, current_y) if is_relative else (0.0, 0.0)

        if cmd == 'M':
            current_x, current_y = args[0] + ox, args[1] + oy
            start_x, start_y = current_x, current_y
            yield move(current_x, current_y)
            last_control = None

        elif cmd in ('L', 'H', 'V'):
            if cmd == 'L':
                current_x, current_y = args[0] + ox, args[1] + oy
            elif cmd == 'H':
                current_x = args[0] + ox
            else:
                current_y = args[0] + oy
            yield line(current_x, current_y)
            last_control = None

        elif cmd in ('C', 'S'):
            if cmd == 'C':
                c1 = (args[0] + ox, args[1] + oy)
                rest = args[2:]
            else:
                if last_control is not None and last_command in ('C', 'S'):
                    c1 = (2 * current_x - last_control[0], 2 * current_y - last_control[1])
                else:
                    c1 = (current_x, current_y)
                rest = args
            c2 = (rest[0] + ox, rest[1] + oy)
            end = (rest[2] + ox, rest[3] + oy)
            yield curve(c1, c2, end)
            current_x, current_y = end
            last_control = c2

        elif cmd in ('Q', 'T'):
            if cmd == 'Q':
                control = (args[0] + ox, args[1] + oy)
                end = (args[2] + ox, args[3] + oy)
            else:
                if last_control is not None and last_command in ('Q', 'T'):
                    control = (2 * current_x - last_control[0], 2 * current_y - last_control[1])
                else:
                    control = (current_x, current_y)
                end = (args[0] + ox, args[1] + oy)
            # Raise to a cubic
            c1 = (current_x + 2 / 3 * (control[0] - current_x),
                  current_y + 2 / 3 * (control[1] - current_y))
            c2 = (end[0] + 2 / 3 * (control[0] - end[0]),
                  end[1] + 2 / 3 * (control[1] - end[1]))
            yield curve(c1, c2, end)
            current_x, current_y = end
            last_control = control

        elif cmd == 'A':
            rx, ry, x_rot, large_arc, sweep = args[:5]
            x, y = args[5] + ox, args[6] + oy
            last_control = None
            if abs(x - current_x) < 1e-9 and abs(y - current_y) < 1e-9:
                last_command = cmd
                continue
            for c1, c2, end in arc_to_bezier(current_x, current_y, abs(rx), abs(ry),
                                             x_rot, int(large_arc), int(sweep), x, y):
                yield curve(c1, c2, end)
            current_x, current_y = x, y

        elif cmd == 'Z':
            yield DrawingInstruction(InstructionKind.CLOSE, source_id=source_id)
            current_x, current_y = start_x, start_y
            last_control = None

        last_command = cmd
