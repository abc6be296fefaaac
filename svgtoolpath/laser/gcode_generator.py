"""
G-Code Generator for svgtoolpath

Converts a document's drawing instruction stream to G-code for GRBL and
compatible laser controllers. Instructions are consumed in document
order; no path reordering is done.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple
import logging
import math

from ..core.document import Document
from ..core.instructions import DrawingInstruction, InstructionKind

logger = logging.getLogger(__name__)

Point2 = Tuple[float, float]


class LaserMode(Enum):
    """Laser control mode."""
    CONSTANT = "M3"  # Constant power mode
    DYNAMIC = "M4"   # Dynamic power (scales with speed)


@dataclass
class GCodeSettings:
    """Settings for G-code generation."""

    # Units
    use_mm: bool = True               # G21 vs G20

    # Laser settings
    max_power: int = 1000             # Max S value - must match GRBL $30
    power: float = 50.0               # Percentage (0-100)
    laser_mode: LaserMode = LaserMode.CONSTANT

    # Speed settings (mm/min)
    cut_speed: float = 1000.0

    # Geometry
    curve_tolerance: float = 0.01     # flatness for bezier subdivision
    circle_segments: int = 64

    decimals: int = 3
    return_to_origin: bool = True


def flatten_cubic_bezier(p0: Point2, p1: Point2, p2: Point2, p3: Point2,
                         tolerance: float = 0.01) -> List[Point2]:
    """
    Flatten a cubic bezier curve to line segments using recursive subdivision.

    Uses the de Casteljau algorithm with a flatness test. The returned
    points exclude p0.
    """
    def is_flat(p0, p1, p2, p3, tol):
        ux = 3 * p1[0] - 2 * p0[0] - p3[0]
        uy = 3 * p1[1] - 2 * p0[1] - p3[1]
        vx = 3 * p2[0] - 2 * p3[0] - p0[0]
        vy = 3 * p2[1] - 2 * p3[1] - p0[1]
        return max(ux * ux, vx * vx) + max(uy * uy, vy * vy) <= 16 * tol * tol

    def mid(a, b):
        return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)

    def subdivide(p0, p1, p2, p3, depth, points):
        if depth >= 16 or is_flat(p0, p1, p2, p3, tolerance):
            points.append(p3)
            return
        q0, q1, q2 = mid(p0, p1), mid(p1, p2), mid(p2, p3)
        r0, r1 = mid(q0, q1), mid(q1, q2)
        s = mid(r0, r1)
        subdivide(p0, q0, r0, s, depth + 1, points)
        subdivide(s, r1, q2, p3, depth + 1, points)

    points: List[Point2] = []
    subdivide(p0, p1, p2, p3, 0, points)
    return points


class GCodeGenerator:
    """Generate G-code from svgtoolpath documents."""

    def __init__(self, settings: GCodeSettings = None):
        self.settings = settings or GCodeSettings()
        self._gcode_lines: List[str] = []
        self._reset_state()

    def generate(self, document: Document) -> Tuple[str, List[str]]:
        """
        Generate G-code for an entire document.

        Returns:
            (gcode_string, warnings_list)
        """
        with document.parse_drawing_instructions() as stream:
            return self.generate_from_instructions(stream, title=document.name)

    def generate_from_instructions(self, instructions: Iterable[DrawingInstruction],
                                   title: str = "") -> Tuple[str, List[str]]:
        """Generate G-code for any ordered instruction sequence."""
        self._reset_state()
        self._gcode_lines = []

        self._add_header(title)
        count = 0
        for instruction in instructions:
            self._process(instruction)
            count += 1
        self._add_footer()

        logger.debug(f"Generated {len(self._gcode_lines)} G-code lines from {count} instructions")
        return '\n'.join(self._gcode_lines), self._warnings

    def _reset_state(self):
        """Reset generator state."""
        self._current: Point2 = (0.0, 0.0)
        self._subpath_start: Optional[Point2] = None
        self._laser_on = False
        self._current_speed = 0.0
        self._warnings: List[str] = []

    def _add_header(self, title: str):
        """Add G-code header/preamble."""
        self._emit("; svgtoolpath G-Code Output")
        if title:
            self._emit(f"; Document: {title}")
        self._emit("G00 G17 G40 G54")
        self._emit("G21 ; Millimeters" if self.settings.use_mm else "G20 ; Inches")
        self._emit("G90 ; Absolute positioning")
        self._emit(f"{self.settings.laser_mode.value} S0 ; Laser mode")
        self._emit("")

    def _add_footer(self):
        """Add G-code footer/cleanup."""
        self._emit("")
        self._emit("; End of job")
        self._laser_off()
        if self.settings.return_to_origin:
            self._emit("G0 X0 Y0 ; Return to origin")
        self._emit("M2 ; End program")

    def _process(self, instruction: DrawingInstruction):
        kind = instruction.kind
        if kind == InstructionKind.MOVE:
            self._rapid_move(*instruction.point)
            self._subpath_start = instruction.point
        elif kind == InstructionKind.LINE:
            self._cut_to(instruction.point)
        elif kind == InstructionKind.CURVE:
            for point in flatten_cubic_bezier(self._current, instruction.c1, instruction.c2,
                                              instruction.point, self.settings.curve_tolerance):
                self._cut_to(point)
        elif kind == InstructionKind.CIRCLE:
            self._cut_circle(instruction.point, instruction.radius)
        elif kind == InstructionKind.CLOSE:
            if self._subpath_start is not None:
                self._cut_to(self._subpath_start)
        elif kind == InstructionKind.PAINT:
            # Style does not change the toolpath
            self._laser_off()

    def _cut_to(self, point: Point2):
        if self._subpath_start is None:
            self._warnings.append(
                f"Cutting move to ({point[0]:.2f}, {point[1]:.2f}) without a preceding move"
            )
            self._subpath_start = self._current
        self._linear_move(*point)

    def _cut_circle(self, center: Point2, radius: float):
        cx, cy = center
        segments = max(8, self.settings.circle_segments)
        start = (cx + radius, cy)
        self._rapid_move(*start)
        self._subpath_start = start
        for i in range(1, segments + 1):
            angle = 2 * math.pi * i / segments
            self._linear_move(cx + radius * math.cos(angle), cy + radius * math.sin(angle))

    def _fmt(self, value: float) -> str:
        return f"{value:.{self.settings.decimals}f}"

    def _emit(self, line: str):
        """Add a line of G-code."""
        self._gcode_lines.append(line)

    def _rapid_move(self, x: float, y: float):
        """Rapid positioning move with the laser off."""
        self._laser_off()
        self._emit(f"G0 X{self._fmt(x)} Y{self._fmt(y)}")
        self._current = (x, y)

    def _linear_move(self, x: float, y: float):
        """Cutting move."""
        if not self._laser_on:
            power = int(self.settings.max_power * self.settings.power / 100.0)
            self._laser_on_with_power(power)
        self._set_speed(self.settings.cut_speed)
        self._emit(f"G1 X{self._fmt(x)} Y{self._fmt(y)}")
        self._current = (x, y)

    def _laser_on_with_power(self, power: int):
        """Turn laser on with specified power."""
        self._emit(f"{self.settings.laser_mode.value} S{power}")
        self._laser_on = True

    def _laser_off(self):
        """Turn laser off."""
        if self._laser_on:
            self._emit("M5")
            self._laser_on = False

    def _set_speed(self, speed: float):
        """Set feed rate if changed."""
        if speed != self._current_speed:
            self._emit(f"F{speed:g}")
            self._current_speed = speed

    def save_to_file(self, gcode: str, filepath: str):
        """Save G-code to file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(gcode)
