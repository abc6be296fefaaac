"""
svgtoolpath Laser Module

G-code generation from drawing instruction streams.
"""

from .gcode_generator import GCodeGenerator, GCodeSettings, LaserMode, flatten_cubic_bezier

__all__ = ['GCodeGenerator', 'GCodeSettings', 'LaserMode', 'flatten_cubic_bezier']
