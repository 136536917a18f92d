"""
Output layer for exporting and visualizing resolutions.
"""

from .exporter import ResolutionExporter, resolution_to_dict
from .visualizer import ResolutionVisualizer

__all__ = [
    "ResolutionExporter",
    "ResolutionVisualizer",
    "resolution_to_dict",
]
