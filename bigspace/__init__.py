"""Floating origin grids for large-scale, high-precision spatial hierarchies."""

__version__ = "0.9.1"
__all__ = [
    "camera",
    "cell",
    "commands",
    "floating_origins",
    "grid",
    "grids",
    "math",
    "propagation",
    "world",
]