"""Midpoint subdivision of triangle soups.

Each level splits every triangle at its three edge midpoints into four children.
The transform is a pure stream operation: it never deduplicates, so shared edges
produce coincident points that the welder later collapses.
"""

from meshsculpt.subdivision._midpoint import subdivide_soup
from meshsculpt.subdivision._pattern import get_subdivision_pattern

__all__ = [
    "get_subdivision_pattern",
    "subdivide_soup",
]
