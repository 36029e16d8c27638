"""Flattening of multi-part assets into one triangle soup."""

from meshsculpt.merging._merge import lift_to_floor, merge_submeshes

__all__ = [
    "lift_to_floor",
    "merge_submeshes",
]
