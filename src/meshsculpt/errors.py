"""Exceptions raised by the sculpting pipeline."""


class GeometryError(ValueError):
    """The asset supplied no usable triangle geometry.

    Fatal to the current recompute: the pipeline aborts and keeps the previously
    produced mesh.
    """
