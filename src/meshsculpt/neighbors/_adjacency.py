"""Ragged adjacency lists stored as flat offset/indices arrays."""

import torch
from tensordict import tensorclass


@tensorclass
class Adjacency:
    """Ragged adjacency list stored with offset-indices encoding.

    Attributes:
        offsets: Shape (n_sources + 1,), dtype int64. The i-th source's neighbors
            are ``indices[offsets[i]:offsets[i+1]]``.
        indices: Flattened neighbor indices, shape (total_neighbors,), dtype int64.

    Example:
        >>> # Represent [[1, 2], [], [0]]
        >>> adj = Adjacency(
        ...     offsets=torch.tensor([0, 2, 2, 3]),
        ...     indices=torch.tensor([1, 2, 0]),
        ... )
        >>> adj.to_list()
        [[1, 2], [], [0]]
    """

    offsets: torch.Tensor  # shape: (n_sources + 1,), dtype: int64
    indices: torch.Tensor  # shape: (total_neighbors,), dtype: int64

    def __post_init__(self):
        if not torch.compiler.is_compiling():
            if len(self.offsets) < 1:
                raise ValueError(
                    f"Offsets array must have length >= 1 (n_sources + 1), but got {len(self.offsets)=}."
                )
            if self.offsets[0].item() != 0:
                raise ValueError(
                    f"First offset must be 0, but got {self.offsets[0].item()=}."
                )
            last_offset = self.offsets[-1].item()
            indices_length = len(self.indices)
            if last_offset != indices_length:
                raise ValueError(
                    f"Last offset must equal length of indices, but got "
                    f"{last_offset=} != {indices_length=}."
                )

    def to_list(self) -> list[list[int]]:
        """Convert to a ragged list-of-lists (for tests and debugging)."""
        offsets = self.offsets.cpu().tolist()
        indices = self.indices.cpu().tolist()
        return [indices[offsets[i] : offsets[i + 1]] for i in range(len(offsets) - 1)]

    @property
    def n_sources(self) -> int:
        return len(self.offsets) - 1

    @property
    def n_total_neighbors(self) -> int:
        return len(self.indices)

    @property
    def counts(self) -> torch.Tensor:
        """Number of neighbors of each source, shape (n_sources,)."""
        return self.offsets[1:] - self.offsets[:-1]

    def source_indices(self) -> torch.Tensor:
        """Source index of every entry in ``indices``, shape (total_neighbors,).

        Together with ``indices`` this gives the adjacency as a flat edge list,
        ready for ``index_add_`` style reductions.
        """
        return torch.arange(
            self.n_sources, dtype=torch.int64, device=self.offsets.device
        ).repeat_interleave(self.counts)
