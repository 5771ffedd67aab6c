import numpy as np
from typing import Iterable, Tuple, Union

IntVector = Union[int, Iterable[int], np.ndarray]

"""
Index-space boxes of the block-structured hierarchy.
Bounds are inclusive on both sides: a box [lower, upper] holds upper - lower + 1 cells per axis.
"""

def as_int_vector(value: IntVector, dim: int) -> np.ndarray:
    """
    input:
    value: int or iterable of ints, a scalar is broadcast on every axis
    dim: int, the number of spatial dimensions

    output:
    np.ndarray of shape (dim,) and integer dtype
    """
    arr = np.asarray(value, dtype=int)
    if arr.ndim == 0:
        return np.full(dim, int(arr), dtype=int)
    if arr.shape != (dim,):
        raise ValueError(f"expected a scalar or {dim} components, got shape {arr.shape}")
    return arr.copy()


class Box:
    """Inclusive integer index rectangle in 1, 2 or 3 dimensions."""

    __slots__ = ['lower', 'upper']

    def __init__(self, lower: IntVector, upper: IntVector):
        lower = np.atleast_1d(np.asarray(lower, dtype=int))
        upper = np.atleast_1d(np.asarray(upper, dtype=int))
        if lower.shape != upper.shape or lower.ndim != 1:
            raise ValueError(f"lower {lower} and upper {upper} must be 1D and of the same length")
        if not 1 <= lower.shape[0] <= 3:
            raise ValueError(f"boxes are 1D, 2D or 3D, got {lower.shape[0]} components")
        self.lower = lower.copy()
        self.upper = upper.copy()

    @classmethod
    def empty(cls, dim: int) -> 'Box':
        return cls(np.zeros(dim, dtype=int), -np.ones(dim, dtype=int))

    @property
    def dim(self) -> int:
        return int(self.lower.shape[0])

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(n) for n in np.maximum(self.upper - self.lower + 1, 0))

    @property
    def size(self) -> int:
        return int(np.prod(self.shape))

    def is_empty(self) -> bool:
        return bool(np.any(self.upper < self.lower))

    def grow(self, width: IntVector) -> 'Box':
        width = as_int_vector(width, self.dim)
        return Box(self.lower - width, self.upper + width)

    def shift(self, offset: IntVector) -> 'Box':
        offset = as_int_vector(offset, self.dim)
        return Box(self.lower + offset, self.upper + offset)

    def intersection(self, other: 'Box') -> 'Box':
        assert other.dim == self.dim, f"cannot intersect a {self.dim}D box with a {other.dim}D box"
        return Box(np.maximum(self.lower, other.lower), np.minimum(self.upper, other.upper))

    def __mul__(self, other: 'Box') -> 'Box':
        return self.intersection(other)

    def contains(self, index: IntVector) -> bool:
        index = as_int_vector(index, self.dim)
        return bool(np.all(index >= self.lower) and np.all(index <= self.upper))

    def contains_box(self, other: 'Box') -> bool:
        if other.is_empty():
            return True
        return bool(np.all(other.lower >= self.lower) and np.all(other.upper <= self.upper))

    def contains_points(self, points: np.ndarray) -> np.ndarray:
        """
        Vectorized membership test.

        input:
        points: integer array of shape (n, dim)

        output:
        boolean mask of shape (n,)
        """
        points = np.asarray(points).reshape(-1, self.dim)
        return np.all((points >= self.lower) & (points <= self.upper), axis=1)

    def coarsen(self, ratio: IntVector) -> 'Box':
        ratio = as_int_vector(ratio, self.dim)
        if self.is_empty():
            return Box.empty(self.dim)
        return Box(np.floor_divide(self.lower, ratio), np.floor_divide(self.upper, ratio))

    def refine(self, ratio: IntVector) -> 'Box':
        ratio = as_int_vector(ratio, self.dim)
        if self.is_empty():
            return Box.empty(self.dim)
        return Box(self.lower * ratio, (self.upper + 1) * ratio - 1)

    def is_aligned(self, ratio: IntVector) -> bool:
        """True if both bounds fall on coarse cell boundaries for the given ratio."""
        ratio = as_int_vector(ratio, self.dim)
        return bool(np.all(self.lower % ratio == 0) and np.all((self.upper + 1) % ratio == 0))

    def slices(self, origin: IntVector) -> Tuple[slice, ...]:
        """Slices addressing this box in an array whose first element sits at ``origin``."""
        origin = as_int_vector(origin, self.dim)
        local_lower = self.lower - origin
        local_upper = self.upper - origin
        return tuple(slice(int(local_lower[i]), int(local_upper[i]) + 1) for i in range(self.dim))

    def copy(self) -> 'Box':
        return Box(self.lower, self.upper)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Box) or other.dim != self.dim:
            return NotImplemented
        if self.is_empty() and other.is_empty():
            return True
        return bool(np.all(self.lower == other.lower) and np.all(self.upper == other.upper))

    def __hash__(self):
        if self.is_empty():
            return hash(('empty', self.dim))
        return hash((tuple(self.lower.tolist()), tuple(self.upper.tolist())))

    def __repr__(self) -> str:
        return f"Box(lower={self.lower.tolist()}, upper={self.upper.tolist()})"
