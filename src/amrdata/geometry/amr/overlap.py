import itertools
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from abc import ABC, abstractmethod

from amrdata.errors import RatioMismatchError, UnalignedRegionError
from amrdata.data.quantity import Quantity, QtyCentering
from .box import Box, IntVector, as_int_vector

"""
Overlap calculation between the data regions of two patch data objects.
The geometry of a patch data describes its domain and ghost boxes in cell index space
and converts them to the index space its values live in (centering dependent for fields).
"""


class Transformation:
    """
    Map from source to destination index space:
    shift by ``offset`` (source index space), then coarsen by ``ratio`` (floor division).
    """

    __slots__ = ['offset', 'ratio']

    def __init__(self, offset: IntVector, ratio: IntVector = 1):
        offset = np.atleast_1d(np.asarray(offset, dtype=int))
        self.offset = offset.copy()
        self.ratio = as_int_vector(ratio, offset.shape[0])
        if np.any(self.ratio < 1):
            raise ValueError(f"refinement ratio must be positive, got {self.ratio}")

    @classmethod
    def identity(cls, dim: int) -> 'Transformation':
        return cls(np.zeros(dim, dtype=int), 1)

    @property
    def dim(self) -> int:
        return int(self.offset.shape[0])

    @property
    def is_unit_ratio(self) -> bool:
        return bool(np.all(self.ratio == 1))

    def check_unit_ratio(self, operation: str = "copy"):
        if not self.is_unit_ratio:
            raise RatioMismatchError(f"{operation} requires a 1:1 ratio, got {self.ratio.tolist()}")

    def transform(self, box: Box, require_alignment: bool = False) -> Box:
        shifted = box.shift(self.offset)
        if self.is_unit_ratio:
            return shifted
        if require_alignment and not shifted.is_aligned(self.ratio):
            raise UnalignedRegionError(f"{shifted} is not aligned to the coarse mesh for ratio {self.ratio.tolist()}")
        return shifted.coarsen(self.ratio)

    def inverse_transform(self, box: Box) -> Box:
        if box.is_empty():
            return Box.empty(box.dim)
        return box.refine(self.ratio).shift(-self.offset)

    def inverse(self) -> 'Transformation':
        self.check_unit_ratio("inverse")
        return Transformation(-self.offset, 1)

    def __repr__(self) -> str:
        return f"Transformation(offset={self.offset.tolist()}, ratio={self.ratio.tolist()})"


@dataclass
class Overlap:
    """Intersecting regions of a source and a destination data, with the transformation relating them."""

    source_region: Box
    destination_region: Box
    transformation: Transformation

    @property
    def is_overlapping(self) -> bool:
        return not self.destination_region.is_empty()

    @property
    def offset(self) -> np.ndarray:
        return self.transformation.offset


class BoxGeometry(ABC):
    """Domain and ghost boxes of one patch data, in cell index space."""

    def __init__(self, box: Box, ghost_box: Box):
        assert box.dim == ghost_box.dim, "box and ghost box must share their dimension"
        assert ghost_box.contains_box(box), f"ghost box {ghost_box} must contain box {box}"
        self.box = box
        self.ghost_box = ghost_box

    @property
    def dim(self) -> int:
        return self.box.dim

    @abstractmethod
    def to_data_box(self, box: Box) -> Box:
        """Convert a cell box to the index space of the stored values."""

    @property
    def data_box(self) -> Box:
        return self.to_data_box(self.box)

    @property
    def data_ghost_box(self) -> Box:
        return self.to_data_box(self.ghost_box)

    def check_compatible(self, source: 'BoxGeometry'):
        if type(source) is not type(self):
            raise TypeError(f"cannot relate a {type(source).__name__} to a {type(self).__name__}")
        if source.dim != self.dim:
            raise ValueError(f"cannot relate a {source.dim}D geometry to a {self.dim}D geometry")

    def calculate_overlap(self, source: 'BoxGeometry', transformation: Transformation,
                          source_mask: Optional[Box] = None, fill_box: Optional[Box] = None,
                          require_alignment: bool = False) -> Overlap:
        """
        Overlap of ``source`` (transformed into this geometry's index space) with this geometry.

        input:
        source: geometry of the source data
        transformation: source to destination map
        source_mask: cell box restricting the source region, in source index space
        fill_box: cell box restricting the destination region, in destination index space
        require_alignment: raise UnalignedRegionError if a coarsened source box is not aligned

        output:
        Overlap, possibly empty
        """
        self.check_compatible(source)
        assert transformation.dim == self.dim, "transformation and geometry dimensions differ"

        src_cells = source.ghost_box
        if source_mask is not None:
            src_cells = src_cells * source_mask
        if src_cells.is_empty():
            return Overlap(Box.empty(self.dim), Box.empty(self.dim), transformation)
        if require_alignment:
            # alignment is a property of the cell box, not of the centered data box
            transformation.transform(src_cells, require_alignment=True)

        src_region = source.to_data_box(src_cells)
        dst_region = transformation.transform(src_region) * self.data_ghost_box
        if fill_box is not None:
            dst_region = dst_region * self.to_data_box(fill_box)

        if dst_region.is_empty():
            return Overlap(Box.empty(self.dim), Box.empty(self.dim), transformation)

        src_region = transformation.inverse_transform(dst_region) * src_region
        return Overlap(src_region, dst_region, transformation)


class FieldGeometry(BoxGeometry):
    """Geometry of a field: a primal axis holds one more point than there are cells."""

    def __init__(self, box: Box, ghost_box: Box, quantity: Quantity):
        super().__init__(box, ghost_box)
        assert quantity.dimension == box.dim, \
            f"quantity '{quantity.name}' is {quantity.dimension}D but the box is {box.dim}D"
        self.quantity = quantity
        self._primal = np.array([c is QtyCentering.PRIMAL for c in quantity.centering], dtype=int)

    def to_data_box(self, box: Box) -> Box:
        if box.is_empty():
            return Box.empty(self.dim)
        return Box(box.lower, box.upper + self._primal)

    def check_compatible(self, source: 'BoxGeometry'):
        super().check_compatible(source)
        if source.quantity.centering != self.quantity.centering:
            raise ValueError(f"centering mismatch between '{source.quantity.name}' "
                             f"and '{self.quantity.name}'")


class ParticleGeometry(BoxGeometry):
    """Geometry of a particle population: particles are indexed by the cell they sit in."""

    def to_data_box(self, box: Box) -> Box:
        return box


def periodic_shifts(domain_box: Box, periodic: Sequence[bool]) -> List[np.ndarray]:
    """
    Non-zero offsets by which a box must be shifted to see its periodic images.

    input:
    domain_box: cell box of the whole physical domain at the level considered
    periodic: one flag per axis

    output:
    list of integer offsets, one per combination of -L, 0, +L on the periodic axes
    """
    periodic = list(periodic)
    assert len(periodic) == domain_box.dim, "one periodic flag per axis is required"
    lengths = np.array(domain_box.shape)

    choices = [(-1, 0, 1) if periodic[i] else (0,) for i in range(domain_box.dim)]
    shifts = []
    for signs in itertools.product(*choices):
        if not any(signs):
            continue
        shifts.append(np.array(signs, dtype=int) * lengths)
    return shifts


def calculate_overlaps(source: BoxGeometry, destination: BoxGeometry, ratio: IntVector = 1,
                       shifts: Sequence[np.ndarray] = (), source_mask: Optional[Box] = None,
                       fill_box: Optional[Box] = None, require_alignment: bool = False) -> List[Overlap]:
    """
    All non-empty overlaps of ``source`` onto ``destination``: the direct one and one per shift.

    Overlaps through distinct periodic images are returned separately, never merged.
    """
    offsets = [np.zeros(destination.dim, dtype=int)] + [np.asarray(s, dtype=int) for s in shifts]

    overlaps = []
    for offset in offsets:
        transformation = Transformation(offset, ratio)
        overlap = destination.calculate_overlap(source, transformation, source_mask=source_mask,
                                                fill_box=fill_box, require_alignment=require_alignment)
        if overlap.is_overlapping:
            overlaps.append(overlap)
    return overlaps
