import numpy as np
from typing import Tuple

from amrdata.geometry.amr.box import Box
from amrdata.geometry.amr.overlap import FieldGeometry, Overlap, Transformation
from amrdata.data.patch_data import PatchData, PatchDataFactory
from amrdata.data.quantity import Quantity

# values travel as little-endian doubles whatever the host byte order
FIELD_DTYPE = np.dtype('<f8')


class FieldData(PatchData):
    """
    Field values of one quantity on one patch, ghost cells included.

    ``field`` is indexed from the lower corner of the ghost data box:
    along a primal axis the buffer holds one more point than there are cells.
    """

    def __init__(self, box: Box, ghost_box: Box, quantity: Quantity, time: float = 0.0):
        if not quantity.is_field:
            raise ValueError(f"'{quantity.name}' is not a field quantity")
        super().__init__(FieldGeometry(box, ghost_box, quantity), quantity, time)
        self.field = np.zeros(self.geometry.data_ghost_box.shape, dtype=np.float64)

    @property
    def data_box(self) -> Box:
        return self.geometry.data_box

    @property
    def data_ghost_box(self) -> Box:
        return self.geometry.data_ghost_box

    def _slices(self, region: Box) -> Tuple[slice, ...]:
        # copies and streams either cover the whole region or fail
        if not self.data_ghost_box.contains_box(region):
            raise ValueError(f"region {region} exceeds the data of '{self.name}' {self.data_ghost_box}")
        return region.slices(self.data_ghost_box.lower)

    def view(self, region: Box) -> np.ndarray:
        """Writable view of the values in ``region`` (data index space)."""
        return self.field[self._slices(region)]

    def interior(self) -> np.ndarray:
        return self.view(self.data_box)

    def copy(self, source: 'FieldData', overlap: Overlap):
        if not isinstance(source, FieldData):
            raise TypeError(f"cannot copy a {type(source).__name__} into a FieldData")
        overlap.transformation.check_unit_ratio("field copy")
        self.geometry.check_compatible(source.geometry)
        if not overlap.is_overlapping:
            return

        dst_region = overlap.destination_region
        src_region = dst_region.shift(-overlap.offset)
        self.field[self._slices(dst_region)] = source.field[source._slices(src_region)]

    def copy_all(self, source: 'FieldData'):
        """Copy wherever both ghost data boxes intersect, without transformation."""
        overlap = self.geometry.calculate_overlap(source.geometry, Transformation.identity(self.geometry.dim))
        self.copy(source, overlap)

    def data_stream_size(self, region: Box) -> int:
        return region.size * FIELD_DTYPE.itemsize

    def pack(self, region: Box) -> bytes:
        if region.is_empty():
            return b''
        return np.ascontiguousarray(self.field[self._slices(region)], dtype=FIELD_DTYPE).tobytes()

    def unpack(self, data: bytes, region: Box):
        expected = self.data_stream_size(region)
        if len(data) != expected:
            raise ValueError(f"stream of {len(data)} bytes does not match region {region} ({expected} bytes)")
        if region.is_empty():
            return
        values = np.frombuffer(data, dtype=FIELD_DTYPE).reshape(region.shape)
        self.field[self._slices(region)] = values

    def fill(self, value: float):
        self.field.fill(value)


class FieldDataFactory(PatchDataFactory):

    def allocate(self, patch, time: float = 0.0) -> FieldData:
        return FieldData(patch.box, self.ghost_box(patch), self.quantity, time)
