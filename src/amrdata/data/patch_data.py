import abc
from typing import TYPE_CHECKING

from amrdata.geometry.amr.box import Box
from amrdata.geometry.amr.overlap import BoxGeometry, Overlap
from amrdata.data.quantity import Quantity

if TYPE_CHECKING:
    from amrdata.meshes.hierarchy import Patch


class PatchData(abc.ABC):
    """
    Abstract patch data: the storage of one quantity on one patch.

    The host hierarchy only manipulates patch data through this interface,
    whatever the concrete kind (field or particles).
    """

    def __init__(self, geometry: BoxGeometry, quantity: Quantity, time: float = 0.0):
        self.geometry = geometry
        self.quantity = quantity
        self.time = float(time)

    @property
    def name(self) -> str:
        return self.quantity.name

    def get_box(self) -> Box:
        return self.geometry.box

    def get_ghost_box(self) -> Box:
        return self.geometry.ghost_box

    def get_time(self) -> float:
        return self.time

    def set_time(self, time: float):
        self.time = float(time)

    @abc.abstractmethod
    def copy(self, source: 'PatchData', overlap: Overlap):
        """Copy the overlap's region from ``source`` into this data."""

    @abc.abstractmethod
    def pack(self, region: Box) -> bytes:
        """Serialize the values of this data that lie in ``region``."""

    @abc.abstractmethod
    def unpack(self, data: bytes, region: Box):
        """Deserialize values produced by ``pack`` for the same region into this data."""

    def pack_stream(self, overlap: Overlap) -> bytes:
        """Serialize, on the source side, what ``unpack_stream`` expects on the destination side."""
        overlap.transformation.check_unit_ratio("pack_stream")
        return self.pack(overlap.source_region)

    def unpack_stream(self, data: bytes, overlap: Overlap):
        overlap.transformation.check_unit_ratio("unpack_stream")
        self.unpack(data, overlap.destination_region)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.name}', box={self.get_box()}, ghost_box={self.get_ghost_box()})"


class PatchDataFactory(abc.ABC):
    """Builds the patch data of one quantity for any patch."""

    def __init__(self, quantity: Quantity):
        self.quantity = quantity

    def ghost_box(self, patch: 'Patch') -> Box:
        return patch.box.grow(patch.ghost_width(self.quantity))

    @abc.abstractmethod
    def allocate(self, patch: 'Patch', time: float = 0.0) -> PatchData:
        pass
