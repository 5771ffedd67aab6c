import struct
import logging
import numpy as np

from amrdata.geometry.amr.box import Box
from amrdata.geometry.amr.overlap import ParticleGeometry, Overlap, Transformation
from amrdata.data.patch_data import PatchData, PatchDataFactory
from amrdata.data.quantity import Quantity
from .particle_array import ParticleArray

logger = logging.getLogger(__name__)

# particle streams: little-endian, unaligned
ALIGN = "<"
SIZE_COUNT = struct.calcsize(ALIGN + "i")


class ParticlesData(PatchData):
    """
    Particles of one population on one patch.

    Particles are kept in three buckets:
    domain_particles: icell inside the patch box
    ghost_particles: icell inside the ghost box but outside the patch box
    coarse_to_fine: particles staged for a transfer between levels, never partitioned

    The split between the first two buckets is only re-established by ``partition``.
    """

    def __init__(self, box: Box, ghost_box: Box, quantity: Quantity, time: float = 0.0):
        if quantity.is_field:
            raise ValueError(f"'{quantity.name}' is not a particle quantity")
        super().__init__(ParticleGeometry(box, ghost_box), quantity, time)
        dim = box.dim
        self.domain_particles = ParticleArray(dim)
        self.ghost_particles = ParticleArray(dim)
        self.coarse_to_fine = ParticleArray(dim)

    @property
    def dimension(self) -> int:
        return self.geometry.dim

    def _buckets(self):
        return (self.domain_particles, self.ghost_particles)

    def add(self, records: np.ndarray):
        """Append records to the interior or ghost bucket depending on their cell."""
        records = np.asarray(records)
        if records.shape[0] == 0:
            return
        icell = records['icell']
        outside = ~self.get_ghost_box().contains_points(icell)
        if np.any(outside):
            raise ValueError(f"{int(np.sum(outside))} particles of '{self.name}' lie outside "
                             f"the ghost box {self.get_ghost_box()}")
        in_domain = self.get_box().contains_points(icell)
        self.domain_particles.append(records[in_domain])
        self.ghost_particles.append(records[~in_domain])

    def _records_in(self, region: Box, offset=None) -> np.ndarray:
        # interior first, then ghosts, each in storage order
        selected = []
        for bucket in self._buckets():
            records = bucket.records
            icell = records['icell'] if offset is None else records['icell'] + offset
            mask = region.contains_points(icell)
            chosen = records[mask].copy()
            if offset is not None:
                chosen['icell'] = icell[mask]
            selected.append(chosen)
        return np.concatenate(selected)

    def copy(self, source: 'ParticlesData', overlap: Overlap):
        """
        Append the source particles whose shifted cell lies in the overlap's destination region.
        Existing particles are kept: clear the buckets first for replacement semantics.
        """
        if not isinstance(source, ParticlesData):
            raise TypeError(f"cannot copy a {type(source).__name__} into a ParticlesData")
        overlap.transformation.check_unit_ratio("particle copy")
        self.geometry.check_compatible(source.geometry)
        if not overlap.is_overlapping:
            return
        if not self.get_ghost_box().contains_box(overlap.destination_region):
            raise ValueError(f"region {overlap.destination_region} exceeds the ghost box {self.get_ghost_box()}")

        self.add(source._records_in(overlap.destination_region, offset=overlap.offset))

    def copy_all(self, source: 'ParticlesData'):
        region = self.get_ghost_box() * source.get_ghost_box()
        overlap = Overlap(region, region, Transformation.identity(self.dimension))
        self.copy(source, overlap)

    def partition(self) -> np.ndarray:
        """
        Re-split interior and ghost particles after their cells changed.

        output:
        records of the particles that left the ghost box; they are removed from this data
        """
        records = np.concatenate([bucket.records for bucket in self._buckets()])
        self.domain_particles.clear()
        self.ghost_particles.clear()

        inside = self.get_ghost_box().contains_points(records['icell'])
        leaving = records[~inside].copy()
        self.add(records[inside])

        if leaving.shape[0]:
            logger.debug("%d particles of '%s' left ghost box %s", leaving.shape[0], self.name, self.get_ghost_box())
        return leaving

    def clear(self):
        for bucket in (self.domain_particles, self.ghost_particles, self.coarse_to_fine):
            bucket.clear()

    def _pack_records(self, records: np.ndarray) -> bytes:
        return struct.pack(ALIGN + "i", records.shape[0]) + records.tobytes()

    def pack(self, region: Box) -> bytes:
        return self._pack_records(self._records_in(region))

    def pack_stream(self, overlap: Overlap) -> bytes:
        overlap.transformation.check_unit_ratio("pack_stream")
        return self._pack_records(self._records_in(overlap.destination_region, offset=overlap.offset))

    def unpack(self, data: bytes, region: Box):
        if len(data) < SIZE_COUNT:
            raise ValueError(f"particle stream of {len(data)} bytes has no header")
        [count] = struct.unpack(ALIGN + "i", data[:SIZE_COUNT])
        dtype = self.domain_particles.dtype
        if len(data) != SIZE_COUNT + count * dtype.itemsize:
            raise ValueError(f"particle stream announces {count} particles but holds {len(data) - SIZE_COUNT} bytes")

        records = np.frombuffer(data, dtype=dtype, count=count, offset=SIZE_COUNT).copy()
        if not np.all(region.contains_points(records['icell'])):
            raise ValueError(f"unpacked particles fall outside region {region}")
        self.add(records)

    def __len__(self) -> int:
        return len(self.domain_particles) + len(self.ghost_particles)


class ParticlesDataFactory(PatchDataFactory):

    def allocate(self, patch, time: float = 0.0) -> ParticlesData:
        return ParticlesData(patch.box, self.ghost_box(patch), self.quantity, time)
