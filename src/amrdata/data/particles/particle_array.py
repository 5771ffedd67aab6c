import numpy as np
from typing import Iterable, Optional, Union

"""
Particles are stored as a numpy structured array, one record per particle:

weight: float64, statistical weight
charge: float64
icell: int32[dim], index of the cell the particle sits in
delta: float32[dim], position within the cell, in [0, 1)
v: float64[3], velocity, always 3 components whatever the spatial dimension
"""

_particle_dtypes = {}


def particle_dtype(dimension: int) -> np.dtype:
    """
    >>> particle_dtype(1).names
    ('weight', 'charge', 'icell', 'delta', 'v')
    >>> particle_dtype(2).itemsize
    56
    """
    if dimension not in (1, 2, 3):
        raise ValueError(f"dimension must be 1, 2 or 3, got {dimension}")
    if dimension not in _particle_dtypes:
        # little-endian and unaligned so that packed records are identical on every host
        _particle_dtypes[dimension] = np.dtype([
            ('weight', '<f8'),
            ('charge', '<f8'),
            ('icell', '<i4', (dimension,)),
            ('delta', '<f4', (dimension,)),
            ('v', '<f8', (3,)),
        ])
    return _particle_dtypes[dimension]


class ParticleArray:
    """Growable array of particle records."""

    def __init__(self, dimension: int, capacity: int = 0):
        self.dimension = dimension
        self.dtype = particle_dtype(dimension)
        self._records = np.zeros(capacity, dtype=self.dtype)
        self._size = 0

    @property
    def capacity(self) -> int:
        return int(self._records.shape[0])

    @property
    def records(self) -> np.ndarray:
        """View of the live records (no copy)."""
        return self._records[:self._size]

    @property
    def icell(self) -> np.ndarray:
        return self.records['icell']

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, index):
        return self.records[index]

    def __iter__(self):
        return iter(self.records)

    def _ensure_capacity(self, extra: int):
        needed = self._size + extra
        if needed <= self.capacity:
            return
        new_capacity = max(needed, 2 * max(self.capacity, 1))
        grown = np.zeros(new_capacity, dtype=self.dtype)
        grown[:self._size] = self._records[:self._size]
        self._records = grown

    def append(self, records: Union['ParticleArray', np.ndarray]):
        if isinstance(records, ParticleArray):
            records = records.records
        records = np.asarray(records)
        if records.dtype != self.dtype:
            raise TypeError(f"records of dtype {records.dtype} cannot go into a {self.dimension}D particle array")
        n_new = records.shape[0]
        if n_new == 0:
            return
        self._ensure_capacity(n_new)
        self._records[self._size:self._size + n_new] = records
        self._size += n_new

    def push_back(self, weight: float, charge: float, icell: Iterable[int],
                  delta: Iterable[float], v: Iterable[float]):
        record = np.zeros(1, dtype=self.dtype)
        record['weight'] = weight
        record['charge'] = charge
        record['icell'] = np.asarray(icell, dtype=np.int32).reshape(self.dimension)
        record['delta'] = np.asarray(delta, dtype=np.float32).reshape(self.dimension)
        record['v'] = np.asarray(v, dtype=np.float64).reshape(3)
        self.append(record)

    def remove(self, mask: np.ndarray) -> np.ndarray:
        """Remove the records where ``mask`` is true and return them, keeping the order of the others."""
        mask = np.asarray(mask, dtype=bool)
        removed = self.records[mask].copy()
        kept = self.records[~mask].copy()
        self._size = 0
        self.append(kept)
        return removed

    def clear(self):
        self._size = 0

    def __repr__(self) -> str:
        return f"ParticleArray(dimension={self.dimension}, size={self._size})"


def make_particles(dimension: int, icells, weight: float = 1.0, charge: float = 1.0,
                   delta: Optional[Iterable[float]] = None, v: Optional[Iterable[float]] = None) -> np.ndarray:
    """
    Records for particles sitting in the given cells, all other attributes shared.

    input:
    icells: integer array of shape (n, dimension) or (n,) in 1D
    """
    icells = np.asarray(icells, dtype=np.int32).reshape(-1, dimension)
    records = np.zeros(icells.shape[0], dtype=particle_dtype(dimension))
    records['weight'] = weight
    records['charge'] = charge
    records['icell'] = icells
    records['delta'] = 0.5 if delta is None else np.asarray(delta, dtype=np.float32)
    records['v'] = 0.0 if v is None else np.asarray(v, dtype=np.float64)
    return records
