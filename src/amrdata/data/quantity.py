"""
Quantity descriptors: the immutable metadata identifying a physical quantity
stored on the patches (its name, per-axis centering and value kind).

The hybrid quantity table gives the staggered (Yee) centering of the
electromagnetic and moment quantities of a hybrid PIC model.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Iterable


class QtyCentering(Enum):
    # primal: values at cell corners, dual: values at cell centers
    PRIMAL = 'primal'
    DUAL = 'dual'


class QuantityKind(Enum):
    SCALAR = 'scalar'
    VECTOR_COMPONENT = 'vector_component'
    PARTICLES = 'particles'


@dataclass(frozen=True)
class Quantity:
    """
    Descriptor of one storage slot on a patch.

    Two descriptors sharing a name must be equal, otherwise they cannot
    live in the same registry.
    """

    name: str
    centering: Tuple[QtyCentering, ...]
    kind: QuantityKind = QuantityKind.SCALAR

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"quantity name must be a non-empty string, got {self.name!r}")

        centering = tuple(QtyCentering(c) for c in self.centering)
        if not 1 <= len(centering) <= 3:
            raise ValueError(f"centering of '{self.name}' must have 1 to 3 entries, got {len(centering)}")
        object.__setattr__(self, 'centering', centering)
        object.__setattr__(self, 'kind', QuantityKind(self.kind))

        if self.kind is QuantityKind.PARTICLES and any(c is not QtyCentering.DUAL for c in centering):
            raise ValueError(f"particle quantity '{self.name}' is cell based and must be dual on every axis")

    @property
    def dimension(self) -> int:
        return len(self.centering)

    @property
    def is_field(self) -> bool:
        return self.kind is not QuantityKind.PARTICLES

    def is_compatible(self, other: 'Quantity') -> bool:
        return self == other

    @classmethod
    def field(cls, name: str, centering: Iterable, kind: QuantityKind = QuantityKind.SCALAR) -> 'Quantity':
        return cls(name, tuple(centering), kind)

    @classmethod
    def particles(cls, name: str, dimension: int) -> 'Quantity':
        return cls(name, (QtyCentering.DUAL,) * dimension, QuantityKind.PARTICLES)


class HybridQuantity(Enum):
    Bx = 'Bx'
    By = 'By'
    Bz = 'Bz'
    Ex = 'Ex'
    Ey = 'Ey'
    Ez = 'Ez'
    Jx = 'Jx'
    Jy = 'Jy'
    Jz = 'Jz'
    rho = 'rho'
    Vx = 'Vx'
    Vy = 'Vy'
    Vz = 'Vz'
    P = 'P'


P_ = QtyCentering.PRIMAL
D_ = QtyCentering.DUAL

# 3D Yee lattice, lower dimensions keep the leading axes
_yee_centering_3d = {
    HybridQuantity.Bx: (P_, D_, D_),
    HybridQuantity.By: (D_, P_, D_),
    HybridQuantity.Bz: (D_, D_, P_),
    HybridQuantity.Ex: (D_, P_, P_),
    HybridQuantity.Ey: (P_, D_, P_),
    HybridQuantity.Ez: (P_, P_, D_),
    HybridQuantity.Jx: (D_, P_, P_),
    HybridQuantity.Jy: (P_, D_, P_),
    HybridQuantity.Jz: (P_, P_, D_),
    HybridQuantity.rho: (P_, P_, P_),
    HybridQuantity.Vx: (P_, P_, P_),
    HybridQuantity.Vy: (P_, P_, P_),
    HybridQuantity.Vz: (P_, P_, P_),
    HybridQuantity.P: (P_, P_, P_),
}

_vector_components = {
    'B': (HybridQuantity.Bx, HybridQuantity.By, HybridQuantity.Bz),
    'E': (HybridQuantity.Ex, HybridQuantity.Ey, HybridQuantity.Ez),
    'J': (HybridQuantity.Jx, HybridQuantity.Jy, HybridQuantity.Jz),
    'V': (HybridQuantity.Vx, HybridQuantity.Vy, HybridQuantity.Vz),
}


def yee_centering(qty: HybridQuantity, dimension: int) -> Tuple[QtyCentering, ...]:
    """
    >>> yee_centering(HybridQuantity.Bx, 1)
    (<QtyCentering.PRIMAL: 'primal'>,)
    >>> yee_centering(HybridQuantity.Ey, 2)
    (<QtyCentering.PRIMAL: 'primal'>, <QtyCentering.DUAL: 'dual'>)
    """
    if not 1 <= dimension <= 3:
        raise ValueError(f"dimension must be 1, 2 or 3, got {dimension}")
    return _yee_centering_3d[HybridQuantity(qty)][:dimension]


def vector_components(vector_name: str) -> Tuple[HybridQuantity, HybridQuantity, HybridQuantity]:
    try:
        return _vector_components[vector_name]
    except KeyError:
        raise ValueError(f"'{vector_name}' is not a hybrid vector quantity, "
                         f"expected one of {sorted(_vector_components)}") from None


def hybrid_quantity(name: str, qty: HybridQuantity, dimension: int) -> Quantity:
    """Field descriptor named ``name`` with the Yee centering of ``qty``."""
    qty = HybridQuantity(qty)
    is_component = any(qty in components for components in _vector_components.values())
    kind = QuantityKind.VECTOR_COMPONENT if is_component else QuantityKind.SCALAR
    return Quantity(name, yee_centering(qty, dimension), kind)
