from typing import List, Sequence

from amrdata.data.quantity import Quantity, HybridQuantity, hybrid_quantity
from amrdata.resources.user import ResourcesUser


class IonPopulation(ResourcesUser):
    """One ion species: its particles and its density moment."""

    def __init__(self, name: str, dimension: int, mass: float = 1.0):
        self.name = name
        self.mass = mass
        self._particles = Quantity.particles(f"{name}_particles", dimension)
        self._density = hybrid_quantity(f"{name}_rho", HybridQuantity.rho, dimension)
        super().__init__()

    def quantities(self) -> List[Quantity]:
        return [self._particles, self._density]

    @property
    def particles(self):
        return self.resource(self._particles.name)

    @property
    def density(self):
        return self.resource(self._density.name).field


class Ions(ResourcesUser):
    """All ion populations plus the total ion density."""

    def __init__(self, populations: Sequence[IonPopulation], dimension: int):
        self.populations = list(populations)
        self._rho = hybrid_quantity("rho", HybridQuantity.rho, dimension)
        super().__init__()

    def quantities(self) -> List[Quantity]:
        return [self._rho]

    def sub_resources(self) -> List[ResourcesUser]:
        return list(self.populations)

    @property
    def density(self):
        return self.resource(self._rho.name).field

    def compute_density(self):
        """Total density as the sum of the population densities, on the whole buffer."""
        total = self.density
        total.fill(0.0)
        for population in self.populations:
            total += population.density
