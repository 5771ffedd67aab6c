from typing import List

from amrdata.data.quantity import Quantity, hybrid_quantity, vector_components
from amrdata.resources.user import ResourcesUser

COMPONENTS = ('x', 'y', 'z')


class VecField(ResourcesUser):
    """
    Three Yee-centered components of a hybrid vector quantity ('B', 'E', 'J' or 'V').
    Component slots are named ``<name>_x``, ``<name>_y`` and ``<name>_z``.
    """

    def __init__(self, name: str, vector: str, dimension: int):
        self.name = name
        self.vector = vector
        self.dimension = dimension
        self._components = [hybrid_quantity(f"{name}_{c}", qty, dimension)
                            for c, qty in zip(COMPONENTS, vector_components(vector))]
        super().__init__()

    def quantities(self) -> List[Quantity]:
        return list(self._components)

    def component_name(self, component: str) -> str:
        if component not in COMPONENTS:
            raise KeyError(f"no component '{component}', expected one of {COMPONENTS}")
        return f"{self.name}_{component}"

    def __getitem__(self, component: str):
        """Field values of a component, only valid inside a guard."""
        return self.resource(self.component_name(component)).field

    def component(self, component: str):
        return self.resource(self.component_name(component))
