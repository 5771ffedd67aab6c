import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple, Union

from amrdata.errors import DuplicateQuantityError, MissingResourceError, RebindError
from amrdata.data.quantity import Quantity, QuantityKind
from amrdata.data.patch_data import PatchData, PatchDataFactory
from amrdata.data.field.field_data import FieldDataFactory
from amrdata.data.particles.particles_data import ParticlesDataFactory
from amrdata.meshes.hierarchy import Patch, PatchLevel, PatchHierarchy
from .user import ResourcesUser
from .resources_guard import ResourcesGuard

logger = logging.getLogger(__name__)

_factory_types = {
    QuantityKind.SCALAR: FieldDataFactory,
    QuantityKind.VECTOR_COMPONENT: FieldDataFactory,
    QuantityKind.PARTICLES: ParticlesDataFactory,
}


@dataclass
class ResourceDescriptor:
    quantity: Quantity
    id: int
    factory: PatchDataFactory


class QuantityRegistry:
    """
    Quantity name -> allocation descriptor, for one hierarchy.
    Ids are handed out in registration order.
    """

    def __init__(self):
        self._descriptors: Dict[str, ResourceDescriptor] = {}

    def check(self, quantity: Quantity):
        """Raise DuplicateQuantityError if ``quantity`` clashes with a registered descriptor."""
        existing = self._descriptors.get(quantity.name)
        if existing is not None and not existing.quantity.is_compatible(quantity):
            raise DuplicateQuantityError(
                f"'{quantity.name}' is already registered as {existing.quantity}, "
                f"cannot register it as {quantity}")

    def register(self, quantity: Quantity) -> ResourceDescriptor:
        self.check(quantity)
        existing = self._descriptors.get(quantity.name)
        if existing is not None:
            return existing

        descriptor = ResourceDescriptor(quantity, len(self._descriptors), _factory_types[quantity.kind](quantity))
        self._descriptors[quantity.name] = descriptor
        return descriptor

    def __contains__(self, name: str) -> bool:
        return name in self._descriptors

    def __getitem__(self, name: str) -> ResourceDescriptor:
        return self._descriptors[name]

    def __iter__(self) -> Iterator[ResourceDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def names(self) -> List[str]:
        return list(self._descriptors)


def iter_quantities(user: ResourcesUser) -> Iterator[Tuple[ResourcesUser, Quantity]]:
    """(owner, quantity) pairs of a user and, depth first, of its sub-resources."""
    for quantity in user.quantities():
        yield user, quantity
    for sub in user.sub_resources():
        yield from iter_quantities(sub)


class ResourcesManager:
    """
    Allocates the patch data of every registered quantity and binds them into
    resources users, one patch at a time.

    input:
    registry: the quantity registry of the hierarchy this manager serves, a fresh one if omitted
    """

    def __init__(self, registry: QuantityRegistry = None):
        self.registry = registry if registry is not None else QuantityRegistry()

    def register_resources(self, user: ResourcesUser):
        """Register every quantity of ``user`` and its sub-resources, or none of them on a clash."""
        quantities = [quantity for _, quantity in iter_quantities(user)]
        seen = {}
        for quantity in quantities:
            self.registry.check(quantity)
            other = seen.setdefault(quantity.name, quantity)
            if not other.is_compatible(quantity):
                raise DuplicateQuantityError(f"'{quantity.name}' is declared as both {other} and {quantity}")

        for quantity in quantities:
            known = quantity.name in self.registry
            descriptor = self.registry.register(quantity)
            if not known:
                logger.debug("registered '%s' (%s) with id %d", quantity.name, quantity.kind.value, descriptor.id)
        logger.info("registered resources of %s", type(user).__name__)

    def has_quantity(self, name: str) -> bool:
        return name in self.registry

    def registered_quantities(self) -> List[Quantity]:
        return [descriptor.quantity for descriptor in self.registry]

    def get_ids(self, user: ResourcesUser) -> List[int]:
        ids = []
        for _, quantity in iter_quantities(user):
            if quantity.name not in self.registry:
                raise MissingResourceError(f"'{quantity.name}' is not registered")
            ids.append(self.registry[quantity.name].id)
        return ids

    def allocate(self, patch: Patch, time: float = 0.0):
        """Attach fresh patch data for every registered quantity, replacing existing ones."""
        for descriptor in self.registry:
            patch.set_patch_data(descriptor.quantity.name, descriptor.factory.allocate(patch, time))
        logger.debug("allocated %d quantities on %s", len(self.registry), patch)

    def allocate_level(self, level: PatchLevel, time: float = 0.0):
        for patch in level:
            self.allocate(patch, time)

    def attach(self, hierarchy: PatchHierarchy, time: float = 0.0):
        """
        Allocate existing levels at ``time``, then every level the hierarchy creates
        or regrids from now on, at the time given to ``make_level``.
        """
        for level in hierarchy:
            self.allocate_level(level, time)
        hierarchy.add_level_listener(self.allocate_level)

    def deallocate(self, patch: Patch):
        for descriptor in self.registry:
            patch.remove_patch_data(descriptor.quantity.name)

    def get_patch_data(self, patch: Patch, quantity: Union[Quantity, str]) -> PatchData:
        name = quantity.name if isinstance(quantity, Quantity) else quantity
        if name not in self.registry:
            raise MissingResourceError(f"'{name}' is not registered")
        if isinstance(quantity, Quantity) and not self.registry[name].quantity.is_compatible(quantity):
            raise MissingResourceError(f"'{name}' is registered as {self.registry[name].quantity}, not {quantity}")
        if not patch.check_allocated(name):
            raise MissingResourceError(f"'{name}' is not allocated on {patch}")
        return patch.get_patch_data(name)

    def resolve_bindings(self, user: ResourcesUser, patch: Patch) -> List[Tuple[ResourcesUser, str, PatchData]]:
        """
        The (owner, slot, patch data) triples binding ``user`` to ``patch``.
        Raises before anything is bound if a quantity is missing or a slot is taken.
        """
        bindings = []
        for owner, quantity in iter_quantities(user):
            data = self.get_patch_data(patch, quantity)
            if owner.is_bound(quantity.name):
                raise RebindError(f"'{quantity.name}' of {type(owner).__name__} is already bound")
            bindings.append((owner, quantity.name, data))
        return bindings

    def set_resources(self, user: ResourcesUser, patch: Patch) -> ResourcesGuard:
        """Bind ``user`` to ``patch`` and return the acquired guard."""
        return ResourcesGuard(self, patch, user).acquire()

    def guard(self, patch: Patch, *users: ResourcesUser) -> ResourcesGuard:
        return ResourcesGuard(self, patch, *users).acquire()

    def get_time(self, patch: Patch, quantity: Union[Quantity, str]) -> float:
        return self.get_patch_data(patch, quantity).get_time()

    def set_time(self, patch: Patch, quantity: Union[Quantity, str], time: float):
        self.get_patch_data(patch, quantity).set_time(time)

    def set_user_time(self, user: ResourcesUser, patch: Patch, time: float):
        for _, quantity in iter_quantities(user):
            self.set_time(patch, quantity, time)
