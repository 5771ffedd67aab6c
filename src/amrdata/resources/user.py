import abc
from typing import Dict, List, Optional

from amrdata.errors import MissingResourceError, RebindError
from amrdata.data.quantity import Quantity


class ResourcesUser(abc.ABC):
    """
    Base class of the numerical objects whose data live on the patches.

    A user declares a fixed list of quantities and, optionally, sub-resources
    (other users it is made of). The resources manager binds the patch data of
    those quantities into the user's slots for the duration of a guard; outside
    a guard every slot is unbound and reading it raises MissingResourceError.
    """

    def __init__(self):
        self._slots: Dict[str, Optional[object]] = {}
        for quantity in self.quantities():
            if quantity.name in self._slots:
                raise ValueError(f"{type(self).__name__} declares '{quantity.name}' twice")
            self._slots[quantity.name] = None

    @abc.abstractmethod
    def quantities(self) -> List[Quantity]:
        """Quantities this object needs on every patch, excluding those of its sub-resources."""

    def sub_resources(self) -> List['ResourcesUser']:
        return []

    def set_resource(self, name: str, data):
        if name not in self._slots:
            raise KeyError(f"{type(self).__name__} has no quantity '{name}'")
        if data is not None and self._slots[name] is not None:
            raise RebindError(f"'{name}' of {type(self).__name__} is already bound")
        self._slots[name] = data

    def is_bound(self, name: str) -> bool:
        return self._slots.get(name) is not None

    def resource(self, name: str):
        """Patch data bound to slot ``name``."""
        if name not in self._slots:
            raise KeyError(f"{type(self).__name__} has no quantity '{name}'")
        data = self._slots[name]
        if data is None:
            raise MissingResourceError(f"'{name}' of {type(self).__name__} is not bound to any patch")
        return data

    def is_usable(self) -> bool:
        """True if every slot, sub-resources included, is bound."""
        return all(data is not None for data in self._slots.values()) and \
            all(sub.is_usable() for sub in self.sub_resources())

    def is_settable(self) -> bool:
        """True if no slot, sub-resources included, is bound."""
        return all(data is None for data in self._slots.values()) and \
            all(sub.is_settable() for sub in self.sub_resources())
