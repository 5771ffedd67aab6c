import logging
from typing import TYPE_CHECKING, List, Tuple

from amrdata.errors import RebindError
from amrdata.meshes.hierarchy import Patch
from .user import ResourcesUser

if TYPE_CHECKING:
    from .resources_manager import ResourcesManager

logger = logging.getLogger(__name__)


class ResourcesGuard:
    """
    Scoped binding of users' quantities to the patch data of one patch.

    ``acquire`` binds every slot of the users (and their sub-resources) and returns
    the guard itself as the scope token; ``release`` clears exactly the slots this
    acquisition bound. As a context manager the release runs on every exit path:

    >>> with manager.set_resources(solver, patch):   # doctest: +SKIP
    ...     solver.advance(dt)
    """

    def __init__(self, manager: 'ResourcesManager', patch: Patch, *users: ResourcesUser):
        self.manager = manager
        self.patch = patch
        self.users = users
        self._bound: List[Tuple[ResourcesUser, str]] = []
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def acquire(self) -> 'ResourcesGuard':
        if self._active:
            raise RuntimeError("guard already acquired")
        # resolved and checked before any slot is set, so a failure leaves the users untouched
        bindings = []
        for user in self.users:
            bindings.extend(self.manager.resolve_bindings(user, self.patch))

        slots = {(id(user), name) for user, name, _ in bindings}
        if len(slots) != len(bindings):
            raise RebindError("the same quantity slot appears twice in one guard")

        for user, name, data in bindings:
            user.set_resource(name, data)
            self._bound.append((user, name))
        self._active = True
        logger.debug("bound %d quantities on %s", len(self._bound), self.patch)
        return self

    def release(self):
        if not self._active:
            return
        for user, name in reversed(self._bound):
            user.set_resource(name, None)
        logger.debug("released %d quantities on %s", len(self._bound), self.patch)
        self._bound = []
        self._active = False

    def __enter__(self) -> 'ResourcesGuard':
        if not self._active:
            self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False
