"""
Exceptions raised by the resource and data-transfer layer.

Setup errors (``ResourceSetupError`` and subclasses) indicate a configuration
or programming mistake and should abort initialization. Transfer-geometry
errors (``TransferGeometryError`` and subclasses) are fatal for the transfer
they were raised from; the caller decides whether to abort the step.
"""


class AMRDataError(Exception):
    """Base class for all amrdata errors."""


class ResourceSetupError(AMRDataError):
    """Registration, allocation or binding went wrong."""


class DuplicateQuantityError(ResourceSetupError):
    """A quantity name was registered twice with incompatible descriptors."""


class MissingResourceError(ResourceSetupError):
    """A required quantity is not allocated on a patch, or not bound to a user."""


class RebindError(ResourceSetupError):
    """A quantity slot was bound while already holding a binding."""


class TransferGeometryError(AMRDataError):
    """Overlap or transfer requested with inconsistent geometry."""


class RatioMismatchError(TransferGeometryError):
    """A same-level operation received a transformation with a non-unit ratio."""


class UnalignedRegionError(TransferGeometryError):
    """A region is not aligned to the coarse mesh where alignment is required."""
