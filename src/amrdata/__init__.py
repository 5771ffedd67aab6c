"""
amrdata: resource and data management for block-structured AMR simulations.

This package declares the quantities (fields and particle populations) numerical
objects need, allocates them on the patches of a mesh hierarchy, binds them to
the objects for scoped patch-local computations, and computes the overlaps used
to copy, pack and unpack data between patches.
"""

__version__ = "0.1.0"
__author__ = "amrdata developers"
__license__ = "GPL-3.0"

# Version information tuple
VERSION_INFO = tuple(map(int, __version__.split(".")))

# Expose main functionality at package level
from .errors import (AMRDataError, DuplicateQuantityError, MissingResourceError, RebindError,
                     RatioMismatchError, UnalignedRegionError)
from .utils.configurations import HierarchyConfig, make_config, config_template
from .utils.logging_config import setup_logging
from .geometry.amr.box import Box
from .geometry.amr.overlap import (Transformation, Overlap, FieldGeometry, ParticleGeometry,
                                   calculate_overlaps, periodic_shifts)
from .data.quantity import Quantity, QtyCentering, QuantityKind, HybridQuantity, hybrid_quantity
from .data.patch_data import PatchData
from .data.field.field_data import FieldData
from .data.particles.particle_array import ParticleArray, particle_dtype
from .data.particles.particles_data import ParticlesData
from .meshes.hierarchy import Patch, PatchLevel, PatchHierarchy
from .resources.user import ResourcesUser
from .resources.resources_manager import ResourcesManager, QuantityRegistry
from .resources.resources_guard import ResourcesGuard
from .data.vecfield import VecField
from .data.ions import IonPopulation, Ions

# Define what should be available in "from amrdata import *"
__all__ = [
    'AMRDataError',
    'DuplicateQuantityError',
    'MissingResourceError',
    'RebindError',
    'RatioMismatchError',
    'UnalignedRegionError',
    'HierarchyConfig',
    'make_config',
    'config_template',
    'setup_logging',
    'Box',
    'Transformation',
    'Overlap',
    'FieldGeometry',
    'ParticleGeometry',
    'calculate_overlaps',
    'periodic_shifts',
    'Quantity',
    'QtyCentering',
    'QuantityKind',
    'HybridQuantity',
    'hybrid_quantity',
    'PatchData',
    'FieldData',
    'ParticleArray',
    'particle_dtype',
    'ParticlesData',
    'Patch',
    'PatchLevel',
    'PatchHierarchy',
    'ResourcesUser',
    'ResourcesManager',
    'QuantityRegistry',
    'ResourcesGuard',
    'VecField',
    'IonPopulation',
    'Ions',
]
