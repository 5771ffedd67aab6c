import logging
import numpy as np
from typing import Callable, Dict, Iterable, List, Optional, Union

from amrdata.geometry.amr.box import Box
from amrdata.geometry.amr.overlap import periodic_shifts
from amrdata.data.quantity import Quantity
from amrdata.utils.configurations import HierarchyConfig, make_config

logger = logging.getLogger(__name__)

"""
Minimal block-structured hierarchy: the host side the resources layer talks to.
It owns patches and their boxes and declares ghost widths; it does not decide when to regrid.
"""


class Patch:
    """Rectangular block of one level, holding one patch data per quantity name."""

    def __init__(self, box: Box, level_number: int = 0, patch_id: int = 0,
                 ghost_width: int = 2, ghost_widths: Optional[Dict[str, int]] = None):
        self.box = box
        self.level_number = level_number
        self.patch_id = patch_id
        self._ghost_width = int(ghost_width)
        self._ghost_widths = dict(ghost_widths) if ghost_widths else {}
        self._patch_data = {}

    @property
    def dim(self) -> int:
        return self.box.dim

    def ghost_width(self, quantity: Union[Quantity, str]) -> int:
        name = quantity.name if isinstance(quantity, Quantity) else quantity
        return int(self._ghost_widths.get(name, self._ghost_width))

    def check_allocated(self, name: str) -> bool:
        return name in self._patch_data

    def get_patch_data(self, name: str):
        return self._patch_data[name]

    def set_patch_data(self, name: str, data):
        self._patch_data[name] = data

    def remove_patch_data(self, name: str):
        self._patch_data.pop(name, None)

    @property
    def patch_data_names(self) -> List[str]:
        return list(self._patch_data)

    def __repr__(self) -> str:
        return f"Patch(level={self.level_number}, id={self.patch_id}, box={self.box})"


class PatchLevel:

    def __init__(self, level_number: int, ratio_to_level_zero: np.ndarray, patches: List[Patch]):
        self.level_number = level_number
        self.ratio_to_level_zero = np.asarray(ratio_to_level_zero, dtype=int)
        self.patches = patches

    @property
    def boxes(self) -> List[Box]:
        return [patch.box for patch in self.patches]

    def __iter__(self):
        return iter(self.patches)

    def __len__(self) -> int:
        return len(self.patches)

    def __getitem__(self, index: int) -> Patch:
        return self.patches[index]


LevelListener = Callable[[PatchLevel, float], None]


class PatchHierarchy:
    """
    Stack of patch levels over one periodic or bounded domain.

    Listeners registered with ``add_level_listener`` are called with every level
    created or replaced by ``make_level`` and the simulation time it was made at;
    the resources manager allocates patch data there.
    """

    def __init__(self, config: Optional[HierarchyConfig] = None):
        self.config = config if config is not None else make_config()
        self.levels: List[PatchLevel] = []
        self._listeners: List[LevelListener] = []
        self._next_patch_id = 0

    @property
    def dim(self) -> int:
        return self.config.dimension

    @property
    def number_of_levels(self) -> int:
        return len(self.levels)

    def add_level_listener(self, listener: LevelListener):
        self._listeners.append(listener)

    def ratio_to_level_zero(self, level_number: int) -> np.ndarray:
        return np.full(self.dim, self.config.refinement_ratio ** level_number, dtype=int)

    def domain_box(self, level_number: int = 0) -> Box:
        return self.config.domain_box.refine(self.ratio_to_level_zero(level_number))

    def periodic_shifts(self, level_number: int = 0) -> List[np.ndarray]:
        return periodic_shifts(self.domain_box(level_number), self.config.periodic)

    def ratio_between(self, fine_level: int, coarse_level: int) -> np.ndarray:
        assert fine_level >= coarse_level, "the first level must be the finer one"
        return self.ratio_to_level_zero(fine_level) // self.ratio_to_level_zero(coarse_level)

    def level(self, level_number: int) -> PatchLevel:
        return self.levels[level_number]

    def make_level(self, level_number: int, boxes: Iterable[Box], time: float = 0.0) -> PatchLevel:
        """
        Create level ``level_number`` from boxes in that level's index space,
        replacing an existing level of the same number (regrid).
        ``time`` is handed to the level listeners.
        """
        if level_number > self.number_of_levels:
            raise ValueError(f"cannot create level {level_number} above {self.number_of_levels - 1}")

        domain = self.domain_box(level_number)
        patches = []
        for box in boxes:
            if box.dim != self.dim:
                raise ValueError(f"{box} is not {self.dim}D")
            if not domain.contains_box(box):
                raise ValueError(f"{box} lies outside the level {level_number} domain {domain}")
            patches.append(Patch(box, level_number, self._next_patch_id,
                                 self.config.ghost_width, self.config.ghost_widths))
            self._next_patch_id += 1

        level = PatchLevel(level_number, self.ratio_to_level_zero(level_number), patches)
        if level_number == self.number_of_levels:
            self.levels.append(level)
            logger.info("created level %d with %d patches", level_number, len(patches))
        else:
            self.levels[level_number] = level
            logger.info("regridded level %d into %d patches", level_number, len(patches))

        for listener in self._listeners:
            listener(level, time)
        return level

    def remove_level(self, level_number: int):
        """Remove a level and all levels finer than it."""
        del self.levels[level_number:]

    def __iter__(self):
        return iter(self.levels)
