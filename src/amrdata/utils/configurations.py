import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List

from amrdata.geometry.amr.box import Box

config_template = {
    'dimension': 1,
    'domain_lower': [0],
    'domain_upper': [63],
    'periodic': [False],
    'refinement_ratio': 2,
    'ghost_width': 2,
    'ghost_widths': {},
}


@dataclass
class HierarchyConfig:
    """Settings of one patch hierarchy, validated at construction."""

    dimension: int = 1
    domain_lower: List[int] = field(default_factory=lambda: [0])
    domain_upper: List[int] = field(default_factory=lambda: [63])
    periodic: List[bool] = field(default_factory=lambda: [False])
    refinement_ratio: int = 2
    # default number of ghost cells, overridden per quantity name by ghost_widths
    ghost_width: int = 2
    ghost_widths: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if self.dimension not in (1, 2, 3):
            raise ValueError(f"dimension must be 1, 2 or 3, got {self.dimension}")

        for name in ('domain_lower', 'domain_upper', 'periodic'):
            value = list(np.atleast_1d(getattr(self, name)))
            if len(value) == 1:
                value = value * self.dimension
            if len(value) != self.dimension:
                raise ValueError(f"{name} needs {self.dimension} entries, got {len(value)}")
            setattr(self, name, value)
        self.domain_lower = [int(v) for v in self.domain_lower]
        self.domain_upper = [int(v) for v in self.domain_upper]
        self.periodic = [bool(v) for v in self.periodic]

        if any(lo > hi for lo, hi in zip(self.domain_lower, self.domain_upper)):
            raise ValueError(f"domain_lower {self.domain_lower} must not exceed domain_upper {self.domain_upper}")
        if self.refinement_ratio < 2:
            raise ValueError(f"refinement_ratio must be at least 2, got {self.refinement_ratio}")
        if self.ghost_width < 0 or any(w < 0 for w in self.ghost_widths.values()):
            raise ValueError("ghost widths must be non-negative")

    @property
    def domain_box(self) -> Box:
        return Box(self.domain_lower, self.domain_upper)

    def ghost_width_for(self, name: str) -> int:
        return int(self.ghost_widths.get(name, self.ghost_width))


def make_config(**kwargs) -> HierarchyConfig:
    """
    Build a HierarchyConfig from the template, updated by the given keywords.
    Keys unknown to the template are rejected.
    """
    config = {key: (value.copy() if isinstance(value, (list, dict)) else value)
              for key, value in config_template.items()}
    for key, value in kwargs.items():
        if key in config:
            config[key] = value
        else:
            raise ValueError(f"Key '{key}' not found in config template")
    return HierarchyConfig(**config)
