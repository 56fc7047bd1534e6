# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Repair options and their on-disk form.

Options can be written as JSON or YAML documents with the same keys as the
RepairOptions fields, e.g.:

    fix_all: false
    nearby: true
    tolerance: 0.01
    iterations: 4
    fill_holes: true
"""

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Union

import yaml

logger = logging.getLogger(__name__)


@dataclass
class RepairOptions:
    """
    Flags and numeric parameters for one repair run.

    Attributes:
        fix_all: Run every repair stage
        exact: Check for exactly matching edges
        nearby: Stitch edges whose endpoints are within a tolerance
        tolerance: Initial nearby tolerance (used when tolerance_override)
        tolerance_override: Use `tolerance` instead of the shortest edge
        increment: Tolerance growth per nearby iteration (used when
            increment_override)
        increment_override: Use `increment` instead of diameter / 10000
        iterations: Maximum number of nearby rounds
        remove_unconnected: Remove facets with no connected edge
        fill_holes: Close boundary loops with new facets
        fix_normal_directions: Make adjacent windings consistent
        fix_normal_values: Recompute stored normals from geometry
        reverse_all: Reverse every facet
        verbose: Report progress at INFO level instead of DEBUG
    """
    fix_all: bool = False
    exact: bool = False
    nearby: bool = False
    tolerance: float = 0.0
    tolerance_override: bool = False
    increment: float = 0.0
    increment_override: bool = False
    iterations: int = 2
    remove_unconnected: bool = False
    fill_holes: bool = False
    fix_normal_directions: bool = False
    fix_normal_values: bool = False
    reverse_all: bool = False
    verbose: bool = False

    @property
    def any_repair_requested(self) -> bool:
        """True if any flag that selects a repair stage is set."""
        return any((
            self.fix_all, self.exact, self.nearby, self.remove_unconnected,
            self.fill_holes, self.fix_normal_directions, self.fix_normal_values,
            self.reverse_all,
        ))

    @classmethod
    def from_dict(cls, data: dict) -> "RepairOptions":
        """
        Create from dictionary.

        Giving `tolerance` or `increment` implies the matching override
        unless the override is given explicitly.

        Raises:
            ValueError: On unknown keys or a negative iteration count
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown repair options: {', '.join(unknown)}")

        values = dict(data)
        if "tolerance" in values:
            values.setdefault("tolerance_override", True)
        if "increment" in values:
            values.setdefault("increment_override", True)

        options = cls(**values)
        if options.iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {options.iterations}")
        return options

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


def load_repair_options(path: Union[str, Path]) -> RepairOptions:
    """
    Load repair options, detecting the format from the extension.

    Supports .json and .yaml/.yml files; anything else is tried as JSON
    first, then YAML.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Repair options not found: {path}")

    with open(path, encoding="utf-8") as f:
        text = f.read()

    suffix = path.suffix.lower()
    if suffix == ".json":
        data = json.loads(text)
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = yaml.safe_load(text)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Repair options must be a mapping: {path}")

    logger.debug(f"Loaded repair options from {path}")
    return RepairOptions.from_dict(data)


def save_repair_options(options: RepairOptions, path: Union[str, Path]) -> None:
    """Save repair options as JSON or YAML depending on the extension."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            yaml.dump(options.to_dict(), f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(options.to_dict(), f, indent=2)
