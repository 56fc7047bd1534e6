# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Repair engine sequencing the topology and orientation stages.

Stages always run in this order, each one only when its flags (and, for
the connectivity stages, the current connectivity) call for it:

    1. exact               exact edge matching
    2. nearby              tolerance-based stitching, growing tolerance
    3. remove_unconnected  drop facets with no connected edge
    4. fill_holes          close boundary loops
    5. reverse_all         reverse every facet
    6. normal_directions   make adjacent windings agree
    7. normal_values       recompute stored normals
    8. volume              always; fixes global inversion
    9. verify              neighbor table check, when stage 1 ran

Repair is best effort: nothing here raises for an imperfect mesh, progress
is reported through the mesh statistics and the returned RepairReport.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional
import logging
import time

from .actions import ActionOutcome, ActionRegistry
from .actions.registry import ActionFunc
from .config import RepairOptions
from .mesh import Mesh
from .normals import fix_normal_values, reverse_all_facets
from .validation import EdgeMismatch, verify_neighbors
from .orientation import calculate_volume

logger = logging.getLogger(__name__)

STAGE_EXACT = "exact"
STAGE_NEARBY = "nearby"
STAGE_REMOVE_UNCONNECTED = "remove_unconnected"
STAGE_FILL_HOLES = "fill_holes"
STAGE_REVERSE_ALL = "reverse_all"
STAGE_NORMAL_DIRECTIONS = "normal_directions"
STAGE_NORMAL_VALUES = "normal_values"
STAGE_VOLUME = "volume"
STAGE_VERIFY = "verify"


@dataclass
class RepairReport:
    """Result of a repair run."""
    stages: list[str] = field(default_factory=list)
    skipped: bool = False
    aborted: bool = False
    nearby_iterations: int = 0
    tolerance: Optional[float] = None
    increment: Optional[float] = None
    mismatches: list[EdgeMismatch] = field(default_factory=list)
    outcomes: list[ActionOutcome] = field(default_factory=list)
    duration_ms: float = 0.0

    def entered(self, stage: str) -> bool:
        return stage in self.stages

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "stages": list(self.stages),
            "skipped": self.skipped,
            "aborted": self.aborted,
            "nearby_iterations": self.nearby_iterations,
            "tolerance": self.tolerance,
            "increment": self.increment,
            "mismatches": [m.to_dict() for m in self.mismatches],
            "outcomes": [o.to_dict() for o in self.outcomes],
            "duration_ms": self.duration_ms,
        }


class RepairEngine:
    """Runs the repair stages on a mesh according to RepairOptions."""

    def __init__(
        self,
        options: Optional[RepairOptions] = None,
        actions: Optional[dict[str, ActionFunc]] = None,
    ):
        """
        Initialize repair engine.

        Args:
            options: Repair flags; defaults to RepairOptions()
            actions: Implementations replacing registered actions by name
        """
        self.options = options or RepairOptions()
        self.actions = actions or {}
        self.logger = logging.getLogger("meshheal.engine")

    def _say(self, message: str) -> None:
        if self.options.verbose:
            self.logger.info(message)
        else:
            self.logger.debug(message)

    def _run(self, name: str, mesh: Mesh, report: RepairReport, params: Optional[dict] = None) -> ActionOutcome:
        outcome = ActionRegistry.execute(name, mesh, params, func=self.actions.get(name))
        report.outcomes.append(outcome)
        return outcome

    def _stages(self) -> list[tuple[str, Callable[[Mesh, RepairReport], bool]]]:
        return [
            (STAGE_EXACT, self._check_exact),
            (STAGE_NEARBY, self._check_nearby),
            (STAGE_REMOVE_UNCONNECTED, self._remove_unconnected),
            (STAGE_FILL_HOLES, self._fill_holes),
            (STAGE_REVERSE_ALL, self._reverse_all),
            (STAGE_NORMAL_DIRECTIONS, self._fix_normal_directions),
            (STAGE_NORMAL_VALUES, self._fix_normal_values),
            (STAGE_VOLUME, self._calculate_volume),
            (STAGE_VERIFY, self._verify),
        ]

    def repair(self, mesh: Mesh) -> RepairReport:
        """
        Repair a mesh in place.

        A mesh that already has its error flag set is left untouched and
        no stage is entered. If an action fails part way, the mesh gets
        the error flag and the remaining stages are not entered.
        """
        report = RepairReport()
        if mesh.error:
            self.logger.warning("Mesh has error flag set, skipping repair")
            report.skipped = True
            return report

        start = time.perf_counter()
        for name, stage in self._stages():
            if mesh.error:
                self.logger.error(f"Repair stopped before stage '{name}': mesh has error flag set")
                report.aborted = True
                break
            if stage(mesh, report):
                report.stages.append(name)

        report.duration_ms = (time.perf_counter() - start) * 1000
        return report

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _check_exact(self, mesh: Mesh, report: RepairReport) -> bool:
        opts = self.options
        if not (opts.exact or opts.fix_all or opts.nearby or opts.remove_unconnected
                or opts.fill_holes or opts.fix_normal_directions):
            return False

        self._say("Checking exact...")
        self._run("check_exact", mesh, report)
        stats = mesh.stats
        stats.facets_w_1_bad_edge = stats.connected_facets_2_edge - stats.connected_facets_3_edge
        stats.facets_w_2_bad_edge = stats.connected_facets_1_edge - stats.connected_facets_2_edge
        stats.facets_w_3_bad_edge = stats.number_of_facets - stats.connected_facets_1_edge
        return True

    def _check_nearby(self, mesh: Mesh, report: RepairReport) -> bool:
        opts = self.options
        if not (opts.nearby or opts.fix_all):
            return False

        stats = mesh.stats
        tolerance = opts.tolerance if opts.tolerance_override else stats.shortest_edge
        increment = opts.increment if opts.increment_override else stats.bounding_diameter / 10000.0
        report.tolerance = tolerance
        report.increment = increment

        if mesh.is_fully_connected:
            self._say("All facets connected.  No nearby check necessary.")
            return False

        last_edges_fixed = stats.edges_fixed
        for i in range(opts.iterations):
            if mesh.is_fully_connected:
                self._say("All facets connected.  No further nearby check necessary.")
                break
            self._say(
                f"Checking nearby. Tolerance= {tolerance:f} Iteration={i + 1} of {opts.iterations}..."
            )
            self._run("check_nearby", mesh, report, {"tolerance": tolerance})
            self._say(f"  Fixed {stats.edges_fixed - last_edges_fixed} edges.")
            last_edges_fixed = stats.edges_fixed
            report.nearby_iterations += 1
            tolerance += increment
            if mesh.error:
                break
        return True

    def _remove_unconnected(self, mesh: Mesh, report: RepairReport) -> bool:
        opts = self.options
        if not (opts.remove_unconnected or opts.fix_all or opts.fill_holes):
            return False
        if mesh.is_fully_connected:
            self._say("No unconnected need to be removed.")
            return False
        self._say("Removing unconnected facets...")
        self._run("remove_unconnected", mesh, report)
        return True

    def _fill_holes(self, mesh: Mesh, report: RepairReport) -> bool:
        opts = self.options
        if not (opts.fill_holes or opts.fix_all):
            return False
        if mesh.is_fully_connected:
            self._say("No holes need to be filled.")
            return False
        self._say("Filling holes...")
        self._run("fill_holes", mesh, report)
        return True

    def _reverse_all(self, mesh: Mesh, report: RepairReport) -> bool:
        if not self.options.reverse_all:
            return False
        self._say("Reversing all facets...")
        reverse_all_facets(mesh)
        return True

    def _fix_normal_directions(self, mesh: Mesh, report: RepairReport) -> bool:
        if not (self.options.fix_normal_directions or self.options.fix_all):
            return False
        self._say("Checking normal directions...")
        self._run("fix_normal_directions", mesh, report)
        return True

    def _fix_normal_values(self, mesh: Mesh, report: RepairReport) -> bool:
        if not (self.options.fix_normal_values or self.options.fix_all):
            return False
        self._say("Checking normal values...")
        fix_normal_values(mesh)
        return True

    def _calculate_volume(self, mesh: Mesh, report: RepairReport) -> bool:
        self._say("Calculating volume...")
        calculate_volume(mesh)
        return True

    def _verify(self, mesh: Mesh, report: RepairReport) -> bool:
        if not (self.options.exact or report.entered(STAGE_EXACT)):
            return False
        self._say("Verifying neighbors...")
        report.mismatches = verify_neighbors(mesh)
        if report.mismatches:
            self.logger.warning(f"{len(report.mismatches)} neighbor mismatches remain")
        return True


def repair(
    mesh: Mesh,
    options: Optional[RepairOptions] = None,
    actions: Optional[dict[str, ActionFunc]] = None,
) -> RepairReport:
    """Repair a mesh in place with a one-off RepairEngine."""
    return RepairEngine(options, actions).repair(mesh)
