# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Repair actions used by the orchestrator.

Importing this package registers the built-in actions.
"""

from .registry import ActionRegistry, ActionOutcome, ActionDefinition, register_action
from . import connectivity_actions, hole_actions, normal_actions
from .connectivity_actions import update_connectivity_stats, match_exact_edges

__all__ = [
    "ActionRegistry",
    "ActionOutcome",
    "ActionDefinition",
    "register_action",
    "connectivity_actions",
    "hole_actions",
    "normal_actions",
    "update_connectivity_stats",
    "match_exact_edges",
]
