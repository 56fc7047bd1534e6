# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Action registry for mesh repair collaborators.

The registry maps action names to implementations so the repair
orchestrator can run each stage by name without knowing its internals.
Every action has the same shape: it takes the mesh (modified in place) and
a parameter dictionary, and returns an ActionOutcome.
"""

from typing import Callable, Any, Optional
from dataclasses import dataclass, field
import logging
import time

from ..mesh import Mesh

logger = logging.getLogger(__name__)

ActionFunc = Callable[[Mesh, dict], "ActionOutcome"]


@dataclass
class ActionOutcome:
    """
    Result of running one action.

    Attributes:
        action: Name of the action
        success: False if the action raised
        changed: Number of items the action changed (edges matched,
            facets removed, facets added, facets reversed...)
        error: Error message when success is False
        duration_ms: Wall time spent in the action
    """
    action: str
    success: bool = True
    changed: int = 0
    error: Optional[str] = None
    duration_ms: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "success": self.success,
            "changed": self.changed,
            "error": self.error,
            "duration_ms": self.duration_ms,
            "details": self.details,
        }


@dataclass
class ActionDefinition:
    """
    Definition of a registered action.

    Attributes:
        name: Unique action identifier used by the orchestrator
        func: The function that implements the action
        description: Human-readable description of what the action does
        parameters: Dictionary of parameter definitions with defaults
        category: Category for grouping in listings
    """
    name: str
    func: ActionFunc
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    category: str = "General"


class ActionRegistry:
    """
    Registry for mesh repair actions.

    Actions are registered at import time using the @register_action
    decorator.

    Example:
        @register_action(
            name="fill_holes",
            description="Close boundary loops with new facets",
        )
        def action_fill_holes(mesh, params):
            ...
            return ActionOutcome("fill_holes", changed=added)
    """

    _actions: dict[str, ActionDefinition] = {}

    @classmethod
    def register(
        cls,
        name: str,
        func: ActionFunc,
        description: str = "",
        parameters: Optional[dict] = None,
        category: str = "General"
    ) -> None:
        """Register an action under `name`."""
        cls._actions[name] = ActionDefinition(
            name=name,
            func=func,
            description=description,
            parameters=parameters or {},
            category=category
        )
        logger.debug(f"Registered action: {name}")

    @classmethod
    def get(cls, name: str) -> Optional[ActionDefinition]:
        """Get an action by name."""
        return cls._actions.get(name)

    @classmethod
    def exists(cls, name: str) -> bool:
        """Check if an action exists."""
        return name in cls._actions

    @classmethod
    def execute(
        cls,
        name: str,
        mesh: Mesh,
        params: Optional[dict] = None,
        func: Optional[ActionFunc] = None,
    ) -> ActionOutcome:
        """
        Execute an action on a mesh.

        A failing action never propagates: it is logged, the mesh gets its
        sticky error flag, and a failed outcome is returned. Actions
        commit their changes only at the end, so the mesh is left as it was.

        Args:
            name: Action name
            mesh: Mesh to repair in place
            params: Action parameters (optional)
            func: Implementation to use instead of the registered one

        Raises:
            ValueError: If no implementation is given and the action is
                not registered
        """
        if func is None:
            action = cls.get(name)
            if action is None:
                raise ValueError(f"Unknown action: {name}")
            func = action.func

        params = params or {}
        logger.debug(f"Executing action: {name}")
        logger.debug(f"  Parameters: {params}")

        start = time.perf_counter()
        try:
            outcome = func(mesh, params)
        except Exception as e:
            logger.error(f"Action {name} failed: {e}")
            mesh.error = True
            outcome = ActionOutcome(action=name, success=False, error=str(e))
        if outcome is None:
            outcome = ActionOutcome(action=name)
        outcome.duration_ms = (time.perf_counter() - start) * 1000
        return outcome

    @classmethod
    def list_actions(cls) -> list[str]:
        """List all registered action names."""
        return list(cls._actions.keys())

    @classmethod
    def get_all(cls) -> dict[str, ActionDefinition]:
        """Get all registered actions."""
        return cls._actions.copy()


def register_action(
    name: str,
    description: str = "",
    parameters: Optional[dict] = None,
    category: str = "General"
):
    """
    Decorator to register an action function.

    Example:
        @register_action(
            name="check_nearby",
            description="Stitch edges whose endpoints are close",
            parameters={"tolerance": {"type": "float", "default": 0.0}},
            category="Connectivity"
        )
        def action_check_nearby(mesh, params):
            ...
    """
    def decorator(func: ActionFunc):
        ActionRegistry.register(
            name=name,
            func=func,
            description=description,
            parameters=parameters,
            category=category
        )
        return func
    return decorator
