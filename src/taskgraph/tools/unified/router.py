"""Action routing for consolidated tools.

A consolidated tool takes an ``action`` argument; the router maps each
action name to its handler and rejects names it does not know.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Tuple

from taskgraph.core.errors.execution import ActionRouterError

ActionHandler = Callable[..., dict]


@dataclass(frozen=True)
class ActionDefinition:
    """One routable action."""

    name: str
    handler: ActionHandler
    summary: str = ""


class ActionRouter:
    """Dispatch table from action name to handler for one tool."""

    def __init__(self, *, tool_name: str, actions: Iterable[ActionDefinition]) -> None:
        self.tool_name = tool_name
        self._actions: Dict[str, ActionDefinition] = {}
        for definition in actions:
            key = definition.name.lower()
            if key in self._actions:
                raise ValueError(f"Duplicate action '{definition.name}' for tool '{tool_name}'")
            self._actions[key] = definition

    def allowed_actions(self) -> Tuple[str, ...]:
        return tuple(d.name for d in self._actions.values())

    def describe(self) -> Dict[str, str]:
        """Map each action name to its summary."""
        return {d.name: d.summary for d in self._actions.values()}

    def dispatch(self, action: str, **kwargs: Any) -> dict:
        definition = self._actions.get((action or "").lower())
        if definition is None:
            raise ActionRouterError(
                f"Unsupported {self.tool_name} action '{action}'",
                allowed_actions=self.allowed_actions(),
            )
        return definition.handler(**kwargs)
