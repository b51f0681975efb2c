"""Named tool handlers and the dispatch errors they raise."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

ToolHandler = Callable[[dict[str, object]], dict[str, object]]

INVALID_PARAMS = "INVALID_PARAMS"
UNKNOWN_TOOL = "UNKNOWN_TOOL"


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Protocol or argument failure reported to the caller as an error envelope."""

    code: str
    message: str

    @classmethod
    def invalid_params(cls, message: str) -> ToolDispatchError:
        return cls(code=INVALID_PARAMS, message=message)


@dataclass(slots=True, frozen=True)
class RegisteredTool:
    """A handler plus the one-line description listed by tools/list."""

    name: str
    handler: ToolHandler
    description: str = ""


@dataclass(slots=True)
class ToolRegistry:
    """Tools in registration order; registering a known name replaces it in place."""

    _tools: dict[str, RegisteredTool] = field(default_factory=dict)

    def register(self, name: str, handler: ToolHandler, description: str = "") -> None:
        self._tools[name] = RegisteredTool(name=name, handler=handler, description=description)

    def get(self, name: str) -> ToolHandler | None:
        tool = self._tools.get(name)
        return None if tool is None else tool.handler

    def names(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def describe(self) -> list[dict[str, str]]:
        """Return name and description of every tool, in registration order."""
        return [
            {"name": tool.name, "description": tool.description} for tool in self._tools.values()
        ]

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        handler = self.get(name)
        if handler is None:
            raise ToolDispatchError(code=UNKNOWN_TOOL, message=f"Unknown tool: {name}")
        return handler(arguments)
