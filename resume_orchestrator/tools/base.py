"""Tool abstraction and the name-keyed tool registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..errors import ToolInputError, ToolNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Result from a tool execution."""

    success: bool
    output: str
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> str:
        if self.success:
            return self.output
        return f"Error: {self.error}\n{self.output}" if self.output else f"Error: {self.error}"


class Tool(ABC):
    """Base class for all tools.

    ``parameters`` maps each parameter name to a JSON-schema fragment; a
    fragment with ``"required": True`` marks a mandatory parameter.
    """

    name: str
    description: str
    parameters: Dict[str, Any] = {}

    @abstractmethod
    async def execute(self, **kwargs) -> ToolResult:
        """Execute the tool with given parameters."""

    @property
    def required_parameters(self) -> List[str]:
        return [k for k, v in self.parameters.items() if v.get("required", False)]

    def validate(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Return ``params`` restricted to declared parameters.

        Raises:
            ToolInputError: If a required parameter is missing
        """
        params = dict(params or {})
        missing = [name for name in self.required_parameters if params.get(name) is None]
        if missing:
            raise ToolInputError(f"Tool {self.name} missing required parameter(s): {', '.join(missing)}")

        unknown = sorted(set(params) - set(self.parameters))
        if unknown:
            logger.debug("Ignoring undeclared parameters for tool %s: %s", self.name, unknown)
        return {k: v for k, v in params.items() if k in self.parameters}

    def to_schema(self) -> Dict[str, Any]:
        """Convert tool to a JSON-schema style descriptor for prompts."""
        properties = {
            name: {k: v for k, v in spec.items() if k != "required"} for name, spec in self.parameters.items()
        }
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": self.required_parameters,
            },
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class ToolRegistry:
    """Mapping from tool name to tool instance.

    Registration is last-write-wins; the registry does not invoke tools and
    never catches their failures.
    """

    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        self._tools: Dict[str, Tool] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            logger.info("Replacing registered tool '%s'", tool.name)
        self._tools[tool.name] = tool

    def lookup(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def get(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def subset(self, names: Iterable[str]) -> "ToolRegistry":
        """Build a registry sharing the named tools (by reference).

        Raises:
            ToolNotFoundError: If any name is not registered
        """
        return ToolRegistry(self.get(name) for name in names)

    def names(self) -> List[str]:
        return list(self._tools)

    def schemas(self) -> List[Dict[str, Any]]:
        return [tool.to_schema() for tool in self._tools.values()]

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={self.names()})"
