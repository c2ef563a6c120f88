from __future__ import annotations

import pathlib
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel, Field, model_validator


# Models
class ToolSpec(BaseModel):
    """Tool invocation settings: the tool name plus free-form tool config."""

    name: str
    enabled: bool = True
    config: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"name": v}
        if isinstance(v, dict):
            name = v.get("name")
            if not isinstance(name, str) or not name:
                raise ValueError("Tool spec must include non-empty 'name'")
        return v


class ToolResponseType(str, Enum):
    text = "text"


class ToolTextResponse(BaseModel):
    type: ToolResponseType = Field(default=ToolResponseType.text)
    text: Optional[str] = None


# Global registry of tool name -> tool class
_registry: Dict[str, Type["BaseTool"]] = {}


def register_tool(name: str, tool: Type["BaseTool"]) -> None:
    """Registers a tool class."""
    if name in _registry:
        raise ValueError(f"Tool with name '{name}' already registered.")
    _registry[name] = tool


def register(name: str) -> Callable[[Type["BaseTool"]], Type["BaseTool"]]:
    """Class decorator form of register_tool."""

    def _wrap(tool: Type["BaseTool"]) -> Type["BaseTool"]:
        register_tool(name, tool)
        return tool

    return _wrap


def unregister_tool(name: str) -> bool:
    """Unregister a tool by name. Returns True if removed, False if not present."""
    return _registry.pop(name, None) is not None


def get_tool(name: str) -> Optional[Type["BaseTool"]]:
    """Gets a tool class by name."""
    return _registry.get(name)


def get_all_tools() -> Dict[str, Type["BaseTool"]]:
    """Returns a copy of the tool registry."""
    return dict(_registry)


class BaseTool(ABC):
    # Subclasses must set this to a unique string
    name: str

    def __init__(self, base_path: pathlib.Path) -> None:
        self.base_path = base_path

    @abstractmethod
    async def run(self, spec: ToolSpec, args: Any) -> Optional[ToolTextResponse]:
        """
        Execute this tool against files under base_path.
        Args:
            spec: ToolSpec including name and optional config for this invocation.
            args: Parsed arguments structure (dict or Pydantic model). Not a JSON string.
        """
        pass

    @abstractmethod
    async def openapi_spec(self, spec: ToolSpec) -> Dict[str, Any]:
        """
        Return this tool's definition in OpenAI 'function' tool format,
        using JSON Schema for parameters.
        """
        pass
