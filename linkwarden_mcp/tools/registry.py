"""Tool registry — tool descriptors, toolsets and the toolset group."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from ..errors import DuplicateToolError, UnknownToolsetError

logger = logging.getLogger(__name__)

PARAM_TYPES = ("string", "number", "integer", "boolean", "array", "object")

# Enabling either of these names enables every registered toolset
WILDCARD_TOOLSETS = ("all", "*")


@dataclass(frozen=True)
class ToolParam:
    name: str
    type: str = "string"
    description: str = ""
    required: bool = False

    def __post_init__(self):
        if self.type not in PARAM_TYPES:
            raise ValueError(f"unsupported parameter type for {self.name}: {self.type}")

    def schema(self) -> Dict[str, Any]:
        return {"type": self.type, "description": self.description}


@dataclass(frozen=True)
class ToolResult:
    type: str  # "text" | "json" | "error"
    text: str = ""
    data: Any = None

    @classmethod
    def of_text(cls, text: str) -> "ToolResult":
        return cls(type="text", text=text)

    @classmethod
    def of_json(cls, data: Any) -> "ToolResult":
        """Structured result; `data` is serialized up front so encoding errors surface here."""
        return cls(type="json", text=json.dumps(data, ensure_ascii=False), data=data)

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(type="error", text=message)

    @property
    def is_error(self) -> bool:
        return self.type == "error"

    def to_content(self) -> Dict[str, Any]:
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


Handler = Callable[[Any, "CallToolRequest"], Awaitable[ToolResult]]


@dataclass(frozen=True)
class CallToolRequest:
    name: str
    arguments: Any = field(default_factory=dict)


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    params: Tuple[ToolParam, ...]
    handler: Handler

    def __post_init__(self):
        object.__setattr__(self, "params", tuple(self.params))

    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {p.name: p.schema() for p in self.params},
            "required": [p.name for p in self.params if p.required],
        }

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


class Toolset:
    """A named group of tools split into read-only and mutating tools."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self.read_tools: List[Tool] = []
        self.write_tools: List[Tool] = []
        self.enabled = False

    def add_read_tools(self, *tools: Tool) -> "Toolset":
        self.read_tools.extend(tools)
        return self

    def add_write_tools(self, *tools: Tool) -> "Toolset":
        self.write_tools.extend(tools)
        return self

    def active_tools(self, read_only: bool) -> List[Tool]:
        if read_only:
            return list(self.read_tools)
        return self.read_tools + self.write_tools

    def __repr__(self):
        return (f"Toolset({self.name!r}, read={len(self.read_tools)}, "
                f"write={len(self.write_tools)}, enabled={self.enabled})")


class ToolsetGroup:
    """All known toolsets, their enablement and the global read-only policy.

    Toolsets keep insertion order. Enablement is resolved once at startup.
    """

    def __init__(self, read_only: bool = False):
        self.read_only = read_only
        self.toolsets: Dict[str, Toolset] = {}

    def add_toolset(self, toolset: Toolset) -> "ToolsetGroup":
        """Register `toolset`. A second toolset with the same name replaces the first in place."""
        if toolset.name in self.toolsets:
            logger.warning(f"Toolset {toolset.name} registered twice, keeping the last one")
        self.toolsets[toolset.name] = toolset
        return self

    def get_toolset(self, name: str) -> Optional[Toolset]:
        return self.toolsets.get(name)

    def enable_toolset(self, name: str):
        toolset = self.toolsets.get(name)
        if toolset is None:
            raise UnknownToolsetError([name])
        toolset.enabled = True

    def enable_all(self):
        for toolset in self.toolsets.values():
            toolset.enabled = True

    def enable_toolsets(self, names: Iterable[str]):
        """Enable the named toolsets; a wildcard name enables all of them.

        Known names are enabled even when the call fails on an unknown one.
        """
        names = [n.strip() for n in names if n and n.strip()]
        if any(n in WILDCARD_TOOLSETS for n in names):
            self.enable_all()
            logger.info(f"Enabled all toolsets: {', '.join(self.toolsets)}")
            return

        unknown = []
        for name in names:
            if name in self.toolsets:
                self.toolsets[name].enabled = True
            elif name not in unknown:
                unknown.append(name)
        if unknown:
            raise UnknownToolsetError(unknown)
        logger.info(f"Enabled toolsets: {', '.join(names) or 'none'}")

    def exposed_tools(self) -> List[Tool]:
        """Tools of enabled toolsets, minus write tools when read-only."""
        tools: List[Tool] = []
        seen = set()
        for toolset in self.toolsets.values():
            if not toolset.enabled:
                continue
            for tool in toolset.active_tools(self.read_only):
                if tool.name in seen:
                    raise DuplicateToolError(tool.name)
                seen.add(tool.name)
                tools.append(tool)
        return tools

    def tool_descriptions(self) -> str:
        """One line per exposed tool, for logs and `--list-tools`."""
        lines = []
        for tool in self.exposed_tools():
            params = []
            for p in tool.params:
                req = "required" if p.required else "optional"
                params.append(f"{p.name}({req}): {p.description}")
            params_text = ", ".join(params) if params else "none"
            lines.append(f"- {tool.name}: {tool.description} | params: {params_text}")
        return "\n".join(lines)
