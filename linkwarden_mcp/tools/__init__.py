"""Tool system — registry, argument validation, executor and the Linkwarden catalog."""
from .registry import CallToolRequest, Tool, ToolParam, ToolResult, Toolset, ToolsetGroup
from .params import ValueKind, Validator, ParameterMapping, FieldType, build_params
from .executor import ToolExecutor
from .toolsets import new_toolsets
