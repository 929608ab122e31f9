from .tools import ToolCall, ToolDefinition, ToolParameter, ToolParameterType, ToolResult

__all__ = [
    "ToolCall",
    "ToolDefinition",
    "ToolParameter",
    "ToolParameterType",
    "ToolResult",
]
