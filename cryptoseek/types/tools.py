import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ToolParameterType(str, Enum):
    """Supported parameter types for tool definitions"""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ToolParameter(BaseModel):
    """Definition of a single tool parameter"""
    name: str
    type: ToolParameterType
    description: str
    required: bool = True
    enum: Optional[List[str]] = None
    default: Optional[Any] = None


class ToolDefinition(BaseModel):
    """Definition of a tool that can be called by the LLM"""
    name: str
    description: str
    parameters: List[ToolParameter] = Field(default_factory=list)

    def to_anthropic_format(self) -> Dict[str, Any]:
        """Convert to Anthropic's tool schema format"""
        properties = {}
        required = []

        for param in self.parameters:
            prop = {
                "type": param.type.value,
                "description": param.description,
            }
            if param.enum:
                prop["enum"] = param.enum
            if param.default is not None:
                prop["default"] = param.default

            properties[param.name] = prop

            if param.required:
                required.append(param.name)

        return {
            "name": self.name,
            "description": self.description,
            "input_schema": {
                "type": "object",
                "properties": properties,
                "required": required,
            }
        }


class ToolCall(BaseModel):
    """A tool call requested by the LLM"""
    id: str = Field(default="call", description="Tool call identifier echoed in the result")
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Result of executing a tool"""
    tool_call_id: str
    result: Any
    error: Optional[str] = None

    def to_anthropic_format(self) -> Dict[str, Any]:
        """Convert to Anthropic's tool_result format"""
        content = self.error if self.error else self.result
        if not isinstance(content, str):
            content = json.dumps(content)
        return {
            "type": "tool_result",
            "tool_use_id": self.tool_call_id,
            "content": content,
            "is_error": self.error is not None,
        }
