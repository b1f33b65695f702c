"""JSON-RPC 2.0 message models for the MCP stdio transport."""
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = (LATEST_PROTOCOL_VERSION, "2025-03-26", "2024-11-05")

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RequestId = Union[int, str]


class RpcError(Exception):
    """Raised by method handlers; becomes a JSON-RPC error response."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class Request(BaseModel):
    jsonrpc: Literal["2.0"]
    method: str
    id: Optional[RequestId] = None
    params: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class Implementation(BaseModel):
    name: str = ""
    version: str = ""


class InitializeParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field("", alias="protocolVersion")
    client_info: Implementation = Field(default_factory=Implementation, alias="clientInfo")
    capabilities: Dict[str, Any] = Field(default_factory=dict)


class CallToolParams(BaseModel):
    name: str
    arguments: Any = None


class SetLevelParams(BaseModel):
    level: Literal["debug", "info", "notice", "warning", "error", "critical", "alert", "emergency"]


def result_response(request_id: Optional[RequestId], result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def error_response(request_id: Optional[RequestId], code: int, message: str,
                   data: Any = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}
