"""Caller session and per-request context for the stdio server."""
import time
import uuid
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ClientInfo:
    """Identity the caller reported in its `initialize` request."""
    name: str = ""
    version: str = ""
    protocol_version: str = ""


class Session:
    """State of the single caller this process serves."""

    def __init__(self):
        self.session_id = str(uuid.uuid4())[:8]
        self.client = ClientInfo()
        self.initialized = False
        self.requests_handled = 0

        now = time.monotonic()
        self.started_at = now
        self.last_activity_time = now

    def touch(self):
        """Update last activity timestamp."""
        self.last_activity_time = time.monotonic()

    def idle_seconds(self) -> float:
        """Seconds since last activity."""
        return time.monotonic() - self.last_activity_time

    def uptime(self) -> float:
        return time.monotonic() - self.started_at


@dataclass
class RequestContext:
    """Handed to every tool handler.

    `client` is an optional per-call override of the backend client the tool
    was built with.
    """
    session: Session
    request_id: Any = None
    client: Optional[Any] = None

    def resolve_client(self, default):
        return self.client if self.client is not None else default
