"""Exceptions shared across the server, registry and backend client."""


class ConfigurationError(Exception):
    """Startup configuration is invalid; the server must not start serving."""


class UnknownToolsetError(ConfigurationError):
    def __init__(self, names):
        self.names = list(names)
        super().__init__(f"unknown toolset(s): {', '.join(self.names)}")


class DuplicateToolError(ConfigurationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"tool {name!r} is exposed by more than one toolset")


class TransportError(Exception):
    """The server's own input or output stream failed."""


class TransportClosed(TransportError):
    """The input stream reached end-of-file."""
