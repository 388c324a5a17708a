"""Server settings for the tui-forge MCP server.

Collects everything the server reads from the environment in one place:
transport and bind address, the project database, the default code target
and the share policy applied to every open design.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from tuiforge.config import EnvVar, get_db_path, get_environment
from tuiforge.layout import LayoutPolicy, get_layout_policy

SERVER_NAME = "tui-forge"
SERVER_VERSION = "0.1.0"


class TransportType(str, Enum):
    """How the server talks to its client."""

    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"

    @property
    def is_network(self) -> bool:
        return self is not TransportType.STDIO


@dataclass
class ServerConfig:
    """Resolved server settings.

    Attributes:
        transport: Transport type for communication.
        host: Bind address for HTTP/SSE transports.
        port: Port for HTTP/SSE transports.
        path: URL path of the streamable HTTP endpoint.
        db_path: Project database used by the project tools.
        codegen_target: Target used when a tool call names none.
        policy: Share policy for designs opened by the server.
    """

    transport: TransportType = TransportType.STDIO
    host: str = "0.0.0.0"
    port: int = 18080
    path: str = "/mcp"
    db_path: Path | None = None
    codegen_target: str = "ratatui"
    policy: LayoutPolicy = field(default_factory=LayoutPolicy)

    @property
    def url(self) -> str | None:
        """Endpoint clients connect to, or None for STDIO."""
        if self.transport == TransportType.HTTP:
            return f"http://{self.host}:{self.port}{self.path}"
        if self.transport == TransportType.SSE:
            return f"http://{self.host}:{self.port}/sse"
        return None

    @classmethod
    def from_env(
        cls,
        transport: TransportType | None = None,
        host: str | None = None,
        port: int | None = None,
    ) -> "ServerConfig":
        """Resolve settings: explicit argument > environment > default.

        Args:
            transport: Transport type (default: STDIO).
            host: Bind address override.
            port: Port override.
        """
        return cls(
            transport=transport or TransportType.STDIO,
            host=get_environment(EnvVar.MCP_HOST, override=host),
            port=get_environment(EnvVar.MCP_PORT, override=port),
            db_path=get_db_path(),
            codegen_target=get_environment(EnvVar.CODEGEN_TARGET),
            policy=get_layout_policy(),
        )

    def describe(self) -> dict[str, Any]:
        """JSON-friendly summary of the design-facing settings."""
        return {
            "database": str(self.db_path) if self.db_path else None,
            "codegen_target": self.codegen_target,
            "policy": {
                "new_share": self.policy.new_share,
                "max_moved_share": self.policy.max_moved_share,
                "min_share": self.policy.min_share,
            },
        }


def get_server_version() -> str:
    return SERVER_VERSION


def get_server_capabilities() -> dict[str, bool]:
    """MCP features this server implements."""
    return {
        "tools": True,
        "resources": True,
        "prompts": False,
        "logging": True,
        "persistence": True,
    }


__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "TransportType",
    "ServerConfig",
    "get_server_version",
    "get_server_capabilities",
]
