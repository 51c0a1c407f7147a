"""
Supported MCP clients and where they keep their global configuration.

Each profile knows the platform-specific location of the client's global
configuration file and which container key the client expects.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from modules.clients.codec import MCP_SERVERS_KEY, SERVERS_KEY
from schemas.catalog import DetectedClient
from utils.logging import get_logger

logger = get_logger("clients.profiles")

PathResolver = Callable[..., Optional[Path]]


def _home(environ: Mapping[str, str], home: Optional[Path]) -> Optional[Path]:
    if home is not None:
        return home
    value = environ.get("HOME") or environ.get("USERPROFILE")
    return Path(value) if value else None


def vscode_config_path(
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """Global mcp.json of Visual Studio Code."""
    platform = platform or sys.platform
    environ = os.environ if environ is None else environ

    if platform == "win32":
        appdata = environ.get("APPDATA")
        return Path(appdata) / "Code" / "User" / "mcp.json" if appdata else None

    home = _home(environ, home)
    if home is None:
        return None
    if platform == "darwin":
        return home / "Library" / "Application Support" / "Code" / "User" / "mcp.json"
    if platform.startswith("linux"):
        return home / ".config" / "Code" / "User" / "mcp.json"
    return None


def cursor_config_path(
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """Global mcp.json of Cursor (same location on every platform)."""
    environ = os.environ if environ is None else environ
    home = _home(environ, home)
    return home / ".cursor" / "mcp.json" if home else None


def claude_desktop_config_path(
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """claude_desktop_config.json of Claude Desktop."""
    platform = platform or sys.platform
    environ = os.environ if environ is None else environ

    if platform == "win32":
        appdata = environ.get("APPDATA")
        return Path(appdata) / "Claude" / "claude_desktop_config.json" if appdata else None

    home = _home(environ, home)
    if home is None:
        return None
    if platform == "darwin":
        return home / "Library" / "Application Support" / "Claude" / "claude_desktop_config.json"
    if platform.startswith("linux"):
        return home / ".config" / "Claude" / "claude_desktop_config.json"
    return None


@dataclass(frozen=True)
class ClientProfile:
    """Static description of a supported client."""

    id: str
    name: str
    container_key: str
    path_resolver: PathResolver

    def config_path(self, **kwargs) -> Optional[Path]:
        """Resolve the client's global configuration file for this platform."""
        return self.path_resolver(**kwargs)


CLIENT_PROFILES: List[ClientProfile] = [
    ClientProfile(
        id="vscode",
        name="Visual Studio Code",
        container_key=SERVERS_KEY,
        path_resolver=vscode_config_path,
    ),
    ClientProfile(
        id="cursor",
        name="Cursor",
        container_key=MCP_SERVERS_KEY,
        path_resolver=cursor_config_path,
    ),
    ClientProfile(
        id="claude-desktop",
        name="Claude Desktop",
        container_key=MCP_SERVERS_KEY,
        path_resolver=claude_desktop_config_path,
    ),
]


def get_profile(client_id: str) -> Optional[ClientProfile]:
    """Find a profile by client id."""
    for profile in CLIENT_PROFILES:
        if profile.id == client_id:
            return profile
    return None


def container_key_for(client_id: Optional[str]) -> str:
    """
    Container key a client expects.

    Unknown clients get "mcpServers", which most clients use.
    """
    profile = get_profile(client_id) if client_id else None
    return profile.container_key if profile else MCP_SERVERS_KEY


def detect_clients(profiles: Optional[List[ClientProfile]] = None, **resolver_kwargs) -> List[DetectedClient]:
    """
    Detect supported clients by checking for their global configuration files.

    Args:
        profiles: Profiles to check (defaults to CLIENT_PROFILES)
        **resolver_kwargs: platform/environ/home overrides passed to resolvers

    Returns:
        One DetectedClient per profile
    """
    detected = []
    for profile in profiles or CLIENT_PROFILES:
        path = profile.config_path(**resolver_kwargs)
        is_configured = path is not None and path.is_file()

        if is_configured:
            logger.info(f"Found {profile.name} configuration at {path}")
        else:
            logger.debug(f"No {profile.name} configuration at {path or 'N/A'}")

        detected.append(DetectedClient(
            id=profile.id,
            name=profile.name,
            config_path=path if is_configured else None,
            is_configured=is_configured,
        ))

    logger.info(
        "Client detection complete",
        configured=[client.id for client in detected if client.is_configured],
    )
    return detected
