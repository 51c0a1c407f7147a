"""
Client configuration module.

Reads and writes the JSON configuration files of third-party MCP clients.

Key Components:
- codec: Pure translation between client entries and ServerDefinition
- profiles: Supported clients, their file locations and container keys
- ClientConfigReconciler: Tolerant reads and shape-preserving writes
"""

from .codec import decode, discover, encode
from .profiles import CLIENT_PROFILES, ClientProfile, container_key_for, detect_clients, get_profile
from .reconciler import ClientConfigReconciler

__all__ = [
    "decode",
    "discover",
    "encode",
    "CLIENT_PROFILES",
    "ClientProfile",
    "container_key_for",
    "detect_clients",
    "get_profile",
    "ClientConfigReconciler",
]
