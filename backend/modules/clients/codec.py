"""
Client configuration codec.

Pure translation between the loosely-typed server entries found in client
JSON files and canonical ServerDefinition values. No I/O happens here.

Client files look like:

    {"mcpServers": {"<name>": {"command": "npx", "args": ["-y", "pkg"],
                               "env": {"KEY": "value"}, "autostart": true}}}

or use "servers" as the container key. Entries with a string "url" are url
servers; everything else is a command server.
"""

from typing import Any, Dict, Iterable, List, Mapping

from schemas.server import CommandPayload, DiscoveredServerEntry, ServerDefinition, UrlPayload

MCP_SERVERS_KEY = "mcpServers"
SERVERS_KEY = "servers"

# In order of preference when reading
CONTAINER_KEYS = (MCP_SERVERS_KEY, SERVERS_KEY)


def select_container(raw: Any) -> Mapping[str, Any]:
    """
    Locate the server map of a parsed client file.

    "mcpServers" wins over "servers" when both are present.

    Args:
        raw: Parsed JSON document

    Returns:
        The server map, or an empty mapping if there is none
    """
    if not isinstance(raw, dict):
        return {}
    for key in CONTAINER_KEYS:
        container = raw.get(key)
        if isinstance(container, dict):
            return container
    return {}


def _normalize_args(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(arg) for arg in value]
    if isinstance(value, str):
        return value.split()
    return []


def _normalize_env(value: Any) -> Dict[str, str]:
    if isinstance(value, dict):
        return {str(key): str(val) for key, val in value.items()}
    return {}


def decode_entry(name: str, raw_entry: Any) -> ServerDefinition:
    """
    Canonicalize one named server entry.

    Never rejects: a command entry without a usable command is returned with
    command=None and left for the caller to validate.

    Args:
        name: Key of the entry in the container
        raw_entry: Entry value as parsed from JSON

    Returns:
        ServerDefinition for the entry
    """
    entry = raw_entry if isinstance(raw_entry, dict) else {}

    url = entry.get("url")
    if isinstance(url, str):
        payload = UrlPayload(url=url)
    else:
        command = entry.get("command")
        payload = CommandPayload(
            command=command if isinstance(command, str) else None,
            args=_normalize_args(entry.get("args")),
        )

    autostart = entry.get("autostart")
    return ServerDefinition(
        name=entry["name"] if isinstance(entry.get("name"), str) else name,
        payload=payload,
        env=_normalize_env(entry.get("env")),
        autostart=autostart if isinstance(autostart, bool) else False,
    )


def decode(raw: Any) -> List[ServerDefinition]:
    """Decode every server entry of a parsed client file."""
    return [decode_entry(name, entry) for name, entry in select_container(raw).items()]


def discover(raw: Any, client_id: str, client_name: str) -> List[DiscoveredServerEntry]:
    """
    Decode a parsed client file into discovered entries tagged with their origin.

    Args:
        raw: Parsed JSON document
        client_id: Originating client id
        client_name: Originating client display name

    Returns:
        List of DiscoveredServerEntry
    """
    return [
        DiscoveredServerEntry(
            client_id=client_id,
            client_name=client_name,
            original_name=name,
            definition=decode_entry(name, entry),
        )
        for name, entry in select_container(raw).items()
    ]


def encode_entry(definition: ServerDefinition) -> Dict[str, Any]:
    """
    Render one definition in client-file shape.

    Exactly one of command+args or url is emitted, never both.
    """
    payload = definition.payload
    if isinstance(payload, UrlPayload):
        entry: Dict[str, Any] = {"url": payload.url}
    else:
        entry = {"command": payload.command, "args": list(payload.args)}

    entry["env"] = dict(definition.env)
    entry["autostart"] = definition.autostart
    return entry


def encode(records: Iterable[ServerDefinition], container_key: str = MCP_SERVERS_KEY) -> Dict[str, Any]:
    """
    Render definitions as a client-file document keyed by server name.

    Args:
        records: Servers to encode (ServerRecord or ServerDefinition)
        container_key: "mcpServers" or "servers"

    Returns:
        {container_key: {name: entry, ...}}
    """
    return {container_key: {record.name: encode_entry(record) for record in records}}
