import json
import os
import stat

import pytest

from modules.catalog.exceptions import ServerValidationError
from schemas.catalog import DetectedClient
from schemas.server import CommandPayload, ServerDefinition, UrlPayload

SERVERS = [
    ServerDefinition(name="fs", payload=CommandPayload(command="npx", args=["-y", "fs"])),
    ServerDefinition(name="remote", payload=UrlPayload(url="https://example.com/mcp")),
]


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_read_missing_file_is_empty(reconciler, tmp_path):
    assert reconciler.read_file(tmp_path / "missing" / "mcp.json") == {}


@pytest.mark.parametrize("content", ["{not json", "", "[1, 2]", '"text"'])
def test_read_unusable_file_is_empty(reconciler, tmp_path, content):
    path = tmp_path / "mcp.json"
    path.write_text(content, encoding="utf-8")

    assert reconciler.read_file(path) == {}


def test_read_returns_parsed_object(reconciler, tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text('{"mcpServers": {"fs": {"command": "npx"}}}', encoding="utf-8")

    assert reconciler.read_file(str(path)) == {"mcpServers": {"fs": {"command": "npx"}}}


def test_write_preserves_unrelated_keys(reconciler, tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text(json.dumps({"theme": "dark", "mcpServers": {"old": {"command": "x"}}}), encoding="utf-8")

    reconciler.write_file(path, SERVERS, "cursor")

    written = read_json(path)
    assert written["theme"] == "dark"
    assert set(written["mcpServers"]) == {"fs", "remote"}
    assert written["mcpServers"]["remote"] == {"url": "https://example.com/mcp", "env": {}, "autostart": False}


def test_write_servers_key_removes_mcp_servers(reconciler, tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text(json.dumps({"mcpServers": {"old": {"command": "x"}}, "inputs": []}), encoding="utf-8")

    reconciler.write_file(path, SERVERS, "vscode")

    written = read_json(path)
    assert "mcpServers" not in written
    assert set(written["servers"]) == {"fs", "remote"}
    assert written["inputs"] == []


def test_write_mcp_servers_key_removes_servers(reconciler, tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text(json.dumps({"servers": {"old": {"command": "x"}}}), encoding="utf-8")

    reconciler.write_file(path, SERVERS, "cursor")

    written = read_json(path)
    assert "servers" not in written
    assert written["mcpServers"]["fs"] == {"command": "npx", "args": ["-y", "fs"], "env": {}, "autostart": False}


def test_write_unknown_client_uses_mcp_servers(reconciler, tmp_path):
    path = tmp_path / "mcp.json"

    reconciler.write_file(path, SERVERS, "some-new-client")

    assert set(read_json(path)) == {"mcpServers"}


def test_write_creates_parent_directories(reconciler, tmp_path):
    path = tmp_path / "a" / "b" / "mcp.json"

    written = reconciler.write_file(path, [], "cursor")

    assert written == path
    assert read_json(path) == {"mcpServers": {}}


def test_write_replaces_corrupt_file(reconciler, tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text("[1, 2, 3", encoding="utf-8")

    reconciler.write_file(path, SERVERS[:1], "cursor")

    assert list(read_json(path)["mcpServers"]) == ["fs"]


def test_write_is_pretty_printed(reconciler, tmp_path):
    path = tmp_path / "mcp.json"

    reconciler.write_file(path, SERVERS[:1], "cursor")

    assert path.read_text(encoding="utf-8").startswith('{\n  "mcpServers": {\n')
    assert [p.name for p in tmp_path.iterdir()] == ["mcp.json"]


@pytest.mark.parametrize("path", [None, ""])
def test_write_without_path_fails_before_io(reconciler, tmp_path, path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ServerValidationError):
        reconciler.write_file(path, SERVERS, "cursor")

    assert list(tmp_path.iterdir()) == []


def test_write_failure_is_reported(reconciler, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(OSError):
        reconciler.write_file(blocker / "mcp.json", SERVERS, "cursor")


def test_discover_clients_reads_configured_clients(reconciler, tmp_path):
    vscode_path = tmp_path / "vscode.json"
    vscode_path.write_text(json.dumps({"servers": {"web": {"url": "http://localhost:3000"}}}), encoding="utf-8")
    clients = [
        DetectedClient(id="vscode", name="Visual Studio Code", config_path=vscode_path, is_configured=True),
        DetectedClient(id="cursor", name="Cursor", config_path=None, is_configured=False),
    ]

    entries = reconciler.discover_clients(clients)

    assert [(entry.client_id, entry.original_name) for entry in entries] == [("vscode", "web")]


def test_write_keeps_existing_file_mode(reconciler, tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text("{}", encoding="utf-8")
    path.chmod(0o644)

    reconciler.write_file(path, [], "cursor")

    assert stat.S_IMODE(path.stat().st_mode) == 0o644


def test_write_new_file_honours_umask(reconciler, tmp_path):
    path = tmp_path / "mcp.json"
    umask = os.umask(0o022)
    try:
        reconciler.write_file(path, [], "cursor")
    finally:
        os.umask(umask)

    assert stat.S_IMODE(path.stat().st_mode) == 0o644


def test_failed_content_write_leaves_no_temp_file(reconciler, tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text('{"theme": "dark"}', encoding="utf-8")

    # A lone surrogate cannot be encoded as UTF-8
    with pytest.raises(UnicodeEncodeError):
        reconciler._replace_file(path, '{"name": "\ud800"}')

    assert [p.name for p in tmp_path.iterdir()] == ["mcp.json"]
    assert read_json(path) == {"theme": "dark"}
