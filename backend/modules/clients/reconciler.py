"""
Client configuration reconciler.

Moves server definitions between the managed catalogue and a client's own
JSON configuration file. Reads are tolerant (anything unreadable counts as
"nothing configured yet"); writes replace the server container in the
client's expected shape, keep every other top-level key, and swap the whole
file in atomically.
"""

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from config import settings
from modules.catalog.exceptions import ServerValidationError
from modules.clients import codec
from modules.clients.profiles import container_key_for
from schemas.catalog import DetectedClient
from schemas.server import DiscoveredServerEntry, ServerDefinition
from utils.logging import get_logger, log_client_config_event

logger = get_logger("clients.reconciler")

PathLike = Union[str, os.PathLike]


class ClientConfigReconciler:
    """Reads and writes client configuration files."""

    def __init__(self, indent: Optional[int] = None):
        self.indent = settings.client_config_indent if indent is None else indent

    def read_file(self, path: PathLike) -> Dict[str, Any]:
        """
        Read a client configuration file.

        A missing file, an unreadable file, invalid JSON and a non-object
        document all yield an empty dict.

        Args:
            path: Client configuration file path

        Returns:
            Parsed top-level object, or {} if there is nothing usable
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            log_client_config_event("read_fallback", str(path), reason="missing")
            return {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read client config at {path} (may be new or corrupt): {e}")
            log_client_config_event("read_fallback", str(path), reason="unreadable")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Client config at {path} is not a JSON object, ignoring it")
            log_client_config_event("read_fallback", str(path), reason="not_an_object")
            return {}

        log_client_config_event("read", str(path))
        return data

    def write_file(
        self,
        path: Optional[PathLike],
        records: Iterable[ServerDefinition],
        client_id: Optional[str],
    ) -> Path:
        """
        Write servers into a client configuration file.

        The client's container key is overwritten with the encoded servers,
        the other recognized container key is removed, and every other
        top-level key is preserved. Last writer wins.

        Args:
            path: Client configuration file path
            records: Servers to write
            client_id: Client id selecting the container key

        Returns:
            Path that was written

        Raises:
            ServerValidationError: If no path was given (before any I/O)
            OSError: If the file cannot be written
        """
        if not path:
            raise ServerValidationError("Client configuration path is missing.")

        path = Path(path)
        records = list(records)
        target_key = container_key_for(client_id)

        config = self.read_file(path)
        config.update(codec.encode(records, target_key))
        for key in codec.CONTAINER_KEYS:
            if key != target_key:
                config.pop(key, None)

        path.parent.mkdir(parents=True, exist_ok=True)
        self._replace_file(path, json.dumps(config, indent=self.indent, ensure_ascii=False))

        logger.info(f"Wrote {len(records)} managed servers to {path}")
        log_client_config_event("written", str(path), client_id=client_id, container_key=target_key)
        return path

    @staticmethod
    def _target_mode(path: Path) -> int:
        """Mode of the existing file, else 0o666 minus the process umask."""
        try:
            return stat.S_IMODE(path.stat().st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    @classmethod
    def _replace_file(cls, path: Path, content: str) -> None:
        mode = cls._target_mode(path)
        tf = tempfile.NamedTemporaryFile("w", delete=False, dir=str(path.parent), encoding="utf-8")
        try:
            with tf:
                tf.write(content)
            os.chmod(tf.name, mode)
            os.replace(tf.name, path)
        except Exception:
            # The temp file must not outlive a failed write
            if os.path.exists(tf.name):
                os.unlink(tf.name)
            raise

    def discover(self, path: PathLike, client_id: str, client_name: str) -> List[DiscoveredServerEntry]:
        """
        Read a client's file and decode its servers as discovered entries.

        Args:
            path: Client configuration file path
            client_id: Originating client id
            client_name: Originating client display name

        Returns:
            List of DiscoveredServerEntry (empty if the file is unusable)
        """
        return codec.discover(self.read_file(path), client_id, client_name)

    def discover_clients(self, clients: Iterable[DetectedClient]) -> List[DiscoveredServerEntry]:
        """Discovered entries across every configured client."""
        discovered = []
        for client in clients:
            if client.is_configured and client.config_path:
                discovered.extend(self.discover(client.config_path, client.id, client.name))
        return discovered
