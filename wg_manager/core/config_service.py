# wg_manager/core/config_service.py
"""
WireGuard Configuration Service
Owns the server/client document and persists it on every mutation
"""

import os
import uuid
import logging
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from ..schemas import WireGuardClient, WireGuardConfig, WireGuardServer
from .exceptions import (
    ClientNotFoundError,
    ConfigParseError,
    InterfaceControlError,
    PersistenceError,
    ServerNotFoundError,
)
from .ipam import allocate_client_ip
from .locks import ReadWriteLock
from .wireguard_service import WireGuardService

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _generate_id(taken: Iterable[str]) -> str:
    taken = set(taken)
    while True:
        new_id = str(uuid.uuid4())
        if new_id not in taken:
            return new_id


class WireGuardConfigService:
    """
    Configuration service for WireGuard servers and their clients

    The whole document sits behind one read/write lock. Reads share the
    lock and return deep copies; every mutation holds the exclusive lock
    from lookup through the durable write of the full document.

    If a save fails, the in-memory document is restored to its state before
    the mutation and PersistenceError is raised, so a failed call never
    leaves memory ahead of disk.
    """

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        wireguard: Optional[WireGuardService] = None,
        settings: Optional[Settings] = None
    ):
        """
        Create the service and load the backing document

        Args:
            data_dir: Directory holding the document (defaults to settings.DATA_DIR)
            wireguard: Key generation / interface control collaborator
            settings: Application settings

        Raises:
            ConfigParseError: If the document exists but cannot be decoded
        """
        self.settings = settings or default_settings
        if data_dir is not None:
            self.data_dir = Path(data_dir)
            self.config_path = self.data_dir / self.settings.CONFIG_FILENAME
        else:
            self.data_dir = self.settings.DATA_DIR
            self.config_path = self.settings.config_path
        self.wireguard = wireguard or WireGuardService(self.settings)

        self._config = WireGuardConfig()
        self._lock = ReadWriteLock()

        self.load()
        logger.info(f"Config service initialized: {self.config_path} ({len(self._config.servers)} servers)")

    # === Persistence ===

    def load(self) -> None:
        """
        (Re)load the document from disk

        A missing file is a first run and yields an empty document.
        """
        with self._lock.write_locked():
            self._config = self._read_config()

    def save(self) -> None:
        """Write the full document to disk"""
        with self._lock.write_locked():
            self._write_config()

    def _read_config(self) -> WireGuardConfig:
        try:
            raw = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"No configuration at {self.config_path}, starting empty")
            return WireGuardConfig()
        except UnicodeDecodeError as e:
            logger.error(f"Failed to decode {self.config_path}: {e}")
            raise ConfigParseError(f"Configuration file {self.config_path} is not valid UTF-8: {e}") from e

        try:
            return WireGuardConfig.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Failed to parse {self.config_path}: {e}")
            raise ConfigParseError(f"Invalid configuration file {self.config_path}: {e}") from e

    def _write_config(self) -> None:
        """Serialize and atomically replace the backing file. Caller holds the write lock."""
        try:
            data = self._config.model_dump_json(indent=2)
        except ValueError as e:
            logger.error(f"Failed to serialize configuration: {e}")
            raise PersistenceError(f"Failed to serialize configuration: {e}") from e

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            # mkstemp creates the file 0600
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.data_dir),
                prefix=f".{self.config_path.name}.",
                suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                    f.write("\n")
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.config_path)
            except Exception:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write {self.config_path}: {e}")
            raise PersistenceError(f"Failed to write {self.config_path}: {e}") from e

        logger.debug(f"Saved configuration to {self.config_path}")

    def _commit(self, snapshot: WireGuardConfig) -> None:
        """Persist the current document or restore `snapshot` and re-raise"""
        try:
            self._write_config()
        except PersistenceError:
            logger.warning("Save failed, discarding in-memory change")
            self._config = snapshot
            raise

    # === Lookup helpers (caller holds the lock) ===

    def _find_server(self, server_id: str) -> Tuple[int, WireGuardServer]:
        for index, server in enumerate(self._config.servers):
            if server.id == server_id:
                return index, server
        raise ServerNotFoundError(server_id)

    @staticmethod
    def _find_client(server: WireGuardServer, client_id: str) -> Tuple[int, WireGuardClient]:
        for index, client in enumerate(server.clients):
            if client.id == client_id:
                return index, client
        raise ClientNotFoundError(server.id, client_id)

    def _all_ids(self) -> List[str]:
        ids = []
        for server in self._config.servers:
            ids.append(server.id)
            ids.extend(c.id for c in server.clients)
        return ids

    # === Servers ===

    def list_servers(self) -> List[WireGuardServer]:
        """Snapshot of all servers in document order"""
        with self._lock.read_locked():
            return [server.model_copy(deep=True) for server in self._config.servers]

    def get_server(self, server_id: str) -> WireGuardServer:
        with self._lock.read_locked():
            _, server = self._find_server(server_id)
            return server.model_copy(deep=True)

    def create_server(self, draft: WireGuardServer) -> WireGuardServer:
        """
        Create a server from a draft

        Generates ID, key pair and timestamps, starts with no clients and
        fills MTU/DNS defaults left unset in the draft.

        Raises:
            KeyGenerationError: Key pair generation failed (nothing changed)
            PersistenceError: Document could not be saved (nothing changed)
        """
        with self._lock.write_locked():
            private_key, public_key = self.wireguard.generate_keypair()
            now = _utcnow()

            server = draft.model_copy(deep=True)
            server.id = _generate_id(self._all_ids())
            server.private_key = private_key
            server.public_key = public_key
            server.created_at = now
            server.updated_at = now
            server.clients = []
            if not server.mtu:
                server.mtu = self.settings.DEFAULT_MTU
            if not server.dns:
                server.dns = self.settings.DEFAULT_DNS

            snapshot = self._config.model_copy(deep=True)
            self._config.servers.append(server)
            self._commit(snapshot)

            logger.info(f"Created server {server.id} ({server.tag}, {server.address})")
            return server.model_copy(deep=True)

    def update_server(self, draft: WireGuardServer) -> WireGuardServer:
        """
        Replace a server's mutable fields with the draft's

        Key pair, created_at and the client list are kept from the stored
        server whatever the draft carries.
        """
        with self._lock.write_locked():
            index, existing = self._find_server(draft.id)

            updated = draft.model_copy(deep=True)
            updated.private_key = existing.private_key
            updated.public_key = existing.public_key
            updated.created_at = existing.created_at
            updated.clients = existing.clients
            updated.updated_at = _utcnow()

            snapshot = self._config.model_copy(deep=True)
            self._config.servers[index] = updated
            self._commit(snapshot)

            logger.info(f"Updated server {updated.id} ({updated.tag})")
            return updated.model_copy(deep=True)

    def delete_server(self, server_id: str) -> None:
        """
        Delete a server and all of its clients

        An enabled server's interface is stopped first. A failed stop is
        logged and does not block the deletion.
        """
        with self._lock.write_locked():
            index, server = self._find_server(server_id)

            if server.enabled:
                try:
                    self.wireguard.stop_interface(server.tag)
                except InterfaceControlError as e:
                    logger.warning(f"Could not stop {server.tag} while deleting server {server_id}: {e}")

            snapshot = self._config.model_copy(deep=True)
            del self._config.servers[index]
            self._commit(snapshot)

            logger.info(f"Deleted server {server_id} ({server.tag}) with {len(server.clients)} clients")

    # === Clients ===

    def get_client(self, server_id: str, client_id: str) -> WireGuardClient:
        with self._lock.read_locked():
            _, server = self._find_server(server_id)
            _, client = self._find_client(server, client_id)
            return client.model_copy(deep=True)

    def add_client(self, server_id: str, draft: WireGuardClient) -> WireGuardClient:
        """
        Add a client to a server

        Generates ID, key pair and preshared key. An empty allowed_ips is
        allocated from the server's prefix and an empty DNS is inherited
        from the server.

        Raises:
            ServerNotFoundError: Parent server does not exist
            KeyGenerationError: Key generation failed (nothing changed)
            PersistenceError: Document could not be saved (nothing changed)
        """
        with self._lock.write_locked():
            _, server = self._find_server(server_id)

            private_key, public_key = self.wireguard.generate_keypair()
            preshared_key = self.wireguard.generate_preshared_key()

            client = draft.model_copy(deep=True)
            client.id = _generate_id(self._all_ids())
            client.private_key = private_key
            client.public_key = public_key
            client.preshared_key = preshared_key
            client.enabled = True
            client.created_at = _utcnow()

            if not client.allowed_ips:
                client.allowed_ips = allocate_client_ip(
                    server.address,
                    [c.allowed_ips for c in server.clients]
                )

            if not client.dns:
                client.dns = server.dns

            snapshot = self._config.model_copy(deep=True)
            server.clients.append(client)
            self._commit(snapshot)

            logger.info(f"Added client {client.id} ({client.name}) to server {server_id}: {client.allowed_ips}")
            return client.model_copy(deep=True)

    def delete_client(self, server_id: str, client_id: str) -> None:
        with self._lock.write_locked():
            _, server = self._find_server(server_id)
            index, _ = self._find_client(server, client_id)

            snapshot = self._config.model_copy(deep=True)
            del server.clients[index]
            self._commit(snapshot)

            logger.info(f"Deleted client {client_id} from server {server_id}")

    def update_client(
        self,
        server_id: str,
        client_id: str,
        name: str,
        description: str,
        enabled: bool
    ) -> WireGuardClient:
        """
        Update a client's name, description and enabled flag

        An empty name leaves the current name; description and enabled are
        always applied.
        """
        with self._lock.write_locked():
            _, server = self._find_server(server_id)
            _, client = self._find_client(server, client_id)

            snapshot = self._config.model_copy(deep=True)
            if name:
                client.name = name
            client.description = description
            client.enabled = enabled
            self._commit(snapshot)

            logger.info(f"Updated client {client_id} on server {server_id} (enabled={enabled})")
            return client.model_copy(deep=True)

    # === Environment / rendering ===

    def check_installed(self) -> bool:
        """Whether the wg tools are present on this host"""
        return self.wireguard.is_installed()

    def is_linux(self) -> bool:
        return self.wireguard.is_linux()

    def render_server_config(self, server_id: str) -> str:
        """wg-quick config for a server, with its enabled clients as peers"""
        with self._lock.read_locked():
            _, server = self._find_server(server_id)
            return self.wireguard.build_server_config(server)

    def render_client_config(self, server_id: str, client_id: str) -> str:
        """wg-quick config a client uses to connect to its server"""
        with self._lock.read_locked():
            _, server = self._find_server(server_id)
            _, client = self._find_client(server, client_id)
            return self.wireguard.build_client_config(server, client)
