# wg_manager/core/exceptions.py
"""
Error types raised by the configuration service and its collaborators
"""


class WireGuardError(Exception):
    """Base error for the WireGuard manager."""

    pass


class NotFoundError(WireGuardError):
    """A requested server or client does not exist."""

    pass


class ServerNotFoundError(NotFoundError):
    """Server ID is not present in the document."""

    def __init__(self, server_id: str):
        self.server_id = server_id
        super().__init__(f"Server not found: {server_id}")


class ClientNotFoundError(NotFoundError):
    """Client ID is not present in its parent server."""

    def __init__(self, server_id: str, client_id: str):
        self.server_id = server_id
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id} (server {server_id})")


class KeyGenerationError(WireGuardError):
    """Key pair or preshared key generation failed."""

    pass


class PersistenceError(WireGuardError):
    """The document could not be serialized or written."""

    pass


class ConfigParseError(WireGuardError):
    """The backing file exists but cannot be decoded."""

    pass


class InterfaceControlError(WireGuardError):
    """wg-quick failed to bring an interface up or down."""

    pass
