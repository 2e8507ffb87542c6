# wg_manager/core/__init__.py
"""
Core business logic modules
"""

from .exceptions import (
    WireGuardError,
    NotFoundError,
    ServerNotFoundError,
    ClientNotFoundError,
    KeyGenerationError,
    PersistenceError,
    ConfigParseError,
    InterfaceControlError,
)
from .ipam import allocate_client_ip, FALLBACK_CLIENT_IP
from .locks import ReadWriteLock
from .wireguard_service import WireGuardService
from .config_service import WireGuardConfigService

__all__ = [
    # Errors
    "WireGuardError",
    "NotFoundError",
    "ServerNotFoundError",
    "ClientNotFoundError",
    "KeyGenerationError",
    "PersistenceError",
    "ConfigParseError",
    "InterfaceControlError",
    # IPAM
    "allocate_client_ip",
    "FALLBACK_CLIENT_IP",
    # Locking
    "ReadWriteLock",
    # WireGuard Service
    "WireGuardService",
    # Config Service
    "WireGuardConfigService",
]
