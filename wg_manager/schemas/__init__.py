# wg_manager/schemas/__init__.py
"""
Pydantic Schemas for the WireGuard configuration document
"""

from .wireguard import (
    WireGuardClient,
    WireGuardServer,
    WireGuardConfig,
)

__all__ = [
    "WireGuardClient",
    "WireGuardServer",
    "WireGuardConfig",
]
