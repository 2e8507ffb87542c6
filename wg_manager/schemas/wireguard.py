# wg_manager/schemas/wireguard.py
"""
WireGuard document schemas

The same models serve as persisted entities and as drafts passed to the
configuration service. Empty strings / zero values in a draft mean "unset".
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime


class WireGuardClient(BaseModel):
    """A peer attached to exactly one server"""
    id: str = Field(default="", description="Generated client ID (uuid4)")
    name: str = Field(default="", examples=["laptop"])
    description: str = Field(default="", description="Free-text description")

    # Keys
    private_key: str = Field(default="", description="Client private key (Base64)")
    public_key: str = Field(default="", description="Client public key (Base64)")
    preshared_key: str = Field(default="", description="Preshared key layered on the key pair")

    # Network
    allowed_ips: str = Field(
        default="",
        description="Host route inside the server subnet; allocated when empty",
        examples=["10.0.0.2/32"]
    )
    dns: str = Field(default="", description="DNS override; inherits the server DNS when empty")

    enabled: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5f0c9a43-2f64-4f43-9a7b-0a9f7b1d2c11",
                "name": "laptop",
                "description": "work laptop",
                "allowed_ips": "10.0.0.2/32",
                "dns": "1.1.1.1,8.8.8.8",
                "enabled": True,
                "created_at": "2026-01-01T10:00:00Z"
            }
        }
    )


class WireGuardServer(BaseModel):
    """
    Tunnel endpoint definition
    Owns its clients; insertion order is display order
    """
    id: str = Field(default="", description="Generated server ID (uuid4)")
    tag: str = Field(default="", description="Interface name handed to wg-quick", examples=["wg0"])

    # Keys (immutable after creation)
    private_key: str = ""
    public_key: str = ""

    # Network
    address: str = Field(default="", description="Server address with CIDR", examples=["10.0.0.1/24"])
    listen_port: int = Field(default=51820, ge=0, le=65535)
    mtu: int = Field(default=0, ge=0, description="Interface MTU; 0 means use the default")
    dns: str = Field(default="", description="Comma separated DNS servers", examples=["1.1.1.1,8.8.8.8"])
    endpoint: str = Field(default="", description="Public host:port advertised to clients")

    enabled: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    clients: List[WireGuardClient] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0d8e3d5c-1a8c-4f0e-8a52-6c3b8f5b7e10",
                "tag": "wg0",
                "address": "10.0.0.1/24",
                "listen_port": 51820,
                "mtu": 1420,
                "dns": "1.1.1.1,8.8.8.8",
                "endpoint": "vpn.example.com:51820",
                "enabled": True,
                "clients": []
            }
        }
    )

    @field_validator("clients", mode="before")
    @classmethod
    def null_clients_as_empty(cls, v):
        """Older documents store an empty client list as null"""
        return [] if v is None else v


class WireGuardConfig(BaseModel):
    """
    Root persisted document
    Serialized as a whole to the backing file on every mutation
    """
    servers: List[WireGuardServer] = Field(default_factory=list)

    @field_validator("servers", mode="before")
    @classmethod
    def null_servers_as_empty(cls, v):
        return [] if v is None else v
