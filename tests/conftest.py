"""Pytest configuration and shared fixtures for the configuration service."""

import itertools
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Generator, List, Optional

import pytest

from wg_manager.config import Settings
from wg_manager.core import (
    InterfaceControlError,
    KeyGenerationError,
    WireGuardConfigService,
    WireGuardService,
)
from wg_manager.schemas import WireGuardClient, WireGuardServer


class FakeWireGuard(WireGuardService):
    """WireGuardService with deterministic keys and recorded interface calls."""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings or Settings())
        self._counter = itertools.count(1)
        self._counter_lock = threading.Lock()
        self.stopped: List[str] = []
        self.started: List[str] = []
        self.fail_keypair = False
        self.fail_psk = False
        self.fail_stop = False
        self.on_stop = None

    def _next(self) -> int:
        with self._counter_lock:
            return next(self._counter)

    def generate_keypair(self):
        if self.fail_keypair:
            raise KeyGenerationError("wg genkey failed")
        n = self._next()
        return f"private-{n}", f"public-{n}"

    def generate_preshared_key(self):
        if self.fail_psk:
            raise KeyGenerationError("wg genpsk failed")
        return f"psk-{self._next()}"

    def start_interface(self, tag):
        self.started.append(tag)

    def stop_interface(self, tag):
        self.stopped.append(tag)
        if self.on_stop:
            self.on_stop(tag)
        if self.fail_stop:
            raise InterfaceControlError(f"wg-quick down {tag} failed")

    def is_installed(self):
        return True


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test artifacts."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_wireguard() -> FakeWireGuard:
    return FakeWireGuard()


@pytest.fixture
def service(temp_dir: Path, fake_wireguard: FakeWireGuard) -> WireGuardConfigService:
    """Configuration service backed by a fresh directory."""
    return WireGuardConfigService(data_dir=temp_dir, wireguard=fake_wireguard)


@pytest.fixture
def server_draft() -> WireGuardServer:
    return WireGuardServer(tag="wg0", address="10.0.0.1/24", listen_port=51820)


@pytest.fixture
def server(service: WireGuardConfigService, server_draft: WireGuardServer) -> WireGuardServer:
    """A persisted, disabled server at 10.0.0.1/24."""
    return service.create_server(server_draft)


@pytest.fixture
def client_draft() -> WireGuardClient:
    return WireGuardClient(name="laptop", description="")
