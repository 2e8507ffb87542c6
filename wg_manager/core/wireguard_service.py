# wg_manager/core/wireguard_service.py
"""
WireGuard Service
Wraps the wg / wg-quick tools used by the configuration service
"""

import ipaddress
import shutil
import subprocess
import sys
import logging
from typing import List, Optional, Tuple

from ..config import Settings, settings as default_settings
from ..schemas import WireGuardClient, WireGuardServer
from .exceptions import InterfaceControlError, KeyGenerationError

logger = logging.getLogger(__name__)


class WireGuardService:
    """
    Host-side WireGuard operations

    Responsibilities:
    - Generate key pairs and preshared keys
    - Bring interfaces up/down via wg-quick
    - Report whether the tools are installed
    - Render wg-quick config files for servers and clients
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.wg = self.settings.WG_BINARY
        self.wg_quick = self.settings.WG_QUICK_BINARY
        self.timeout = self.settings.WG_COMMAND_TIMEOUT

    def _run(
        self,
        cmd: List[str],
        input: Optional[str] = None,
        check: bool = True
    ) -> subprocess.CompletedProcess:
        """Run shell command"""
        logger.debug(f"Running: {' '.join(cmd)}")
        return subprocess.run(
            cmd,
            input=input,
            check=check,
            capture_output=True,
            text=True,
            timeout=self.timeout
        )

    # === Keys ===

    def generate_keypair(self) -> Tuple[str, str]:
        """
        Generate WireGuard private/public key pair using wg command
        Returns: (private_key, public_key)
        """
        try:
            private_key = self._run([self.wg, "genkey"]).stdout.strip()
            public_key = self._run([self.wg, "pubkey"], input=private_key).stdout.strip()
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to generate WireGuard keys: {e.stderr}")
            raise KeyGenerationError("Failed to generate WireGuard keys. Is WireGuard installed?") from e
        except subprocess.TimeoutExpired as e:
            logger.error("Key generation timed out")
            raise KeyGenerationError("WireGuard key generation timed out") from e
        except FileNotFoundError as e:
            logger.error(f"WireGuard '{self.wg}' command not found")
            raise KeyGenerationError("WireGuard tools not installed. Please install wireguard-tools.") from e

        if not private_key or not public_key:
            raise KeyGenerationError("wg returned an empty key")

        return private_key, public_key

    def generate_preshared_key(self) -> str:
        """Generate a preshared key using wg genpsk"""
        try:
            psk = self._run([self.wg, "genpsk"]).stdout.strip()
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to generate preshared key: {e.stderr}")
            raise KeyGenerationError("Failed to generate preshared key") from e
        except subprocess.TimeoutExpired as e:
            logger.error("Preshared key generation timed out")
            raise KeyGenerationError("Preshared key generation timed out") from e
        except FileNotFoundError as e:
            logger.error(f"WireGuard '{self.wg}' command not found")
            raise KeyGenerationError("WireGuard tools not installed. Please install wireguard-tools.") from e

        if not psk:
            raise KeyGenerationError("wg returned an empty preshared key")

        return psk

    # === Interface control ===

    def _wg_quick(self, action: str, tag: str) -> None:
        try:
            self._run([self.wg_quick, action, tag])
        except subprocess.CalledProcessError as e:
            logger.error(f"wg-quick {action} {tag} failed: {e.stderr}")
            raise InterfaceControlError(f"wg-quick {action} {tag} failed: {(e.stderr or '').strip()}") from e
        except subprocess.TimeoutExpired as e:
            logger.error(f"wg-quick {action} {tag} timed out")
            raise InterfaceControlError(f"wg-quick {action} {tag} timed out") from e
        except FileNotFoundError as e:
            logger.error(f"'{self.wg_quick}' command not found")
            raise InterfaceControlError(f"'{self.wg_quick}' command not found") from e

        logger.info(f"Interface {tag}: {action}")

    def start_interface(self, tag: str) -> None:
        """Bring interface up (wg-quick up <tag>)"""
        self._wg_quick("up", tag)

    def stop_interface(self, tag: str) -> None:
        """Bring interface down (wg-quick down <tag>)"""
        self._wg_quick("down", tag)

    # === Environment ===

    def is_installed(self) -> bool:
        """Check if the wg binary is on PATH"""
        return shutil.which(self.wg) is not None

    def is_linux(self) -> bool:
        """Check host OS; development mode skips the check"""
        if self.settings.DEV_MODE:
            return True
        return sys.platform.startswith("linux")

    # === Config rendering ===

    def build_server_config(self, server: WireGuardServer) -> str:
        """
        Generate wg-quick config for a server
        Disabled clients are left out of the peer list
        """
        lines = [
            "[Interface]",
            f"Address = {server.address}",
            f"ListenPort = {server.listen_port}",
            f"PrivateKey = {server.private_key}",
        ]
        if server.mtu:
            lines.append(f"MTU = {server.mtu}")

        for client in server.clients:
            if not client.enabled:
                continue
            lines.append("")
            if client.name:
                lines.append(f"# {client.name}")
            lines.append("[Peer]")
            lines.append(f"PublicKey = {client.public_key}")
            if client.preshared_key:
                lines.append(f"PresharedKey = {client.preshared_key}")
            lines.append(f"AllowedIPs = {client.allowed_ips}")

        return "\n".join(lines) + "\n"

    @staticmethod
    def _tunnel_network(address: str) -> str:
        """'10.0.0.1/24' -> '10.0.0.0/24'; unparseable addresses pass through"""
        try:
            return str(ipaddress.ip_interface(address).network)
        except ValueError:
            return address

    def build_client_config(self, server: WireGuardServer, client: WireGuardClient) -> str:
        """Generate wg-quick config a client imports to reach the server"""
        dns = client.dns or server.dns

        lines = [
            "[Interface]",
            f"PrivateKey = {client.private_key}",
            f"Address = {client.allowed_ips}",
        ]
        if dns:
            lines.append(f"DNS = {', '.join(d.strip() for d in dns.split(',') if d.strip())}")
        if server.mtu:
            lines.append(f"MTU = {server.mtu}")

        lines += [
            "",
            "[Peer]",
            f"PublicKey = {server.public_key}",
        ]
        if client.preshared_key:
            lines.append(f"PresharedKey = {client.preshared_key}")
        lines.append(f"AllowedIPs = {self._tunnel_network(server.address)}")
        if server.endpoint:
            lines.append(f"Endpoint = {server.endpoint}")
        lines.append(f"PersistentKeepalive = {self.settings.CLIENT_PERSISTENT_KEEPALIVE}")

        return "\n".join(lines) + "\n"
