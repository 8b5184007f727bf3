"""Settings service — destination directory and reachability info."""

import logging
import socket

from landrop.api.settings.dto.settings import InfoResponse, SetDirResponse
from landrop.api.settings.repositories.directory_registry import DirectoryRegistry

log = logging.getLogger(__name__)


def local_ipv4_addresses() -> list[str]:
    """Non-loopback IPv4 addresses other devices can use to reach this host."""
    addresses: set[str] = set()
    try:
        for info in socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET):
            addresses.add(info[4][0])
    except OSError as e:
        log.debug(f"Hostname lookup failed: {e}")

    # No packets are sent; connecting a UDP socket only selects the outbound interface.
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            addresses.add(s.getsockname()[0])
    except OSError as e:
        log.debug(f"No default route: {e}")

    return sorted(ip for ip in addresses if ip and not ip.startswith("127."))


def get_info(registry: DirectoryRegistry, port: int) -> InfoResponse:
    return InfoResponse(ips=local_ipv4_addresses(), port=port, dir=str(registry.get()))


async def set_dir(registry: DirectoryRegistry, path: str) -> SetDirResponse:
    new_dir = await registry.set(path)
    return SetDirResponse(dir=str(new_dir))
