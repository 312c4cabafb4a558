"""DNS-based server identification for the seed host.

Forward resolution is mandatory: if the hostname has no address the run
cannot proceed and :class:`~webbot.errors.DnsError` is raised.  Reverse
resolution is best effort: a missing PTR record yields the ``"N/A"``
sentinel instead of an error.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass

from .errors import DnsError

LOGGER = logging.getLogger(__name__)

UNKNOWN_SERVER_NAME = "N/A"


@dataclass(frozen=True, slots=True)
class ServerInfo:
    """Identity of the server behind the seed URL."""

    server_name: str
    ip_address: str

    @property
    def reverse_resolved(self) -> bool:
        return self.server_name != UNKNOWN_SERVER_NAME

    def to_dict(self) -> dict:
        return {"serverName": self.server_name, "ipAddress": self.ip_address}


async def resolve_server_async(hostname: str) -> ServerInfo:
    """Resolve *hostname* to an address, then try a reverse lookup.

    Raises:
        DnsError: If the forward lookup fails or returns no address.
    """
    if not hostname:
        raise DnsError("No hostname to resolve", hostname=hostname)

    loop = asyncio.get_running_loop()
    # UnicodeError: the hostname fails IDNA encoding (empty or over-long label)
    try:
        infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, OSError, UnicodeError) as exc:
        raise DnsError(
            f"Forward lookup failed for {hostname}: {exc}", hostname=hostname
        ) from exc

    if not infos:
        raise DnsError(f"No address found for {hostname}", hostname=hostname)

    sockaddr = infos[0][4]
    address = sockaddr[0]

    try:
        name, _ = await loop.getnameinfo(sockaddr, socket.NI_NAMEREQD)
    except (socket.gaierror, socket.herror, OSError) as exc:
        LOGGER.debug("Reverse lookup failed for %s: %s", address, exc)
        name = ""

    return ServerInfo(server_name=name or UNKNOWN_SERVER_NAME, ip_address=address)
