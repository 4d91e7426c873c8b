"""Resolver that looks up addresses through the operating system."""

import logging
import socket

from dnsprov.resolvers import NoSuchHost, ResolutionError
from dnsprov.resolvers.dnspython import DnspythonResolver
from dnsprov.sysdns import resolve_all

logger = logging.getLogger(__name__)

# getaddrinfo error codes meaning the name simply has no addresses.
_NO_SUCH_HOST_CODES = {
    code
    for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_NODATA", None),
    )
    if code is not None
}


class SystemResolver(DnspythonResolver):
    """Address lookups via ``getaddrinfo``; SRV lookups via dnspython.

    Address lookups honour ``/etc/hosts``, nsswitch and the libc search
    path.  The OS resolver API has no SRV query, so those still go to the
    configured nameservers.
    """

    def lookup_ip(self, host: str) -> list[str]:
        try:
            ips = resolve_all(host)
        except socket.gaierror as exc:
            if exc.errno in _NO_SUCH_HOST_CODES:
                raise NoSuchHost(f"no such host {host}") from exc
            raise ResolutionError(f"lookup {host}: {exc}") from exc

        if not ips:
            raise NoSuchHost(f"no addresses for host {host}")
        return ips
