"""Host/port helpers and the OS resolver address lookup."""

import logging
import socket

logger = logging.getLogger(__name__)


def resolve_all(hostname: str) -> list[str]:
    """Resolve a hostname to all of its A and AAAA addresses.

    Wraps ``socket.getaddrinfo`` and returns the deduplicated IP strings
    in answer order.

    Args:
        hostname: The hostname to resolve (e.g. ``"store.svc.local"``).

    Returns:
        A deduplicated list of IPv4 and IPv6 address strings.

    Raises:
        socket.gaierror: If DNS resolution fails entirely.
    """
    logger.debug("Resolving %s through the system resolver", hostname)

    results = socket.getaddrinfo(
        hostname,
        None,
        family=socket.AF_UNSPEC,
        type=socket.SOCK_STREAM,
    )

    seen: set[str] = set()
    out: list[str] = []
    for _family, _type, _proto, _canonname, sockaddr in results:
        # sockaddr is (ip, port) for AF_INET, (ip, port, flow, scope) for AF_INET6
        ip = sockaddr[0]
        if ip not in seen:
            seen.add(ip)
            out.append(ip)

    logger.debug("Resolved %s → %d unique address(es)", hostname, len(out))
    return out


def split_host_port(name: str) -> tuple[str, str]:
    """Split ``host:port`` into its parts, tolerating a missing port.

    Bracketed IPv6 literals (``[::1]:80``) are unwrapped.  A bare IPv6
    address or a hostname without a port yields an empty port.

    Returns:
        A ``(host, port)`` tuple; ``port`` is ``""`` when absent.
    """
    if name.startswith("["):
        end = name.find("]")
        if end != -1:
            host, rest = name[1:end], name[end + 1 :]
            if rest.startswith(":"):
                return host, rest[1:]
            return host, ""
    if name.count(":") == 1:
        host, port = name.split(":")
        return host, port
    return name, ""


def join_host_port(host: str, port: str | int) -> str:
    """Combine host and port into ``host:port``, bracketing IPv6 hosts."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
