"""Resolver registry and the abstract Resolver base class."""

from __future__ import annotations

import ipaddress
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from dnsprov.models import LookupKind
from dnsprov.sysdns import join_host_port, split_host_port

if TYPE_CHECKING:
    from dnsprov.models import SRVRecord

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when a lookup fails for any reason other than a missing name."""


class NoSuchHost(ResolutionError):
    """Raised by lookups when the name has no records at all."""


class Resolver(ABC):
    """Abstract base class for the record lookups behind a provider.

    ``resolve`` owns the name handling shared by every backend (scheme and
    port splitting, SRV port selection, the empty-answer policy); concrete
    subclasses only perform the raw ``lookup_ip`` / ``lookup_srv`` calls.
    """

    def resolve(self, name: str, kind: LookupKind) -> list[str]:
        """Resolve *name* to a list of ``host:port`` addresses.

        Args:
            name: Name without its lookup prefix, e.g. ``"store:10901"``
                or ``"http://_grpc._tcp.store"``.
            kind: Lookup to perform.

        Returns:
            Resolved addresses.  An empty list is a legitimate "no such
            host" answer.

        Raises:
            ResolutionError: If the lookup failed or *name* is unusable.
        """
        scheme = ""
        if "//" in name:
            scheme, name = name.split("//", 1)
        host, port = split_host_port(name)

        res: list[str] = []
        if kind is LookupKind.A:
            if not port:
                raise ResolutionError(
                    f"missing port in address given for dns lookup: {name}"
                )
            try:
                ips = self._lookup_addresses(host)
            except NoSuchHost:
                ips = []
            res = [_with_scheme(scheme, join_host_port(ip, port)) for ip in ips]
        elif kind in (LookupKind.SRV, LookupKind.SRV_NO_A):
            try:
                records = self.lookup_srv(host)
            except NoSuchHost:
                records = []
            for rec in records:
                # An explicit port in the name overrides the advertised one.
                rec_port = port or str(rec.port)
                if kind is LookupKind.SRV_NO_A:
                    addr = join_host_port(rec.target, rec_port)
                    res.append(_with_scheme(scheme, addr))
                    continue
                try:
                    ips = self._lookup_addresses(rec.target)
                except NoSuchHost as exc:
                    raise ResolutionError(
                        f"lookup IP addresses of SRV target {rec.target!r}: {exc}"
                    ) from exc
                res.extend(
                    _with_scheme(scheme, join_host_port(ip, rec_port)) for ip in ips
                )
        else:
            raise ResolutionError(f"invalid lookup kind {kind!r} for {name!r}")

        if not res:
            logger.warning(
                "%s lookup for %s yielded no results; no host or no addresses found",
                kind.value,
                name,
            )
        return res

    def _lookup_addresses(self, host: str) -> list[str]:
        """Return *host* itself for IP literals, otherwise look it up."""
        try:
            ipaddress.ip_address(host)
        except ValueError:
            return self.lookup_ip(host)
        return [host]

    @abstractmethod
    def lookup_ip(self, host: str) -> list[str]:
        """Return the IPv4 and IPv6 addresses of *host*.

        Raises:
            NoSuchHost: If *host* has no address records.
            ResolutionError: On any other lookup failure.
        """

    @abstractmethod
    def lookup_srv(self, name: str) -> list[SRVRecord]:
        """Return the SRV records of *name*.

        Raises:
            NoSuchHost: If *name* has no SRV records.
            ResolutionError: On any other lookup failure.
        """


def _with_scheme(scheme: str, addr: str) -> str:
    if not scheme:
        return addr
    return f"{scheme}//{addr}"


def _build_registry() -> dict[str, type[Resolver]]:
    """Build the resolver-type → Resolver-class mapping.

    Imports are deferred so that the backends can import the base class
    from this module.
    """
    from dnsprov.resolvers.dnspython import DnspythonResolver
    from dnsprov.resolvers.system import SystemResolver

    return {
        "dnspython": DnspythonResolver,
        "system": SystemResolver,
    }


def get_resolver(resolver_type: str, **options: object) -> Resolver:
    """Look up and instantiate the resolver for *resolver_type*.

    Args:
        resolver_type: Resolver type (``"dnspython"`` or ``"system"``).
        **options: Keyword arguments for the resolver constructor.

    Returns:
        An instance of the matching ``Resolver`` subclass.

    Raises:
        ValueError: If *resolver_type* is not in the registry.
    """
    registry = _build_registry()
    resolver_cls = registry.get(resolver_type)
    if resolver_cls is None:
        known = ", ".join(sorted(registry))
        raise ValueError(
            f"Unknown resolver type {resolver_type!r}. Known types: {known}"
        )
    return resolver_cls(**options)


def registered_resolvers() -> list[str]:
    """Return a sorted list of all registered resolver types."""
    return sorted(_build_registry())
