"""Resolver backed by dnspython."""

import logging

import dns.exception
import dns.resolver

from dnsprov.models import SRVRecord
from dnsprov.resolvers import NoSuchHost, ResolutionError, Resolver

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class DnspythonResolver(Resolver):
    """Performs A, AAAA and SRV lookups with ``dns.resolver.Resolver``.

    Args:
        nameservers: Nameserver IPs to query.  ``None`` uses the system
            configuration (``/etc/resolv.conf``).
        timeout: Upper bound in seconds for a single lookup, retries
            included.
        resolver: Preconfigured dnspython resolver, mainly for tests.
    """

    def __init__(
        self,
        nameservers: list[str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        resolver: dns.resolver.Resolver | None = None,
    ) -> None:
        if resolver is None:
            resolver = dns.resolver.Resolver(configure=nameservers is None)
            if nameservers is not None:
                resolver.nameservers = list(nameservers)
            resolver.timeout = timeout
            resolver.lifetime = timeout
        self._resolver = resolver

    def lookup_ip(self, host: str) -> list[str]:
        ips: list[str] = []
        for rdtype in ("A", "AAAA"):
            try:
                answer = self._resolver.resolve(host, rdtype)
            except dns.resolver.NoAnswer:
                continue
            except dns.resolver.NXDOMAIN as exc:
                raise NoSuchHost(f"no such host {host}") from exc
            except dns.exception.DNSException as exc:
                raise ResolutionError(f"lookup {rdtype} {host}: {exc}") from exc
            ips.extend(rdata.to_text() for rdata in answer)

        if not ips:
            raise NoSuchHost(f"no addresses for host {host}")
        logger.debug("Resolved %s → %d address(es)", host, len(ips))
        return ips

    def lookup_srv(self, name: str) -> list[SRVRecord]:
        try:
            answer = self._resolver.resolve(name, "SRV")
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer) as exc:
            raise NoSuchHost(f"no SRV records for {name}") from exc
        except dns.exception.DNSException as exc:
            raise ResolutionError(f"lookup SRV {name}: {exc}") from exc

        records = [
            SRVRecord(
                target=rdata.target.to_text(omit_final_dot=True),
                port=rdata.port,
                priority=rdata.priority,
                weight=rdata.weight,
            )
            for rdata in answer
        ]
        records.sort(key=lambda rec: (rec.priority, -rec.weight))
        logger.debug("Resolved SRV %s → %d record(s)", name, len(records))
        return records
