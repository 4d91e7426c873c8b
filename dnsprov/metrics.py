"""Prometheus collectors describing the provider's resolution health."""

import logging

from prometheus_client import CollectorRegistry, Counter, Gauge

logger = logging.getLogger(__name__)


class ProviderMetrics:
    """Gauge per tracked specification plus lookup counters.

    A series of ``dns_provider_results`` exists for a specification
    exactly while it is cached, and its value is the number of cached
    addresses.  Evicted specifications have their series removed, not
    zeroed.

    Args:
        registry: Registry to register the collectors on.  ``None`` leaves
            them unregistered; their values stay readable through the
            collector objects.
        name: Optional provider name, prepended to every metric name as
            ``<name>_`` so several providers can share a registry.
    """

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        name: str = "",
    ) -> None:
        prefix = f"{name}_" if name else ""

        self.results = Gauge(
            f"{prefix}dns_provider_results",
            "The number of resolved endpoints for each configured address",
            ["addr"],
            registry=registry,
        )
        self.lookups = Counter(
            f"{prefix}dns_provider_lookups",
            "The number of DNS lookups performed",
            registry=registry,
        )
        self.failures = Counter(
            f"{prefix}dns_provider_lookup_failures",
            "The number of DNS lookups that failed or were cancelled",
            registry=registry,
        )
        self._tracked: set[str] = set()

    def sync(self, counts: dict[str, int]) -> None:
        """Mirror *counts* into the results gauge.

        Every spec in *counts* gets its series set; series for specs no
        longer present are removed.
        """
        for spec in self._tracked - set(counts):
            self.results.remove(spec)
            logger.debug("Removed results series for %s", spec)
        for spec, count in counts.items():
            self.results.labels(spec).set(count)
        self._tracked = set(counts)

    def tracked(self) -> set[str]:
        """Return the specs that currently have a results series."""
        return set(self._tracked)
