"""Discovery provider: resolves specifications and caches the addresses.

One call to ``Provider.resolve`` is a full refresh cycle:

1. classify every specification (``dnsprov.parse.classify``);
2. static addresses are taken as-is, everything else is looked up on a
   bounded thread pool;
3. the results are merged into the cache in a single swap, keeping the
   previous addresses of any specification whose lookup failed and
   dropping specifications that were not listed;
4. the results gauge is brought in line with the new cache content.

The periodic driver that calls ``resolve`` lives outside this module.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

from dnsprov.cache import DiscoveryCache
from dnsprov.metrics import ProviderMetrics
from dnsprov.models import CycleReport, LookupKind
from dnsprov.parse import classify

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prometheus_client import CollectorRegistry

    from dnsprov.resolvers import Resolver

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8

# How often a running cycle checks its stop event.
_STOP_POLL_SECONDS = 0.05


class Provider:
    """Keeps an up-to-date list of addresses for a set of specifications.

    Args:
        resolver: Backend performing the lookups.  ``None`` builds a
            ``DnspythonResolver`` with the system configuration.
        registry: Prometheus registry for the provider's metrics.  ``None``
            leaves the metrics unregistered.
        name: Provider name, used as metric name prefix and in logs.
        max_workers: Maximum number of concurrent lookups per cycle.
    """

    def __init__(
        self,
        resolver: Resolver | None = None,
        registry: CollectorRegistry | None = None,
        name: str = "",
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        if resolver is None:
            from dnsprov.resolvers.dnspython import DnspythonResolver

            resolver = DnspythonResolver()

        self.resolver = resolver
        self.name = name
        self.max_workers = max_workers
        self.cache = DiscoveryCache()
        self.metrics = ProviderMetrics(registry, name)
        self._cycle_lock = threading.Lock()

    def clone(self) -> Provider:
        """Return a provider with the same resolver and an empty cache.

        The clone's metrics are not registered anywhere.
        """
        return Provider(
            resolver=self.resolver,
            registry=None,
            name=self.name,
            max_workers=self.max_workers,
        )

    def addresses(self) -> list[str]:
        """Return the current flattened address list."""
        return self.cache.addresses()

    def resolve(
        self,
        specs: Iterable[str],
        *,
        timeout: float | None = None,
        stop: threading.Event | None = None,
    ) -> CycleReport:
        """Run one resolution cycle over *specs*.

        Lookup errors never propagate: the failing specification keeps the
        addresses it had before the cycle (or none if it never resolved),
        and the failure is logged and counted.

        Args:
            specs: Discovery specifications.  Duplicates are ignored.
            timeout: Seconds after which pending lookups are abandoned.
            stop: Event that, once set, abandons pending lookups.

        Returns:
            A ``CycleReport`` of the cycle's outcome.
        """
        with self._cycle_lock:
            return self._resolve(list(dict.fromkeys(specs)), timeout, stop)

    def _resolve(
        self,
        specs: list[str],
        timeout: float | None,
        stop: threading.Event | None,
    ) -> CycleReport:
        t0 = time.monotonic()
        report = CycleReport()
        results: dict[str, list[str]] = {}
        lookups: dict[str, tuple[LookupKind, str]] = {}

        for spec in specs:
            kind, name = classify(spec)
            if kind is LookupKind.STATIC:
                results[spec] = [name]
            else:
                lookups[spec] = (kind, name)

        if lookups:
            self._lookup_all(lookups, results, report, timeout, stop)

        previous = self.cache.snapshot()
        entries: dict[str, list[str]] = {}
        for spec in specs:
            if spec in results:
                entries[spec] = results[spec]
            else:
                entries[spec] = previous.get(spec, [])
        report.resolved = [spec for spec in specs if spec in results]

        self.cache.replace(entries)
        self.metrics.sync({spec: len(addrs) for spec, addrs in entries.items()})

        evicted = previous.keys() - entries.keys()
        if evicted:
            logger.debug(
                "Evicted %d specification(s): %s", len(evicted), sorted(evicted)
            )

        report.duration_seconds = time.monotonic() - t0
        logger.debug(
            "Resolution cycle%s: %d resolved, %d failed, %d cancelled in %.3fs",
            f" ({self.name})" if self.name else "",
            len(report.resolved),
            len(report.failed),
            len(report.cancelled),
            report.duration_seconds,
        )
        return report

    def _lookup_all(
        self,
        lookups: dict[str, tuple[LookupKind, str]],
        results: dict[str, list[str]],
        report: CycleReport,
        timeout: float | None,
        stop: threading.Event | None,
    ) -> None:
        """Fan *lookups* out to the resolver and collect into *results*."""
        deadline = None if timeout is None else time.monotonic() + timeout
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(lookups)),
            thread_name_prefix="dnsprov-lookup",
        )
        futures: dict[Future, str] = {}
        try:
            for spec, (kind, name) in lookups.items():
                futures[executor.submit(self.resolver.resolve, name, kind)] = spec
                self.metrics.lookups.inc()

            pending = set(futures)
            while pending:
                if stop is not None and stop.is_set():
                    break
                wait_for = _STOP_POLL_SECONDS if stop is not None else None
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    wait_for = remaining if stop is None else min(wait_for, remaining)
                done, pending = wait(
                    pending, timeout=wait_for, return_when=FIRST_COMPLETED
                )
                for future in done:
                    self._collect(futures[future], future, results, report)

            for future in pending:
                spec = futures[future]
                if future.done():
                    self._collect(spec, future, results, report)
                    continue
                report.cancelled.append(spec)
                self.metrics.failures.inc()
                logger.error(
                    "Resolution of %s cancelled; keeping cached addresses",
                    spec,
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _collect(
        self,
        spec: str,
        future: Future,
        results: dict[str, list[str]],
        report: CycleReport,
    ) -> None:
        try:
            results[spec] = future.result()
        except Exception as exc:
            report.failed.append(spec)
            self.metrics.failures.inc()
            logger.error(
                "Failed to resolve %s, keeping cached addresses: %s", spec, exc
            )
