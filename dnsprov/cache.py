"""In-memory store of specification → resolved addresses."""

import threading


class DiscoveryCache:
    """Thread-safe mapping of discovery specification to its addresses.

    Reads copy under the lock and never wait on network I/O.  Whole
    resolution cycles are applied with ``replace`` so readers see either
    the previous cycle or the new one, never a mix.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, list[str]] = {}

    def addresses(self) -> list[str]:
        """Return every cached address, flattened across specifications.

        Duplicates across specifications are kept; cross-specification
        order is not guaranteed.
        """
        with self._lock:
            return [addr for addrs in self._entries.values() for addr in addrs]

    def snapshot(self) -> dict[str, list[str]]:
        """Return a copy of the whole mapping."""
        with self._lock:
            return {spec: list(addrs) for spec, addrs in self._entries.items()}

    def get(self, spec: str) -> list[str] | None:
        with self._lock:
            addrs = self._entries.get(spec)
            return None if addrs is None else list(addrs)

    def keys(self) -> set[str]:
        with self._lock:
            return set(self._entries)

    def put(self, spec: str, addrs: list[str]) -> None:
        with self._lock:
            self._entries[spec] = list(addrs)

    def delete(self, spec: str) -> None:
        with self._lock:
            self._entries.pop(spec, None)

    def replace(self, entries: dict[str, list[str]]) -> None:
        """Swap in *entries* as the complete new content."""
        new = {spec: list(addrs) for spec, addrs in entries.items()}
        with self._lock:
            self._entries = new

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, spec: object) -> bool:
        with self._lock:
            return spec in self._entries
