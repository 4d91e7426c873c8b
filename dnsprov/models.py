"""Data models: LookupKind, SRVRecord, CycleReport."""

from dataclasses import dataclass, field
from enum import Enum


class LookupKind(Enum):
    """How a discovery specification is turned into addresses.

    Members:
        STATIC: No lookup; the specification itself is the address.
        A: Address lookup (A and AAAA records) of ``host:port``.
        SRV: SRV lookup, each target resolved to its addresses.
        SRV_NO_A: SRV lookup returning ``target:port`` without resolving
            the targets any further.
    """

    STATIC = "static"
    A = "dns"
    SRV = "dnssrv"
    SRV_NO_A = "dnssrvnoa"


@dataclass(frozen=True)
class SRVRecord:
    """A single SRV answer.

    Attributes:
        target: Target hostname, without the trailing dot.
        port: Port advertised by the record.
        priority: Record priority (lower is preferred).
        weight: Relative weight among records of equal priority.
    """

    target: str
    port: int
    priority: int = 0
    weight: int = 0


@dataclass
class CycleReport:
    """Outcome of one resolution cycle.

    Per-specification failures never escape ``Provider.resolve``; this
    report is how callers observe them.

    Attributes:
        resolved: Specifications whose cache entry was replaced.
        failed: Specifications whose lookup raised; their previous
            entry was kept.
        cancelled: Specifications still pending when the cycle was
            stopped or timed out; their previous entry was kept.
        duration_seconds: Wall-clock duration of the cycle.
    """

    resolved: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def complete(self) -> bool:
        """True when every specification was resolved."""
        return not (self.failed or self.cancelled)
