"""Discovery specification parsing."""

from dnsprov.models import LookupKind

# Closed set of lookup prefixes, written as ``<prefix>+<name>``.
PREFIXES: dict[str, LookupKind] = {
    LookupKind.A.value: LookupKind.A,
    LookupKind.SRV.value: LookupKind.SRV,
    LookupKind.SRV_NO_A.value: LookupKind.SRV_NO_A,
}


def classify(spec: str) -> tuple[LookupKind, str]:
    """Split a discovery specification into its lookup kind and name.

    ``dns+host:port`` becomes ``(LookupKind.A, "host:port")``.  A string
    without a ``+`` or with an unrecognized prefix is a literal address
    and is returned whole as ``(LookupKind.STATIC, spec)``.

    Args:
        spec: Specification as given by the caller.

    Returns:
        A ``(kind, name)`` tuple.  Never raises.
    """
    prefix, sep, name = spec.partition("+")
    if sep:
        kind = PREFIXES.get(prefix)
        if kind is not None:
            return kind, name
    return LookupKind.STATIC, spec
