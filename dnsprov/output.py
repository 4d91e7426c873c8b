"""Output renderer: rich table formatter, JSON formatter, format dispatch."""

import json
import sys
from io import StringIO

from rich.console import Console
from rich.table import Table

from dnsprov.models import CycleReport


def render(
    entries: dict[str, list[str]],
    fmt: str,
    *,
    report: CycleReport | None = None,
    file: object | None = None,
    width: int | None = None,
) -> None:
    """Dispatch output to the appropriate formatter.

    Args:
        entries: Cached addresses keyed by specification.
        fmt: Output format, ``"table"`` or ``"json"``.
        report: Report of the cycle that produced *entries*, if any.
        file: Writable file object for output (default: ``sys.stdout``).
        width: Explicit console width (default: auto-detect).

    Raises:
        ValueError: If *fmt* is not ``"table"`` or ``"json"``.
    """
    if fmt == "table":
        render_table(entries, report=report, file=file, width=width)
    elif fmt == "json":
        render_json(entries, report=report, file=file)
    else:
        raise ValueError(f"Unknown output format: {fmt!r}")


# ---------------------------------------------------------------------------
# Table (rich) formatter
# ---------------------------------------------------------------------------


def render_table(
    entries: dict[str, list[str]],
    *,
    report: CycleReport | None = None,
    file: object | None = None,
    width: int | None = None,
) -> None:
    """Render *entries* as a ``rich`` table to *file*.

    One row per specification with its address count and addresses,
    followed by a summary line.  Specifications whose last lookup failed
    or was cancelled are marked in the status column.
    """
    out = file or sys.stdout
    console = Console(file=out, highlight=False, width=width)

    total = sum(len(addrs) for addrs in entries.values())
    table = Table(title=f"{len(entries)} specifications, {total} addresses")
    table.add_column("Specification")
    table.add_column("Count", justify="right")
    table.add_column("Status")
    table.add_column("Addresses")

    for spec, addrs in entries.items():
        table.add_row(
            spec,
            str(len(addrs)),
            _status(spec, report),
            "\n".join(addrs) if addrs else "—",
        )

    console.print(table)
    if report is not None:
        console.print(
            f"  {len(report.resolved)} resolved, {len(report.failed)} failed, "
            f"{len(report.cancelled)} cancelled in {report.duration_seconds:.2f}s"
        )


def _status(spec: str, report: CycleReport | None) -> str:
    if report is None:
        return "—"
    if spec in report.failed:
        return "failed (stale)"
    if spec in report.cancelled:
        return "cancelled (stale)"
    return "ok"


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------


def render_json(
    entries: dict[str, list[str]],
    *,
    report: CycleReport | None = None,
    file: object | None = None,
) -> None:
    """Render *entries* as JSON to *file*.

    The output is an object with ``specs`` (specification → addresses),
    the flattened ``addresses`` list and, when *report* is given, the
    ``failed`` and ``cancelled`` specifications.
    """
    out = file or sys.stdout
    payload: dict[str, object] = {
        "specs": entries,
        "addresses": [addr for addrs in entries.values() for addr in addrs],
    }
    if report is not None:
        payload["failed"] = report.failed
        payload["cancelled"] = report.cancelled
        payload["duration_seconds"] = report.duration_seconds
    json.dump(payload, out, indent=2, default=str)
    out.write("\n")  # type: ignore[union-attr]


def render_to_string(
    entries: dict[str, list[str]],
    fmt: str,
    *,
    report: CycleReport | None = None,
    width: int = 200,
) -> str:
    """Render to a string instead of stdout, useful for testing.

    Args:
        entries: Cached addresses keyed by specification.
        fmt: Output format, ``"table"`` or ``"json"``.
        report: Report of the cycle that produced *entries*, if any.
        width: Console width for table rendering (default: 200).

    Returns:
        The rendered output as a string.
    """
    buf = StringIO()
    render(entries, fmt, report=report, file=buf, width=width)
    return buf.getvalue()
