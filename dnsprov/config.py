"""YAML configuration file loading."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".dnsprov"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"


@dataclass
class ProviderConfig:
    """Top-level configuration for the dnsprov tool.

    All fields have defaults so specifications can be given entirely on
    the command line.

    Attributes:
        specs: Discovery specifications to resolve, e.g.
            ``["dns+store.svc:10901", "dnssrv+_grpc._tcp.store.svc"]``.
        resolver: Resolver type, ``"dnspython"`` or ``"system"``.
        nameservers: Nameserver IPs for dnspython lookups, or None for the
            system configuration.
        lookup_timeout: Seconds allowed for a single DNS lookup.
        max_workers: Maximum number of concurrent lookups per cycle.
        interval: Seconds between refresh cycles in ``watch`` mode.
        metrics_port: Port to serve Prometheus metrics on in ``watch``
            mode, or None to not serve them.
        name: Provider name, used as metric name prefix.
    """

    specs: list[str] = field(default_factory=list)
    resolver: str = "dnspython"
    nameservers: list[str] | None = None
    lookup_timeout: float = 5.0
    max_workers: int = 8
    interval: float = 30.0
    metrics_port: int | None = None
    name: str = ""


# Expected type(s) of each YAML key; keys map 1:1 to ProviderConfig fields.
_YAML_KEY_TYPES: dict[str, tuple[type, ...]] = {
    "specs": (list,),
    "resolver": (str,),
    "nameservers": (list, type(None)),
    "lookup_timeout": (int, float),
    "max_workers": (int,),
    "interval": (int, float),
    "metrics_port": (int, type(None)),
    "name": (str,),
}


def load_config(path: Path | str | None = None) -> ProviderConfig:
    """Load configuration from a YAML file.

    Args:
        path: Explicit path to a YAML config file.  If ``None``, the
            default location (``~/.dnsprov/config.yaml``) is tried.  If the
            default file doesn't exist, a ``ProviderConfig`` with all
            defaults is returned silently.

    Returns:
        A populated ``ProviderConfig`` instance.

    Raises:
        FileNotFoundError: If an explicit *path* was given but doesn't exist.
        ConfigError: If the file contains invalid YAML, has an unexpected
            top-level structure or a value of the wrong type.
    """
    resolved = _resolve_path(path)

    if resolved is None:
        logger.debug("No config file found; using defaults")
        return ProviderConfig()

    logger.debug("Loading config from %s", resolved)
    text = resolved.read_text(encoding="utf-8")

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {resolved}: {exc}") from exc

    if raw is None:
        # Empty file: treat as all-defaults.
        return ProviderConfig()

    if not isinstance(raw, dict):
        raise ConfigError(
            f"Expected a YAML mapping at the top level in {resolved}, "
            f"got {type(raw).__name__}"
        )

    return _build_config(raw, source=resolved)


class ConfigError(Exception):
    """Raised when a configuration file is malformed or unreadable."""


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _resolve_path(path: Path | str | None) -> Path | None:
    """Return a concrete ``Path`` to read, or ``None`` if nothing to read.

    Raises:
        FileNotFoundError: If the caller supplied an explicit path that
            doesn't exist on disk.
    """
    if path is not None:
        p = Path(path).expanduser()
        if not p.is_file():
            raise FileNotFoundError(f"Config file not found: {p}")
        return p

    # Try the default location.
    default = DEFAULT_CONFIG_PATH.expanduser()
    if default.is_file():
        return default
    return None


def _build_config(raw: dict, source: Path) -> ProviderConfig:
    """Map raw YAML dict to a ``ProviderConfig``, ignoring unknown keys."""
    kwargs: dict[str, object] = {}

    for key, types in _YAML_KEY_TYPES.items():
        if key not in raw:
            continue
        value = raw[key]
        # bool is an int subclass; never accept it for numeric fields.
        if isinstance(value, bool) or not isinstance(value, types):
            raise ConfigError(
                f"Invalid value for {key!r} in {source}: {value!r}"
            )
        if isinstance(value, list):
            value = [str(item) for item in value]
        kwargs[key] = value

    unknown = set(raw) - set(_YAML_KEY_TYPES)
    if unknown:
        logger.warning(
            "Ignoring unknown config keys in %s: %s",
            source,
            ", ".join(sorted(unknown)),
        )

    return ProviderConfig(**kwargs)
