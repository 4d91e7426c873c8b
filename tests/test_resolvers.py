"""Tests for the resolver registry, the Resolver base class and backends."""

import socket
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import dns.exception
import dns.resolver
import pytest

from dnsprov.models import LookupKind, SRVRecord
from dnsprov.resolvers import (
    NoSuchHost,
    ResolutionError,
    Resolver,
    get_resolver,
    registered_resolvers,
)
from dnsprov.resolvers.dnspython import DnspythonResolver
from dnsprov.resolvers.system import SystemResolver


class TableResolver(Resolver):
    """Resolver answering from in-memory tables."""

    def __init__(self, ips=None, srv=None, errors=None) -> None:
        self.ips = ips or {}
        self.srv = srv or {}
        self.errors = errors or {}
        self.ip_calls: list[str] = []

    def lookup_ip(self, host):
        self.ip_calls.append(host)
        if host in self.errors:
            raise self.errors[host]
        if host not in self.ips:
            raise NoSuchHost(host)
        return self.ips[host]

    def lookup_srv(self, name):
        if name in self.errors:
            raise self.errors[name]
        if name not in self.srv:
            raise NoSuchHost(name)
        return self.srv[name]


# ------------------------------------------------------------------
# Resolver ABC / registry
# ------------------------------------------------------------------


class TestResolverABC:
    def test_cannot_instantiate(self) -> None:
        with pytest.raises(TypeError, match="abstract method"):
            Resolver()  # type: ignore[abstract]

    def test_subclass_must_implement_lookups(self) -> None:
        class Incomplete(Resolver):
            def lookup_ip(self, host):
                return []

        with pytest.raises(TypeError, match="abstract method"):
            Incomplete()  # type: ignore[abstract]


class TestGetResolver:
    def test_registered_types(self) -> None:
        assert registered_resolvers() == ["dnspython", "system"]

    @pytest.mark.parametrize(
        ("resolver_type", "expected_cls"),
        [("dnspython", DnspythonResolver), ("system", SystemResolver)],
    )
    def test_returns_correct_class(self, resolver_type, expected_cls) -> None:
        resolver = get_resolver(resolver_type, nameservers=["127.0.0.1"])
        assert type(resolver) is expected_cls

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown resolver type 'bogus'"):
            get_resolver("bogus")

    def test_error_lists_known_types(self) -> None:
        with pytest.raises(ValueError, match="dnspython, system"):
            get_resolver("bogus")


# ------------------------------------------------------------------
# Resolver.resolve()
# ------------------------------------------------------------------


class TestResolveAddressLookup:
    def test_host_with_port(self) -> None:
        resolver = TableResolver(ips={"store.svc": ["10.0.0.1", "fd00::1"]})
        assert resolver.resolve("store.svc:10901", LookupKind.A) == [
            "10.0.0.1:10901",
            "[fd00::1]:10901",
        ]

    def test_missing_port_raises(self) -> None:
        resolver = TableResolver(ips={"store.svc": ["10.0.0.1"]})
        with pytest.raises(ResolutionError, match="missing port"):
            resolver.resolve("store.svc", LookupKind.A)

    def test_no_such_host_is_empty(self) -> None:
        resolver = TableResolver()
        assert resolver.resolve("gone.svc:80", LookupKind.A) == []

    def test_lookup_error_propagates(self) -> None:
        resolver = TableResolver(errors={"store.svc": ResolutionError("timeout")})
        with pytest.raises(ResolutionError, match="timeout"):
            resolver.resolve("store.svc:80", LookupKind.A)

    def test_ip_literal_skips_lookup(self) -> None:
        resolver = TableResolver()
        assert resolver.resolve("10.1.1.1:80", LookupKind.A) == ["10.1.1.1:80"]
        assert resolver.ip_calls == []

    def test_scheme_is_preserved(self) -> None:
        resolver = TableResolver(ips={"store.svc": ["10.0.0.1"]})
        assert resolver.resolve("https://store.svc:443", LookupKind.A) == [
            "https://10.0.0.1:443"
        ]


class TestResolveServiceLookup:
    _SRV = {
        "_grpc._tcp.store": [
            SRVRecord(target="store-0.svc", port=10901),
            SRVRecord(target="store-1.svc", port=10902),
        ]
    }
    _IPS = {"store-0.svc": ["10.0.0.1"], "store-1.svc": ["10.0.0.2", "10.0.0.3"]}

    def test_srv_resolves_targets(self) -> None:
        resolver = TableResolver(ips=self._IPS, srv=self._SRV)
        assert resolver.resolve("_grpc._tcp.store", LookupKind.SRV) == [
            "10.0.0.1:10901",
            "10.0.0.2:10902",
            "10.0.0.3:10902",
        ]

    def test_srv_no_a_returns_targets(self) -> None:
        resolver = TableResolver(srv=self._SRV)
        assert resolver.resolve("_grpc._tcp.store", LookupKind.SRV_NO_A) == [
            "store-0.svc:10901",
            "store-1.svc:10902",
        ]
        assert resolver.ip_calls == []

    def test_explicit_port_overrides_record_port(self) -> None:
        resolver = TableResolver(srv=self._SRV)
        assert resolver.resolve("_grpc._tcp.store:9000", LookupKind.SRV_NO_A) == [
            "store-0.svc:9000",
            "store-1.svc:9000",
        ]

    def test_no_srv_records_is_empty(self) -> None:
        resolver = TableResolver()
        assert resolver.resolve("_grpc._tcp.none", LookupKind.SRV) == []

    def test_missing_target_address_raises(self) -> None:
        resolver = TableResolver(ips={"store-0.svc": ["10.0.0.1"]}, srv=self._SRV)
        with pytest.raises(ResolutionError, match="store-1.svc"):
            resolver.resolve("_grpc._tcp.store", LookupKind.SRV)

    def test_static_kind_rejected(self) -> None:
        with pytest.raises(ResolutionError, match="invalid lookup kind"):
            TableResolver().resolve("10.0.0.1:80", LookupKind.STATIC)


# ------------------------------------------------------------------
# DnspythonResolver
# ------------------------------------------------------------------


def _a_answer(*ips: str) -> list[MagicMock]:
    rdatas = []
    for ip in ips:
        rdata = MagicMock()
        rdata.to_text.return_value = ip
        rdatas.append(rdata)
    return rdatas


def _srv_answer(*records: tuple[str, int, int, int]) -> list[SimpleNamespace]:
    rdatas = []
    for target, port, priority, weight in records:
        name = MagicMock()
        name.to_text.return_value = target
        rdatas.append(
            SimpleNamespace(target=name, port=port, priority=priority, weight=weight)
        )
    return rdatas


class TestDnspythonResolver:
    def test_configures_nameservers_and_timeout(self) -> None:
        resolver = DnspythonResolver(nameservers=["10.53.0.1"], timeout=2.5)
        assert resolver._resolver.timeout == 2.5
        assert resolver._resolver.lifetime == 2.5

    def test_lookup_ip_merges_a_and_aaaa(self) -> None:
        backend = MagicMock()
        backend.resolve.side_effect = [_a_answer("10.0.0.1"), _a_answer("fd00::1")]
        resolver = DnspythonResolver(resolver=backend)

        assert resolver.lookup_ip("store.svc") == ["10.0.0.1", "fd00::1"]
        assert [c.args for c in backend.resolve.call_args_list] == [
            ("store.svc", "A"),
            ("store.svc", "AAAA"),
        ]

    def test_lookup_ip_no_answer_for_one_family(self) -> None:
        backend = MagicMock()
        backend.resolve.side_effect = [_a_answer("10.0.0.1"), dns.resolver.NoAnswer()]
        resolver = DnspythonResolver(resolver=backend)
        assert resolver.lookup_ip("store.svc") == ["10.0.0.1"]

    def test_lookup_ip_nxdomain(self) -> None:
        backend = MagicMock()
        backend.resolve.side_effect = dns.resolver.NXDOMAIN()
        resolver = DnspythonResolver(resolver=backend)
        with pytest.raises(NoSuchHost):
            resolver.lookup_ip("gone.svc")

    def test_lookup_ip_no_answer_at_all(self) -> None:
        backend = MagicMock()
        backend.resolve.side_effect = dns.resolver.NoAnswer()
        resolver = DnspythonResolver(resolver=backend)
        with pytest.raises(NoSuchHost):
            resolver.lookup_ip("empty.svc")

    def test_lookup_ip_timeout(self) -> None:
        backend = MagicMock()
        backend.resolve.side_effect = dns.exception.Timeout()
        resolver = DnspythonResolver(resolver=backend)
        with pytest.raises(ResolutionError) as excinfo:
            resolver.lookup_ip("slow.svc")
        assert not isinstance(excinfo.value, NoSuchHost)

    def test_lookup_srv_sorted_by_priority(self) -> None:
        backend = MagicMock()
        backend.resolve.return_value = _srv_answer(
            ("b.svc", 2, 20, 5),
            ("a.svc", 1, 10, 5),
            ("c.svc", 3, 10, 50),
        )
        resolver = DnspythonResolver(resolver=backend)

        records = resolver.lookup_srv("_grpc._tcp.store")

        assert [r.target for r in records] == ["c.svc", "a.svc", "b.svc"]
        assert records[1] == SRVRecord(target="a.svc", port=1, priority=10, weight=5)
        backend.resolve.assert_called_once_with("_grpc._tcp.store", "SRV")

    def test_lookup_srv_nxdomain(self) -> None:
        backend = MagicMock()
        backend.resolve.side_effect = dns.resolver.NXDOMAIN()
        resolver = DnspythonResolver(resolver=backend)
        with pytest.raises(NoSuchHost):
            resolver.lookup_srv("_grpc._tcp.none")

    def test_lookup_srv_servfail(self) -> None:
        backend = MagicMock()
        backend.resolve.side_effect = dns.resolver.NoNameservers()
        resolver = DnspythonResolver(resolver=backend)
        with pytest.raises(ResolutionError, match="lookup SRV"):
            resolver.lookup_srv("_grpc._tcp.store")

    def test_end_to_end_srv(self) -> None:
        backend = MagicMock()

        def answer(name, rdtype):
            if rdtype == "SRV":
                return _srv_answer(("store-0.svc", 10901, 0, 0))
            if rdtype == "A":
                return _a_answer("10.0.0.1")
            raise dns.resolver.NoAnswer()

        backend.resolve.side_effect = answer
        resolver = DnspythonResolver(resolver=backend)
        assert resolver.resolve("_grpc._tcp.store", LookupKind.SRV) == [
            "10.0.0.1:10901"
        ]


# ------------------------------------------------------------------
# SystemResolver
# ------------------------------------------------------------------


class TestSystemResolver:
    @patch("dnsprov.resolvers.system.resolve_all")
    def test_lookup_ip_uses_getaddrinfo(self, mock_resolve_all: MagicMock) -> None:
        mock_resolve_all.return_value = ["10.0.0.1"]
        resolver = SystemResolver(resolver=MagicMock())
        assert resolver.resolve("store.svc:80", LookupKind.A) == ["10.0.0.1:80"]
        mock_resolve_all.assert_called_once_with("store.svc")

    @patch("dnsprov.resolvers.system.resolve_all")
    def test_noname_is_no_such_host(self, mock_resolve_all: MagicMock) -> None:
        mock_resolve_all.side_effect = socket.gaierror(socket.EAI_NONAME, "unknown")
        resolver = SystemResolver(resolver=MagicMock())
        with pytest.raises(NoSuchHost):
            resolver.lookup_ip("gone.svc")

    @patch("dnsprov.resolvers.system.resolve_all")
    def test_other_gaierror_is_failure(self, mock_resolve_all: MagicMock) -> None:
        mock_resolve_all.side_effect = socket.gaierror(socket.EAI_AGAIN, "try again")
        resolver = SystemResolver(resolver=MagicMock())
        with pytest.raises(ResolutionError, match="try again") as excinfo:
            resolver.lookup_ip("store.svc")
        assert not isinstance(excinfo.value, NoSuchHost)

    def test_srv_goes_through_dnspython(self) -> None:
        backend = MagicMock()
        backend.resolve.return_value = _srv_answer(("store-0.svc", 10901, 0, 0))
        resolver = SystemResolver(resolver=backend)
        assert resolver.resolve("_grpc._tcp.store", LookupKind.SRV_NO_A) == [
            "store-0.svc:10901"
        ]
