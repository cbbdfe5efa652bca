"""命令行测试"""

from __future__ import annotations

import pytest

from conftest import FakeProbe
from ringstatus import aggregator, cli
from ringstatus.probe import InvalidKeyspaceError, ProbeError


class _ProbeFactory:
    """替换 JolokiaProbe，返回预置的探针"""

    def __init__(self, probe) -> None:
        self.probe = probe
        self.configs = []

    def from_config(self, config, logger):
        self.configs.append(config)
        return self

    def __enter__(self):
        return self.probe

    def __exit__(self, *exc_info):
        return None


@pytest.fixture
def factory(monkeypatch: pytest.MonkeyPatch, two_node_probe: FakeProbe) -> _ProbeFactory:
    monkeypatch.delenv("JOLOKIA_URL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    factory = _ProbeFactory(two_node_probe)
    monkeypatch.setattr(cli, "JolokiaProbe", factory)
    return factory


class TestParser:
    """参数解析"""

    def test_status_arguments(self) -> None:
        args = cli.build_parser().parse_args(["-h", "cass1", "-p", "9000", "status", "-r", "ks1"])

        assert args.host == "cass1"
        assert args.port == 9000
        assert args.command == "status"
        assert args.resolve_ip is True
        assert args.keyspace == "ks1"

    def test_keyspace_optional(self) -> None:
        args = cli.build_parser().parse_args(["status"])
        assert args.keyspace is None
        assert args.resolve_ip is False

    def test_password_option(self) -> None:
        args = cli.build_parser().parse_args(["-u", "admin", "-pw", "secret", "status"])
        assert (args.username, args.password) == ("admin", "secret")

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.build_parser().parse_args([])
        assert exc_info.value.code == 2


class TestMain:
    """主入口退出码"""

    def test_success(self, factory: _ProbeFactory, capsys: pytest.CaptureFixture) -> None:
        assert cli.main(["-h", "cass1", "status", "ks1"]) == 0

        out = capsys.readouterr().out
        assert "Datacenter: dc1" in out
        assert "Owns (effective)" in out
        assert factory.configs[0].jolokia_url == "http://cass1:8778/jolokia"

    def test_invalid_keyspace(
        self, factory: _ProbeFactory, capsys: pytest.CaptureFixture
    ) -> None:
        factory.probe.effective_error = InvalidKeyspaceError("nosuchks")

        assert cli.main(["status", "nosuchks"]) == 1

        out = capsys.readouterr().out
        assert "Error: nosuchks" in out
        assert "Datacenter:" not in out

    def test_probe_failure(self, factory: _ProbeFactory, capsys: pytest.CaptureFixture) -> None:
        def fail():
            raise ProbeError("connection refused")

        factory.probe.joining_nodes = fail

        assert cli.main(["status"]) == 1
        assert "Error: connection refused" in capsys.readouterr().err

    def test_invalid_configuration(
        self, factory: _ProbeFactory, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        assert cli.main(["status"]) == cli.EXIT_USAGE
        assert "LOG_LEVEL" in capsys.readouterr().err
        assert factory.configs == []

    def test_resolve_ip(
        self, factory: _ProbeFactory, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        names = {"10.0.0.1": "node1.example.com", "10.0.0.2": "node2.example.com"}
        monkeypatch.setattr(aggregator, "reverse_dns", names.__getitem__)

        assert cli.main(["status", "-r"]) == 0

        out = capsys.readouterr().out
        assert "node1.example.com" in out
        assert "node2.example.com" in out
        assert "10.0.0.1" not in out

    def test_addresses_without_resolve_ip(
        self, factory: _ProbeFactory, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        monkeypatch.setattr(aggregator, "reverse_dns", lambda address: "resolved.example.com")

        assert cli.main(["status"]) == 0

        out = capsys.readouterr().out
        assert "10.0.0.1" in out
        assert "resolved.example.com" not in out
