"""测试公共夹具"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import pytest

from ringstatus.probe import UnresolvedHostError


class FakeProbe:
    """内存中的探针，记录调用顺序"""

    def __init__(
        self,
        tokens: Dict[str, str],
        datacenters: Dict[str, str],
        live: Iterable[str] = (),
        unreachable: Iterable[str] = (),
        joining: Iterable[str] = (),
        leaving: Iterable[str] = (),
        moving: Iterable[str] = (),
        loads: Optional[Dict[str, str]] = None,
        host_ids: Optional[Dict[str, str]] = None,
        racks: Optional[Dict[str, str]] = None,
        effective: Optional[Dict[str, float]] = None,
        raw: Optional[Dict[str, float]] = None,
        effective_error: Optional[Exception] = None,
    ) -> None:
        self.tokens = tokens
        self.datacenters = datacenters
        self.live = set(live)
        self.unreachable = set(unreachable)
        self.joining = set(joining)
        self.leaving = set(leaving)
        self.moving = set(moving)
        self.loads = loads or {}
        self.host_ids = host_ids or {}
        self.racks = racks or {}
        self.effective = effective or {}
        self.raw = raw or {}
        self.effective_error = effective_error
        self.calls: List[str] = []

    def joining_nodes(self):
        self.calls.append("joining_nodes")
        return set(self.joining)

    def leaving_nodes(self):
        self.calls.append("leaving_nodes")
        return set(self.leaving)

    def moving_nodes(self):
        self.calls.append("moving_nodes")
        return set(self.moving)

    def load_map(self):
        self.calls.append("load_map")
        return dict(self.loads)

    def token_to_endpoint_map(self):
        self.calls.append("token_to_endpoint_map")
        return dict(self.tokens)

    def live_nodes(self):
        self.calls.append("live_nodes")
        return set(self.live)

    def unreachable_nodes(self):
        self.calls.append("unreachable_nodes")
        return set(self.unreachable)

    def host_id_map(self):
        self.calls.append("host_id_map")
        return dict(self.host_ids)

    def datacenter_of(self, endpoint: str) -> str:
        self.calls.append("datacenter_of")
        if endpoint not in self.datacenters:
            raise UnresolvedHostError(endpoint)
        return self.datacenters[endpoint]

    def rack_of(self, endpoint: str) -> str:
        self.calls.append("rack_of")
        if endpoint not in self.racks:
            raise UnresolvedHostError(endpoint)
        return self.racks[endpoint]

    def effective_ownership(self, keyspace):
        self.calls.append("effective_ownership")
        if self.effective_error is not None:
            raise self.effective_error
        return dict(self.effective)

    def ownership(self):
        self.calls.append("ownership")
        return dict(self.raw)


@pytest.fixture
def logger() -> logging.Logger:
    """测试用日志记录器"""
    return logging.getLogger("ringstatus.tests")


@pytest.fixture
def two_node_probe() -> FakeProbe:
    """单数据中心、每节点一个 token 的集群"""
    return FakeProbe(
        tokens={"100": "10.0.0.1", "200": "10.0.0.2"},
        datacenters={"10.0.0.1": "dc1", "10.0.0.2": "dc1"},
        live={"10.0.0.1", "10.0.0.2"},
        host_ids={"10.0.0.1": "id-a", "10.0.0.2": "id-b"},
        racks={"10.0.0.1": "rack1", "10.0.0.2": "rack1"},
        effective={"10.0.0.1": 0.60, "10.0.0.2": 0.40},
    )


@pytest.fixture
def vnode_probe() -> FakeProbe:
    """单数据中心、每节点两个 token 的集群"""
    return FakeProbe(
        tokens={"10": "10.0.0.1", "30": "10.0.0.2", "70": "10.0.0.2", "90": "10.0.0.1"},
        datacenters={"10.0.0.1": "dc1", "10.0.0.2": "dc1"},
        live={"10.0.0.1", "10.0.0.2"},
        loads={"10.0.0.1": "1.2 GB", "10.0.0.2": "980 MB"},
        host_ids={"10.0.0.1": "id-a", "10.0.0.2": "id-b"},
        racks={"10.0.0.1": "rack1", "10.0.0.2": "rack2"},
        effective={"10.0.0.1": 0.5, "10.0.0.2": 0.5},
    )


@pytest.fixture(autouse=True)
def reset_ringstatus_logger():
    """移除测试期间 setup_logging 添加的处理器"""
    root = logging.getLogger("ringstatus")
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level)
