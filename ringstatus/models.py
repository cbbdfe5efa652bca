"""
Ringstatus 数据模型
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Tuple, Union


@dataclass(frozen=True)
class HostStat:
    """
    代表环上的单个 (节点, token) 组合

    属性:
        endpoint: 节点地址
        resolved_name: 显示名称（地址或反向 DNS 名称）
        token: 节点拥有的 token
        datacenter: 节点所属数据中心
    """

    endpoint: str
    resolved_name: str
    token: str
    datacenter: str

    def __str__(self) -> str:
        return f"{self.resolved_name} -> {self.token} ({self.datacenter})"


@dataclass(frozen=True)
class MembershipSets:
    """
    集群成员快照，只用于分类查询

    属性:
        live: 存活节点
        unreachable: 不可达节点
        joining: 正在加入的节点
        leaving: 正在离开的节点
        moving: 正在迁移的节点
    """

    live: FrozenSet[str] = frozenset()
    unreachable: FrozenSet[str] = frozenset()
    joining: FrozenSet[str] = frozenset()
    leaving: FrozenSet[str] = frozenset()
    moving: FrozenSet[str] = frozenset()

    def status_of(self, endpoint: str) -> str:
        """返回状态字母: U（存活）、D（不可达）或 ?"""
        if endpoint in self.live:
            return "U"
        if endpoint in self.unreachable:
            return "D"
        return "?"

    def state_of(self, endpoint: str) -> str:
        """
        返回状态字母，按固定优先级匹配

        J（加入）> L（离开）> M（迁移）> N（正常）
        """
        if endpoint in self.joining:
            return "J"
        if endpoint in self.leaving:
            return "L"
        if endpoint in self.moving:
            return "M"
        return "N"


@dataclass(frozen=True)
class ClusterSnapshot:
    """一次报告运行中从探针获取的全部原始数据"""

    membership: MembershipSets
    load_map: Mapping[str, str]
    host_id_map: Mapping[str, str]
    token_map: Mapping[str, str]


DatacenterGroup = Tuple[HostStat, ...]


@dataclass(frozen=True)
class Topology:
    """
    按数据中心分组后的环拓扑

    属性:
        datacenters: 数据中心名称 -> 按 token 排序的 HostStat 元组
        token_per_node: 每个节点是否只拥有一个 token
    """

    datacenters: Dict[str, DatacenterGroup] = field(default_factory=dict)
    token_per_node: bool = True

    def __iter__(self):
        for name in sorted(self.datacenters):
            yield name, self.datacenters[name]

    def max_address_length(self) -> int:
        """所有数据中心中最长显示名称的长度"""
        return max(
            (len(stat.resolved_name)
             for group in self.datacenters.values()
             for stat in group),
            default=0
        )


@dataclass(frozen=True)
class EffectiveOwnership:
    """按 keyspace 副本策略计算的有效所有权"""

    ownership: Mapping[str, float]
    effective: bool = field(default=True, init=False)
    warnings: Tuple[str, ...] = field(default=(), init=False)


@dataclass(frozen=True)
class FallbackOwnership:
    """无法计算有效所有权时退回的原始所有权，附带一条提示"""

    ownership: Mapping[str, float]
    warning: str
    effective: bool = field(default=False, init=False)

    @property
    def warnings(self) -> Tuple[str, ...]:
        return (self.warning,)


@dataclass(frozen=True)
class FatalOwnership:
    """致命错误（例如 keyspace 不存在），报告必须终止"""

    reason: str


OwnershipResult = Union[EffectiveOwnership, FallbackOwnership, FatalOwnership]

