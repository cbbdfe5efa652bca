"""
拓扑聚合模块，按数据中心分组 token 并判断 vnode 模式
"""

import logging
import socket
from typing import Callable, Dict, List, Mapping, Optional

from ringstatus.models import HostStat, Topology
from ringstatus.probe import UnresolvedHostError


UNKNOWN_DATACENTER = "?"


def reverse_dns(address: str) -> str:
    """反向解析地址，返回主机名"""
    return socket.gethostbyaddr(address)[0]


def token_sort_key(tokens: List[str]) -> Callable[[str], object]:
    """
    返回 token 的排序键

    所有 token 都是整数时按数值排序（Murmur3/Random 分区器），
    否则按字符串排序（ByteOrdered 分区器的十六进制 token）。
    """
    try:
        for token in tokens:
            int(token)
    except ValueError:
        return str
    return int


class TopologyAggregator:
    """
    把 token -> 节点映射聚合为按数据中心分组的拓扑

    每个 (节点, token) 生成一个 HostStat；数据中心和显示名称按节点缓存，
    每个节点只远程查询一次。
    """

    def __init__(
        self,
        datacenter_of: Callable[[str], str],
        logger: logging.Logger,
        resolve_names: bool = False,
        name_resolver: Optional[Callable[[str], str]] = None
    ):
        """
        初始化拓扑聚合器

        参数:
            datacenter_of: 节点 -> 数据中心的解析函数
            logger: 日志记录器实例
            resolve_names: 是否把地址反向解析为主机名
            name_resolver: 主机名解析函数（默认: 反向 DNS）
        """
        self.datacenter_of = datacenter_of
        self.logger = logger
        self.resolve_names = resolve_names
        self.name_resolver = name_resolver or reverse_dns

    def _resolve_datacenter(self, endpoint: str) -> str:
        try:
            return self.datacenter_of(endpoint)
        except UnresolvedHostError as e:
            self.logger.warning(f"无法解析节点 {endpoint} 的数据中心: {e}")
            return UNKNOWN_DATACENTER

    def _display_name(self, endpoint: str) -> str:
        """
        获取节点的显示名称

        未启用解析时返回地址本身；解析失败时静默退回地址。
        """
        if not self.resolve_names:
            return endpoint

        try:
            return self.name_resolver(endpoint) or endpoint
        except (OSError, UnicodeError) as e:
            self.logger.debug(f"反向解析 {endpoint} 失败，使用地址: {e}")
            return endpoint

    def aggregate(self, token_map: Mapping[str, str]) -> Topology:
        """
        按数据中心分组

        参数:
            token_map: token -> 节点地址

        返回:
            Topology，每个数据中心内按 token 升序排列
        """
        sort_key = token_sort_key(list(token_map))
        datacenters: Dict[str, str] = {}
        names: Dict[str, str] = {}
        groups: Dict[str, List[HostStat]] = {}

        for token, endpoint in token_map.items():
            if endpoint not in datacenters:
                datacenters[endpoint] = self._resolve_datacenter(endpoint)
                names[endpoint] = self._display_name(endpoint)

            stat = HostStat(
                endpoint=endpoint,
                resolved_name=names[endpoint],
                token=token,
                datacenter=datacenters[endpoint]
            )
            groups.setdefault(stat.datacenter, []).append(stat)

        # 节点数少于 token 数即为 vnode 模式
        token_per_node = len(datacenters) == len(token_map)

        self.logger.debug(
            f"聚合了 {len(token_map)} 个 token, {len(datacenters)} 个节点, "
            f"{len(groups)} 个数据中心"
        )

        return Topology(
            datacenters={
                name: tuple(sorted(stats, key=lambda stat: sort_key(stat.token)))
                for name, stats in groups.items()
            },
            token_per_node=token_per_node
        )
