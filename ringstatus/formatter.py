"""
表格渲染模块，为每个数据中心输出对齐的文本表格
"""

import logging
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, TextIO, Union

from ringstatus.models import ClusterSnapshot, DatacenterGroup, HostStat, Topology
from ringstatus.probe import UnresolvedHostError


LEGEND = (
    "Status=Up/Down",
    "|/ State=Normal/Leaving/Joining/Moving",
)


def format_ownership(owns: Optional[float], effective: bool = True) -> str:
    """
    将所有权比例格式化为一位小数的百分比

    缺失或不是有效所有权时返回 ?
    """
    if owns is None or not effective:
        return "?"
    return f"{owns * 100:.1f}%"


def group_by_endpoint(group: DatacenterGroup) -> Dict[str, List[HostStat]]:
    """按节点分组，节点顺序为其最小 token 的顺序"""
    by_endpoint: Dict[str, List[HostStat]] = {}
    for stat in group:
        by_endpoint.setdefault(stat.endpoint, []).append(stat)
    return by_endpoint


class TokenPerNodeLayout:
    """每个节点一个 token：每行显示节点的 token"""

    name = "token-per-node"

    def row_template(self, address_width: int, owns_width: int) -> str:
        return "".join([
            "{0}{1}  ",                        # status + state
            "{2:<%d}  " % address_width,       # address
            "{3:<9}  ",                        # load
            "{4:<%d}  " % owns_width,          # owns
            "{5:<36}  ",                       # host id
            "{6:<39}  ",                       # token
            "{7}",                             # rack
        ])

    def header(self, owns_header: str) -> Sequence[str]:
        return ("-", "-", "Address", "Load", owns_header, "Host ID", "Token", "Rack")

    def cells(self, status: str, state: str, address: str, load: str, owns: str,
              host_id: str, stats: List[HostStat], rack: str) -> Sequence[str]:
        return (status, state, address, load, owns, host_id, stats[0].token, rack)


class MultiTokenLayout:
    """vnode 模式：每个节点一行，显示 token 数量"""

    name = "multi-token"

    def row_template(self, address_width: int, owns_width: int) -> str:
        return "".join([
            "{0}{1}  ",
            "{2:<%d}  " % address_width,
            "{3:<9}  ",
            "{4:<11}  ",                       # token count
            "{5:<%d}  " % owns_width,
            "{6:<36}  ",
            "{7}",
        ])

    def header(self, owns_header: str) -> Sequence[str]:
        return ("-", "-", "Address", "Load", "Tokens", owns_header, "Host ID", "Rack")

    def cells(self, status: str, state: str, address: str, load: str, owns: str,
              host_id: str, stats: List[HostStat], rack: str) -> Sequence[str]:
        return (status, state, address, load, str(len(stats)), owns, host_id, rack)


def select_layout(token_per_node: bool):
    """根据 vnode 模式选择表格布局"""
    return TokenPerNodeLayout() if token_per_node else MultiTokenLayout()


@dataclass(frozen=True)
class ReportContext:
    """
    单次报告运行的只读渲染上下文

    在聚合之后构建一次，传递给每个渲染调用，运行结束后丢弃。

    属性:
        address_width: 地址列宽度（所有数据中心中的最大值）
        layout: 选定的表格布局
        effective: 所有权是否为有效所有权
        row_template: 缓存的行格式模板
    """

    address_width: int
    layout: Union[TokenPerNodeLayout, MultiTokenLayout]
    effective: bool
    row_template: str

    @classmethod
    def build(cls, topology: Topology, effective: bool) -> "ReportContext":
        """
        构建渲染上下文

        地址列宽度取所有数据中心的最大值，保证各数据中心的表格对齐一致。
        """
        layout = select_layout(topology.token_per_node)
        address_width = topology.max_address_length()
        owns_width = 16 if effective else 6
        return cls(
            address_width=address_width,
            layout=layout,
            effective=effective,
            row_template=layout.row_template(address_width, owns_width)
        )

    @property
    def owns_header(self) -> str:
        return "Owns (effective)" if self.effective else "Owns"

    def format_row(self, cells: Sequence[str]) -> str:
        return self.row_template.format(*cells)


class TableFormatter:
    """
    为单个数据中心渲染表格

    机架信息在渲染时逐行查询，查询失败的行显示 ?。
    """

    def __init__(
        self,
        context: ReportContext,
        snapshot: ClusterSnapshot,
        ownership: Mapping[str, float],
        rack_of: Callable[[str], str],
        logger: logging.Logger,
        stream: Optional[TextIO] = None
    ):
        """
        初始化表格渲染器

        参数:
            context: 渲染上下文
            snapshot: 集群快照
            ownership: 节点 -> 所有权比例
            rack_of: 节点 -> 机架的解析函数
            logger: 日志记录器实例
            stream: 输出流（默认: 标准输出）
        """
        self.context = context
        self.snapshot = snapshot
        self.ownership = ownership
        self.rack_of = rack_of
        self.logger = logger
        self.stream = stream or sys.stdout

    def _write(self, line: str = "") -> None:
        self.stream.write(line + "\n")

    def _rack(self, endpoint: str) -> str:
        try:
            return self.rack_of(endpoint)
        except UnresolvedHostError as e:
            self.logger.warning(f"无法解析节点 {endpoint} 的机架: {e}")
            return "?"

    def render_header(self, datacenter: str) -> None:
        """输出数据中心横幅、图例和列标题"""
        banner = f"Datacenter: {datacenter}"
        self._write(banner)
        self._write("=" * len(banner))
        for line in LEGEND:
            self._write(line)
        self._write(self.context.format_row(
            self.context.layout.header(self.context.owns_header)
        ))

    def render_node(self, endpoint: str, stats: List[HostStat]) -> None:
        """输出一个节点的行"""
        membership = self.snapshot.membership
        cells = self.context.layout.cells(
            status=membership.status_of(endpoint),
            state=membership.state_of(endpoint),
            address=stats[0].resolved_name,
            load=self.snapshot.load_map.get(endpoint, "?"),
            owns=format_ownership(self.ownership.get(endpoint), self.context.effective),
            host_id=self.snapshot.host_id_map.get(endpoint) or "?",
            stats=stats,
            rack=self._rack(endpoint)
        )
        self._write(self.context.format_row(cells))

    def render(self, datacenter: str, group: DatacenterGroup) -> None:
        """
        渲染一个数据中心

        参数:
            datacenter: 数据中心名称
            group: 按 token 排序的 HostStat
        """
        self.render_header(datacenter)
        for endpoint, stats in group_by_endpoint(group).items():
            self.render_node(endpoint, stats)
