"""
Ringstatus 主应用模块
"""

import logging
import sys
from typing import Callable, Optional, TextIO

from ringstatus.aggregator import TopologyAggregator
from ringstatus.formatter import ReportContext, TableFormatter
from ringstatus.models import ClusterSnapshot, FatalOwnership, MembershipSets
from ringstatus.ownership import OwnershipResolver
from ringstatus.profiler import profile, profiled


EXIT_OK = 0
EXIT_FAILURE = 1


def setup_logging(log_level: str) -> logging.Logger:
    """
    配置日志系统

    日志写入标准错误，标准输出只用于报告本身。

    参数:
        log_level: 日志级别

    返回:
        配置好的日志记录器实例
    """
    logger = logging.getLogger('ringstatus')
    logger.setLevel(log_level)

    # 避免重复的处理器
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    # 格式: 时间戳 - 名称 - 级别 - 消息
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    return logger


class StatusReport:
    """
    主应用控制器，协调所有组件

    严格按顺序执行一次报告：
    - 从探针获取集群快照
    - 解析所有权（有效所有权或退回原始所有权）
    - 按数据中心聚合拓扑
    - 逐个数据中心渲染表格
    - 在报告末尾输出一次累积的提示
    """

    def __init__(
        self,
        probe,
        logger: Optional[logging.Logger] = None,
        stream: Optional[TextIO] = None,
        resolve_names: bool = False,
        name_resolver: Optional[Callable[[str], str]] = None
    ):
        """
        初始化报告控制器

        参数:
            probe: 集群探针
            logger: 日志记录器实例（默认: ringstatus）
            stream: 报告输出流（默认: 标准输出）
            resolve_names: 是否显示主机名而不是 IP
            name_resolver: 主机名解析函数（默认: 反向 DNS）
        """
        self.probe = probe
        self.logger = logger or logging.getLogger('ringstatus')
        self.stream = stream or sys.stdout

        self.ownership_resolver = OwnershipResolver(probe, self.logger)
        self.aggregator = TopologyAggregator(
            probe.datacenter_of,
            self.logger,
            resolve_names=resolve_names,
            name_resolver=name_resolver
        )

    def _profile(self, label: str, operation):
        return profile(label, operation, self.logger)

    def fetch_snapshot(self) -> ClusterSnapshot:
        """
        从探针获取集群快照

        每次调用都是阻塞的远程调用，按固定顺序逐个执行。
        """
        probe = self.probe
        joining = self._profile("Getting joining nodes", probe.joining_nodes)
        leaving = self._profile("Getting leaving nodes", probe.leaving_nodes)
        moving = self._profile("Getting moving nodes", probe.moving_nodes)
        load_map = self._profile("Getting load map", probe.load_map)
        token_map = self._profile("Getting tokens to endpoints", probe.token_to_endpoint_map)
        live = self._profile("Getting live nodes", probe.live_nodes)
        unreachable = self._profile("Getting unreachable nodes", probe.unreachable_nodes)
        host_id_map = self._profile("Getting host id map", probe.host_id_map)

        return ClusterSnapshot(
            membership=MembershipSets(
                live=frozenset(live),
                unreachable=frozenset(unreachable),
                joining=frozenset(joining),
                leaving=frozenset(leaving),
                moving=frozenset(moving)
            ),
            load_map=load_map,
            host_id_map=host_id_map,
            token_map=token_map
        )

    def run(self, keyspace: Optional[str] = None) -> int:
        """
        生成一次集群状态报告

        参数:
            keyspace: 计算有效所有权的 keyspace（可选）

        返回:
            退出码: 0 表示成功，1 表示 keyspace 无效
        """
        snapshot = self.fetch_snapshot()

        result = self.ownership_resolver.resolve(keyspace)
        if isinstance(result, FatalOwnership):
            self.stream.write(f"\nError: {result.reason}\n")
            return EXIT_FAILURE

        topology = self._profile(
            "Getting ownership by dc",
            lambda: self.aggregator.aggregate(snapshot.token_map)
        )
        context = ReportContext.build(topology, result.effective)
        self.logger.debug(
            f"布局: {context.layout.name}, 地址列宽度: {context.address_width}"
        )

        formatter = TableFormatter(
            context,
            snapshot,
            result.ownership,
            self.probe.rack_of,
            self.logger,
            self.stream
        )

        with profiled("Printing output", self.logger):
            for datacenter, group in topology:
                formatter.render(datacenter, group)

            # 提示只在所有表格之后输出一次
            self.stream.write("\n")
            for warning in result.warnings:
                self.stream.write(warning + "\n")

        return EXIT_OK
