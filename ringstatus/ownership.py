"""
所有权解析模块
"""

import logging
from typing import Optional

from ringstatus.models import (
    EffectiveOwnership,
    FallbackOwnership,
    FatalOwnership,
    OwnershipResult,
)
from ringstatus.probe import InvalidKeyspaceError, OwnershipIndeterminateError
from ringstatus.profiler import profile


class OwnershipResolver:
    """
    计算每个节点的所有权比例

    两级策略：
    - 先尝试有效所有权（按 keyspace 副本策略计算）
    - 无法计算时退回原始所有权，并记录一条提示
    keyspace 不存在是致命错误。
    """

    def __init__(self, probe, logger: logging.Logger):
        """
        初始化所有权解析器

        参数:
            probe: 集群探针
            logger: 日志记录器实例
        """
        self.probe = probe
        self.logger = logger

    def resolve(self, keyspace: Optional[str] = None) -> OwnershipResult:
        """
        解析所有权

        参数:
            keyspace: keyspace 名称，None 表示所有非系统 keyspace

        返回:
            EffectiveOwnership、FallbackOwnership 或 FatalOwnership
        """
        try:
            ownership = profile(
                "Getting effective ownerships",
                lambda: self.probe.effective_ownership(keyspace),
                self.logger
            )
            return EffectiveOwnership(ownership)

        except InvalidKeyspaceError as e:
            self.logger.error(f"无效的 keyspace {keyspace}: {e}")
            return FatalOwnership(str(e))

        except OwnershipIndeterminateError as e:
            self.logger.info(f"无法计算有效所有权，退回原始所有权: {e}")
            ownership = profile("Getting ownerships", self.probe.ownership, self.logger)
            return FallbackOwnership(ownership, f"Note: {e}")
