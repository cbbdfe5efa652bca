"""
Ringstatus - 以表格形式输出集群拓扑和数据所有权
"""

__version__ = "1.0.0"
__author__ = "Ringstatus Project"

from ringstatus.app import StatusReport
from ringstatus.config import Config
from ringstatus.models import HostStat
from ringstatus.probe import JolokiaProbe

__all__ = ["StatusReport", "Config", "HostStat", "JolokiaProbe"]
