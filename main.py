#!/usr/bin/env python3
"""
Ringstatus - 主入口点

以表格形式输出集群拓扑和数据所有权分布。
"""

import sys
from pathlib import Path

# 将当前目录添加到路径以导入 ringstatus 模块
sys.path.insert(0, str(Path(__file__).parent))

from ringstatus.cli import main


if __name__ == '__main__':
    sys.exit(main())
