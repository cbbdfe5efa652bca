"""
命令行入口

    ringstatus [-h HOST] [-p PORT] [-u USER] [-pw PASSWORD] status [-r] [<keyspace>]
"""

import argparse
import sys
from typing import List, Optional

from ringstatus.app import EXIT_FAILURE, StatusReport, setup_logging
from ringstatus.config import Config
from ringstatus.probe import JolokiaProbe, ProbeError


EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """构建参数解析器，-h 与 nodetool 一致表示主机，帮助使用 --help"""
    parser = argparse.ArgumentParser(
        prog="ringstatus",
        description="Report cluster topology and ownership",
        add_help=False
    )
    parser.add_argument("--help", action="help", help="show this help message and exit")
    parser.add_argument("-h", "--host", help="Node hostname or ip address")
    parser.add_argument("-p", "--port", type=int, help="Jolokia agent port number")
    parser.add_argument("-u", "--username", help="Remote jmx agent username")
    parser.add_argument("-pw", "--password", help="Remote jmx agent password")

    commands = parser.add_subparsers(dest="command", metavar="<command>")
    commands.required = True

    status = commands.add_parser(
        "status",
        help="Print cluster information (state, load, IDs, ...)",
        description="Print cluster information (state, load, IDs, ...)"
    )
    status.add_argument(
        "-r", "--resolve-ip",
        action="store_true",
        dest="resolve_ip",
        help="Show node domain names instead of IPs"
    )
    status.add_argument("keyspace", nargs="?", default=None, help="The keyspace name")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    主入口点

    参数:
        argv: 命令行参数（默认: sys.argv[1:]）

    返回:
        退出码
    """
    args = build_parser().parse_args(argv)

    # 从环境变量加载配置，命令行参数优先
    try:
        config = Config.from_env().with_overrides(
            host=args.host,
            port=args.port,
            username=args.username,
            password=args.password
        )
        config.validate()
    except ValueError as e:
        print(f"配置无效: {e}", file=sys.stderr)
        return EXIT_USAGE

    logger = setup_logging(config.log_level)
    logger.debug(f"连接到 Jolokia: {config.jolokia_url}")

    try:
        with JolokiaProbe.from_config(config, logger) as probe:
            report = StatusReport(probe, logger, resolve_names=args.resolve_ip)
            return report.run(args.keyspace)
    except ProbeError as e:
        logger.error(f"获取集群状态失败: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("被用户中断")
        return EXIT_FAILURE
