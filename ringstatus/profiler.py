"""
耗时测量模块

对任意无参操作计时，并把耗时写入诊断日志。
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

T = TypeVar("T")

_logger = logging.getLogger("ringstatus.profiler")


@contextmanager
def profiled(label: str, logger: Optional[logging.Logger] = None) -> Iterator[None]:
    """
    测量代码块的耗时

    无论代码块正常返回还是抛出异常，都会记录一条 "<label> took <n> ms" 日志。

    参数:
        label: 操作名称
        logger: 日志记录器实例（默认: ringstatus.profiler）
    """
    log = logger or _logger
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        log.info(f"{label} took {elapsed_ms} ms")


def profile(label: str, operation: Callable[[], T],
            logger: Optional[logging.Logger] = None) -> T:
    """
    执行无参操作并返回其结果，同时记录耗时

    参数:
        label: 操作名称
        operation: 要执行的无参操作
        logger: 日志记录器实例

    返回:
        operation 的返回值
    """
    with profiled(label, logger):
        return operation()
