"""
配置管理模块，支持环境变量和命令行覆盖
"""

import os
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urlsplit, urlunsplit


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8778


@dataclass
class Config:
    """应用配置类，从环境变量加载配置"""

    jolokia_url: str = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}/jolokia"
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """
        从环境变量加载配置

        环境变量说明:
            JOLOKIA_URL: Jolokia 代理地址 (默认: http://127.0.0.1:8778/jolokia)
            JMX_USERNAME: JMX 用户名 (默认: 无)
            JMX_PASSWORD: JMX 密码 (默认: 无)
            RINGSTATUS_TIMEOUT: HTTP 请求超时秒数 (默认: 10)
            LOG_LEVEL: 日志级别 (默认: INFO)

        异常:
            ValueError: 如果 RINGSTATUS_TIMEOUT 不是数字
        """
        return cls(
            jolokia_url=os.getenv("JOLOKIA_URL", cls.jolokia_url),
            username=os.getenv("JMX_USERNAME"),
            password=os.getenv("JMX_PASSWORD"),
            timeout=float(os.getenv("RINGSTATUS_TIMEOUT", "10")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper()
        )

    def with_overrides(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None
    ) -> "Config":
        """
        用命令行参数覆盖配置

        指定 host 或 port 时只替换 Jolokia 地址中的主机和端口，协议和路径保持不变。

        返回:
            新的配置实例
        """
        config = self
        if host or port:
            parts = urlsplit(config.jolokia_url)
            hostname = host or parts.hostname or DEFAULT_HOST
            if ":" in hostname:
                hostname = f"[{hostname}]"
            netloc = f"{hostname}:{port or parts.port or DEFAULT_PORT}"
            config = replace(config, jolokia_url=urlunsplit(parts._replace(netloc=netloc)))
        if username:
            config = replace(config, username=username)
        if password:
            config = replace(config, password=password)
        return config

    def validate(self) -> None:
        """验证配置是否有效"""
        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level not in valid_log_levels:
            raise ValueError(
                f"无效的 LOG_LEVEL: {self.log_level}. "
                f"必须是以下之一: {', '.join(sorted(valid_log_levels))}"
            )
        if self.timeout <= 0:
            raise ValueError(f"无效的 RINGSTATUS_TIMEOUT: {self.timeout}. 必须大于 0")
        if not self.jolokia_url.startswith(("http://", "https://")):
            raise ValueError(f"无效的 JOLOKIA_URL: {self.jolokia_url}")
