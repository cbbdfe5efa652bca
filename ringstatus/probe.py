"""
集群探针模块，通过 Jolokia (JMX over HTTP) 读取集群状态
"""

import logging
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

import requests

from ringstatus.config import Config


STORAGE_SERVICE = "org.apache.cassandra.db:type=StorageService"
ENDPOINT_SNITCH_INFO = "org.apache.cassandra.db:type=EndpointSnitchInfo"


class ProbeError(Exception):
    """探针调用失败（传输错误或远端异常）"""


class InvalidKeyspaceError(ProbeError):
    """请求的 keyspace 不存在"""


class OwnershipIndeterminateError(ProbeError):
    """无法按 keyspace 计算有效所有权"""


class UnresolvedHostError(ProbeError):
    """远端无法解析节点地址"""


# Java 异常类型 -> 探针异常
ERROR_TYPES = {
    "java.lang.IllegalStateException": OwnershipIndeterminateError,
    "java.net.UnknownHostException": UnresolvedHostError,
}

# effectiveOwnership 用 IllegalArgumentException 表示 keyspace 不存在；
# 其他调用中该类型来自 Jolokia 本身（例如操作签名错误）
OWNERSHIP_ERROR_TYPES = {
    **ERROR_TYPES,
    "java.lang.IllegalArgumentException": InvalidKeyspaceError,
}


def normalize_endpoint(address: str) -> str:
    """
    规范化 JMX 返回的 InetAddress 字符串

    "host/10.0.0.1" 和 "/10.0.0.1" 都转换为 "10.0.0.1"。
    """
    return address.rsplit("/", 1)[-1].strip()


def _error_message(body: Dict[str, Any]) -> str:
    """提取远端异常消息，去掉 Jolokia 添加的 "类型 : " 前缀"""
    message = body.get("error") or "unknown error"
    error_type = body.get("error_type")
    if error_type and message.startswith(error_type):
        message = message[len(error_type):].lstrip(" :")
    return message


class JolokiaProbe:
    """
    通过 Jolokia 代理访问 Cassandra 管理接口

    所有调用都是阻塞的远程调用，按调用顺序依次执行。
    """

    def __init__(
        self,
        url: str,
        logger: logging.Logger,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        """
        初始化探针

        参数:
            url: Jolokia 代理地址 (例如 http://127.0.0.1:8778/jolokia)
            logger: 日志记录器实例
            username: JMX 用户名（可选）
            password: JMX 密码（可选）
            timeout: HTTP 请求超时秒数
            session: 复用的 requests 会话（可选）
        """
        self.url = url.rstrip("/")
        self.logger = logger
        self.timeout = timeout
        self.session = session or requests.Session()
        if username:
            self.session.auth = (username, password or "")

    @classmethod
    def from_config(cls, config: Config, logger: logging.Logger) -> "JolokiaProbe":
        """根据应用配置创建探针"""
        return cls(
            config.jolokia_url,
            logger,
            username=config.username,
            password=config.password,
            timeout=config.timeout
        )

    def __enter__(self) -> "JolokiaProbe":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """关闭 HTTP 会话"""
        self.session.close()

    def _request(self, payload: Dict[str, Any],
                 error_types: Mapping[str, type] = ERROR_TYPES) -> Any:
        """
        发送一个 Jolokia 请求并返回其 value

        异常:
            ProbeError: 传输失败或远端返回非 200 状态
        """
        self.logger.debug(f"Jolokia 请求: {payload}")
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise ProbeError(f"无法访问 Jolokia 代理 {self.url}: {e}") from e
        except ValueError as e:
            raise ProbeError(f"Jolokia 响应不是有效的 JSON: {e}") from e

        status = body.get("status")
        if status != 200:
            error_cls = error_types.get(body.get("error_type"), ProbeError)
            message = _error_message(body)
            self.logger.debug(f"Jolokia 返回错误 {status}: {body.get('error_type')}: {message}")
            raise error_cls(message)

        return body.get("value")

    def _read(self, attribute: str) -> Any:
        return self._request({
            "type": "read",
            "mbean": STORAGE_SERVICE,
            "attribute": attribute,
        })

    def _exec(self, mbean: str, operation: str, *arguments: Any,
              error_types: Mapping[str, type] = ERROR_TYPES) -> Any:
        return self._request({
            "type": "exec",
            "mbean": mbean,
            "operation": operation,
            "arguments": list(arguments),
        }, error_types)

    def _read_nodes(self, attribute: str) -> FrozenSet[str]:
        return frozenset(normalize_endpoint(node) for node in self._read(attribute) or [])

    def _read_endpoint_map(self, attribute: str) -> Dict[str, Any]:
        return _normalize_keys((self._read(attribute) or {}).items())

    def joining_nodes(self) -> FrozenSet[str]:
        return self._read_nodes("JoiningNodes")

    def leaving_nodes(self) -> FrozenSet[str]:
        return self._read_nodes("LeavingNodes")

    def moving_nodes(self) -> FrozenSet[str]:
        return self._read_nodes("MovingNodes")

    def live_nodes(self) -> FrozenSet[str]:
        return self._read_nodes("LiveNodes")

    def unreachable_nodes(self) -> FrozenSet[str]:
        return self._read_nodes("UnreachableNodes")

    def load_map(self) -> Dict[str, str]:
        return self._read_endpoint_map("LoadMap")

    def host_id_map(self) -> Dict[str, str]:
        return self._read_endpoint_map("HostIdMap")

    def token_to_endpoint_map(self) -> Dict[str, str]:
        """token -> 节点地址"""
        tokens = self._read("TokenToEndpointMap") or {}
        return {str(token): normalize_endpoint(endpoint) for token, endpoint in tokens.items()}

    def ownership(self) -> Dict[str, float]:
        """与 schema 无关的原始所有权"""
        return _as_fractions(self._read_endpoint_map("Ownership"))

    def effective_ownership(self, keyspace: Optional[str]) -> Dict[str, float]:
        """
        按 keyspace 副本策略计算的有效所有权

        异常:
            InvalidKeyspaceError: keyspace 不存在
            OwnershipIndeterminateError: 无法计算有效所有权
        """
        value = self._exec(
            STORAGE_SERVICE,
            "effectiveOwnership(java.lang.String)",
            keyspace,
            error_types=OWNERSHIP_ERROR_TYPES
        )
        return _as_fractions(_normalize_keys((value or {}).items()))

    def rack_of(self, endpoint: str) -> str:
        """
        异常:
            UnresolvedHostError: 远端无法解析该地址
        """
        return self._exec(ENDPOINT_SNITCH_INFO, "getRack(java.lang.String)", endpoint)

    def datacenter_of(self, endpoint: str) -> str:
        """
        异常:
            UnresolvedHostError: 远端无法解析该地址
        """
        return self._exec(ENDPOINT_SNITCH_INFO, "getDatacenter(java.lang.String)", endpoint)


def _normalize_keys(items: Iterable) -> Dict[str, Any]:
    return {normalize_endpoint(str(key)): value for key, value in items}


def _as_fractions(ownership: Dict[str, Any]) -> Dict[str, float]:
    return {endpoint: float(value) for endpoint, value in ownership.items()}
