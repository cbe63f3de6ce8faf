"""
HTTP 请求模块

定义 HttpRequest：方法、URL、消息体、请求头以及超时、认证、证书校验等选项
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping
from urllib.parse import urlsplit

from httpkit.constants import (
    DEFAULT_REQUEST_OPTIONS,
    HTTP_METHOD_GET,
    HTTP_METHODS,
    REQUEST_OPTION_ALIASES,
)
from httpkit.exceptions import ConfigurationError
from httpkit.message import HeaderSource, HttpMessage

if TYPE_CHECKING:
    from httpkit.response import HttpResponse

logger = logging.getLogger(__name__)


def normalize_method(method: str) -> str:
    """
    规范化并校验 HTTP 方法

    异常:
        ConfigurationError: 方法不在支持的集合中时抛出
    """
    normalized = str(method or "").strip().upper()
    if normalized not in HTTP_METHODS:
        raise ConfigurationError(f"Unsupported HTTP method: {method!r}. Must be one of: {sorted(HTTP_METHODS)}")
    return normalized


def normalize_options(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    将请求选项与默认值合并

    参数:
        options: 调用方传入的选项，支持 snake_case 别名和旧式的 username/password

    返回:
        只包含已知选项的新字典，未知选项被忽略
    """
    result = dict(DEFAULT_REQUEST_OPTIONS)
    if not options:
        return result

    for name, value in options.items():
        name = REQUEST_OPTION_ALIASES.get(name, name)
        if name in result:
            result[name] = value

    # 旧式的 username/password 选项合并为 auth
    username = options.get("username")
    if username and not options.get("auth"):
        result["auth"] = [username, options.get("password") or ""]

    return result


class HttpRequest(HttpMessage):
    """
    HTTP 请求

    参数:
        method: HTTP 方法，自动转为大写
        url: 绝对 URL，或交给客户端拼接 base_url 的相对 URL
        body: 请求体，原样保存，由传输层按 Content-Type 编码
        headers: 请求头来源，形式见 parse_header_block
        options: 请求选项字典
            - timeout: 请求超时（秒），0 表示不限制
            - connectTimeout: 连接超时（秒），0 表示不限制
            - verifyPeer: 是否校验 TLS 证书，默认 True
            - auth: [username, password] 形式的基础认证信息
            - protocolVersion: HTTP 协议版本，默认 "1.1"

    属性:
        response: 发送后得到的响应，构造时为 None

    异常:
        ConfigurationError: 方法不受支持时抛出
    """

    def __init__(
        self,
        method: str = HTTP_METHOD_GET,
        url: str = "",
        body: Any = "",
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ):
        super().__init__()
        self.method = normalize_method(method)
        self.url = url
        self._body = body
        self.set_headers(headers)

        options = normalize_options(options)
        self.timeout = options["timeout"] or 0
        self.connect_timeout = options["connectTimeout"] or 0
        self.verify_peer = bool(options["verifyPeer"])
        self.auth = tuple(options["auth"] or ())
        self.protocol_version = str(options["protocolVersion"])

        self.response: HttpResponse | None = None

    def get_body(self) -> Any:
        return self._body

    def set_body(self, body: Any) -> HttpRequest:
        self._body = body
        return self

    def set_method(self, method: str) -> HttpRequest:
        self.method = normalize_method(method)
        return self

    def set_url(self, url: str) -> HttpRequest:
        self.url = url
        return self

    def set_response(self, response: HttpResponse | None) -> HttpRequest:
        self.response = response
        return self

    def get_timeout(self) -> float:
        return self.timeout

    def get_connect_timeout(self) -> float:
        return self.connect_timeout

    def get_verify_peer(self) -> bool:
        return self.verify_peer

    def get_auth(self) -> tuple[str, ...]:
        """返回 (username, password) 形式的认证信息，未配置时为空元组"""
        return self.auth

    def get_options(self) -> dict[str, Any]:
        """返回规范名称下的请求选项，可直接用于构造一个等价请求"""
        return {
            "timeout": self.timeout,
            "connectTimeout": self.connect_timeout,
            "verifyPeer": self.verify_peer,
            "auth": list(self.auth),
            "protocolVersion": self.protocol_version,
        }

    @property
    def host(self) -> str:
        return urlsplit(self.url).hostname or ""

    def to_dict(self) -> dict[str, str]:
        """序列化为 {url, host, method}，host 取自 URL 而不是 Host 请求头"""
        return {
            "url": self.url,
            "host": self.host,
            "method": self.method,
        }

    def __repr__(self) -> str:
        return f"<HttpRequest [{self.method} {self.url}]>"
