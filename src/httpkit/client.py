"""HTTP 客户端核心模块

提供可扩展的 HTTP 客户端，支持：
- 基础 URL、默认请求头和默认请求选项
- 可注入的传输层（真实网络或 Mock）
- 中间件链：包裹、检查、短路或改写请求/响应
- 按需抛出携带请求和响应的结构化异常
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Mapping

from httpkit.constants import (
    HTTP_METHOD_DELETE,
    HTTP_METHOD_GET,
    HTTP_METHOD_HEAD,
    HTTP_METHOD_OPTIONS,
    HTTP_METHOD_PATCH,
    HTTP_METHOD_POST,
    HTTP_METHOD_PUT,
    STATUS_TRANSPORT_FAILURE,
)
from httpkit.exceptions import ConfigurationError
from httpkit.message import HeaderBag, HeaderSource, parse_header_block
from httpkit.middleware import Middleware, MiddlewareChain
from httpkit.request import HttpRequest
from httpkit.response import HttpResponse
from httpkit.transport import BaseTransport, RequestsTransport
from httpkit.utils import append_query, sanitize_dict, sanitize_headers, sanitize_url

logger = logging.getLogger(__name__)


class HttpClient:
    """
    HTTP 客户端

    类属性可在子类中覆盖，也可在实例化时通过同名参数覆盖。

    类属性:
        base_url: 基础 URL，相对 URI 会拼接在其后
        default_headers: 默认请求头，每个请求都会携带（单次请求的请求头优先）
        default_options: 默认请求选项（timeout、connectTimeout、verifyPeer、auth、protocolVersion）
        throw_exceptions: 非 2xx 响应时是否抛出 HttpResponseException
        transport_class: 传输层类或实例，默认使用 RequestsTransport
        enable_sanitization: 日志中是否脱敏
        sensitive_headers: 日志中需要脱敏的请求头
        sensitive_params: 日志中需要脱敏的 URL 参数

    使用示例:
        >>> class GithubClient(HttpClient):
        ...     base_url = "https://api.github.com"
        ...     default_headers = {"Accept": "application/json"}
        >>>
        >>> client = GithubClient(throw_exceptions=True)
        >>> response = client.get("/repos/python/cpython")
        >>> response.get_body_field("full_name")
    """

    # ========== 基础配置 ==========
    base_url: str = ""

    default_headers: dict[str, Any] = {}

    default_options: dict[str, Any] = {}

    # 默认不抛出异常，调用方通过 response.is_successful() 自行判断
    throw_exceptions: bool = False

    # ========== 可插拔组件配置 ==========
    transport_class: type[BaseTransport] | BaseTransport = RequestsTransport

    # ========== 安全性配置 ==========
    sensitive_headers: set[str] = {
        "Authorization",
        "Cookie",
        "X-API-Key",
        "X-Auth-Token",
        "X-Access-Token",
    }

    sensitive_params: set[str] = {
        "token",
        "password",
        "secret",
        "key",
        "api_key",
        "access_token",
    }

    enable_sanitization: bool = True

    def __init__(
        self,
        base_url: str | None = None,
        transport: BaseTransport | type[BaseTransport] | None = None,
        default_headers: Mapping[str, Any] | None = None,
        default_options: Mapping[str, Any] | None = None,
        throw_exceptions: bool | None = None,
        middleware: list[Middleware] | None = None,
    ):
        """
        初始化客户端实例

        参数:
            base_url: 基础 URL（None 时使用类属性）
            transport: 传输层类或实例（None 时使用 transport_class）
            default_headers: 默认请求头，与类级别默认请求头合并
            default_options: 默认请求选项，与类级别默认选项合并
            throw_exceptions: 非 2xx 响应时是否抛出异常（None 时使用类属性）
            middleware: 初始中间件列表，按顺序注册

        异常:
            ConfigurationError: 传输层配置无效时抛出
        """
        self.set_base_url(base_url if base_url is not None else self.base_url)
        self.default_headers = {**self.default_headers, **(default_headers or {})}
        self.default_options = {**self.default_options, **(default_options or {})}
        self.throw_exceptions = throw_exceptions if throw_exceptions is not None else self.throw_exceptions

        self.transport = self._resolve_transport(transport)
        self.middleware = MiddlewareChain(middleware)

    def _resolve_transport(self, transport: BaseTransport | type[BaseTransport] | None) -> BaseTransport:
        """
        解析传输层配置，返回传输层实例

        参数:
            transport: 传入的传输层配置（类或实例）

        返回:
            BaseTransport 实例
        """
        source = transport if transport is not None else self.transport_class

        if isinstance(source, type) and issubclass(source, BaseTransport):
            return source()

        if isinstance(source, BaseTransport):
            return source

        raise ConfigurationError(
            f"transport must be a BaseTransport subclass or instance, got {type(source).__name__}"
        )

    # ========== 配置 ==========

    def set_base_url(self, base_url: str) -> HttpClient:
        self.base_url = (base_url or "").rstrip("/")
        return self

    def set_default_header(self, name: str, value: Any) -> HttpClient:
        self.default_headers[name] = value
        return self

    def set_default_headers(self, headers: Mapping[str, Any]) -> HttpClient:
        self.default_headers = dict(headers)
        return self

    def get_default_option(self, name: str, default: Any = None) -> Any:
        return self.default_options.get(name, default)

    def set_default_option(self, name: str, value: Any) -> HttpClient:
        self.default_options[name] = value
        return self

    def set_default_options(self, options: Mapping[str, Any]) -> HttpClient:
        self.default_options = dict(options)
        return self

    def set_throw_exceptions(self, throw_exceptions: bool) -> HttpClient:
        self.throw_exceptions = bool(throw_exceptions)
        return self

    def add_middleware(self, middleware: Middleware) -> HttpClient:
        """
        注册中间件

        后注册的中间件包裹在先注册的中间件外层，其请求前逻辑先执行、响应后逻辑后执行。
        """
        self.middleware.add(middleware)
        return self

    # ========== 构造请求 ==========

    def _build_url(self, uri: str) -> str:
        """相对 URI（不含 //）拼接到 base_url 之后"""
        if "//" in uri:
            return uri
        return f"{self.base_url}/{uri.lstrip('/')}"

    def create_request(
        self,
        method: str,
        uri: str,
        body: Any = "",
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpRequest:
        """
        构造请求对象，合并默认请求头和默认选项

        参数:
            method: HTTP 方法
            uri: 绝对 URL 或相对于 base_url 的 URI
            body: 请求体
            headers: 本次请求的请求头，同名时覆盖默认请求头
            options: 本次请求的选项，同名时覆盖默认选项

        返回:
            HttpRequest 实例
        """
        merged_headers = HeaderBag(self.default_headers)
        _, request_headers = parse_header_block(headers)
        for name, lines in request_headers.to_dict().items():
            merged_headers.set(name, lines)

        merged_options = {**self.default_options, **(options or {})}
        return HttpRequest(method, self._build_url(uri), body, merged_headers, merged_options)

    # ========== 请求方法 ==========

    def get(
        self,
        uri: str,
        query: Mapping[str, Any] | None = None,
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        return self.request(HTTP_METHOD_GET, append_query(uri, query), "", headers, options)

    def head(
        self,
        uri: str,
        query: Mapping[str, Any] | None = None,
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        return self.request(HTTP_METHOD_HEAD, append_query(uri, query), "", headers, options)

    def options(
        self,
        uri: str,
        query: Mapping[str, Any] | None = None,
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        return self.request(HTTP_METHOD_OPTIONS, append_query(uri, query), "", headers, options)

    def delete(
        self,
        uri: str,
        query: Mapping[str, Any] | None = None,
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        return self.request(HTTP_METHOD_DELETE, append_query(uri, query), "", headers, options)

    def post(
        self,
        uri: str,
        body: Any = None,
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        return self.request(HTTP_METHOD_POST, uri, body if body is not None else {}, headers, options)

    def put(
        self,
        uri: str,
        body: Any = None,
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        return self.request(HTTP_METHOD_PUT, uri, body if body is not None else {}, headers, options)

    def patch(
        self,
        uri: str,
        body: Any = None,
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        return self.request(HTTP_METHOD_PATCH, uri, body if body is not None else {}, headers, options)

    def request(
        self,
        method: str,
        uri: str,
        body: Any = "",
        headers: HeaderSource = None,
        options: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        """
        构造并发送请求

        参数:
            method: HTTP 方法
            uri: 绝对 URL 或相对于 base_url 的 URI
            body: 请求体
            headers: 本次请求的请求头
            options: 本次请求的选项；额外支持 throw（覆盖 throw_exceptions）

        返回:
            HttpResponse 实例

        异常:
            HttpResponseException: 响应不是 2xx 且需要抛出异常时抛出
        """
        request = self.create_request(method, uri, body, headers, options)
        response = self.send(request)

        if not response.is_response_class("2xx"):
            self.handle_error_response(response, options)

        return response

    def send(self, request: HttpRequest) -> HttpResponse:
        """
        让请求穿过中间件链并交给传输层发送

        执行步骤:
            1. 生成请求 ID 并记录请求日志
            2. 以传输层发送为最内层，组合中间件调用链并执行
            3. 关联请求与响应，记录响应日志
        """
        request_id = self.generate_request_id()
        self._log_request(request_id, request)

        response = self.middleware.dispatch(request, self._send_through_transport)

        if response.request is None:
            response.set_request(request)
        if response.request.response is None:
            response.request.set_response(response)

        if response.status_code == STATUS_TRANSPORT_FAILURE:
            logger.error(f"[{request_id}] Transport failure: {response.reason_phrase}")
        else:
            logger.info(f"[{request_id}] Received {response.status_code} response")
            logger.debug(f"[{request_id}] Response headers: {response.get_headers()}")
        return response

    def _send_through_transport(self, request: HttpRequest) -> HttpResponse:
        response = self.transport.send(request)
        response.set_request(request)
        request.set_response(response)
        return response

    def handle_error_response(self, response: HttpResponse, options: Mapping[str, Any] | None = None) -> None:
        """
        处理非 2xx 响应

        参数:
            response: 非 2xx 的响应
            options: 本次请求的选项，throw 字段优先于 throw_exceptions

        异常:
            HttpResponseException: 需要抛出异常时抛出
        """
        should_throw = (options or {}).get("throw", self.throw_exceptions)
        if should_throw:
            exception = response.as_exception()
            logger.warning(f"Raising HttpResponseException: {exception}")
            raise exception

    def _log_request(self, request_id: str, request: HttpRequest) -> None:
        url = sanitize_url(request.url, self.sensitive_params) if self.enable_sanitization else request.url
        logger.info(f"[{request_id}] Starting {request.method} request to {url}")

        if logger.isEnabledFor(logging.DEBUG):
            headers = request.get_headers()
            body = request.get_body()
            if self.enable_sanitization:
                headers = sanitize_headers(headers, self.sensitive_headers)
                if isinstance(body, Mapping):
                    body = sanitize_dict(body, self.sensitive_params)
            logger.debug(f"[{request_id}] Request headers: {headers}, body: {body!r}")

    def generate_request_id(self, suffix=None) -> str:
        """生成全局唯一的请求 ID"""
        timestamp = int(time.time() * 1000)  # 毫秒级时间戳
        short_uuid = uuid.uuid4().hex[:8]
        if suffix is None:
            return f"REQ-{timestamp}-{short_uuid}"
        return f"REQ-{timestamp}-{short_uuid}-{suffix}"

    def close(self):
        """关闭传输层，释放连接资源"""
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
