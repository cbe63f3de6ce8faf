"""
httpkit HTTP 客户端模块

提供可组合、易于测试的 HTTP 客户端框架

主要组件:
    - HttpClient: 客户端，负责构造请求、执行中间件链、按需抛出异常
    - HttpRequest / HttpResponse: 请求与响应，共享不区分大小写的多值请求头模型
    - MiddlewareChain: 中间件链
    - 传输层: BaseTransport, RequestsTransport
    - Mock: MockTransport, MockHttpClient, MockResponse
    - 异常类: HttpKitError 及其子类

使用示例:
    >>> from httpkit import HttpClient
    >>>
    >>> client = HttpClient("https://api.example.com", throw_exceptions=True)
    >>> client.set_default_header("Content-Type", "application/json")
    >>> response = client.post("/users", {"name": "alice"})
    >>> response.get_body_field("id")
"""

# 核心客户端
from httpkit.client import HttpClient

# 消息模型
from httpkit.message import HeaderBag, HttpMessage, parse_header_block
from httpkit.request import HttpRequest
from httpkit.response import HttpResponse

# 中间件
from httpkit.middleware import MiddlewareChain

# 传输层
from httpkit.transport import BaseTransport, RequestsTransport

# Mock 支持
from httpkit.mocks import (
    ComputedResponse,
    FixedResponse,
    MockHttpClient,
    MockRequest,
    MockResponse,
    MockResponseSequence,
    MockTransport,
    ResponseSequence,
    ResponseSource,
)

# 异常类
from httpkit.exceptions import (
    ConfigurationError,
    HttpKitError,
    HttpResponseException,
    ResponseDecodeError,
)

# 工具函数
from httpkit.utils import (
    append_query,
    sanitize_dict,
    sanitize_headers,
    sanitize_url,
)

# 常量配置
from httpkit.constants import (
    DEFAULT_REQUEST_OPTIONS,
    HTTP_METHOD_DELETE,
    HTTP_METHOD_GET,
    HTTP_METHOD_HEAD,
    HTTP_METHOD_OPTIONS,
    HTTP_METHOD_PATCH,
    HTTP_METHOD_POST,
    HTTP_METHOD_PUT,
    HTTP_METHODS,
    LOG_FORMAT,
)

__all__ = [
    # 核心类
    "HttpClient",
    # 消息模型
    "HeaderBag",
    "HttpMessage",
    "HttpRequest",
    "HttpResponse",
    "parse_header_block",
    # 中间件
    "MiddlewareChain",
    # 传输层
    "BaseTransport",
    "RequestsTransport",
    # Mock
    "MockTransport",
    "MockHttpClient",
    "MockRequest",
    "MockResponse",
    "MockResponseSequence",
    "ResponseSource",
    "FixedResponse",
    "ResponseSequence",
    "ComputedResponse",
    # 异常
    "HttpKitError",
    "ConfigurationError",
    "ResponseDecodeError",
    "HttpResponseException",
    # 工具函数
    "append_query",
    "sanitize_headers",
    "sanitize_url",
    "sanitize_dict",
    # 常量
    "DEFAULT_REQUEST_OPTIONS",
    "HTTP_METHODS",
    "HTTP_METHOD_GET",
    "HTTP_METHOD_POST",
    "HTTP_METHOD_PUT",
    "HTTP_METHOD_DELETE",
    "HTTP_METHOD_PATCH",
    "HTTP_METHOD_HEAD",
    "HTTP_METHOD_OPTIONS",
    "LOG_FORMAT",
]

__version__ = "1.0.0"
