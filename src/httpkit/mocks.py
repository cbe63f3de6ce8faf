"""
请求 Mock 模块

提供不发送真实网络请求的传输层，用于测试:
    - MockTransport: 保存一组 "请求模式 -> 响应来源"，为每个请求挑选最匹配的 Mock
    - MockHttpClient: 自带 MockTransport 的 HttpClient
    - MockResponse / MockResponseSequence: 构造 Mock 响应的便捷方法

匹配与评分规则:
    - 方法不同直接拒绝
    - 主机、路径完全相同 +2，``*`` 通配匹配 +1，不匹配直接拒绝；模式中没有路径时匹配任意路径
    - 模式中的每个查询参数必须存在且相等，每个 +1
    - 两边的请求体都是字典时，模式请求体中的每个字段按查询参数的规则比较
    - 得分最高者胜出，得分相同时先注册者胜出；没有任何匹配时返回 404

使用示例:
    >>> transport = MockTransport()
    >>> transport.mock_multi({
    ...     "https://api.example.com/users": {"users": []},
    ...     "POST https://api.example.com/users": MockResponse.json({"id": 1}).with_status(201),
    ...     "GET https://*.example.com/*": MockResponse.sequence().push("first").push("second"),
    ...     "*": MockResponse.not_found(),
    ... })
    >>> client = HttpClient(transport=transport)
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Iterable, Mapping, TypeAlias
from urllib.parse import SplitResult, urlsplit

from httpkit.client import HttpClient
from httpkit.constants import CONTENT_TYPE_JSON, HTTP_METHOD_GET, HTTP_METHODS
from httpkit.exceptions import ConfigurationError
from httpkit.request import HttpRequest, normalize_method
from httpkit.response import HttpResponse, json_dumps
from httpkit.transport import BaseTransport
from httpkit.utils import glob_match, parse_query

logger = logging.getLogger(__name__)

# 匹配任意主机和路径的模式
WILDCARD = "*"

# 主机或路径的得分
SCORE_EXACT = 2
SCORE_WILDCARD = 1


class MockResponse(HttpResponse):
    """简化的 Mock 响应"""

    @classmethod
    def sequence(cls, responses: Iterable[Any] = ()) -> MockResponseSequence:
        return MockResponseSequence(responses)

    @classmethod
    def not_found(cls) -> MockResponse:
        return cls(404)

    @classmethod
    def success(cls) -> MockResponse:
        return cls(200)

    @classmethod
    def json(cls, body: Any) -> MockResponse:
        """构造 Content-Type 为 application/json 的 200 响应"""
        return cls(200, {"Content-Type": CONTENT_TYPE_JSON}, json_dumps(body))


class MockResponseSequence:
    """
    按顺序消费的响应队列

    参数:
        responses: 初始响应列表，非 HttpResponse 的值会被转换为 JSON 响应
    """

    def __init__(self, responses: Iterable[Any] = ()):
        self._queue: deque[HttpResponse] = deque()
        for response in responses:
            self.push(response)

    def push(self, response: Any) -> MockResponseSequence:
        if not isinstance(response, HttpResponse):
            response = MockResponse.json(response)
        self._queue.append(response)
        return self

    def take(self) -> HttpResponse | None:
        """取出队首响应，队列为空时返回 None"""
        return self._queue.popleft() if self._queue else None

    def __len__(self) -> int:
        return len(self._queue)


# ========== 响应来源 ==========


class ResponseSource(ABC):
    """Mock 响应来源基类：根据匹配到的请求给出响应"""

    @abstractmethod
    def resolve(self, request: HttpRequest) -> HttpResponse:
        """返回该来源为请求提供的响应"""


class FixedResponse(ResponseSource):
    """每次都返回同一个响应对象"""

    def __init__(self, response: HttpResponse):
        self.response = response

    def resolve(self, request: HttpRequest) -> HttpResponse:
        return self.response


class ResponseSequence(ResponseSource):
    """依次返回队列中的响应，队列耗尽后返回 404"""

    def __init__(self, sequence: MockResponseSequence):
        self.sequence = sequence

    def resolve(self, request: HttpRequest) -> HttpResponse:
        response = self.sequence.take()
        if response is None:
            logger.debug(f"Mock response sequence exhausted for {request.method} {request.url}")
            return MockResponse.not_found()
        return response


class ComputedResponse(ResponseSource):
    """调用函数根据请求计算响应，非 HttpResponse 的返回值转换为 JSON 响应"""

    def __init__(self, func: Callable[[HttpRequest], Any]):
        self.func = func

    def resolve(self, request: HttpRequest) -> HttpResponse:
        response = self.func(request)
        if not isinstance(response, HttpResponse):
            response = MockResponse.json(response)
        return response


# 注册时可接受的响应写法
MockResponseLike: TypeAlias = "HttpResponse | MockResponseSequence | ResponseSource | Callable[..., Any] | Any"


def make_response_source(response: MockResponseLike) -> ResponseSource:
    """
    在注册时把各种响应写法统一为 ResponseSource

    参数:
        response: HttpResponse、MockResponseSequence、ResponseSource、
            接收请求返回响应的函数，或任意可 JSON 序列化的数据（作为 200 JSON 响应）
    """
    if isinstance(response, ResponseSource):
        return response
    if isinstance(response, HttpResponse):
        return FixedResponse(response)
    if isinstance(response, MockResponseSequence):
        return ResponseSequence(response)
    if callable(response):
        return ComputedResponse(response)
    return FixedResponse(MockResponse.json(response))


# ========== 请求模式 ==========


def parse_mock_pattern(pattern: HttpRequest | str) -> HttpRequest:
    """
    解析 Mock 请求模式

    参数:
        pattern: HttpRequest，或以下形式的字符串:
            - "<url>": GET 请求
            - "<METHOD> <url>": 指定方法
            - "*": 任意主机和路径的 GET 请求

    返回:
        作为模式的 HttpRequest

    异常:
        ConfigurationError: 模式为空、方法不受支持或格式错误时抛出
    """
    if isinstance(pattern, HttpRequest):
        return pattern

    if not isinstance(pattern, str):
        raise ConfigurationError(f"Mock pattern must be a string or HttpRequest, got {type(pattern).__name__}")

    parts = pattern.split(None, 1)
    if not parts:
        raise ConfigurationError("Mock pattern must not be empty")

    if len(parts) == 1:
        if parts[0].upper() in HTTP_METHODS:
            raise ConfigurationError(f"Mock pattern {pattern!r} has a method but no URL")
        method, url = HTTP_METHOD_GET, parts[0]
    else:
        method, url = parts[0], parts[1].strip()
        if not url or len(url.split()) > 1:
            raise ConfigurationError(f"Malformed mock pattern: {pattern!r}")

    return HttpRequest(normalize_method(method), url)


def _host(parts: SplitResult) -> str:
    return parts.netloc.rsplit("@", 1)[-1].lower()


def _compare_component(own: str, incoming: str) -> int:
    """比较主机或路径，返回得分，0 表示不匹配"""
    if own == incoming:
        return SCORE_EXACT
    if WILDCARD in own and glob_match(incoming, own):
        return SCORE_WILDCARD
    return 0


def _compare_params(own: Mapping[Any, Any], incoming: Mapping[Any, Any]) -> int | None:
    """模式中的参数必须全部出现在请求中且值相等，返回得分，None 表示不匹配"""
    score = 0
    for name, value in own.items():
        if name not in incoming or incoming[name] != value:
            return None
        score += 1
    return score


class MockRequest:
    """
    一条 Mock 记录：请求模式及其响应来源

    参数:
        request: 请求模式，HttpRequest 或模式字符串
        response: 响应来源，写法见 make_response_source

    属性:
        score: 最近一次 match 的得分，0 表示不匹配
    """

    def __init__(self, request: HttpRequest | str, response: MockResponseLike):
        self.request = parse_mock_pattern(request)
        self.source = make_response_source(response)
        self.score = 0

        own_parts = urlsplit(self.request.url)
        self._own_host = _host(own_parts) or WILDCARD
        # 没有路径的模式匹配任意路径
        self._own_path = own_parts.path or WILDCARD
        self._own_query = parse_query(own_parts.query)

    def match(self, incoming_request: HttpRequest) -> bool:
        """
        计算请求与该模式的匹配得分

        参数:
            incoming_request: 待匹配的请求

        返回:
            匹配时返回 True，得分保存在 score 属性中

        执行步骤:
            1. 比较方法
            2. 比较主机和路径（完全相同 +2，通配匹配 +1）
            3. 比较查询参数（每个 +1）
            4. 两边请求体都是字典时比较请求体字段（每个 +1）
        """
        self.score = self.compute_score(incoming_request)
        return self.score > 0

    def compute_score(self, incoming_request: HttpRequest) -> int:
        if incoming_request.method != self.request.method:
            return 0

        incoming_parts = urlsplit(incoming_request.url)

        host_score = _compare_component(self._own_host, _host(incoming_parts))
        if not host_score:
            return 0

        path_score = _compare_component(self._own_path, incoming_parts.path or "/")
        if not path_score:
            return 0

        query_score = _compare_params(self._own_query, parse_query(incoming_parts.query))
        if query_score is None:
            return 0

        score = host_score + path_score + query_score

        own_body = self.request.get_body()
        incoming_body = incoming_request.get_body()
        if isinstance(own_body, Mapping) and isinstance(incoming_body, Mapping):
            body_score = _compare_params(own_body, incoming_body)
            if body_score is None:
                return 0
            score += body_score

        return score

    def get_response(self, incoming_request: HttpRequest) -> HttpResponse:
        return self.source.resolve(incoming_request)

    def __repr__(self) -> str:
        return f"<MockRequest [{self.request.method} {self.request.url}]>"


class MockTransport(BaseTransport):
    """
    Mock 传输层，从不发送真实网络请求

    每个 HttpClient 通过构造参数显式注入自己的 MockTransport，不存在进程级的全局 Mock。

    属性:
        mock_requests: 已注册的 Mock 记录，按注册顺序排列
        history: 已处理的请求，按处理顺序排列
    """

    def __init__(self):
        self.mock_requests: list[MockRequest] = []
        self.history: list[HttpRequest] = []
        self._lock = threading.RLock()

    def add_mock_request(self, request: HttpRequest | str, response: MockResponseLike) -> MockTransport:
        """
        注册一条 Mock 记录

        异常:
            ConfigurationError: 请求模式格式错误时抛出
        """
        mock_request = MockRequest(request, response)
        with self._lock:
            self.mock_requests.append(mock_request)
        logger.debug(f"Registered mock request: {mock_request!r}")
        return self

    def add_mock_response(self, uri: str, response: HttpResponse, method: str = HTTP_METHOD_GET) -> MockTransport:
        """注册单个 URI 的响应，等价于 add_mock_request(HttpRequest(method, uri), response)"""
        return self.add_mock_request(HttpRequest(method, uri), response)

    def mock_multi(self, to_mock: Mapping[HttpRequest | str, MockResponseLike]) -> MockTransport:
        """一次注册多条 Mock 记录，键为请求模式，值为响应来源"""
        for pattern, response in to_mock.items():
            self.add_mock_request(pattern, response)
        return self

    def find_best_match(self, request: HttpRequest) -> MockRequest | None:
        """返回得分最高的 Mock 记录，得分相同时取先注册者，没有匹配时返回 None"""
        best_mock = None
        best_score = 0
        for mock_request in self.mock_requests:
            if not mock_request.match(request):
                continue
            logger.debug(f"{mock_request!r} matched {request.method} {request.url} with score {mock_request.score}")
            if mock_request.score > best_score:
                best_mock, best_score = mock_request, mock_request.score
        return best_mock

    def send(self, request: HttpRequest) -> HttpResponse:
        """
        为请求选出最匹配的 Mock 并给出响应

        执行步骤:
            1. 对全部 Mock 记录评分，选出得分最高者
            2. 没有匹配时返回 404，否则由其响应来源给出响应
            3. 关联请求与响应，记录到 history
        """
        with self._lock:
            best_mock = self.find_best_match(request)
            if best_mock is None:
                logger.info(f"No mock matched {request.method} {request.url}")
                response = MockResponse.not_found()
            else:
                response = best_mock.get_response(request)

            response.set_request(request)
            request.set_response(response)
            self.history.append(request)
        return response

    def reset(self) -> MockTransport:
        """清空全部 Mock 记录和请求历史"""
        with self._lock:
            self.mock_requests.clear()
            self.history.clear()
        return self


class MockHttpClient(HttpClient):
    """
    使用 MockTransport 的 HttpClient，从不发送真实网络请求

    注册的相对 URI 会像请求一样拼接到 base_url 之后。

    使用示例:
        >>> client = MockHttpClient("https://api.example.com")
        >>> client.add_mock_request("GET /users", [{"id": 1}])
        >>> client.get("/users").get_body()
        [{'id': 1}]
    """

    def __init__(self, base_url: str | None = None, transport: MockTransport | None = None, **kwargs):
        super().__init__(base_url=base_url, transport=transport or MockTransport(), **kwargs)

    @property
    def mock_transport(self) -> MockTransport:
        return self.transport

    @property
    def history(self) -> list[HttpRequest]:
        return self.transport.history

    def _resolve_pattern(self, pattern: HttpRequest | str) -> HttpRequest:
        request = parse_mock_pattern(pattern)
        if request.url == WILDCARD or not self.base_url or "//" in request.url:
            return request
        return HttpRequest(
            request.method,
            self._build_url(request.url),
            request.get_body(),
            request.headers,
            request.get_options(),
        )

    def add_mock_request(self, request: HttpRequest | str, response: MockResponseLike) -> MockHttpClient:
        self.transport.add_mock_request(self._resolve_pattern(request), response)
        return self

    def add_mock_response(self, uri: str, response: HttpResponse, method: str = HTTP_METHOD_GET) -> MockHttpClient:
        return self.add_mock_request(HttpRequest(method, uri), response)

    def mock_multi(self, to_mock: Mapping[HttpRequest | str, MockResponseLike]) -> MockHttpClient:
        for pattern, response in to_mock.items():
            self.add_mock_request(pattern, response)
        return self
