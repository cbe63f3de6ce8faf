"""
传输层模块

传输层负责把 HttpRequest 真正发送出去并返回 HttpResponse。约定:
    - 4xx/5xx 是正常返回，不抛出异常
    - DNS 解析失败、连接被拒绝、超时等传输层失败也不抛出异常，
      而是返回状态码为 0、原因短语为底层错误信息的响应
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import requests

from httpkit.constants import DEFAULT_MAX_REDIRECTS, HTTP_METHOD_HEAD, STATUS_TRANSPORT_FAILURE
from httpkit.request import HttpRequest
from httpkit.response import HttpResponse, json_dumps
from httpkit.utils import is_json_content_type

logger = logging.getLogger(__name__)


class BaseTransport(ABC):
    """传输层基类，定义发送 HttpRequest 的接口。"""

    @abstractmethod
    def send(self, request: HttpRequest) -> HttpResponse:
        """发送请求并返回响应，不因 HTTP 错误或传输层失败抛出异常。"""

    def close(self) -> None:
        """释放传输层持有的资源"""


class RequestsTransport(BaseTransport):
    """
    基于 requests.Session 的传输层

    参数:
        session: 复用的 requests.Session，为 None 时自动创建
        max_redirects: 自动跟随重定向的最大次数

    说明:
        - 自动跟随重定向
        - 请求体为字符串时原样发送；结构化数据在 Content-Type 为 JSON 时编码为 JSON，
          否则字典交给 requests 编码为表单，其他结构化数据编码为 JSON
        - HEAD 请求不发送请求体
    """

    def __init__(self, session: requests.Session | None = None, max_redirects: int = DEFAULT_MAX_REDIRECTS):
        self.session = session or requests.Session()
        self.session.max_redirects = max_redirects

    def send(self, request: HttpRequest) -> HttpResponse:
        """
        发送请求

        执行步骤:
            1. 将 HttpRequest 转换为 requests 的请求参数
            2. 执行请求，传输层异常和无法编码的请求转换为状态码 0 的响应
            3. 将 requests.Response 转换为 HttpResponse 并关联请求
        """
        try:
            request_kwargs = self._build_request_kwargs(request)
            raw_response = self.session.request(**request_kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f"Request to {request.url} timed out: {e}")
            response = self._make_failure_response(e)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {request.url} failed: {e}")
            response = self._make_failure_response(e)
        except (TypeError, ValueError) as e:
            # 请求体或参数无法编码，请求未发出
            logger.error(f"Request to {request.url} could not be prepared: {e}")
            response = self._make_failure_response(e)
        else:
            response = self._decode_response(raw_response)

        response.set_request(request)
        return response

    def _build_request_kwargs(self, request: HttpRequest) -> dict[str, Any]:
        headers = {}
        for name, lines in request.get_headers().items():
            headers[name] = ", ".join(lines)

        request_kwargs = {
            "method": request.method,
            "url": request.url,
            "headers": headers,
            "timeout": self._make_timeout(request),
            "verify": request.verify_peer,
            "allow_redirects": True,
        }

        if request.auth:
            username = request.auth[0]
            password = request.auth[1] if len(request.auth) > 1 else ""
            request_kwargs["auth"] = (username, password or "")

        if request.method != HTTP_METHOD_HEAD:
            body = self._make_body(request)
            if body not in (None, ""):
                request_kwargs["data"] = body

        return request_kwargs

    @staticmethod
    def _make_timeout(request: HttpRequest) -> tuple[float | None, float | None] | None:
        # 0 表示不限制
        connect_timeout = request.connect_timeout or None
        read_timeout = request.timeout or None
        if connect_timeout is None and read_timeout is None:
            return None
        return connect_timeout, read_timeout

    @staticmethod
    def _make_body(request: HttpRequest) -> Any:
        body = request.get_body()
        if body is None or isinstance(body, (str, bytes)):
            return body

        if is_json_content_type(request.get_header("Content-Type")):
            return json_dumps(body)
        if isinstance(body, Mapping):
            return dict(body)
        # 列表等其他结构化数据无法表单编码
        return json_dumps(body)

    @staticmethod
    def _decode_response(raw_response: requests.Response) -> HttpResponse:
        headers = []
        raw_headers = getattr(getattr(raw_response.raw, "headers", None), "items", None)
        if callable(raw_headers):
            # urllib3 的 HTTPHeaderDict 会为每个重复的请求头单独返回一项
            headers.extend(raw_headers())
        else:
            headers.extend(raw_response.headers.items())

        response = HttpResponse(raw_response.status_code, headers, raw_response.text)
        if raw_response.reason:
            response.reason_phrase = raw_response.reason

        version = getattr(raw_response.raw, "version", None)
        if version in (10, 11):
            response.protocol_version = "1.0" if version == 10 else "1.1"
        return response

    @staticmethod
    def _make_failure_response(error: Exception) -> HttpResponse:
        response = HttpResponse(STATUS_TRANSPORT_FAILURE, raw_body=str(error))
        response.reason_phrase = str(error)
        return response

    def close(self) -> None:
        self.session.close()
        logger.info("Session closed")
