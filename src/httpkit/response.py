"""
HTTP 响应模块

定义 HttpResponse：状态码与原因短语、原始响应体与按 Content-Type 解码后的响应体、
状态码分类判断以及转换为 HttpResponseException
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Mapping

from httpkit.constants import DEFAULT_STATUS_CODE, REASON_PHRASES
from httpkit.exceptions import ConfigurationError, HttpResponseException, ResponseDecodeError
from httpkit.message import HeaderSource, HttpMessage
from httpkit.utils import is_json_content_type

if TYPE_CHECKING:
    from httpkit.request import HttpRequest

logger = logging.getLogger(__name__)

# 状态可以是完整状态行 "HTTP/1.1 404 Not Found"、"404 Not Found" 或 "404"
STATUS_PATTERN = re.compile(r"(?:HTTP/([\d.]+)\s+)?(\d{3})(?:\s+(.*))?", re.IGNORECASE)

# 响应体尚未解码的标记
_UNDECODED = object()


def json_dumps(value: Any) -> str:
    """以紧凑格式序列化为 JSON 字符串"""
    return json.dumps(value, separators=(",", ":"))


class HttpResponse(HttpMessage):
    """
    HTTP 响应

    参数:
        status: 状态码、"<code> <reason>" 或完整状态行；为 None 时从请求头中的状态行推断，
            没有状态行则为 200
        headers: 响应头来源，可以是包含状态行的原始响应头块
        raw_body: 原始响应体字符串

    属性:
        status_code: 整数状态码，传输层失败时为 0
        reason_phrase: 原因短语，未显式给出时取标准短语
        request: 产生此响应的请求（可选）

    使用示例:
        >>> response = HttpResponse(200, {"Content-Type": "application/json"}, '{"id": 1}')
        >>> response.get_body()
        {'id': 1}
        >>> response.is_response_class("2xx")
        True
    """

    reason_phrases: Mapping[int, str] = REASON_PHRASES

    def __init__(self, status: int | str | None = None, headers: HeaderSource = None, raw_body: Any = ""):
        super().__init__()
        self.status_code = DEFAULT_STATUS_CODE
        self.reason_phrase = ""
        self.request: HttpRequest | None = None
        self._raw_body = raw_body if raw_body is not None else ""
        self._body = _UNDECODED
        self._has_status_line = False

        self.set_headers(headers)
        if status is not None:
            self.set_status(status)
        elif not self._has_status_line:
            self.set_status(DEFAULT_STATUS_CODE)

    # ========== 状态 ==========

    def _apply_status_line(self, status_line: str) -> None:
        self._has_status_line = True
        self.set_status(status_line)

    def set_status(self, code: int | str, reason_phrase: str | None = None) -> HttpResponse:
        """
        设置响应状态

        参数:
            code: 整数状态码（0~999），或 "<code> <reason>"，或完整状态行（同时设置协议版本），
                字符串中的状态码必须恰好为三位数字
            reason_phrase: 原因短语；为空时使用状态行中的短语，再退回到标准短语表

        异常:
            ConfigurationError: 无法识别的状态时抛出
        """
        match = STATUS_PATTERN.fullmatch(str(code).strip())
        if match:
            self.protocol_version = match.group(1) or self.protocol_version
            status_code = int(match.group(2))
            reason_phrase = reason_phrase or (match.group(3) or "").strip()
        elif isinstance(code, int) and not isinstance(code, bool) and 0 <= code <= 999:
            # 传输层失败时状态码为 0
            status_code = code
        else:
            raise ConfigurationError(f"Invalid HTTP status: {code!r}")

        if not reason_phrase:
            reason_phrase = self.reason_phrases.get(status_code, "")

        self.status_code = status_code
        self.reason_phrase = str(reason_phrase)
        return self

    def with_status(self, code: int | str, reason_phrase: str | None = None) -> HttpResponse:
        return self.set_status(code, reason_phrase)

    def get_status(self) -> str:
        return f"{self.status_code} {self.reason_phrase}".strip()

    def is_response_class(self, status_class: str) -> bool:
        """
        判断状态码是否属于给定的状态类

        参数:
            status_class: 状态码的字符串表示，x 为数字通配符，如 "2xx" 表示全部 200 段，
                "30x" 表示 300~309

        注意:
            "2xx" 匹配 200~299 的任意状态码（包括 207），与 HTTP 状态类的通常含义一致

        返回:
            状态码完整匹配时返回 True
        """
        pattern = "".join(r"\d" if char in "xX" else re.escape(char) for char in str(status_class))
        return re.fullmatch(pattern, str(self.status_code)) is not None

    def is_successful(self) -> bool:
        return self.is_response_class("2xx")

    # ========== 响应体 ==========

    @property
    def raw_body(self) -> Any:
        return self._raw_body

    @raw_body.setter
    def raw_body(self, value: Any) -> None:
        self._raw_body = value if value is not None else ""
        self._body = _UNDECODED

    def set_raw_body(self, value: Any) -> HttpResponse:
        self.raw_body = value
        return self

    def get_body(self) -> Any:
        """
        返回按 Content-Type 解码后的响应体

        Content-Type 以 application/json 开头时解析 JSON，否则返回原始响应体。
        解码结果会被缓存，重复调用不会重新解析。

        异常:
            ResponseDecodeError: 声明为 JSON 但响应体不是合法 JSON 时抛出
        """
        if self._body is _UNDECODED:
            if is_json_content_type(self.get_header("Content-Type")):
                self._body = self._decode_json()
            else:
                self._body = self._raw_body
        return self._body

    def _decode_json(self) -> Any:
        raw_body = self._raw_body
        if not raw_body or (isinstance(raw_body, (str, bytes)) and not raw_body.strip()):
            return None
        try:
            return json.loads(raw_body)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to decode JSON response body with status {self.status_code}: {e}")
            raise ResponseDecodeError(f"Failed to decode JSON response body: {e}", response=self) from e

    def set_body(self, body: Any) -> HttpResponse:
        """
        设置响应体，并同步原始响应体

        - 字符串、字节串或 None: 原始响应体与解码后的响应体相同
        - 可 JSON 序列化的结构化数据: 立即序列化为原始响应体
        - 其他对象: 原始响应体置为空字符串，解码后的响应体保留该对象
        """
        if body is None or isinstance(body, (str, bytes)):
            self._raw_body = body
            self._body = body
            return self

        try:
            self._raw_body = json_dumps(body)
        except (TypeError, ValueError):
            logger.debug(f"Response body of type {type(body).__name__} is not JSON serializable")
            self._raw_body = ""
        self._body = body
        return self

    def get_body_field(self, key: Any, default: Any = None) -> Any:
        """按键读取结构化响应体中的字段，响应体不是字典/列表或键不存在时返回 default"""
        body = self.get_body()
        if isinstance(body, Mapping):
            return body.get(key, default)
        if isinstance(body, list) and isinstance(key, int) and -len(body) <= key < len(body):
            return body[key]
        return default

    def has_body_field(self, key: Any) -> bool:
        return self.get_body_field(key, _UNDECODED) is not _UNDECODED

    def set_body_field(self, key: Any, value: Any) -> HttpResponse:
        """
        设置结构化响应体中的字段，并重新序列化原始响应体

        参数:
            key: 字段名；响应体为列表时 key 为 None 表示追加
            value: 字段值

        异常:
            TypeError: 响应体是非空的标量（如普通文本），或响应体为列表而 key 不是整数时抛出
            IndexError: 响应体为列表且下标越界时抛出
        """
        body = self.get_body()
        if body is None or body == "":
            body = [] if key is None else {}
        if isinstance(body, list) and key is None:
            body.append(value)
        elif isinstance(body, (dict, list)):
            body[key] = value
        else:
            raise TypeError(f"Cannot set field {key!r} on a response body of type {type(body).__name__}")
        return self.set_body(body)

    # ========== 关联请求与异常 ==========

    def set_request(self, request: HttpRequest | None) -> HttpResponse:
        self.request = request
        return self

    def as_exception(self) -> HttpResponseException:
        """
        基于当前响应构造 HttpResponseException

        异常消息优先使用结构化响应体中的 message 字段，否则使用原因短语
        """
        request = self.request
        if request is not None:
            request_description = f'Request "{request.method} {request.url}"'
        else:
            request_description = "Unknown request"

        try:
            body = self.get_body()
        except ResponseDecodeError:
            logger.warning("Using reason phrase for error message, response body could not be decoded")
            body = None

        if isinstance(body, Mapping) and body.get("message"):
            message_kind, message_text = "custom", body["message"]
        else:
            message_kind, message_text = "standard", self.reason_phrase

        message = (
            f"{request_description} failed with a response code of {self.status_code} "
            f'and a {message_kind} message of "{message_text}"'
        )
        return HttpResponseException(self, message)

    def __str__(self) -> str:
        raw_body = self._raw_body
        if raw_body is None:
            return ""
        if isinstance(raw_body, bytes):
            return raw_body.decode("utf-8", errors="replace")
        return str(raw_body)

    def __repr__(self) -> str:
        return f"<HttpResponse [{self.get_status()}]>"
