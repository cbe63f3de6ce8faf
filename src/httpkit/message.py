"""
HTTP 消息模块

提供请求和响应共享的消息模型：不区分大小写的多值请求头容器、原始请求头块解析、
协议版本和消息体的存取
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, Mapping, TypeAlias

from httpkit.constants import DEFAULT_PROTOCOL_VERSION

logger = logging.getLogger(__name__)

# 请求头来源：原始请求头块、字典、"Name: value" 行列表、(name, value) 元组列表或另一个 HeaderBag
HeaderSource: TypeAlias = "str | bytes | Mapping[str, Any] | Iterable[Any] | HeaderBag | None"

# 状态行：HTTP/<版本> <3位状态码> [原因短语]
STATUS_LINE_PATTERN = re.compile(r"^HTTP/[\d.]+\s+\d{3}(?:\s.*)?$", re.IGNORECASE)

LINE_SEPARATOR_PATTERN = re.compile(r"\r?\n")


class HeaderBag:
    """
    不区分大小写的多值请求头容器

    每个请求头按小写名称存储一个有序的值列表，同时保留一个展示用名称。
    展示名称以最后一次写入时使用的写法为准。

    使用示例:
        >>> bag = HeaderBag()
        >>> bag.set("X-Foo", "a").add("x-foo", "b")
        >>> bag.get("X-FOO")
        'a,b'
        >>> bag.to_dict()
        {'x-foo': ['a', 'b']}
    """

    def __init__(self, headers: Mapping[str, Any] | None = None):
        self._lines: dict[str, list[str]] = {}
        self._names: dict[str, str] = {}
        if headers:
            for name, value in headers.items():
                self.set(name, value)

    def add(self, name: str, value: Any) -> HeaderBag:
        """追加一个值，不影响该请求头已有的值"""
        key = name.lower()
        self._names[key] = name
        self._lines.setdefault(key, []).append(_to_line(value))
        return self

    def set(self, name: str, value: Any) -> HeaderBag:
        """
        替换请求头的全部值

        参数:
            name: 请求头名称，不区分大小写
            value: 新值，可以是单个值或值列表；传入 None 或空列表时删除该请求头
        """
        key = name.lower()
        if value is None or (isinstance(value, (list, tuple)) and not value):
            self._names.pop(key, None)
            self._lines.pop(key, None)
            return self

        self._names[key] = name
        if isinstance(value, (list, tuple)):
            self._lines[key] = [_to_line(line) for line in value]
        else:
            self._lines[key] = [_to_line(value)]
        return self

    def remove(self, name: str) -> HeaderBag:
        return self.set(name, None)

    def get(self, name: str) -> str:
        """返回请求头的全部值，以逗号拼接；不存在时返回空字符串"""
        return ",".join(self.get_lines(name))

    def get_lines(self, name: str) -> list[str]:
        return list(self._lines.get(name.lower(), []))

    def has(self, name: str) -> bool:
        return bool(self._lines.get(name.lower()))

    def to_dict(self) -> dict[str, list[str]]:
        """返回 {展示名称: [值, ...]} 结构的新字典"""
        return {self._names[key]: list(lines) for key, lines in self._lines.items()}

    def copy(self) -> HeaderBag:
        bag = HeaderBag()
        for key, lines in self._lines.items():
            bag._names[key] = self._names[key]
            bag._lines[key] = list(lines)
        return bag

    def clear(self) -> None:
        self._lines.clear()
        self._names.clear()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[str]:
        return iter([self._names[key] for key in self._lines])

    def __len__(self) -> int:
        return len(self._lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderBag):
            return NotImplemented
        return self._lines == other._lines

    def __repr__(self) -> str:
        return f"HeaderBag({self.to_dict()!r})"


def _to_line(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return str(value)


def parse_header_block(headers: HeaderSource) -> tuple[str | None, HeaderBag]:
    """
    将各种形式的请求头来源解析为 HeaderBag

    参数:
        headers: 请求头来源，支持以下形式（可混合）:
            - 原始请求头块字符串，行之间以 CRLF 或 LF 分隔
            - {"Header-Name": "value"} 或 {"Header-Name": ["line", ...]}
            - ["Header-Name: value", ...] 或 [("Header-Name", "value"), ...]
            - 另一个 HeaderBag

    返回:
        (最后一个状态行或 None, 解析后的 HeaderBag)

    执行步骤:
        1. 原始字符串按行拆分
        2. 逐行识别状态行：遇到状态行时丢弃之前已解析的请求头，只保留最后一个块
        3. 其余行按第一个冒号拆分为名称和值，无冒号的行（如空行）直接跳过
    """
    bag = HeaderBag()
    status_line = None

    if headers is None:
        return status_line, bag

    if isinstance(headers, HeaderBag):
        return status_line, headers.copy()

    if isinstance(headers, bytes):
        headers = headers.decode("latin-1")

    if isinstance(headers, str):
        headers = LINE_SEPARATOR_PATTERN.split(headers)

    if isinstance(headers, Mapping):
        for name, value in headers.items():
            if isinstance(value, (list, tuple)):
                for line in value:
                    bag.add(name, line)
            elif value is not None:
                bag.add(name, value)
        return status_line, bag

    for line in headers:
        if isinstance(line, (tuple, list)) and len(line) == 2:
            bag.add(str(line[0]), line[1])
            continue

        line = _to_line(line).strip()
        if not line:
            continue

        if STATUS_LINE_PATTERN.match(line):
            # 重定向链会产生多个请求头块，只保留最后一个
            status_line = line
            bag.clear()
            continue

        name, separator, value = line.partition(":")
        if not separator or not name.strip():
            continue
        bag.add(name.strip(), value.strip())

    return status_line, bag


class HttpMessage(ABC):
    """
    HTTP 消息基类

    持有消息体、协议版本和请求头，请求与响应共享其请求头操作。
    所有 set/add 方法均返回 self，支持链式调用。

    属性:
        protocol_version: HTTP 协议版本字符串，默认 "1.1"
    """

    def __init__(self):
        self._body: Any = None
        self._headers = HeaderBag()
        self.protocol_version = DEFAULT_PROTOCOL_VERSION

    @abstractmethod
    def get_body(self) -> Any:
        """返回消息体"""

    @abstractmethod
    def set_body(self, body: Any) -> HttpMessage:
        """设置消息体"""

    @property
    def headers(self) -> HeaderBag:
        return self._headers

    def add_header(self, name: str, value: Any) -> HttpMessage:
        self._headers.add(name, value)
        return self

    def set_header(self, name: str, value: Any) -> HttpMessage:
        """按不区分大小写的名称覆盖请求头，value 为 None 时删除该请求头"""
        self._headers.set(name, value)
        return self

    def get_header(self, name: str) -> str:
        """
        按不区分大小写的名称获取请求头，多个值以逗号拼接

        注意:
            并非所有请求头都适合用逗号拼接（如 Set-Cookie），此时应使用 get_header_lines
        """
        return self._headers.get(name)

    def get_header_lines(self, name: str) -> list[str]:
        return self._headers.get_lines(name)

    def has_header(self, name: str) -> bool:
        return self._headers.has(name)

    def get_headers(self) -> dict[str, list[str]]:
        return self._headers.to_dict()

    def set_headers(self, headers: HeaderSource) -> HttpMessage:
        """
        覆盖全部请求头

        参数:
            headers: 请求头来源，形式见 parse_header_block

        执行步骤:
            1. 解析请求头来源，得到最后一个状态行和请求头
            2. 替换现有请求头
            3. 如果存在状态行，交给子类处理（响应会据此设置状态码）
        """
        status_line, bag = parse_header_block(headers)
        self._headers = bag
        if status_line is not None:
            self._apply_status_line(status_line)
        return self

    def _apply_status_line(self, status_line: str) -> None:
        logger.debug(f"Ignoring status line on {type(self).__name__}: {status_line}")

    def set_protocol_version(self, protocol_version: str) -> HttpMessage:
        self.protocol_version = str(protocol_version)
        return self
