"""工具函数模块

提供敏感信息脱敏、URL 查询串处理、内容类型判断等实用功能
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Any, Mapping
from urllib.parse import parse_qs, parse_qsl, urlencode, urlparse, urlunparse

from httpkit.constants import CONTENT_TYPE_JSON


# 默认敏感请求头名称集合
DEFAULT_SENSITIVE_HEADERS = {
    "Authorization",
    "Cookie",
    "X-API-Key",
    "X-Auth-Token",
    "X-Access-Token",
    "API-Key",
    "Auth-Token",
    "Session-ID",
}

# 默认敏感URL参数名称集合
DEFAULT_SENSITIVE_PARAMS = {
    "token",
    "password",
    "secret",
    "key",
    "api_key",
    "apikey",
    "access_token",
    "auth_token",
    "session",
    "pwd",
}


def sanitize_headers(
    headers: Mapping[str, Any],
    sensitive_keys: set[str] | None = None,
    mask: str = "***",
) -> dict[str, Any]:
    """
    脱敏请求头中的敏感信息

    参数:
        headers: 原始请求头字典，值可以是字符串或字符串列表
        sensitive_keys: 敏感键名集合，不区分大小写。None 时使用默认集合
        mask: 脱敏后的替换字符串

    返回:
        脱敏后的请求头字典（新字典，不修改原字典）

    示例:
        >>> headers = {"Authorization": ["Bearer token123"], "Content-Type": ["application/json"]}
        >>> sanitize_headers(headers)
        {"Authorization": "***", "Content-Type": ["application/json"]}
    """
    if sensitive_keys is None:
        sensitive_keys = DEFAULT_SENSITIVE_HEADERS

    # 创建不区分大小写的查找集合
    sensitive_keys_lower = {k.lower() for k in sensitive_keys}

    return {k: mask if k.lower() in sensitive_keys_lower else v for k, v in headers.items()}


def sanitize_url(
    url: str,
    sensitive_params: set[str] | None = None,
    mask: str = "***",
) -> str:
    """
    脱敏 URL 中的敏感参数

    参数:
        url: 原始 URL
        sensitive_params: 敏感参数名集合，不区分大小写。None 时使用默认集合
        mask: 脱敏后的替换字符串

    返回:
        脱敏后的 URL

    示例:
        >>> sanitize_url("https://api.example.com/user?token=abc123&page=1")
        "https://api.example.com/user?token=***&page=1"
    """
    if sensitive_params is None:
        sensitive_params = DEFAULT_SENSITIVE_PARAMS

    sensitive_params_lower = {p.lower() for p in sensitive_params}

    parsed = urlparse(url)
    if not parsed.query:
        return url

    params = parse_qs(parsed.query, keep_blank_values=True)

    sanitized_params = {}
    for key, values in params.items():
        if key.lower() in sensitive_params_lower:
            # 保持参数结构，但值替换为 mask
            sanitized_params[key] = [mask] * len(values)
        else:
            sanitized_params[key] = values

    sanitized_query = urlencode(sanitized_params, doseq=True)
    return urlunparse(parsed._replace(query=sanitized_query))


def sanitize_dict(
    data: Mapping[str, Any],
    sensitive_keys: set[str] | None = None,
    mask: str = "***",
    recursive: bool = True,
) -> dict[str, Any]:
    """
    脱敏字典中的敏感字段

    参数:
        data: 原始数据字典
        sensitive_keys: 敏感键名集合，不区分大小写。None 时使用默认集合
        mask: 脱敏后的替换字符串
        recursive: 是否递归处理嵌套字典

    返回:
        脱敏后的字典（新字典，不修改原字典）
    """
    if sensitive_keys is None:
        sensitive_keys = DEFAULT_SENSITIVE_HEADERS | DEFAULT_SENSITIVE_PARAMS

    sensitive_keys_lower = {k.lower() for k in sensitive_keys}

    result = {}
    for key, value in data.items():
        if str(key).lower() in sensitive_keys_lower:
            result[key] = mask
        elif recursive and isinstance(value, Mapping):
            result[key] = sanitize_dict(value, sensitive_keys, mask, recursive)
        else:
            result[key] = value

    return result


def append_query(uri: str, query: Mapping[str, Any] | None = None) -> str:
    """
    将查询参数字典拼接到 URI 之后

    参数:
        uri: 原始 URI，可以已经带有查询串
        query: 查询参数字典，值为列表时展开为多个同名参数

    返回:
        拼接后的 URI

    示例:
        >>> append_query("/users?page=1", {"size": 10})
        "/users?page=1&size=10"
    """
    if query:
        separator = "&" if "?" in uri else "?"
        uri = f"{uri}{separator}{urlencode(query, doseq=True)}"
    return uri


def parse_query(query: str) -> dict[str, str]:
    """解析查询串为字典，同名参数以最后一次出现的值为准"""
    return dict(parse_qsl(query or "", keep_blank_values=True))


def is_json_content_type(content_type: str | None) -> bool:
    """判断内容类型是否为 JSON（不区分大小写的前缀匹配）"""
    return (content_type or "").strip().lower().startswith(CONTENT_TYPE_JSON)


def glob_match(value: str, pattern: str) -> bool:
    """使用 glob 风格的 ``*`` 通配符匹配字符串，区分大小写"""
    return fnmatchcase(value, pattern)
