"""
HTTP 客户端异常模块

定义所有客户端相关的异常类，提供统一的错误处理机制

异常分类:
    - 传输层失败（DNS、连接拒绝、超时）不抛出异常，而是表示为状态码为 0 的响应
    - HttpResponseException: 非 2xx 响应，仅在调用方开启 throw_exceptions 时抛出
    - ResponseDecodeError: 声明为 JSON 的响应体无法解码
    - ConfigurationError: 非法配置，在构造/注册阶段立即抛出
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from httpkit.constants import EXCEPTION_RESPONSE_HEADERS

if TYPE_CHECKING:
    from httpkit.request import HttpRequest
    from httpkit.response import HttpResponse


class HttpKitError(Exception):
    """
    客户端异常基类

    所有自定义异常的基类，用于统一捕获和处理客户端相关错误
    """


class ConfigurationError(HttpKitError, ValueError):
    """
    配置异常

    当请求方法不受支持、Mock 模式串格式错误、传输层配置无效时抛出此异常
    """


class ResponseDecodeError(HttpKitError, ValueError):
    """
    响应体解码异常

    当响应声明了 JSON 内容类型但响应体不是合法 JSON 时抛出此异常

    参数:
        message: 错误描述信息
        response: 解码失败的响应对象（可选）

    属性:
        response: 保存原始响应对象，便于获取原始响应体
    """

    def __init__(self, message: str, response: HttpResponse | None = None):
        super().__init__(message)
        self.response = response


class HttpResponseException(HttpKitError):
    """
    HTTP 错误响应异常

    当响应不属于 2xx 且调用方要求抛出异常时抛出此异常

    参数:
        response: 产生此异常的响应对象
        message: 错误描述信息

    属性:
        response: 完整的响应对象
        request: 发出该响应的请求对象（响应未关联请求时为 None）
        status_code: HTTP 状态码
        code: 与 status_code 相同，兼容按错误码处理异常的调用方
    """

    def __init__(self, response: HttpResponse, message: str = ""):
        super().__init__(message)
        self.message = message
        self.response = response
        self.status_code = response.status_code
        self.code = response.status_code

    @property
    def request(self) -> HttpRequest | None:
        return self.response.request

    def to_dict(self) -> dict[str, Any]:
        """
        将异常序列化为字典，供日志或上层调用方使用

        返回:
            {message, status, code, class, request, response} 结构的字典
        """
        response = self.response
        response_data = {
            "statusCode": response.status_code,
            "content-type": _header_or_none(response, "content-type"),
            "body": response.raw_body,
        }
        for name in EXCEPTION_RESPONSE_HEADERS:
            response_data[name] = _header_or_none(response, name)

        request = self.request
        return {
            "message": self.message,
            "status": self.status_code,
            "code": self.code,
            "class": f"{type(self).__module__}.{type(self).__qualname__}",
            "request": request.to_dict() if request is not None else None,
            "response": response_data,
        }


def _header_or_none(response: HttpResponse, name: str) -> str | None:
    return response.get_header(name) if response.has_header(name) else None

