"""
中间件模块

中间件是签名为 ``(request, next) -> response`` 的可调用对象，可以:
    - 在调用 next 之前修改请求
    - 在 next 返回之后修改响应
    - 不调用 next，直接构造响应（短路）

后添加的中间件包裹在外层：它的请求前逻辑最先执行，响应后逻辑最后执行。

使用示例:
    >>> def add_token(request, next):
    ...     request.set_header("Authorization", "Bearer xxx")
    ...     return next(request)
    >>>
    >>> chain = MiddlewareChain().add(add_token)
    >>> response = chain.dispatch(request, transport.send)
"""

from __future__ import annotations

import logging
from functools import partial, reduce
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, TypeAlias

from httpkit.exceptions import ConfigurationError

if TYPE_CHECKING:
    from httpkit.request import HttpRequest
    from httpkit.response import HttpResponse

logger = logging.getLogger(__name__)

# 处理请求并返回响应的可调用对象
Handler: TypeAlias = "Callable[[HttpRequest], HttpResponse]"

# 中间件：接收请求和下一层处理器，返回响应
Middleware: TypeAlias = "Callable[[HttpRequest, Handler], HttpResponse]"


def _invoke(middleware: Middleware, next_handler: Handler, request: HttpRequest) -> HttpResponse:
    return middleware(request, next_handler)


class MiddlewareChain:
    """
    有序的中间件列表

    参数:
        middleware: 初始中间件，按注册顺序排列
    """

    def __init__(self, middleware: Iterable[Middleware] | None = None):
        self._middleware: list[Middleware] = []
        for item in middleware or ():
            self.add(item)

    def add(self, middleware: Middleware) -> MiddlewareChain:
        """
        注册中间件，新中间件包裹在所有已注册中间件的外层

        异常:
            ConfigurationError: 中间件不可调用时抛出
        """
        if not callable(middleware):
            raise ConfigurationError(f"Middleware must be callable, got {type(middleware).__name__}")
        self._middleware.append(middleware)
        logger.debug(f"Registered middleware: {getattr(middleware, '__name__', type(middleware).__name__)}")
        return self

    def compose(self, terminal: Handler) -> Handler:
        """
        围绕最内层处理器组合出完整的调用链

        参数:
            terminal: 最内层处理器，通常是传输层的 send

        返回:
            调用链入口，调用它等价于依次穿过全部中间件
        """
        # 从最早注册的中间件开始逐层向外包裹
        return reduce(
            lambda next_handler, middleware: partial(_invoke, middleware, next_handler),
            self._middleware,
            terminal,
        )

    def dispatch(self, request: HttpRequest, terminal: Handler) -> HttpResponse:
        return self.compose(terminal)(request)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(list(self._middleware))

    def __len__(self) -> int:
        return len(self._middleware)
