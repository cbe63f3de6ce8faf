"""
通用测试 Fixture 定义

提供测试所需的 Mock 传输层、客户端和工具函数
"""

import pytest

from httpkit import HttpClient, HttpRequest, HttpResponse, MockTransport


@pytest.fixture
def mock_transport():
    """测试级别的 MockTransport，需显式传给被测客户端"""
    transport = MockTransport()
    yield transport
    transport.reset()


@pytest.fixture
def mock_client(mock_transport):
    """使用 mock_transport 的客户端"""
    return HttpClient(transport=mock_transport)


@pytest.fixture
def api_client(mock_transport):
    """带 base_url 的客户端，使用 mock_transport"""
    return HttpClient("https://api.example.com", transport=mock_transport)


@pytest.fixture
def echo_transport():
    """把请求内容原样作为 JSON 响应返回的传输层"""
    transport = MockTransport()
    transport.add_mock_request("*", echo_request)
    for method in ("POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"):
        transport.add_mock_request(f"{method} *", echo_request)
    return transport


def echo_request(request: HttpRequest) -> HttpResponse:
    """构造回显请求内容的响应"""
    response = HttpResponse(200, {"Content-Type": "application/json"})
    response.set_body(
        {
            "method": request.method,
            "url": request.url,
            "headers": {name: ", ".join(lines) for name, lines in request.get_headers().items()},
            "body": request.get_body(),
        }
    )
    return response


@pytest.fixture
def chain_middleware():
    """返回中间件工厂：构造向 X-Foo 请求头和响应头追加 tag 的中间件"""

    def make(tag: str):
        def middleware(request, next_handler):
            request.set_header("X-Foo", request.get_header("X-Foo") + tag)
            response = next_handler(request)
            response.set_header("X-Foo", response.get_header("X-Foo") + tag)
            return response

        return middleware

    return make
