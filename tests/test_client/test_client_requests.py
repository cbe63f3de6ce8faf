"""
client.py 模块的请求方法测试

使用回显传输层测试:
- 各 HTTP 方法与 URL 拼接
- 默认请求头与默认选项的合并
- 非 2xx 响应时的异常抛出
"""

import pytest

from httpkit import HttpClient, HttpResponseException, MockResponse
from httpkit.request import HttpRequest


class TestUrlBuilding:
    """测试 URL 拼接"""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "base_url,uri,expected",
        [
            ("https://api.example.com", "/users", "https://api.example.com/users"),
            ("https://api.example.com/", "users", "https://api.example.com/users"),
            ("https://api.example.com/v1/", "/users/1", "https://api.example.com/v1/users/1"),
            ("https://api.example.com", "https://other.com/x", "https://other.com/x"),
            ("https://api.example.com", "//cdn.example.com/a.js", "//cdn.example.com/a.js"),
            ("", "/users", "/users"),
        ],
    )
    def test_create_request_url(self, echo_transport, base_url, uri, expected):
        """测试相对 URI 拼接到 base_url，包含 // 的 URI 原样使用"""
        client = HttpClient(base_url, transport=echo_transport)

        request = client.create_request("GET", uri)

        assert request.url == expected

    @pytest.mark.unit
    def test_get_appends_query(self, echo_transport):
        """测试 GET 查询参数拼接到 URI"""
        client = HttpClient("https://api.example.com", transport=echo_transport)

        response = client.get("/users?active=1", {"page": 2, "tag": ["a", "b"]})

        assert response.get_body_field("url") == "https://api.example.com/users?active=1&page=2&tag=a&tag=b"


class TestHttpMethods:
    """测试各 HTTP 方法"""

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["get", "head", "options", "delete"])
    def test_query_methods(self, echo_transport, method):
        """测试查询类方法"""
        client = HttpClient("https://api.example.com", transport=echo_transport)

        response = getattr(client, method)("/items", {"q": "x"})

        assert response.status_code == 200
        assert response.request.method == method.upper()
        assert response.request.url == "https://api.example.com/items?q=x"
        assert response.request.get_body() == ""

    @pytest.mark.unit
    @pytest.mark.parametrize("method", ["post", "put", "patch"])
    def test_body_methods(self, echo_transport, method):
        """测试带请求体的方法"""
        client = HttpClient("https://api.example.com", transport=echo_transport)

        response = getattr(client, method)("/items", {"name": "widget"})

        assert response.get_body_field("method") == method.upper()
        assert response.get_body_field("body") == {"name": "widget"}

    @pytest.mark.unit
    def test_post_without_body_sends_empty_mapping(self, echo_transport):
        """测试未传请求体时使用空字典"""
        client = HttpClient(transport=echo_transport)

        response = client.post("https://api.example.com/ping")

        assert response.request.get_body() == {}

    @pytest.mark.unit
    def test_request_links_request_and_response(self, echo_transport):
        """测试响应与请求相互关联"""
        client = HttpClient(transport=echo_transport)

        response = client.request("PUT", "https://api.example.com/x", "raw")

        assert response.request.response is response
        assert response.request.get_body() == "raw"


class TestDefaultsMerging:
    """测试默认配置合并"""

    @pytest.mark.unit
    def test_default_headers_sent(self, echo_transport):
        """测试默认请求头随每个请求发送"""
        client = HttpClient(transport=echo_transport, default_headers={"X-Client": "httpkit"})

        response = client.get("https://api.example.com/")

        assert response.get_body_field("headers") == {"X-Client": "httpkit"}

    @pytest.mark.unit
    def test_per_call_headers_override_defaults(self, echo_transport):
        """测试单次请求的请求头覆盖同名默认请求头（不区分大小写）"""
        client = HttpClient(transport=echo_transport, default_headers={"Accept": "text/html", "X-A": "1"})

        response = client.get("https://api.example.com/", headers={"accept": "application/json"})

        assert response.request.get_header("Accept") == "application/json"
        assert response.request.get_header("X-A") == "1"

    @pytest.mark.unit
    def test_per_call_headers_as_raw_lines(self, echo_transport):
        """测试单次请求的请求头可以是 "Name: value" 行列表"""
        client = HttpClient(transport=echo_transport)

        response = client.get("https://api.example.com/", headers=["X-A: 1", "X-A: 2"])

        assert response.request.get_header_lines("x-a") == ["1", "2"]

    @pytest.mark.unit
    def test_options_merge(self, echo_transport):
        """测试单次请求的选项覆盖默认选项"""
        client = HttpClient(transport=echo_transport, default_options={"timeout": 30, "verifyPeer": False})

        response = client.get("https://api.example.com/", options={"timeout": 5, "connect_timeout": 1})

        request = response.request
        assert request.get_timeout() == 5
        assert request.get_connect_timeout() == 1
        assert request.get_verify_peer() is False


class TestErrorHandling:
    """测试非 2xx 响应的处理"""

    @pytest.mark.unit
    def test_no_exception_by_default(self, api_client, mock_transport):
        """测试默认不抛出异常"""
        mock_transport.add_mock_request("*", MockResponse.json({"message": "nope"}).with_status(401))

        response = api_client.get("/secret")

        assert response.status_code == 401
        assert not response.is_successful()

    @pytest.mark.unit
    def test_throw_exceptions(self, api_client, mock_transport):
        """UT-CLIENT-001: 开启 throw_exceptions 时非 2xx 响应抛出携带请求与响应的异常"""
        # Arrange
        mock_transport.add_mock_request("*", MockResponse.json({"message": "Invalid token"}).with_status(401))
        api_client.set_throw_exceptions(True)

        # Act
        with pytest.raises(HttpResponseException) as exc_info:
            api_client.get("/secret")

        # Assert
        exc = exc_info.value
        assert exc.response.status_code == 401
        assert exc.status_code == 401
        assert isinstance(exc.request, HttpRequest)
        assert exc.request is mock_transport.history[-1]
        assert exc.request.url == "https://api.example.com/secret"
        assert exc.message == (
            'Request "GET https://api.example.com/secret" failed with a response code of 401 '
            'and a custom message of "Invalid token"'
        )

    @pytest.mark.unit
    def test_per_call_throw_option(self, api_client, mock_transport):
        """测试单次请求的 throw 选项覆盖客户端配置"""
        mock_transport.add_mock_request("*", MockResponse.not_found())

        with pytest.raises(HttpResponseException):
            api_client.get("/x", options={"throw": True})

        api_client.set_throw_exceptions(True)
        response = api_client.get("/x", options={"throw": False})
        assert response.status_code == 404

    @pytest.mark.unit
    def test_success_never_raises(self, api_client, mock_transport):
        """测试 2xx 响应不抛出异常"""
        mock_transport.add_mock_request("POST *", MockResponse.success().with_status(201))
        api_client.set_throw_exceptions(True)

        response = api_client.post("/items", {"a": 1})

        assert response.status_code == 201

    @pytest.mark.unit
    def test_exception_is_logged(self, api_client, mock_transport, caplog):
        """测试抛出异常前记录 WARNING 日志"""
        mock_transport.add_mock_request("*", MockResponse.not_found())

        with caplog.at_level("WARNING", logger="httpkit.client"):
            with pytest.raises(HttpResponseException):
                api_client.get("/x", options={"throw": True})

        assert "Raising HttpResponseException" in caplog.text


class TestLogging:
    """测试请求日志"""

    @pytest.mark.unit
    def test_sensitive_params_masked(self, echo_transport, caplog):
        """测试日志中的敏感 URL 参数被脱敏"""
        client = HttpClient(transport=echo_transport)

        with caplog.at_level("INFO", logger="httpkit.client"):
            client.get("https://api.example.com/users", {"token": "abc123", "page": 1})

        assert "abc123" not in caplog.text
        assert "token=%2A%2A%2A" in caplog.text
        assert "Received 200 response" in caplog.text

    @pytest.mark.unit
    def test_sensitive_headers_masked(self, echo_transport, caplog):
        """测试 DEBUG 日志中的敏感请求头被脱敏"""
        client = HttpClient(transport=echo_transport, default_headers={"Authorization": "Bearer secret"})

        with caplog.at_level("DEBUG", logger="httpkit.client"):
            client.get("https://api.example.com/")

        assert "Bearer secret" not in caplog.text
        assert "'Authorization': '***'" in caplog.text

    @pytest.mark.unit
    def test_sanitization_can_be_disabled(self, echo_transport, caplog):
        """测试关闭脱敏后日志保留原始 URL"""

        class RawLoggingClient(HttpClient):
            enable_sanitization = False

        client = RawLoggingClient(transport=echo_transport)

        with caplog.at_level("INFO", logger="httpkit.client"):
            client.get("https://api.example.com/users", {"token": "abc123"})

        assert "token=abc123" in caplog.text
