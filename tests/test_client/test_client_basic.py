"""
client.py 模块的基础单元测试

主要测试 HttpClient 的核心功能:
- 客户端初始化与类属性配置
- 传输层解析
- 链式配置方法
- 资源清理
"""

import re

import pytest

from httpkit import HttpClient, MockTransport, RequestsTransport
from httpkit.exceptions import ConfigurationError


# 创建测试用的客户端子类
class MyTestClient(HttpClient):
    """测试用的客户端子类"""

    base_url = "https://api.example.com/"
    default_headers = {"Accept": "application/json"}
    default_options = {"timeout": 30}
    transport_class = MockTransport


class TestHttpClientInitialization:
    """测试 HttpClient 初始化"""

    @pytest.mark.unit
    def test_basic_initialization(self):
        """测试基本初始化"""
        # Arrange & Act
        client = HttpClient()

        # Assert
        assert client.base_url == ""
        assert client.throw_exceptions is False
        assert isinstance(client.transport, RequestsTransport)
        assert len(client.middleware) == 0

    @pytest.mark.unit
    def test_class_attributes_as_defaults(self):
        """测试子类的类属性作为默认配置"""
        # Arrange & Act
        client = MyTestClient()

        # Assert
        assert client.base_url == "https://api.example.com"
        assert client.default_headers == {"Accept": "application/json"}
        assert client.default_options == {"timeout": 30}
        assert isinstance(client.transport, MockTransport)

    @pytest.mark.unit
    def test_constructor_overrides_class_attributes(self):
        """测试构造参数覆盖类属性"""
        # Arrange & Act
        client = MyTestClient(
            base_url="https://staging.example.com",
            default_headers={"X-Env": "staging"},
            default_options={"timeout": 5},
            throw_exceptions=True,
        )

        # Assert
        assert client.base_url == "https://staging.example.com"
        assert client.default_headers == {"Accept": "application/json", "X-Env": "staging"}
        assert client.default_options == {"timeout": 5}
        assert client.throw_exceptions is True

    @pytest.mark.unit
    def test_instance_config_does_not_leak_into_class(self):
        """测试实例级别的修改不影响类属性"""
        # Arrange
        client = MyTestClient()

        # Act
        client.set_default_header("X-Trace", "1")
        client.set_default_option("verifyPeer", False)

        # Assert
        assert MyTestClient.default_headers == {"Accept": "application/json"}
        assert MyTestClient.default_options == {"timeout": 30}

    @pytest.mark.unit
    def test_initial_middleware(self):
        """测试通过构造参数注册中间件"""

        def passthrough(request, next_handler):
            return next_handler(request)

        # Arrange & Act
        client = HttpClient(transport=MockTransport(), middleware=[passthrough])

        # Assert
        assert list(client.middleware) == [passthrough]


class TestTransportResolution:
    """测试传输层解析"""

    @pytest.mark.unit
    def test_transport_instance(self, mock_transport):
        """测试传入传输层实例"""
        client = HttpClient(transport=mock_transport)

        assert client.transport is mock_transport

    @pytest.mark.unit
    def test_transport_class(self):
        """测试传入传输层类时自动实例化"""
        client = HttpClient(transport=MockTransport)

        assert isinstance(client.transport, MockTransport)

    @pytest.mark.unit
    @pytest.mark.parametrize("transport", ["requests", object(), dict])
    def test_invalid_transport_raises(self, transport):
        """测试无效的传输层配置抛出 ConfigurationError"""
        with pytest.raises(ConfigurationError) as exc_info:
            HttpClient(transport=transport)

        assert "BaseTransport" in str(exc_info.value)


class TestFluentConfiguration:
    """测试链式配置方法"""

    @pytest.mark.unit
    def test_setters_return_self(self, mock_client):
        """测试所有配置方法返回客户端本身"""
        result = (
            mock_client.set_base_url("https://example.com/")
            .set_default_header("X-A", "1")
            .set_default_option("timeout", 3)
            .set_throw_exceptions(True)
            .add_middleware(lambda request, next_handler: next_handler(request))
        )

        assert result is mock_client
        assert mock_client.base_url == "https://example.com"
        assert mock_client.default_headers == {"X-A": "1"}
        assert mock_client.get_default_option("timeout") == 3
        assert mock_client.throw_exceptions is True
        assert len(mock_client.middleware) == 1

    @pytest.mark.unit
    def test_replace_defaults(self, mock_client):
        """测试整体替换默认请求头和默认选项"""
        mock_client.set_default_header("X-Old", "1").set_default_option("timeout", 1)

        mock_client.set_default_headers({"X-New": "2"}).set_default_options({"connectTimeout": 2})

        assert mock_client.default_headers == {"X-New": "2"}
        assert mock_client.default_options == {"connectTimeout": 2}
        assert mock_client.get_default_option("timeout") is None
        assert mock_client.get_default_option("timeout", 0) == 0


class TestRequestId:
    """测试请求 ID 生成"""

    @pytest.mark.unit
    def test_request_id_format(self, mock_client):
        """测试请求 ID 格式为 REQ-<毫秒时间戳>-<8位十六进制>"""
        request_id = mock_client.generate_request_id()

        assert re.fullmatch(r"REQ-\d{13}-[0-9a-f]{8}", request_id)

    @pytest.mark.unit
    def test_request_id_with_suffix(self, mock_client):
        """测试带后缀的请求 ID"""
        request_id = mock_client.generate_request_id("retry")

        assert request_id.endswith("-retry")

    @pytest.mark.unit
    def test_request_ids_are_unique(self, mock_client):
        """测试请求 ID 唯一"""
        ids = {mock_client.generate_request_id() for _ in range(100)}

        assert len(ids) == 100


class TestResourceCleanup:
    """测试资源清理"""

    @pytest.mark.unit
    def test_close_closes_transport(self, mocker):
        """测试 close 关闭传输层"""
        # Arrange
        transport = MockTransport()
        close = mocker.patch.object(transport, "close")
        client = HttpClient(transport=transport)

        # Act
        client.close()

        # Assert
        close.assert_called_once()

    @pytest.mark.unit
    def test_context_manager(self, mocker):
        """测试上下文管理器退出时关闭传输层"""
        # Arrange
        transport = RequestsTransport()
        close = mocker.spy(transport.session, "close")

        # Act
        with HttpClient(transport=transport) as client:
            assert client.transport is transport

        # Assert
        close.assert_called_once()
