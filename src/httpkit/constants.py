"""
HTTP 客户端常量配置模块

定义客户端使用的常量、默认配置等
"""

# HTTP 方法常量
HTTP_METHOD_GET = "GET"
HTTP_METHOD_POST = "POST"
HTTP_METHOD_PUT = "PUT"
HTTP_METHOD_DELETE = "DELETE"
HTTP_METHOD_PATCH = "PATCH"
HTTP_METHOD_HEAD = "HEAD"
HTTP_METHOD_OPTIONS = "OPTIONS"

# 支持的 HTTP 方法集合，不在此集合中的方法在构造请求时直接报错
HTTP_METHODS = frozenset(
    {
        HTTP_METHOD_GET,
        HTTP_METHOD_HEAD,
        HTTP_METHOD_POST,
        HTTP_METHOD_PUT,
        HTTP_METHOD_PATCH,
        HTTP_METHOD_DELETE,
        HTTP_METHOD_OPTIONS,
    }
)

# 默认配置
DEFAULT_PROTOCOL_VERSION = "1.1"
DEFAULT_STATUS_CODE = 200
DEFAULT_MAX_REDIRECTS = 10  # 传输层自动跟随重定向的最大次数

# 请求选项默认值，0 表示不限制超时
DEFAULT_REQUEST_OPTIONS = {
    "timeout": 0,
    "connectTimeout": 0,
    "verifyPeer": True,
    "auth": [],
    "protocolVersion": DEFAULT_PROTOCOL_VERSION,
}

# 选项别名：snake_case 写法映射到规范名称
REQUEST_OPTION_ALIASES = {
    "connect_timeout": "connectTimeout",
    "verify_peer": "verifyPeer",
    "protocol_version": "protocolVersion",
}

# 内容类型
CONTENT_TYPE_JSON = "application/json"

# 异常序列化时额外带出的响应头
EXCEPTION_RESPONSE_HEADERS = ("cf-ray", "cf-cache-status")

# 传输层失败时使用的状态码
STATUS_TRANSPORT_FAILURE = 0

# 日志格式
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP 状态码与标准原因短语
REASON_PHRASES = {
    # Informational 1xx
    100: "Continue",
    101: "Switching Protocols",
    # Successful 2xx
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    # Redirection 3xx
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    306: "(Unused)",
    307: "Temporary Redirect",
    # Client Error 4xx
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Request Entity Too Large",
    414: "Request-URI Too Long",
    415: "Unsupported Media Type",
    416: "Requested Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",
    422: "Unprocessable Entity",
    423: "Locked",
    # Server Error 5xx
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
}
