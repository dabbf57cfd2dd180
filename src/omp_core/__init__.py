# src/omp_core/__init__.py
"""
OMP-Core v1.0.0
无状态 XML-over-TLS 管理协议 (OMP) 的客户端协议引擎。
"""

# 暴露核心配置
from .client import OmpClient
from .config import (
    OmpConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    AuthenticationError,
    ConfigError,
    ConnectionError,
    OmpError,
    ProtocolError,
    ResponseError,
    XMLParsingError,
    classify_error,
)
from .framing import FrameReader
from .network import TlsTransport

# 暴露会话与状态
from .session import OmpSession
from .state import OmpState, SessionStatus

__version__ = "1.0.0"

__all__ = [
    "OmpSession",
    "OmpClient",
    "OmpConfig",
    "OmpState",
    "SessionStatus",
    "TlsTransport",
    "FrameReader",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "OmpError",
    "ConfigError",
    "ConnectionError",
    "ResponseError",
    "AuthenticationError",
    "XMLParsingError",
    "ProtocolError",
    "classify_error",
]
