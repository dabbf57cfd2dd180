# src/omp_core/protocols/__init__.py
"""
OMP 协议层 (Protocol Layer)

本包负责协议报文的纯粹构建 (Build) 与解析 (Parse)。

- 不包含任何 socket 操作或网络 I/O。
- 不包含任何状态管理 (State)。
- 不依赖于 session 或 network 层。
"""

from . import constants, envelope
from .authenticate import (
    build_authenticate_request,
    build_noop_request,
    mask_credentials,
    parse_authenticate_response,
)
from .configs import ScanConfig
from .envelope import (
    ResponseStatus,
    attributed_element,
    element_with_children,
    mixed_element,
    parse,
)
from .reports import ReportFormat
from .targets import Target
from .tasks import Task

# 公共 API
__all__ = [
    "constants",
    "envelope",
    "attributed_element",
    "element_with_children",
    "mixed_element",
    "parse",
    "ResponseStatus",
    "build_authenticate_request",
    "build_noop_request",
    "mask_credentials",
    "parse_authenticate_response",
    "Target",
    "ScanConfig",
    "ReportFormat",
    "Task",
]
