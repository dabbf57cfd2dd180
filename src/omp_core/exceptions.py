# File: src/omp_core/exceptions.py
"""
OMP 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以及将底层异常归类到统一错误模型的入口
`classify_error`，以便上层应用能按出错的层次进行精细处理。
"""

import socket
import ssl
from xml.etree.ElementTree import ParseError

from defusedxml import DefusedXmlException

STATUS_OK_MIN = 200
STATUS_OK_MAX = 299


class OmpError(Exception):
    """OMP 核心库所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 omp-core 抛出的已知错误。

    Attributes:
        request: 触发错误的请求片段 (可能为 None)。
        response: 服务器返回的原始响应文本 (可能为 None)。
    """

    def __init__(
        self,
        message: str = "",
        request: str | None = None,
        response: str | None = None,
    ) -> None:
        super().__init__(message)
        self.request = request
        self.response = response

    def with_context(
        self, request: str | None = None, response: str | None = None
    ) -> "OmpError":
        """补全诊断上下文，已有的字段不会被覆盖。"""
        if self.request is None:
            self.request = request
        if self.response is None:
            self.response = response
        return self


class ConfigError(OmpError):
    """配置加载或校验失败。

    触发场景:
    1. 字段格式错误 (如端口越界、超时为负数)。
    2. 找不到配置文件或 Profile。
    3. 未检测到任何相关环境变量。
    """

    pass


class ConnectionError(OmpError):
    """传输层错误 (Socket/TLS 级别)。

    触发场景:
    1. 连接被拒绝、连接超时或 TLS 握手失败。
    2. 写入时管道断开。
    3. 对端在读超时之前关闭了流。

    注意: 引擎不会自动重试，调用方需要重新 connect。
    """

    pass


class ResponseError(ConnectionError):
    """响应未接收完整，连接已被对端关闭。"""

    pass


class AuthenticationError(OmpError):
    """认证被拒绝 (服务器明确返回非 2xx 的 authenticate_response)。

    在使用 (可能不同的) 凭据重新 login 之前，会话不可用于需要认证的请求。
    """

    def __init__(
        self,
        message: str = "认证失败",
        status: int | None = None,
        status_text: str | None = None,
        request: str | None = None,
        response: str | None = None,
    ) -> None:
        if status is not None:
            message = f"{message} (status={status}"
            message += f", {status_text})" if status_text else ")"
        super().__init__(message, request=request, response=response)
        self.status = status
        self.status_text = status_text


class XMLParsingError(OmpError):
    """响应无法被结构化解析。

    触发场景:
    1. 即使包裹合成根节点后仍不是合法 XML。
    2. 缺少期望的元素或属性。
    3. status 属性缺失或不是整数。
    """

    pass


class ProtocolError(OmpError):
    """协议层错误：服务器理解了请求，但报告了非 2xx 状态。

    Attributes:
        status: 服务器返回的数字状态码。
        status_text: 服务器附带的状态描述。
        tag: 携带该状态的响应元素名 (如 'create_task_response')。
    """

    def __init__(
        self,
        status: int,
        status_text: str | None = None,
        tag: str | None = None,
        request: str | None = None,
        response: str | None = None,
    ) -> None:
        message = f"{tag or '响应'} 返回状态 {status}"
        if status_text:
            message += f": {status_text}"
        super().__init__(message, request=request, response=response)
        self.status = status
        self.status_text = status_text
        self.tag = tag


def is_success_status(status: int) -> bool:
    """2xx 为成功，其余一律视为失败。"""
    return STATUS_OK_MIN <= status <= STATUS_OK_MAX


def classify_error(
    exc: BaseException,
    request: str | None = None,
    response: str | None = None,
) -> BaseException:
    """将任意异常归类到四类错误之一。

    - OmpError: 原样返回，仅补全上下文。
    - Socket/TLS/超时 (OSError 家族): ConnectionError。
    - XML 语法错误或 defusedxml 拦截: XMLParsingError。
    - 其他异常原样返回，不掩盖编程错误。

    Args:
        exc: 捕获到的异常。
        request: 当前请求片段，用于诊断。
        response: 当前原始响应文本，用于诊断。

    Returns:
        BaseException: 归类后的异常对象。
    """
    if isinstance(exc, OmpError):
        return exc.with_context(request, response)

    if isinstance(exc, (ssl.SSLError, socket.timeout, OSError)):
        return ConnectionError(f"传输层异常: {exc}", request, response)

    if isinstance(exc, (ParseError, DefusedXmlException)):
        return XMLParsingError(f"XML 解析失败: {exc}", request, response)

    return exc
