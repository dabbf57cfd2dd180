# File: src/omp_core/session.py
"""
OMP 会话引擎 (Session)

职责：
1. 资源组装：Config + State + Transport + FrameReader。
2. 状态机：DISCONNECTED -> CONNECTED -> AUTHENTICATED，logout 回到 DISCONNECTED。
3. 请求周期：前置认证片段 -> 发送 -> 分帧读取 -> 解析 -> 提取状态 -> 错误归类。

同一会话上任何时刻最多只有一个未完成的请求，协议不支持多路复用或流水线。
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any
from xml.etree.ElementTree import Element

from .config import OmpConfig
from .exceptions import (
    AuthenticationError,
    ConnectionError,
    ProtocolError,
    XMLParsingError,
    classify_error,
    is_success_status,
)
from .framing import FrameReader
from .network import TlsTransport
from .protocols import envelope
from .protocols.authenticate import (
    build_authenticate_request,
    build_noop_request,
    mask_credentials,
    parse_authenticate_response,
)
from .protocols.constants import DEBUG_TRAFFIC_LEVEL, StreamConst
from .state import OmpState, SessionStatus

logger = logging.getLogger(__name__)

# 状态回调：(新状态, 描述信息)
StatusCallback = Callable[[SessionStatus, str], Any]


class OmpSession:
    """OMP 协议会话 (同步)。"""

    def __init__(
        self,
        config: OmpConfig | None = None,
        transport: TlsTransport | None = None,
        **overrides: Any,
    ) -> None:
        """初始化会话。

        Args:
            config: 配置快照，缺省时使用全部默认值。
            transport: 可注入的传输层实例，缺省时按配置创建 TlsTransport。
            **overrides: 逐字段覆盖配置，如 `OmpSession(cfg, port=9391)`。
        """
        base = config or OmpConfig()
        self.config = base.evolve(**overrides) if overrides else base

        self._listeners: list[StatusCallback] = []
        self._state = OmpState()
        # logout 之后必须显式 connect，不允许按需重连
        self._reconnect_allowed = True
        self.transport = transport or TlsTransport(self.config)
        self.reader = FrameReader(
            self.transport, self.config.bufsize, self.config.read_timeout
        )
        logger.debug(f"会话已创建: {self.config!r}")

        try:
            if self.config.auto_login:
                self.login()
            elif self.config.auto_connect:
                self.connect()
        except Exception:
            # 构造失败时调用方拿不到会话对象，连接必须在这里释放
            self.transport.close()
            raise

    @property
    def state(self) -> OmpState:
        """获取当前会话状态的副本，修改它不会影响会话内部状态。"""
        return replace(self._state)

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    # =====================================================================
    # 状态机
    # =====================================================================

    def connect(self) -> None:
        """建立 (或重新建立) TLS 连接。

        重复调用会重开连接；请求不做流水线，因此这是无害的。
        已缓存的认证片段不受影响。

        Raises:
            ConnectionError: 连接被拒绝、超时或 TLS 握手失败。
        """
        try:
            self.transport.open(self.config.host, self.config.port)
        except ConnectionError as e:
            self._state.last_error = str(e)
            self._update_status(SessionStatus.DISCONNECTED, f"连接失败: {e}")
            raise

        self._reconnect_allowed = True
        self._refresh_status(f"已连接到 {self.config.host}:{self.config.port}")

    def login(self, username: str | None = None, password: str | None = None) -> None:
        """登录。

        构建认证片段，与一个空操作请求一起发送以迫使服务器回应，
        authenticate_response 的状态在 [200, 299] 内即缓存片段。
        未连接时会先自动连接。

        Args:
            username: 用户名，缺省使用配置中的值。
            password: 密码，缺省使用配置中的值。

        Raises:
            AuthenticationError: 服务器拒绝了凭据，会话状态保持不变。
            XMLParsingError: 响应中缺少 authenticate_response 或其 status。
            ConnectionError: 传输层异常。
        """
        username = self.config.username if username is None else username
        password = self.config.password if password is None else password

        if not self.transport.is_open:
            self.connect()

        fragment = build_authenticate_request(username, password)
        request = fragment + build_noop_request()
        masked = mask_credentials(request)

        raw = self._exchange(request, masked)
        response_text = raw.decode(StreamConst.ENCODING, "replace")
        try:
            result = parse_authenticate_response(envelope.parse(raw))
        except XMLParsingError as e:
            e.with_context(masked, response_text)
            self._state.last_error = str(e)
            raise

        if not is_success_status(result.status):
            error = AuthenticationError(
                status=result.status,
                status_text=result.status_text,
                request=masked,
                response=response_text,
            )
            self._state.last_error = str(error)
            logger.warning(f"认证被拒绝: {error}")
            raise error

        self._state.auth_fragment = fragment
        self._update_status(SessionStatus.AUTHENTICATED, f"登录成功 (User: {username})")

    def is_authenticated(self) -> bool:
        """认证片段非空即为已登录。"""
        return self._state.is_authenticated

    def logout(self) -> None:
        """注销：无条件关闭连接并丢弃认证片段。

        协议没有服务器端会话，注销只是本地行为，因此总是成功。
        """
        self.transport.close()
        self._state.auth_fragment = ""
        self._reconnect_allowed = False
        self._update_status(SessionStatus.DISCONNECTED, "已注销")

    # =====================================================================
    # 请求周期
    # =====================================================================

    def send_raw(self, fragment: str) -> bytes:
        """前置认证片段后发送请求，返回原始响应字节，不做解析与归类。

        未登录时认证片段为空字符串，由服务器自行拒绝需要认证的操作。
        连接不可用时按需重连，但绝不隐式重新认证；logout 之后不重连。

        Raises:
            ConnectionError: 已注销且未重新 connect，或传输层异常。
        """
        if not self.transport.is_open:
            if not self._reconnect_allowed:
                raise ConnectionError("会话已注销，请先调用 connect", request=fragment)
            logger.info("连接未建立，按需重新连接")
            self.connect()
        return self._exchange(self._state.auth_fragment + fragment, fragment)

    def send_and_parse(self, fragment: str) -> Element:
        """发送请求并返回解析后的合成根节点。

        Returns:
            Element: 合成根节点，所有顶层 *_response 状态均为 2xx。

        Raises:
            ProtocolError: 某个 *_response 的状态不在 [200, 299] 内。
            XMLParsingError: 响应不是合法 XML，或无法提取状态。
            ConnectionError: 传输层异常。
        """
        raw = self.send_raw(fragment)
        response_text = raw.decode(StreamConst.ENCODING, "replace")

        try:
            root = envelope.parse(raw)
            statuses = envelope.extract_statuses(root)
        except XMLParsingError as e:
            e.with_context(fragment, response_text)
            self._state.last_error = str(e)
            raise

        for result in statuses:
            if not is_success_status(result.status):
                error = ProtocolError(
                    result.status,
                    result.status_text,
                    tag=result.tag,
                    request=fragment,
                    response=response_text,
                )
                self._state.last_error = str(error)
                raise error
        return root

    def _exchange(self, request: str, context: str) -> bytes:
        """[Internal] 一次完整的写入 + 分帧读取。

        Args:
            request: 实际写入流的完整请求。
            context: 用于日志与错误诊断的请求文本 (不含明文密码)。
        """
        try:
            try:
                self.reader.drain()
            except ConnectionError as e:
                logger.warning(f"空闲连接已失效 ({e})，重新连接")
                self.connect()

            self._trace("SENDING", mask_credentials(request))
            self.transport.write_all(request.encode(StreamConst.ENCODING))
            raw = self.reader.read_message()
        except Exception as exc:
            error = classify_error(exc, request=context)
            if isinstance(error, ConnectionError):
                self._drop_connection(error)
            if error is exc:
                raise
            raise error from exc

        self._trace("RECEIVED", raw.decode(StreamConst.ENCODING, "replace"))
        return raw

    def _drop_connection(self, error: ConnectionError) -> None:
        """[Internal] 传输失败后流可能已错位，关闭连接；认证片段保留。"""
        self.transport.close()
        self._state.last_error = str(error)
        self._refresh_status(f"传输异常，连接已关闭: {error}")

    def _trace(self, direction: str, text: str) -> None:
        if self.config.debug > DEBUG_TRAFFIC_LEVEL:
            logger.debug(f"{direction}: {text}")

    def _refresh_status(self, msg: str) -> None:
        """[Internal] 按连接与认证片段推导当前状态。"""
        if not self.transport.is_open:
            status = SessionStatus.DISCONNECTED
        elif self._state.is_authenticated:
            status = SessionStatus.AUTHENTICATED
        else:
            status = SessionStatus.CONNECTED
        self._update_status(status, msg)

    def _update_status(self, status: SessionStatus, msg: str) -> None:
        """更新内部状态并依次触发所有回调。"""
        self._state.status = status
        logger.info(f"[{status.name}] {msg}")

        for callback in self._listeners:
            try:
                callback(status, msg)
            except Exception as e:
                logger.error(f"回调执行异常: {e}")

    def __enter__(self):
        try:
            if not self.transport.is_open:
                self.connect()
            if self.config.auto_login and not self.is_authenticated():
                self.login()
        except Exception:
            # __exit__ 不会被调用
            self.transport.close()
            self._refresh_status("会话启动失败，连接已关闭")
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logout()
