# src/omp_core/network.py
"""
OMP 核心库 - 网络模块 (Network)

封装单条 TLS 流连接的建立、关闭、写入与限时读取。
该模块屏蔽了底层 Socket/TLS 的复杂性，向上层提供纯粹的 bytes 收发接口。
本层不做任何重试。
"""

import logging
import socket
import ssl

from .config import OmpConfig
from .exceptions import ConnectionError

logger = logging.getLogger(__name__)


class TlsTransport:
    """
    封装 TLS-over-TCP 的同步客户端。
    """

    def __init__(self, config: OmpConfig):
        self.config = config
        self.sock: ssl.SSLSocket | None = None

    @property
    def is_open(self) -> bool:
        return self.sock is not None

    def _build_context(self) -> ssl.SSLContext:
        """构建 TLS 上下文。

        管理服务通常使用自签名证书，因此默认不校验对端；
        开启 verify_tls 后使用系统默认校验 (可指定 ca_file)。
        """
        if self.config.verify_tls:
            return ssl.create_default_context(cafile=self.config.ca_file)

        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    def open(self, host: str | None = None, port: int | None = None) -> None:
        """
        建立 TLS 连接。已有连接会先被关闭。

        Raises:
            ConnectionError: 连接被拒绝、超时或 TLS 握手失败。
        """
        host = host or self.config.host
        port = port or self.config.port
        self.close()

        try:
            raw = socket.create_connection(
                (host, port), timeout=self.config.connect_timeout
            )
        except OSError as e:
            raise ConnectionError(f"连接失败 {host}:{port}: {e}") from e

        try:
            self.sock = self._build_context().wrap_socket(raw, server_hostname=host)
        except OSError as e:
            raw.close()
            raise ConnectionError(f"TLS 握手失败 {host}:{port}: {e}") from e

        logger.debug(f"TLS 连接已建立: {host}:{port} ({self.sock.version()})")

    def close(self) -> None:
        """关闭连接。幂等，对未打开或已关闭的连接调用也是安全的。"""
        if self.sock is None:
            return
        sock, self.sock = self.sock, None
        try:
            sock.close()
        except OSError as e:
            logger.warning(f"关闭连接时出现异常: {e}")
        else:
            logger.debug("TLS 连接已关闭")

    def write_all(self, data: bytes) -> None:
        """
        完整写出数据。

        Raises:
            ConnectionError: 连接未打开或管道断开。
        """
        if self.sock is None:
            raise ConnectionError("连接未建立")
        try:
            self.sock.settimeout(self.config.connect_timeout)
            self.sock.sendall(data)
        except OSError as e:
            raise ConnectionError(f"发送失败: {e}") from e

    def read_some(self, max_bytes: int, timeout: float) -> bytes:
        """
        读取 timeout 内可用的数据，最多 max_bytes 字节。

        超时且无数据时返回 b"" (不是错误)。timeout <= 0 表示非阻塞轮询。

        Raises:
            ConnectionError: 连接未打开，或对端在超时前关闭了流。
        """
        if self.sock is None:
            raise ConnectionError("连接未建立")

        try:
            self.sock.settimeout(timeout if timeout > 0 else 0.0)
            data = self.sock.recv(max_bytes)
        except (socket.timeout, BlockingIOError, ssl.SSLWantReadError):
            return b""
        except OSError as e:
            raise ConnectionError(f"接收错误: {e}") from e

        if not data:
            raise ConnectionError("对端已关闭连接")
        return data

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
