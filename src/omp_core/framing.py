"""
OMP 核心库 - 分帧模块 (Framing)

协议没有长度前缀，也没有消息分隔符。本模块用"短读 / 读超时"作为
消息结束信号，从无界字节流中还原出一条完整的响应。

算法:
1. 反复调用 read_some(bufsize, read_timeout)，非空结果追加到累加器。
2. 某次读取少于 bufsize 字节 (短读)，说明服务器暂时没有更多数据，结束。
3. 某次读取超时且为 0 字节，同样视为"暂时没有更多数据"，结束。

这是启发式而非严格分帧：长度恰为 bufsize 整数倍的消息会多等一个读超时。
总耗时上限为 read_timeout x (读取次数 + 1)。
"""

import logging

from .exceptions import ConnectionError, ResponseError
from .network import TlsTransport

logger = logging.getLogger(__name__)


class FrameReader:
    """在同一连接上复用的响应读取器，除绑定的 Transport 外不保存状态。"""

    def __init__(self, transport: TlsTransport, bufsize: int, read_timeout: float):
        self.transport = transport
        self.bufsize = bufsize
        self.read_timeout = read_timeout

    def read_message(self) -> bytes:
        """读取一条完整的响应消息。

        Returns:
            bytes: 拼接后的消息，服务器无响应时为 b""。

        Raises:
            ResponseError: 消息接收完整之前连接被对端关闭。
        """
        chunks: list[bytes] = []
        reads = 0
        while True:
            try:
                data = self.transport.read_some(self.bufsize, self.read_timeout)
            except ResponseError:
                raise
            except ConnectionError as e:
                raise ResponseError(f"消息接收完整之前连接已关闭: {e}") from e

            reads += 1
            if data:
                chunks.append(data)
            if len(data) < self.bufsize:
                break

        message = b"".join(chunks)
        logger.debug(f"收到响应 {len(message)} 字节 (读取 {reads} 次)")
        return message

    def drain(self) -> int:
        """非阻塞地丢弃连接上残留的旧数据。

        上一轮读取超时后，迟到的响应尾部可能仍留在流中；
        在发送新请求前清空它，避免被误认为下一条响应。

        Returns:
            int: 丢弃的字节数。
        """
        discarded = 0
        while True:
            data = self.transport.read_some(self.bufsize, 0)
            if not data:
                break
            discarded += len(data)

        if discarded:
            logger.warning(f"丢弃了上一轮残留的 {discarded} 字节")
        return discarded
