# File: src/omp_core/state.py
"""
OMP 核心库 - 状态模块

负责定义和存储会话的易变状态。
本模块不包含业务逻辑，仅作为数据容器，由 OmpSession 独占写入。
"""

from dataclasses import dataclass
from enum import Enum, auto


class SessionStatus(Enum):
    """会话的生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> (connect) -> CONNECTED -> (login) -> AUTHENTICATED
         ^                            |                        |
         +--------------------- (logout) ----------------------+
    """

    DISCONNECTED = auto()
    """未建立传输连接。"""

    CONNECTED = auto()
    """TLS 连接已建立，但尚未持有认证片段。"""

    AUTHENTICATED = auto()
    """已持有经服务器确认的认证片段，每个请求都会携带它。"""


@dataclass
class OmpState:
    """存储 OMP 会话的易变状态数据。

    协议没有服务器端会话 id，"已登录"的唯一依据就是认证片段非空。
    认证片段要么为空，要么是一个完整且已被服务器确认的片段。

    Attributes:
        auth_fragment: 登录成功后缓存的认证片段，原样前置到每个请求。
        status: 当前会话状态。
        last_error: 最近一次发生的错误信息描述。
    """

    auth_fragment: str = ""
    status: SessionStatus = SessionStatus.DISCONNECTED
    last_error: str = ""

    @property
    def is_authenticated(self) -> bool:
        """认证片段非空即视为已登录。"""
        return bool(self.auth_fragment)
