# tests/conftest.py
import sys
from pathlib import Path

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from omp_core.config import OmpConfig
from omp_core.exceptions import ConnectionError as OmpConnectionError

AUTH_OK = b'<authenticate_response status="200" status_text="OK"/>'
HELP_OK = b'<help_response status="200" status_text="OK">help text</help_response>'


class ScriptedTransport:
    """
    内存中的脚本化传输层。

    每次 write_all 取出 responses 中的下一项作为待读数据:
    - bytes: 按 read_some 的 max_bytes 切块返回，读完后返回 b"" (模拟读超时)。
    - list: 逐项返回，允许显式控制分片；其中的 Exception 会在读到时抛出。
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.pending: list = []
        self.writes: list[bytes] = []
        self.reads: list[tuple[int, float]] = []
        self.is_open = False
        self.open_calls = 0

    def open(self, host=None, port=None):
        self.is_open = True
        self.open_calls += 1

    def close(self):
        self.is_open = False

    def write_all(self, data: bytes):
        if not self.is_open:
            raise OmpConnectionError("连接未建立")
        self.writes.append(data)
        nxt = self.responses.pop(0) if self.responses else b""
        self.pending = list(nxt) if isinstance(nxt, list) else [nxt]

    def read_some(self, max_bytes: int, timeout: float) -> bytes:
        if not self.is_open:
            raise OmpConnectionError("连接未建立")
        self.reads.append((max_bytes, timeout))
        if not self.pending:
            return b""
        item = self.pending.pop(0)
        if isinstance(item, Exception):
            raise item
        if len(item) > max_bytes:
            self.pending.insert(0, item[max_bytes:])
            item = item[:max_bytes]
        return item

    @property
    def sent_text(self) -> list[str]:
        return [w.decode("utf-8") for w in self.writes]


@pytest.fixture
def valid_config():
    """
    [Fixture] 返回一个小缓冲区、短超时的 OmpConfig，便于观察分帧行为。
    """
    return OmpConfig(
        host="10.10.10.1",
        port=9390,
        username="test_user",
        password="test_password",
        bufsize=64,
        read_timeout=0.5,
        debug=0,
    )


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def login_ok() -> bytes:
    """登录成功时服务器对 <authenticate/><help/> 的响应"""
    return AUTH_OK + HELP_OK
