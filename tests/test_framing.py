# tests/test_framing.py
"""
测试分帧读取器 (FrameReader) 的短读 / 超时启发式。
重点验证:
1. 任意 N 次满读 + 一次短读 (含 0 字节超时) 都能还原原始字节。
2. 长度恰为 bufsize 整数倍的消息只多等一次读超时。
3. 总耗时不超过 read_timeout x (N + 1)。
4. 读取过程中对端关闭连接时抛出 ResponseError。
"""

from unittest.mock import MagicMock

import pytest

from omp_core.exceptions import ConnectionError as OmpConnectionError
from omp_core.exceptions import ResponseError
from omp_core.framing import FrameReader

BUFSIZE = 8
TIMEOUT = 0.25


def _reader(chunks):
    transport = MagicMock()
    transport.read_some.side_effect = list(chunks)
    return FrameReader(transport, BUFSIZE, TIMEOUT), transport


@pytest.mark.parametrize("full_reads", [1, 2, 3, 7])
@pytest.mark.parametrize("tail_len", [0, 1, BUFSIZE - 1])
def test_reassembles_full_reads_plus_short_tail(full_reads, tail_len):
    chunks = [bytes([65 + i]) * BUFSIZE for i in range(full_reads)]
    chunks.append(b"z" * tail_len)
    reader, transport = _reader(chunks)

    message = reader.read_message()

    assert message == b"".join(chunks)
    assert transport.read_some.call_count == full_reads + 1
    transport.read_some.assert_called_with(BUFSIZE, TIMEOUT)


def test_short_first_read_stops_immediately():
    reader, transport = _reader([b"<a/>"])

    assert reader.read_message() == b"<a/>"
    assert transport.read_some.call_count == 1


def test_exact_multiple_costs_one_extra_timed_out_read():
    payload = b"x" * (BUFSIZE * 2)
    reader, transport = _reader([payload[:BUFSIZE], payload[BUFSIZE:], b""])

    assert reader.read_message() == payload
    assert transport.read_some.call_count == 3


def test_no_data_at_all_returns_empty_message():
    reader, _ = _reader([b""])
    assert reader.read_message() == b""


def test_fragmented_slow_delivery_is_bounded_in_time():
    """
    模拟慢速分片: 每次有数据的读取都耗时接近超时，最后一次读超时。
    """
    clock = {"now": 0.0}
    chunks = [b"a" * BUFSIZE, b"b" * BUFSIZE, b"c" * BUFSIZE, b""]

    def slow_read(max_bytes, timeout):
        data = chunks.pop(0)
        clock["now"] += timeout if not data else timeout * 0.9
        return data

    transport = MagicMock()
    transport.read_some.side_effect = slow_read
    reader = FrameReader(transport, BUFSIZE, TIMEOUT)

    message = reader.read_message()

    assert len(message) == BUFSIZE * 3
    # N = 3 次满读
    assert clock["now"] <= TIMEOUT * (3 + 1)


def test_peer_close_mid_message_raises_response_error():
    transport = MagicMock()
    transport.read_some.side_effect = [
        b"x" * BUFSIZE,
        OmpConnectionError("对端已关闭连接"),
    ]
    reader = FrameReader(transport, BUFSIZE, TIMEOUT)

    with pytest.raises(ResponseError, match="连接已关闭"):
        reader.read_message()


def test_response_error_is_a_connection_error():
    transport = MagicMock()
    transport.read_some.side_effect = OmpConnectionError("对端已关闭连接")
    reader = FrameReader(transport, BUFSIZE, TIMEOUT)

    with pytest.raises(OmpConnectionError):
        reader.read_message()


def test_drain_discards_stale_bytes_without_blocking():
    reader, transport = _reader([b"stale-tail", b"more", b""])

    assert reader.drain() == len(b"stale-tail") + len(b"more")
    for call in transport.read_some.call_args_list:
        assert call.args == (BUFSIZE, 0)


def test_drain_on_clean_stream_reads_once():
    reader, transport = _reader([b""])

    assert reader.drain() == 0
    assert transport.read_some.call_count == 1
