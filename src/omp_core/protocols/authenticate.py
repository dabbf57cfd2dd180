# src/omp_core/protocols/authenticate.py
import logging
import re
from xml.etree.ElementTree import Element

from .constants import Tag
from .envelope import ResponseStatus, element_with_children, response_status

logger = logging.getLogger(__name__)

_PASSWORD_TEXT = re.compile(r"(<password>)(.*?)(</password>)", re.DOTALL)


def build_authenticate_request(username: str, password: str) -> str:
    """构建认证片段。

    该片段在登录成功后被缓存，并原样前置到之后的每一个请求。
    """
    credentials = element_with_children(
        Tag.CREDENTIALS, {Tag.USERNAME: username, Tag.PASSWORD: password}
    )
    return f"<{Tag.AUTHENTICATE}>{credentials}</{Tag.AUTHENTICATE}>"


def build_noop_request() -> str:
    """构建空操作请求，登录时与认证片段一起发送以迫使服务器回应。"""
    return f"<{Tag.NOOP}/>"


def parse_authenticate_response(root: Element) -> ResponseStatus:
    """读取 authenticate_response 的状态。

    Raises:
        XMLParsingError: 缺少 authenticate_response 或其 status 无法解析。
    """
    return response_status(root, Tag.AUTHENTICATE_RESP)


def mask_credentials(text: str) -> str:
    """遮蔽报文中的密码，用于日志输出。"""
    return _PASSWORD_TEXT.sub(r"\1******\3", text)
