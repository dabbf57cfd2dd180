# src/omp_core/protocols/version.py
from xml.etree.ElementTree import Element

from .constants import Tag
from .envelope import attributed_element, find_element, find_text


def build_get_version_request() -> str:
    """构建 get_version 请求 (无需认证)。"""
    return attributed_element(Tag.GET_VERSION)


def parse_get_version_response(root: Element) -> str:
    """提取协议版本号字符串。"""
    response = find_element(root, Tag.GET_VERSION_RESP)
    return find_text(response, Tag.VERSION)
