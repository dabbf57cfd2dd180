"""
OMP 协议层 - 报文信封 (Envelope)

1. 构建：三种请求形状 (仅属性 / 文本子元素 / 文本子元素 + 属性子元素)。
2. 解析：原始流包裹合成根节点后解析，容忍多个并列的顶层元素。
3. 查找：按路径定位元素、属性、文本，缺失即抛 XMLParsingError。

构建使用标准库 ElementTree，解析使用 defusedxml 以防御恶意实体。
"""

import codecs
import re
from dataclasses import dataclass
from typing import Any, Mapping
from xml.etree.ElementTree import Element, ParseError, SubElement, tostring

import defusedxml.ElementTree as secET
from defusedxml import DefusedXmlException

from ..exceptions import XMLParsingError
from .constants import StreamConst

_XML_DECLARATION = re.compile(rb"<\?xml[^>]*\?>")
_DECLARED_ENCODING = re.compile(rb"""encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")


@dataclass(frozen=True)
class ResponseStatus:
    """单个 *_response 元素上的状态信息。"""

    tag: str
    status: int
    status_text: str | None = None


# =========================================================================
# 构建 (Build)
# =========================================================================


def _set_text(parent: Element, children: Mapping[str, Any]) -> None:
    for key, value in children.items():
        if value is None:
            continue
        SubElement(parent, key).text = str(value)


def serialize(element: Element) -> str:
    """将元素序列化为 XML 文本片段。"""
    return tostring(element, encoding="unicode")


def attributed_element(name: str, attrs: Mapping[str, Any] | None = None) -> str:
    """构建仅带属性、无子元素的请求。

    用于以 id 为键的读取、删除、控制类操作，例如
    `<delete_task task_id="..."/>`。值为 None 的属性会被忽略。

    Args:
        name: 元素名。
        attrs: 属性字典。

    Returns:
        str: 序列化后的 XML 片段。
    """
    xml = Element(name)
    for key, value in (attrs or {}).items():
        if value is None:
            continue
        xml.set(key, str(value))
    return serialize(xml)


def element_with_children(
    name: str, child_texts: Mapping[str, Any] | None = None
) -> str:
    """构建子元素均为纯文本值的请求。

    例如凭据: `<credentials><username>u</username><password>p</password></credentials>`。
    """
    xml = Element(name)
    _set_text(xml, child_texts or {})
    return serialize(xml)


def mixed_element(
    name: str,
    child_texts: Mapping[str, Any],
    attr_name: str,
    attributed_children: Mapping[str, Any],
) -> str:
    """构建同时包含文本子元素和单属性子元素的请求。

    例如创建任务时既有 name/comment 字面值，又以 id 引用 target/config:
    `<create_task><name>t</name><target id="..."/><config id="..."/></create_task>`。

    Args:
        name: 元素名。
        child_texts: 文本子元素。
        attr_name: 引用类子元素上使用的属性名 (通常为 'id')。
        attributed_children: 引用类子元素 {元素名: 属性值}。

    Returns:
        str: 序列化后的 XML 片段。
    """
    xml = Element(name)
    _set_text(xml, child_texts)
    for key, value in attributed_children.items():
        if value is None:
            continue
        SubElement(xml, key).set(attr_name, str(value))
    return serialize(xml)


# =========================================================================
# 解析 (Parse)
# =========================================================================


def _to_utf8(raw: bytes) -> bytes:
    """按首个 XML 声明中的 encoding 转码为 UTF-8，未声明时按 UTF-8 处理。

    声明会在包裹合成根之前被剥离，因此编码必须在这里先行生效。
    """
    declaration = _XML_DECLARATION.search(raw)
    match = _DECLARED_ENCODING.search(declaration.group()) if declaration else None
    if match is None:
        return raw

    encoding = match.group(1).decode("ascii")
    try:
        if codecs.lookup(encoding).name == codecs.lookup(StreamConst.ENCODING).name:
            return raw
        return raw.decode(encoding).encode(StreamConst.ENCODING)
    except (LookupError, UnicodeDecodeError) as e:
        raise XMLParsingError(
            f"无法按声明的编码 {encoding!r} 解码响应: {e}",
            response=raw.decode(StreamConst.ENCODING, "replace"),
        ) from e


def parse(raw: bytes) -> Element:
    """将原始响应流解析为带合成根节点的文档。

    服务器对多个请求的响应是若干并列的顶层元素，没有公共父节点，
    因此先包裹一层合成根再解析。XML 声明中的 encoding 会先被应用。

    Args:
        raw: 帧读取器返回的原始字节。

    Returns:
        Element: 合成根节点，其子元素即服务器返回的各个顶层元素。

    Raises:
        XMLParsingError: 包裹后仍不是合法 XML，或声明的编码无法解码。
    """
    body = _XML_DECLARATION.sub(b"", _to_utf8(raw))
    root_tag = StreamConst.SYNTHETIC_ROOT.encode()
    wrapped = b"<" + root_tag + b">" + body + b"</" + root_tag + b">"
    try:
        return secET.fromstring(wrapped)
    except (ParseError, DefusedXmlException) as e:
        raise XMLParsingError(
            f"XML 解析失败: {e}",
            response=raw.decode(StreamConst.ENCODING, "replace"),
        ) from e


# =========================================================================
# 查找 (Lookup)
# =========================================================================


def find_element(element: Element, path: str) -> Element:
    """按路径查找必需元素，缺失即抛 XMLParsingError。"""
    found = element.find(path)
    if found is None:
        raise XMLParsingError(f"响应缺少元素: {path}")
    return found


def find_all(element: Element, path: str) -> list[Element]:
    """按路径查找所有匹配元素，允许为空。"""
    return element.findall(path)


def find_text(element: Element, path: str) -> str:
    """读取必需元素的文本。元素存在但无文本时返回空字符串。"""
    return find_element(element, path).text or ""


def find_attribute(element: Element, path: str, attr: str) -> str:
    """读取必需元素上的必需属性。path 为 '.' 时读取 element 自身。"""
    target = element if path == "." else find_element(element, path)
    value = target.get(attr)
    if value is None:
        raise XMLParsingError(f"响应元素 <{target.tag}> 缺少属性: {attr}")
    return value


def find_optional_attribute(element: Element, path: str, attr: str) -> str | None:
    """读取可选元素上的属性，任一环节缺失都返回 None。

    仅用于协议明确允许缺省的字段，如任务的 first_report/last_report。
    """
    found = element.find(path)
    if found is None:
        return None
    return found.get(attr)


def extract_statuses(root: Element) -> list[ResponseStatus]:
    """提取合成根下顶层 *_response 元素携带的状态。

    不带 status 属性的响应元素 (如某些服务器版本的 create_*_response)
    不参与判定，但整条响应中至少要有一个状态。

    Raises:
        XMLParsingError: 没有任何带 status 的 *_response 元素，或 status 不是整数。
    """
    statuses = [
        _status_of(child)
        for child in root
        if child.tag.endswith(StreamConst.RESPONSE_SUFFIX)
        and child.get(StreamConst.STATUS_ATTR) is not None
    ]
    if not statuses:
        raise XMLParsingError("响应中没有任何带 status 属性的 *_response 元素")
    return statuses


def response_status(root: Element, tag: str) -> ResponseStatus:
    """提取指定顶层响应元素的状态，不检查其他并列元素。"""
    return _status_of(find_element(root, tag))


def _status_of(element: Element) -> ResponseStatus:
    raw_status = element.get(StreamConst.STATUS_ATTR)
    if raw_status is None:
        raise XMLParsingError(f"<{element.tag}> 缺少 status 属性")
    try:
        status = int(raw_status)
    except ValueError:
        raise XMLParsingError(
            f"<{element.tag}> 的 status 不是整数: {raw_status!r}"
        ) from None
    return ResponseStatus(
        element.tag, status, element.get(StreamConst.STATUS_TEXT_ATTR)
    )
