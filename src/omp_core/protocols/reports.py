"""
OMP 协议层 - 报告 (Report) 与报告格式 (Report Format)

报告内容的解释只到"是否需要 base64 解码"为止，不关心具体格式的内容。
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Mapping
from xml.etree.ElementTree import Element

from ..exceptions import XMLParsingError
from .constants import ReportConst, Tag
from .envelope import (
    attributed_element,
    find_all,
    find_attribute,
    find_element,
    find_text,
    serialize,
)


@dataclass(frozen=True)
class ReportFormat:
    """报告格式元数据"""

    id: str
    name: str
    extension: str
    content_type: str
    summary: str


# --- Report Formats ---


def build_get_report_formats_request(attrs: Mapping[str, Any] | None = None) -> str:
    return attributed_element(Tag.GET_REPORT_FORMATS, attrs)


def parse_get_report_formats_response(root: Element) -> list[ReportFormat]:
    return [
        ReportFormat(
            id=find_attribute(f, ".", "id"),
            name=find_text(f, "name"),
            extension=find_text(f, "extension"),
            content_type=find_text(f, "content_type"),
            summary=find_text(f, "summary"),
        )
        for f in find_all(root, f"{Tag.GET_REPORT_FORMATS_RESP}/{Tag.REPORT_FORMAT}")
    ]


def find_format_id(formats: list[ReportFormat], name: str) -> str | None:
    """按名称查找格式 id，区分大小写 (如 'PDF', 'LaTeX')。"""
    for fmt in formats:
        if fmt.name == name:
            return fmt.id
    return None


# --- Reports ---


def build_get_reports_request(attrs: Mapping[str, Any] | None = None) -> str:
    return attributed_element(Tag.GET_REPORTS, attrs)


def needs_decoding(format_name: str) -> bool:
    """该格式的报告是否以 base64 文本返回。"""
    return format_name in ReportConst.BASE64_FORMATS


def _report_payload(report: Element) -> str:
    """<report> 下第一个非空文本节点，无论它位于子元素之前还是之后。"""
    candidates = [report.text] + [child.tail for child in report]
    for text in candidates:
        if text and text.strip():
            return text.strip()
    raise XMLParsingError(f"<{Tag.REPORT}> 中没有报告内容")


def parse_report_content(root: Element, format_name: str) -> bytes | str:
    """提取报告内容。

    Returns:
        bytes: base64 格式 (HTML/NBE/PDF/ARF/TXT/LaTeX) 解码后的内容。
        str: 其他格式时，<report> 元素本身的 XML 文本。

    Raises:
        XMLParsingError: 缺少 <report> 元素，或 base64 内容为空或损坏。
    """
    report = find_element(root, f"{Tag.GET_REPORTS_RESP}/{Tag.REPORT}")
    if not needs_decoding(format_name):
        return serialize(report)

    payload = _report_payload(report)
    try:
        return base64.b64decode(payload)
    except (binascii.Error, ValueError) as e:
        raise XMLParsingError(f"报告内容 base64 解码失败: {e}") from e


def parse_report_ids(root: Element) -> list[str]:
    return [
        find_attribute(r, ".", "id")
        for r in find_all(root, f"{Tag.GET_REPORTS_RESP}/{Tag.REPORT}")
    ]


# --- Results ---


def build_get_results_request(attrs: Mapping[str, Any] | None = None) -> str:
    return attributed_element(Tag.GET_RESULTS, attrs)
