# src/omp_core/protocols/targets.py
from dataclasses import dataclass
from typing import Any, Mapping
from xml.etree.ElementTree import Element

from .constants import Tag
from .envelope import (
    attributed_element,
    element_with_children,
    find_all,
    find_attribute,
    find_text,
)


@dataclass(frozen=True)
class Target:
    """扫描目标"""

    id: str
    name: str
    comment: str
    hosts: str
    max_hosts: str
    in_use: str


def build_create_target_request(fields: Mapping[str, Any]) -> str:
    """构建 create_target 请求，字段均为文本子元素 (name/hosts/comment...)。"""
    return element_with_children(Tag.CREATE_TARGET, fields)


def parse_create_target_response(root: Element) -> str:
    """返回新建目标的 id。"""
    return find_attribute(root, Tag.CREATE_TARGET_RESP, "id")


def build_delete_target_request(target_id: str) -> str:
    return attributed_element(Tag.DELETE_TARGET, {"target_id": target_id})


def build_get_targets_request(attrs: Mapping[str, Any] | None = None) -> str:
    return attributed_element(Tag.GET_TARGETS, attrs)


def parse_target(element: Element) -> Target:
    return Target(
        id=find_attribute(element, ".", "id"),
        name=find_text(element, "name"),
        comment=find_text(element, "comment"),
        hosts=find_text(element, "hosts"),
        max_hosts=find_text(element, "max_hosts"),
        in_use=find_text(element, "in_use"),
    )


def parse_get_targets_response(root: Element) -> list[Target]:
    """解析 get_targets_response 下的所有 target。"""
    return [
        parse_target(t) for t in find_all(root, f"{Tag.GET_TARGETS_RESP}/{Tag.TARGET}")
    ]
