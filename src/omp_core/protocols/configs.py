# src/omp_core/protocols/configs.py
from dataclasses import dataclass
from typing import Any, Mapping
from xml.etree.ElementTree import Element

from .constants import Tag
from .envelope import attributed_element, find_all, find_attribute, find_text


@dataclass(frozen=True)
class ScanConfig:
    """扫描配置"""

    id: str
    name: str
    comment: str


def build_get_configs_request(attrs: Mapping[str, Any] | None = None) -> str:
    return attributed_element(Tag.GET_CONFIGS, attrs)


def parse_get_configs_response(root: Element) -> list[ScanConfig]:
    return [
        ScanConfig(
            id=find_attribute(c, ".", "id"),
            name=find_text(c, "name"),
            comment=find_text(c, "comment"),
        )
        for c in find_all(root, f"{Tag.GET_CONFIGS_RESP}/{Tag.CONFIG}")
    ]


def build_copy_config_request(config_id: str, name: str) -> str:
    """以已有配置为模板复制出一个新配置。"""
    return attributed_element(Tag.CREATE_CONFIG, {"copy": config_id, "name": name})


def build_create_config_request(name: str, rcfile: str) -> str:
    """由外部扫描器配置 (base64 编码的 rcfile) 导入新配置。"""
    return attributed_element(Tag.CREATE_CONFIG, {"name": name, "rcfile": rcfile})


def parse_create_config_response(root: Element) -> str:
    return find_attribute(root, Tag.CREATE_CONFIG_RESP, "id")
