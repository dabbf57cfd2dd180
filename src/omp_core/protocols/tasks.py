"""
OMP 协议层 - 任务 (Task)

任务的创建、控制 (start/stop/pause/resume) 与状态解析。
长时间运行的扫描由调用方轮询 get_tasks 观察，引擎本身不阻塞。
"""

from dataclasses import dataclass
from typing import Any, Mapping
from xml.etree.ElementTree import Element

from ..exceptions import XMLParsingError
from .constants import Tag, TaskConst
from .envelope import (
    attributed_element,
    find_all,
    find_attribute,
    find_optional_attribute,
    find_text,
    mixed_element,
)


@dataclass(frozen=True)
class Task:
    """扫描任务快照。

    Attributes:
        id: 任务 id。
        name: 任务名。
        comment: 备注。
        status: 服务器报告的状态文本 (如 'Running', 'Done')。
        progress: 进度百分比，任务未运行时服务器返回 -1。
        first_report: 第一份报告 id，尚无报告时为 None。
        last_report: 最近一份报告 id，尚无报告时为 None。
    """

    id: str
    name: str
    comment: str
    status: str
    progress: int
    first_report: str | None = None
    last_report: str | None = None

    @property
    def finished(self) -> bool:
        return self.status == TaskConst.STATUS_DONE


def split_task_fields(
    params: Mapping[str, Any],
) -> tuple[dict[str, Any], dict[str, Any]]:
    """将任务参数拆分为文本字段与 id 引用 (config/target/escalator/schedule)。"""
    fields: dict[str, Any] = {}
    refs: dict[str, Any] = {}
    for key, value in params.items():
        if key in TaskConst.REFERENCES:
            refs[key] = value
        else:
            fields[key] = value
    return fields, refs


def build_create_task_request(
    fields: Mapping[str, Any], refs: Mapping[str, Any]
) -> str:
    return mixed_element(Tag.CREATE_TASK, fields, TaskConst.REF_ATTR, refs)


def parse_create_task_response(root: Element) -> str:
    return find_attribute(root, Tag.CREATE_TASK_RESP, "id")


def build_task_command(command: str, task_id: str) -> str:
    """构建以 task_id 为键的控制类请求 (delete/start/stop/pause/resume)。"""
    return attributed_element(command, {"task_id": task_id})


def build_get_tasks_request(attrs: Mapping[str, Any] | None = None) -> str:
    return attributed_element(Tag.GET_TASKS, attrs)


def parse_task(element: Element) -> Task:
    raw_progress = find_text(element, "progress").strip()
    try:
        progress = int(raw_progress)
    except ValueError:
        raise XMLParsingError(f"任务进度不是整数: {raw_progress!r}") from None

    return Task(
        id=find_attribute(element, ".", "id"),
        name=find_text(element, "name"),
        comment=find_text(element, "comment"),
        status=find_text(element, "status"),
        progress=progress,
        first_report=find_optional_attribute(
            element, f"{Tag.FIRST_REPORT}/{Tag.REPORT}", "id"
        ),
        last_report=find_optional_attribute(
            element, f"{Tag.LAST_REPORT}/{Tag.REPORT}", "id"
        ),
    )


def parse_get_tasks_response(root: Element) -> list[Task]:
    return [parse_task(t) for t in find_all(root, f"{Tag.GET_TASKS_RESP}/{Tag.TASK}")]
