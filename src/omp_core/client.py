# File: src/omp_core/client.py
"""
OMP 资源操作 (Client)

在 OmpSession 之上提供目标、扫描配置、任务、报告与报告格式的操作。
每个操作都只由三部分组成：协议层构建请求 -> session.send_and_parse
-> 协议层从返回的根节点提取数据。不存在绕过该路径的操作。

用法:
    client = OmpClient.from_config(config, auto_login=True)
    config_id = client.config_id_by_name("Full and fast")
    target_id = client.target_create("t", "127.0.0.1", comment="t")
    task_id = client.task_create("t", target=target_id, config=config_id)
    client.task_start(task_id)
    while not client.task_finished(task_id):
        time.sleep(10)
"""

import logging
from typing import Any
from xml.etree.ElementTree import Element

from .config import OmpConfig
from .protocols import configs, envelope, reports, targets, tasks, version
from .protocols.configs import ScanConfig
from .protocols.constants import ReportConst, Tag
from .protocols.reports import ReportFormat
from .protocols.targets import Target
from .protocols.tasks import Task
from .session import OmpSession

logger = logging.getLogger(__name__)


class OmpClient:
    """OMP 资源操作集合，所有错误均以四类异常之一向上传播。"""

    def __init__(self, session: OmpSession) -> None:
        self.session = session

    @classmethod
    def from_config(
        cls, config: OmpConfig | None = None, **overrides: Any
    ) -> "OmpClient":
        """按配置创建会话并包装为客户端。"""
        return cls(OmpSession(config, **overrides))

    def _request(self, fragment: str) -> Element:
        return self.session.send_and_parse(fragment)

    # --- Version ---

    def version_get(self) -> str:
        """获取协议版本 (无需认证)。"""
        return version.parse_get_version_response(
            self._request(version.build_get_version_request())
        )

    # --- Targets ---

    def target_create(
        self, name: str, hosts: str, comment: str = "", **fields: Any
    ) -> str:
        """创建扫描目标，返回目标 id。"""
        params = {"name": name, "hosts": hosts, "comment": comment, **fields}
        root = self._request(targets.build_create_target_request(params))
        target_id = targets.parse_create_target_response(root)
        logger.info(f"目标已创建: {name} -> {target_id}")
        return target_id

    def target_delete(self, target_id: str) -> None:
        self._request(targets.build_delete_target_request(target_id))

    def target_get_raw(self, **attrs: Any) -> Element:
        return self._request(targets.build_get_targets_request(attrs))

    def target_get_all(self, **attrs: Any) -> list[Target]:
        return targets.parse_get_targets_response(self.target_get_raw(**attrs))

    def target_get_by_id(self, target_id: str) -> Target | None:
        """按 id 获取目标，不存在时返回 None。"""
        found = self.target_get_all(target_id=target_id)
        return found[0] if found else None

    # --- Scan Configs ---

    def config_get_raw(self, **attrs: Any) -> Element:
        return self._request(configs.build_get_configs_request(attrs))

    def config_get_all(self, **attrs: Any) -> list[ScanConfig]:
        return configs.parse_get_configs_response(self.config_get_raw(**attrs))

    def config_get(self, **attrs: Any) -> dict[str, str]:
        """返回 {config_id: name} 映射。"""
        return {c.id: c.name for c in self.config_get_all(**attrs)}

    def config_id_by_name(self, name: str) -> str | None:
        for config_id, config_name in self.config_get().items():
            if config_name == name:
                return config_id
        return None

    def config_copy(self, config_id: str, name: str) -> str:
        """以已有配置为模板复制，返回新配置 id。"""
        root = self._request(configs.build_copy_config_request(config_id, name))
        return configs.parse_create_config_response(root)

    def config_create(self, name: str, rcfile: str) -> str:
        """由 base64 编码的 rcfile 导入配置，返回新配置 id。"""
        root = self._request(configs.build_create_config_request(name, rcfile))
        return configs.parse_create_config_response(root)

    # --- Report Formats ---

    def format_get_raw(self, **attrs: Any) -> Element:
        return self._request(reports.build_get_report_formats_request(attrs))

    def format_get_all(self) -> list[ReportFormat]:
        return reports.parse_get_report_formats_response(self.format_get_raw())

    def format_get_by_name(self, name: str) -> str | None:
        return reports.find_format_id(self.format_get_all(), name)

    # --- Reports ---

    def report_get_raw(self, **attrs: Any) -> Element:
        return self._request(reports.build_get_reports_request(attrs))

    def report_get_by_id(self, report_id: str, format_name: str) -> bytes | str:
        """按 id 与格式名获取报告。

        HTML/NBE/PDF/ARF/TXT/LaTeX 返回 base64 解码后的 bytes，
        其他格式返回 <report> 元素的 XML 文本。

        Raises:
            ValueError: 服务器上不存在该格式名。
        """
        format_id = self.format_get_by_name(format_name)
        if format_id is None:
            raise ValueError(f"未知的报告格式: {format_name}")

        root = self.report_get_raw(report_id=report_id, format_id=format_id)
        return reports.parse_report_content(root, format_name)

    def report_get_all(self) -> list[str]:
        """返回所有报告的 id (以 XML 格式查询)。"""
        format_id = self.format_get_by_name(ReportConst.XML_FORMAT)
        return reports.parse_report_ids(self.report_get_raw(format_id=format_id))

    # --- Results ---

    def result_get_raw(self, **attrs: Any) -> Element:
        return self._request(reports.build_get_results_request(attrs))

    # --- Tasks ---

    def task_create_raw(self, fields: dict[str, Any], refs: dict[str, Any]) -> str:
        """fields 为文本子元素，refs 为以 id 属性引用的子元素。"""
        root = self._request(tasks.build_create_task_request(fields, refs))
        return tasks.parse_create_task_response(root)

    def task_create(
        self,
        name: str,
        target: str,
        config: str,
        comment: str = "",
        escalator: str | None = None,
        schedule: str | None = None,
        **fields: Any,
    ) -> str:
        """创建任务，返回任务 id。"""
        params = {
            "name": name,
            "comment": comment,
            **fields,
            "config": config,
            "target": target,
            "escalator": escalator,
            "schedule": schedule,
        }
        task_id = self.task_create_raw(*tasks.split_task_fields(params))
        logger.info(f"任务已创建: {name} -> {task_id}")
        return task_id

    def task_delete(self, task_id: str) -> None:
        self._request(tasks.build_task_command(Tag.DELETE_TASK, task_id))

    def task_get_raw(self, **attrs: Any) -> Element:
        return self._request(tasks.build_get_tasks_request(attrs))

    def task_get_all(self, **attrs: Any) -> list[Task]:
        return tasks.parse_get_tasks_response(self.task_get_raw(**attrs))

    def task_get_by_id(self, task_id: str) -> Task | None:
        """按 id 获取任务，不存在时返回 None。"""
        found = self.task_get_all(task_id=task_id, details=0)
        return found[0] if found else None

    def _require_task(self, task_id: str) -> Task:
        """轮询用：响应中缺少 task 元素时抛 XMLParsingError。"""
        root = self.task_get_raw(task_id=task_id, details=0)
        return tasks.parse_task(
            envelope.find_element(root, f"{Tag.GET_TASKS_RESP}/{Tag.TASK}")
        )

    def task_finished(self, task_id: str) -> bool:
        """任务状态为 'Done' 时返回 True。"""
        return self._require_task(task_id).finished

    def task_progress(self, task_id: str) -> int:
        """任务进度百分比，未运行或已结束时服务器返回 -1。"""
        return self._require_task(task_id).progress

    def task_start(self, task_id: str) -> None:
        self._request(tasks.build_task_command(Tag.START_TASK, task_id))

    def task_stop(self, task_id: str) -> None:
        self._request(tasks.build_task_command(Tag.STOP_TASK, task_id))

    def task_pause(self, task_id: str) -> None:
        self._request(tasks.build_task_command(Tag.PAUSE_TASK, task_id))

    def task_resume_or_start(self, task_id: str) -> None:
        self._request(tasks.build_task_command(Tag.RESUME_OR_START_TASK, task_id))
