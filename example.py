# example.py
"""
omp-core 的最小示例。

演示一次完整的扫描流程：登录 -> 创建目标 -> 创建任务 -> 启动并轮询进度
-> 下载 PDF 报告 -> 注销。

运行此示例：
1. 在根目录创建 .env 文件，至少包含 OMP_HOST / OMP_USERNAME / OMP_PASSWORD。
2. 安装本包： pip install -e .
3. 从项目根目录运行： python example.py 192.168.1.0/24
"""

import logging
import sys
import time
from pathlib import Path

from omp_core import OmpClient, OmpError, load_config_from_env

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("OmpExample")

POLL_INTERVAL = 10
SCAN_CONFIG = "Full and fast"


def main() -> None:
    hosts = sys.argv[1] if len(sys.argv) > 1 else "127.0.0.1"
    env_file = Path(".env")
    config = load_config_from_env(env_file if env_file.exists() else None)

    client = OmpClient.from_config(config, auto_login=True)
    try:
        config_id = client.config_id_by_name(SCAN_CONFIG)
        if config_id is None:
            logger.error(f"服务器上没有扫描配置: {SCAN_CONFIG}")
            sys.exit(1)

        target_id = client.target_create(f"example {hosts}", hosts)
        task_id = client.task_create(
            f"example {hosts}", target=target_id, config=config_id
        )
        client.task_start(task_id)

        while not client.task_finished(task_id):
            logger.info(f"扫描进度: {client.task_progress(task_id)}%")
            time.sleep(POLL_INTERVAL)

        task = client.task_get_by_id(task_id)
        if task is None or task.last_report is None:
            logger.error("任务已完成，但没有生成报告。")
            sys.exit(1)

        report = client.report_get_by_id(task.last_report, "PDF")
        out = Path(f"report-{task.last_report}.pdf")
        out.write_bytes(report)
        logger.info(f"报告已保存: {out}")

    except KeyboardInterrupt:
        logger.info("收到用户中断信号 (Ctrl+C)，准备退出...")

    except OmpError as e:
        logger.error(f"OMP 操作失败: {e}")
        sys.exit(1)

    finally:
        client.session.logout()


if __name__ == "__main__":
    main()
