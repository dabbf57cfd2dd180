"""
OMP 协议层 - 常量定义

本模块定义了协议相关的标签名、默认值和固定取值。
采用命名空间 (Class Namespace) 组织。
"""

# =========================================================================
# 1. 连接默认值
# =========================================================================

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 9390
DEFAULT_USERNAME = "openvas"
DEFAULT_PASSWORD = "openvas"
DEFAULT_BUFSIZE = 16384
DEFAULT_READ_TIMEOUT = 3.0
DEFAULT_CONNECT_TIMEOUT = 10.0

# 调试级别大于此值时记录收发报文
DEBUG_TRAFFIC_LEVEL = 3


# =========================================================================
# 2. 报文结构
# =========================================================================


class StreamConst:
    """原始流与状态提取相关的固定值"""

    # 响应流可能包含多个并列的顶层元素，解析前统一包一层合成根节点
    SYNTHETIC_ROOT = "omp_stream"
    RESPONSE_SUFFIX = "_response"
    STATUS_ATTR = "status"
    STATUS_TEXT_ATTR = "status_text"
    ENCODING = "utf-8"


class Tag:
    """请求与响应元素名"""

    AUTHENTICATE = "authenticate"
    AUTHENTICATE_RESP = "authenticate_response"
    CREDENTIALS = "credentials"
    USERNAME = "username"
    PASSWORD = "password"
    # 登录时附带的空操作，迫使服务器立即产生响应
    NOOP = "help"

    GET_VERSION = "get_version"
    GET_VERSION_RESP = "get_version_response"
    VERSION = "version"

    CREATE_TARGET = "create_target"
    CREATE_TARGET_RESP = "create_target_response"
    DELETE_TARGET = "delete_target"
    GET_TARGETS = "get_targets"
    GET_TARGETS_RESP = "get_targets_response"
    TARGET = "target"

    CREATE_CONFIG = "create_config"
    CREATE_CONFIG_RESP = "create_config_response"
    GET_CONFIGS = "get_configs"
    GET_CONFIGS_RESP = "get_configs_response"
    CONFIG = "config"

    GET_REPORT_FORMATS = "get_report_formats"
    GET_REPORT_FORMATS_RESP = "get_report_formats_response"
    REPORT_FORMAT = "report_format"

    GET_REPORTS = "get_reports"
    GET_REPORTS_RESP = "get_reports_response"
    REPORT = "report"
    GET_RESULTS = "get_results"

    CREATE_TASK = "create_task"
    CREATE_TASK_RESP = "create_task_response"
    DELETE_TASK = "delete_task"
    GET_TASKS = "get_tasks"
    GET_TASKS_RESP = "get_tasks_response"
    TASK = "task"
    START_TASK = "start_task"
    STOP_TASK = "stop_task"
    PAUSE_TASK = "pause_task"
    RESUME_OR_START_TASK = "resume_or_start_task"
    FIRST_REPORT = "first_report"
    LAST_REPORT = "last_report"


# =========================================================================
# 3. 资源常量
# =========================================================================


class TaskConst:
    STATUS_DONE = "Done"
    # create_task 中以 id 属性引用的子元素
    REF_ATTR = "id"
    REFERENCES = ("config", "target", "escalator", "schedule")


class ReportConst:
    # 这些格式的报告内容以 base64 文本返回，需要解码
    BASE64_FORMATS = frozenset({"HTML", "NBE", "PDF", "ARF", "TXT", "LaTeX"})
    XML_FORMAT = "XML"
