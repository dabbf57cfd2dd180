"""
OMP 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (可选 .env 文件) 或字典中加载配置。
会话本身只接收一个不可变的 OmpConfig 快照。
"""

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .exceptions import ConfigError
from .protocols.constants import (
    DEFAULT_BUFSIZE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_PASSWORD,
    DEFAULT_PORT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_USERNAME,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OmpConfig:
    """OmpSession 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在会话生命周期内不可变。

    Attributes:
        host: 管理服务地址。
        port: 管理服务端口 (默认 9390)。
        username: 认证用户名。
        password: 认证密码。
        bufsize: 单次读取的最大字节数，同时也是分帧的短读判定阈值。
        read_timeout: 单次读取的超时时间 (秒)。
        debug: 调试详细程度，大于 3 时记录收发报文。
        auto_connect: 构造会话时是否立即连接。
        auto_login: 构造会话时是否立即登录 (隐含 auto_connect)。
        connect_timeout: TCP 连接与 TLS 握手的超时时间 (秒)。
        verify_tls: 是否校验服务器证书。
        ca_file: 自定义 CA 证书路径 (仅 verify_tls=True 时生效)。
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    bufsize: int = DEFAULT_BUFSIZE
    read_timeout: float = DEFAULT_READ_TIMEOUT
    debug: int = 0
    auto_connect: bool = False
    auto_login: bool = False
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    verify_tls: bool = False
    ca_file: str | None = None

    def __post_init__(self) -> None:
        if not self.host:
            raise ConfigError("配置无效: host 不能为空")
        if not self.username:
            raise ConfigError("配置无效: username 不能为空")
        if not 0 < self.port < 65536:
            raise ConfigError(f"端口越界: {self.port}")
        if self.bufsize <= 0:
            raise ConfigError(f"bufsize 必须为正数: {self.bufsize}")
        if self.read_timeout <= 0:
            raise ConfigError(f"read_timeout 必须为正数: {self.read_timeout}")
        if self.connect_timeout <= 0:
            raise ConfigError(f"connect_timeout 必须为正数: {self.connect_timeout}")
        if self.debug < 0:
            raise ConfigError(f"debug 不能为负数: {self.debug}")

    def evolve(self, **changes: Any) -> "OmpConfig":
        """返回覆盖了指定字段的新配置，原对象不变。"""
        try:
            return replace(self, **changes)
        except TypeError as e:
            raise ConfigError(f"未知的配置字段: {e}") from e

    def __repr__(self) -> str:
        """隐藏密码字段，防止日志泄露敏感信息。"""
        return (
            f"<{self.__class__.__name__} "
            f"server={self.host}:{self.port}, "
            f"username='{self.username}', "
            f"password='******', "
            f"bufsize={self.bufsize}, "
            f"read_timeout={self.read_timeout}>"
        )


def _to_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in ("1", "true", "yes", "on")


def create_config_from_dict(raw_data: dict[str, Any]) -> OmpConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。缺失的字段使用默认值。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        OmpConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当字段格式错误时抛出。
    """

    def _get(key: str, default: Any) -> Any:
        return raw_data.get(key, default)

    try:
        ca_file = _get("ca_file", None)
        return OmpConfig(
            host=str(_get("host", DEFAULT_HOST)),
            port=int(_get("port", DEFAULT_PORT)),
            username=str(_get("username", DEFAULT_USERNAME)),
            password=str(_get("password", DEFAULT_PASSWORD)),
            bufsize=int(_get("bufsize", DEFAULT_BUFSIZE)),
            read_timeout=float(_get("read_timeout", DEFAULT_READ_TIMEOUT)),
            debug=int(_get("debug", 0)),
            auto_connect=_to_bool(_get("auto_connect", False)),
            auto_login=_to_bool(_get("auto_login", False)),
            connect_timeout=float(_get("connect_timeout", DEFAULT_CONNECT_TIMEOUT)),
            verify_tls=_to_bool(_get("verify_tls", False)),
            ca_file=str(ca_file) if ca_file else None,
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"配置生成失败: {e}") from e


def load_config_from_toml(file_path: Path, profile: str = "default") -> OmpConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [omp]: 单一配置块。
    3. Root: 根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        OmpConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    raw_config: dict[str, Any] = {}

    if "profile" in data:
        if profile in data["profile"]:
            raw_config = data["profile"][profile]
        elif profile != "default":
            raise ConfigError(f"未找到预设: [profile.{profile}]")
    elif "omp" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [omp] 节，忽略 profile='{profile}'。")
        raw_config = data["omp"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


# 字段映射表 (Config Field -> Env Suffix)
ENV_MAP = {
    "host": "HOST",
    "port": "PORT",
    "username": "USERNAME",
    "password": "PASSWORD",
    "bufsize": "BUFSIZE",
    "read_timeout": "READ_TIMEOUT",
    "debug": "DEBUG",
    "auto_connect": "AUTO_CONNECT",
    "auto_login": "AUTO_LOGIN",
    "connect_timeout": "CONNECT_TIMEOUT",
    "verify_tls": "VERIFY_TLS",
    "ca_file": "CA_FILE",
}


def load_config_from_env(env_file: Path | None = None) -> OmpConfig:
    """从环境变量加载配置。

    自动读取所有以 `OMP_` 开头的环境变量，并映射到配置字段。
    例如: `OMP_USERNAME` -> `username`。
    如果指定了 env_file，会先用 python-dotenv 将其加载进环境变量。

    Args:
        env_file: 可选的 .env 文件路径。

    Returns:
        OmpConfig: 配置对象。

    Raises:
        ConfigError: env_file 不存在，或未检测到任何相关环境变量。
    """
    if env_file is not None:
        if not env_file.exists():
            raise ConfigError(f".env 文件未找到: {env_file}")
        load_dotenv(dotenv_path=env_file, override=True)
        logger.debug(f"已加载配置文件: {env_file}")

    raw_data = {}
    for cfg_key, env_suffix in ENV_MAP.items():
        val = os.environ.get(f"OMP_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 OMP_ 前缀的环境变量")

    return create_config_from_dict(raw_data)
