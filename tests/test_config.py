# tests/test_config.py
from pathlib import Path

import pytest

from omp_core import ConfigError
from omp_core.config import (
    ENV_MAP,
    OmpConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)


@pytest.fixture
def clean_env(monkeypatch):
    """清除宿主机上可能存在的 OMP_ 环境变量"""
    for suffix in ENV_MAP.values():
        # 先 setenv 再 delenv，确保测试结束时 .env 写入的变量也被还原
        monkeypatch.setenv(f"OMP_{suffix}", "")
        monkeypatch.delenv(f"OMP_{suffix}")
    return monkeypatch


# --- 数据类 ---


def test_defaults():
    """测试默认值与原有客户端保持一致"""
    config = OmpConfig()

    assert config.host == "localhost"
    assert config.port == 9390
    assert (config.username, config.password) == ("openvas", "openvas")
    assert config.bufsize == 16384
    assert config.read_timeout == 3.0
    assert config.debug == 0
    assert config.auto_connect is False
    assert config.auto_login is False
    assert config.verify_tls is False


def test_config_is_frozen():
    config = OmpConfig()
    with pytest.raises(AttributeError):
        config.port = 1


def test_evolve_overrides_single_field():
    base = OmpConfig(host="10.0.0.1")
    changed = base.evolve(port=9391)

    assert changed.port == 9391
    assert changed.host == "10.0.0.1"
    assert base.port == 9390


def test_evolve_unknown_field():
    with pytest.raises(ConfigError, match="未知的配置字段"):
        OmpConfig().evolve(timeout=5)


@pytest.mark.parametrize(
    "field, value, message",
    [
        ("port", 0, "端口越界"),
        ("port", 70000, "端口越界"),
        ("bufsize", 0, "bufsize"),
        ("read_timeout", -1.0, "read_timeout"),
        ("connect_timeout", 0, "connect_timeout"),
        ("host", "", "host"),
        ("username", "", "username"),
        ("debug", -1, "debug"),
    ],
)
def test_invalid_values(field, value, message):
    with pytest.raises(ConfigError, match=message):
        OmpConfig(**{field: value})


def test_repr_hides_password():
    config = OmpConfig(password="hunter2")
    assert "hunter2" not in repr(config)
    assert "******" in repr(config)


# --- Factory ---


def test_dict_coercion():
    """测试字符串值的类型转换 (来自 Env 时全部是字符串)"""
    config = create_config_from_dict(
        {
            "host": "scanner",
            "port": "9391",
            "read_timeout": "1.5",
            "auto_login": "true",
            "verify_tls": "0",
            "debug": "4",
        }
    )

    assert config.port == 9391
    assert config.read_timeout == 1.5
    assert config.auto_login is True
    assert config.verify_tls is False
    assert config.debug == 4


def test_dict_bad_number():
    with pytest.raises(ConfigError, match="配置生成失败"):
        create_config_from_dict({"port": "not-a-port"})


def test_dict_validation_error_propagates():
    with pytest.raises(ConfigError, match="端口越界"):
        create_config_from_dict({"port": 0})


# --- TOML ---


def test_load_toml_omp_section(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text(
        '[omp]\nhost = "toml-host"\nusername = "toml_user"\npassword = "123"\n',
        encoding="utf-8",
    )

    config = load_config_from_toml(f)

    assert config.host == "toml-host"
    assert config.username == "toml_user"
    assert config.port == 9390


def test_load_toml_root_table(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text('host = "root-host"\nport = 9999\n', encoding="utf-8")

    config = load_config_from_toml(f)
    assert (config.host, config.port) == ("root-host", 9999)


def test_load_toml_profiles(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text(
        '[profile.default]\nhost = "prod"\n\n[profile.lab]\nhost = "lab"\nbufsize = 4096\n',
        encoding="utf-8",
    )

    assert load_config_from_toml(f).host == "prod"
    lab = load_config_from_toml(f, profile="lab")
    assert (lab.host, lab.bufsize) == ("lab", 4096)

    with pytest.raises(ConfigError, match="未找到预设"):
        load_config_from_toml(f, profile="missing")


def test_load_toml_syntax_error(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text("[omp\nhost = ", encoding="utf-8")

    with pytest.raises(ConfigError, match="读取 TOML 失败"):
        load_config_from_toml(f)


def test_load_toml_not_found():
    with pytest.raises(ConfigError, match="配置文件未找到"):
        load_config_from_toml(Path("non_existent.toml"))


# --- Env ---


def test_load_env(clean_env):
    clean_env.setenv("OMP_HOST", "env-host")
    clean_env.setenv("OMP_PORT", "9392")
    clean_env.setenv("OMP_AUTO_CONNECT", "yes")

    config = load_config_from_env()

    assert config.host == "env-host"
    assert config.port == 9392
    assert config.auto_connect is True


def test_load_env_none_set(clean_env):
    with pytest.raises(ConfigError, match="OMP_"):
        load_config_from_env()


def test_load_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("OMP_USERNAME=dotenv_user\nOMP_PASSWORD=pw\n", encoding="utf-8")

    config = load_config_from_env(env_file)

    assert config.username == "dotenv_user"
    assert config.password == "pw"


def test_load_env_file_missing(clean_env, tmp_path):
    with pytest.raises(ConfigError, match=".env 文件未找到"):
        load_config_from_env(tmp_path / "nope.env")
