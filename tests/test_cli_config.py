"""
CLI 配置（cli_config）单元测试。地址来自 tests.config。
"""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from tahoeapi.cli_config import clear_config, load_config, save_config

from tests.config import TAHOE_CERT_SHA1, TAHOE_DIR_URL


@pytest.fixture(autouse=True)
def _patch_config_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """将配置路径指向临时目录，避免污染用户 ~/.config/tahoeapi。"""
    config_dir = tmp_path / "tahoeapi"
    config_dir.mkdir(parents=True, exist_ok=True)

    def _config_dir():
        return config_dir

    monkeypatch.setattr("tahoeapi.cli_config._config_dir", _config_dir)


def test_load_config_missing_returns_none() -> None:
    assert load_config() is None


def test_load_config_invalid_json_returns_none(tmp_path: Path) -> None:
    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text("not json", encoding="utf-8")
    assert load_config() is None


def test_load_config_missing_url_returns_none(tmp_path: Path) -> None:
    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text('{"options": {}}', encoding="utf-8")
    assert load_config() is None


def test_load_config_defaults_options(tmp_path: Path) -> None:
    """缺少或非法的 options 视为空字典。"""
    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text(f'{{"url": "{TAHOE_DIR_URL}", "options": 3}}', encoding="utf-8")
    cfg = load_config()
    assert cfg is not None
    assert cfg["options"] == {}


def test_save_config_round_trip(tmp_path: Path) -> None:
    options = {"use-ssl": "true", "accept-specified-ssl-hash": TAHOE_CERT_SHA1}
    save_config(f"  {TAHOE_DIR_URL} ", options)
    cfg = load_config()
    assert cfg == {"url": TAHOE_DIR_URL, "options": options}
    mode = (tmp_path / "tahoeapi" / "config.json").stat().st_mode
    assert stat.S_IMODE(mode) == 0o600


def test_clear_config_removes_file() -> None:
    save_config(TAHOE_DIR_URL)
    assert load_config() is not None
    assert clear_config() is True
    assert load_config() is None


def test_clear_config_when_missing_returns_false() -> None:
    assert clear_config() is False


def test_unknown_and_null_options_are_dropped(tmp_path: Path) -> None:
    """只保存已知选项；值转为字符串，None 丢弃。"""
    save_config(TAHOE_DIR_URL, {"use-ssl": True, "accept-specified-ssl-hash": None, "login": "x"})
    cfg = load_config()
    assert cfg == {"url": TAHOE_DIR_URL, "options": {"use-ssl": "True"}}

    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text(
        f'{{"url": "{TAHOE_DIR_URL}", "options": {{"accept-any-ssl-certificate": "", "timeout": 3}}}}',
        encoding="utf-8",
    )
    assert load_config() == {"url": TAHOE_DIR_URL, "options": {"accept-any-ssl-certificate": ""}}


def test_load_config_non_string_url_returns_none(tmp_path: Path) -> None:
    config_file = tmp_path / "tahoeapi" / "config.json"
    config_file.write_text('{"url": 5}', encoding="utf-8")
    assert load_config() is None
