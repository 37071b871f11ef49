"""
CLI 配置：目录地址与选项保存在 ~/.config/tahoeapi/config.json，
格式为 {"url": "...", "options": {"use-ssl": "true", ...}}。

目录 capability 本身即访问凭证，文件权限设为仅本人可读写。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from tahoeapi.endpoint import (
    OPTION_ACCEPT_ANY_CERTIFICATE,
    OPTION_ACCEPT_CERTIFICATE_HASH,
    OPTION_USE_SSL,
)

KNOWN_OPTIONS = (OPTION_USE_SSL, OPTION_ACCEPT_ANY_CERTIFICATE, OPTION_ACCEPT_CERTIFICATE_HASH)


def _config_dir() -> Path:
    return Path.home() / ".config" / "tahoeapi"


def _config_path() -> Path:
    return _config_dir() / "config.json"


def _clean_options(raw: Any) -> dict[str, str]:
    """只保留已知选项，值统一为字符串；非字典视为空。"""
    if not isinstance(raw, Mapping):
        return {}
    return {key: str(raw[key]) for key in KNOWN_OPTIONS if raw.get(key) is not None}


def load_config() -> dict[str, Any] | None:
    """读取 {"url", "options"}；文件不存在、不是 JSON 或缺少 url 时返回 None。"""
    p = _config_path()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("url"), str):
        return None
    return {"url": data["url"], "options": _clean_options(data.get("options"))}


def save_config(url: str, options: Mapping[str, Any] | None = None) -> None:
    p = _config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    data = {"url": url.strip(), "options": _clean_options(options)}
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    p.chmod(0o600)


def clear_config() -> bool:
    """删除配置文件；原本不存在时返回 False。"""
    try:
        _config_path().unlink()
    except FileNotFoundError:
        return False
    return True
