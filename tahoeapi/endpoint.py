"""
地址解析与 URL 拼接。

配置的地址形如 ``http://127.0.0.1:3456/uri/URI:DIR2:<capability>``：
path 必须以 ``/uri/URI:DIR2:`` 开头且不能带 query；scheme 由 ``use-ssl`` 选项决定，
与输入地址中写的 scheme 无关。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping
from urllib.parse import quote, urlsplit

from tahoeapi.errors import ConfigurationError

DIR_CAP_MARKER = "/uri/URI:DIR2:"

OPTION_USE_SSL = "use-ssl"
OPTION_ACCEPT_ANY_CERTIFICATE = "accept-any-ssl-certificate"
OPTION_ACCEPT_CERTIFICATE_HASH = "accept-specified-ssl-hash"

_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


def option_enabled(options: Mapping[str, str | None], key: str) -> bool:
    """布尔选项：键存在即为开启，除非值是明确的 false/0/no/off。"""
    if key not in options:
        return False
    value = options[key]
    if value is None:
        return True
    return str(value).strip().lower() not in _FALSE_WORDS


def encode_name(remote_name: str) -> str:
    """将远程文件名编码为单个 path 段（空格为 %20，/ 也会被编码）。"""
    return quote(remote_name, safe="")


@dataclass(frozen=True)
class Endpoint:
    """解析后的目录地址，构造后不可变。"""

    scheme: str
    base_url: str

    def url_for(self, remote_name: str = "", query: str = "") -> str:
        """
        拼接请求 URL。

        :param remote_name: 目录下的条目名，空串表示目录本身
        :param query: 原样附加在 ? 之后的查询串，如 "t=json"；空白时不附加
        """
        url = self.base_url + encode_name(remote_name)
        if query and query.strip():
            url = f"{url}?{query}"
        return url


def parse_endpoint(url: str, options: Mapping[str, str | None] | None = None) -> Endpoint:
    """
    校验并解析配置的目录地址。

    :raises ConfigurationError: 地址不是 DIR2 目录 capability，或带有 query
    """
    options = options or {}
    raw = (url or "").strip()
    parts = urlsplit(raw)
    path_and_query = parts.path + (f"?{parts.query}" if parts.query else "")
    if not parts.scheme or not parts.netloc or not path_and_query.startswith(DIR_CAP_MARKER):
        raise ConfigurationError("unrecognized address", url=raw)
    # urlsplit 对末尾孤立的 ? 给出空 query，这里按原串判断
    if parts.query or "?" in raw.split("#", 1)[0]:
        raise ConfigurationError("address must not contain a query", url=raw)

    scheme = "https" if option_enabled(options, OPTION_USE_SSL) else "http"
    base_url = f"{scheme}://{parts.netloc}{parts.path}"
    if not base_url.endswith("/"):
        base_url += "/"
    return Endpoint(scheme=scheme, base_url=base_url)
