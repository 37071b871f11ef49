"""
后端描述：供宿主程序按协议名 "tahoe" 发现本适配器，并列出支持的选项。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import httpx

from tahoeapi.client import TahoeClient
from tahoeapi.endpoint import (
    OPTION_ACCEPT_ANY_CERTIFICATE,
    OPTION_ACCEPT_CERTIFICATE_HASH,
    OPTION_USE_SSL,
)

PROTOCOL_KEY = "tahoe"
DISPLAY_NAME = "Tahoe-LAFS"
DESCRIPTION = (
    "Stores files in a Tahoe-LAFS grid through its web gateway. "
    "The address must point at a directory: http://host:port/uri/URI:DIR2:..."
)


@dataclass(frozen=True)
class BackendOption:
    """一个可配置选项。kind 为 "boolean" 或 "string"。"""

    name: str
    kind: str
    short_description: str
    long_description: str


SUPPORTED_OPTIONS: tuple[BackendOption, ...] = (
    BackendOption(
        OPTION_USE_SSL,
        "boolean",
        "Instructs the client to use an SSL/TLS connection",
        "Use this flag to communicate with the gateway over https instead of http.",
    ),
    BackendOption(
        OPTION_ACCEPT_CERTIFICATE_HASH,
        "string",
        "Optionally accept a known SSL certificate",
        "Pin the gateway certificate by its SHA-1 or SHA-256 hash (hex, colons allowed). "
        "The certificate is accepted even if the chain or host name does not validate, "
        "which allows self-signed certificates without disabling checks entirely.",
    ),
    BackendOption(
        OPTION_ACCEPT_ANY_CERTIFICATE,
        "boolean",
        "Accept any SSL certificate",
        "Disable all certificate checks. The connection is encrypted but the server is not "
        "authenticated; only use this on trusted networks. Takes precedence over "
        f"--{OPTION_ACCEPT_CERTIFICATE_HASH}.",
    ),
)


def create_backend(
    url: str,
    options: Mapping[str, str | None] | None = None,
    *,
    timeout: float | None = 100.0,
    transport: httpx.BaseTransport | None = None,
) -> TahoeClient:
    """宿主程序的工厂入口，参数同 TahoeClient。"""
    return TahoeClient(url, options, timeout=timeout, transport=transport)
