"""
后端描述（backend）单元测试。
"""

from __future__ import annotations

import httpx

from tahoeapi import TahoeClient
from tahoeapi.backend import PROTOCOL_KEY, SUPPORTED_OPTIONS, create_backend

from tests.config import TAHOE_DIR_URL


def test_protocol_key() -> None:
    assert PROTOCOL_KEY == "tahoe"


def test_supported_options() -> None:
    kinds = {opt.name: opt.kind for opt in SUPPORTED_OPTIONS}
    assert kinds == {
        "use-ssl": "boolean",
        "accept-specified-ssl-hash": "string",
        "accept-any-ssl-certificate": "boolean",
    }
    assert all(opt.short_description and opt.long_description for opt in SUPPORTED_OPTIONS)


def test_create_backend() -> None:
    backend = create_backend(TAHOE_DIR_URL, {"use-ssl": ""}, timeout=5.0)
    assert isinstance(backend, TahoeClient)
    assert backend.endpoint.scheme == "https"
    assert backend.timeout == 5.0


def test_create_backend_passes_transport(gateway) -> None:
    backend = create_backend(TAHOE_DIR_URL, transport=httpx.MockTransport(gateway))
    assert backend.timeout == 100.0
    assert backend.list() == []
    assert gateway.requests[-1].url.query == b"t=json"
