"""
pytest 配置与共享 fixture。

HTTP 由 tests.fake_gateway.FakeGateway 经 httpx.MockTransport 模拟，不需要真实服务器。
"""

from __future__ import annotations

import httpx
import pytest

from tahoeapi import TahoeClient

from tests.config import TAHOE_DIR_URL
from tests.fake_gateway import FakeGateway


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(gateway: FakeGateway) -> TahoeClient:
    """接入 FakeGateway 的客户端。"""
    return TahoeClient(TAHOE_DIR_URL, transport=httpx.MockTransport(gateway))
