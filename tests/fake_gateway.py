"""
FakeGateway 在内存中模拟 Tahoe-LAFS 网关对单个目录的 t=json / t=mkdir / PUT / GET / DELETE，
通过 httpx.MockTransport 注入 TahoeClient，不需要真实服务器。
"""

from __future__ import annotations

import threading
from urllib.parse import unquote

import httpx

from tests.config import TAHOE_DIR_PATH, TAHOE_LINKMOTIME


class FakeGateway:
    """单目录的内存网关；fail_status 非空时所有请求都返回该状态码。"""

    def __init__(self, exists: bool = True) -> None:
        self.exists = exists
        self.files: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None
        self._lock = threading.Lock()

    def listing(self) -> list:
        children = {
            name: ["filenode", {"size": len(data), "metadata": {"tahoe": {"linkmotime": TAHOE_LINKMOTIME}}}]
            for name, data in self.files.items()
        }
        return ["dirnode", {"children": children}]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            return self._handle(request)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        raw = request.url.raw_path.decode("ascii")
        path, _, query = raw.partition("?")
        # 名字中的 / 已被编码为 %2F，最后一个 / 之后即为条目名
        dir_part, _, encoded_name = path.rpartition("/")
        if unquote(dir_part + "/") != TAHOE_DIR_PATH:
            return httpx.Response(404, text="No such child")
        if self.fail_status:
            return httpx.Response(self.fail_status, text="gateway failure")
        name = unquote(encoded_name)

        if request.method == "POST" and query == "t=mkdir":
            self.exists = True
            return httpx.Response(200, text="URI:DIR2:new")
        if not self.exists:
            return httpx.Response(404, text="No such child")
        if request.method == "GET" and not name and query == "t=json":
            return httpx.Response(200, json=self.listing())
        if request.method == "PUT":
            self.files[name] = request.content
            return httpx.Response(201, text="URI:CHK:x")
        if request.method == "GET" and name in self.files:
            return httpx.Response(200, content=self.files[name])
        if request.method == "DELETE" and name in self.files:
            del self.files[name]
            return httpx.Response(200, text="")
        return httpx.Response(404, text="No such child")
