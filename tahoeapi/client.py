"""
Tahoe-LAFS 网关 Python 客户端。

通过网关的 HTTP/JSON 接口访问一个 DIR2 目录：列出条目、创建目录、
流式上传/下载、删除。每个操作都是一次独立的阻塞请求，不做重试与缓存。
"""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO, Callable, Iterator, Mapping

import httpx

from tahoeapi._version import __version__
from tahoeapi.endpoint import parse_endpoint
from tahoeapi.errors import FolderMissingError, TransportError
from tahoeapi.listing import Entry, decode_listing
from tahoeapi.trust import TrustPolicy

logger = logging.getLogger(__name__)

USER_AGENT = f"tahoeapi Tahoe-LAFS Client v{__version__}"

# 网关对不存在的目录返回 404，对路径中间段不是目录返回 409
FOLDER_MISSING_STATUSES = (404, 409)


def _stream_length(stream: BinaryIO) -> int:
    """从当前位置到末尾的字节数；无法确定（管道、socket 等）时返回 -1。"""
    try:
        if not stream.seekable():
            return -1
        pos = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(pos)
    except (AttributeError, OSError, ValueError):
        return -1
    return end - pos


class TahoeClient:
    """
    Tahoe-LAFS 目录的存储后端客户端。

    示例： TahoeClient("http://127.0.0.1:3456/uri/URI:DIR2:abc:def", {"use-ssl": ""})

    实例只保存不可变的配置，每次操作各自打开并关闭一个 httpx.Client，
    因此可以在多个线程中同时使用同一个实例。
    """

    CHUNK_SIZE = 1024 * 1024  # 1 MiB，流式上传/下载块大小

    def __init__(
        self,
        url: str,
        options: Mapping[str, str | None] | None = None,
        *,
        timeout: float | None = 100.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        :param url: 目录地址，path 须以 /uri/URI:DIR2: 开头，不能带 query
        :param options: 选项 use-ssl / accept-any-ssl-certificate / accept-specified-ssl-hash
        :param timeout: list / mkdir / delete 的超时秒数；上传下载始终不设超时
        :param transport: 自定义 httpx transport（测试时传 httpx.MockTransport）
        :raises ConfigurationError: 地址或选项不合法
        """
        self.options = dict(options or {})
        self.endpoint = parse_endpoint(url, self.options)
        self.trust = TrustPolicy.from_options(self.options, self.endpoint.scheme)
        self.timeout = timeout
        self._verify = self.trust.verify()
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self.endpoint.base_url

    # ------------------------- 请求构造与执行 -------------------------

    @contextmanager
    def _session(self, timeout: float | None) -> Iterator[httpx.Client]:
        """单次操作使用的 httpx.Client，证书策略在此生效，退出时关闭。"""
        with httpx.Client(
            verify=self._verify,
            timeout=timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            yield client

    def _build_request(
        self,
        client: httpx.Client,
        method: str,
        remote_name: str = "",
        query: str = "",
        *,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Request:
        # 不复用连接
        all_headers = {"User-Agent": USER_AGENT, "Connection": "close", **(headers or {})}
        return client.build_request(
            method,
            self.endpoint.url_for(remote_name, query),
            headers=all_headers,
            **kwargs,
        )

    def _send(self, client: httpx.Client, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        """发送请求；非 2xx 转为 FolderMissingError / TransportError。stream=True 时由调用方关闭响应。"""
        logger.debug("%s %s", request.method, request.url)
        try:
            response = client.send(request, stream=stream)
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}", url=str(request.url)) from e
        if not response.is_success:
            try:
                self._raise_for_status(response)
            finally:
                response.close()
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        message = f"{status} {response.reason_phrase}".strip()
        try:
            detail = response.read().decode("utf-8", errors="replace").strip()
        except httpx.HTTPError:
            detail = ""
        if detail:
            message = f"{message}: {detail[:400]}"
        if status in FOLDER_MISSING_STATUSES:
            raise FolderMissingError(self.base_url, message, status=status)
        raise TransportError(message, status=status, url=str(response.request.url))

    def _execute(self, method: str, remote_name: str = "", query: str = "") -> httpx.Response:
        with self._session(self.timeout) as client:
            return self._send(client, self._build_request(client, method, remote_name, query))

    # ------------------------- 目录操作 -------------------------

    def test(self) -> None:
        """连通性测试：执行一次 list，失败即抛出对应异常。"""
        self.list()

    def list(self) -> list[Entry]:
        """
        列出目录下的条目（只列一层，不排序）。

        :raises FolderMissingError: 目录不存在
        :raises ProtocolError: 响应不是 dirnode 文档
        """
        response = self._execute("GET", query="t=json")
        entries = decode_listing(response.content)
        logger.debug("listed %d entries in %s", len(entries), self.base_url)
        return entries

    def create_folder(self) -> None:
        """POST ?t=mkdir 创建目录；已存在时的行为由网关决定。"""
        self._execute("POST", query="t=mkdir")

    def delete(self, remote_name: str) -> None:
        """删除目录下的条目。"""
        self._execute("DELETE", remote_name)
        logger.info("deleted %s", remote_name)

    # ------------------------- 流式上传 / 下载 -------------------------

    def _iter_chunks(
        self,
        stream: BinaryIO,
        total: int,
        on_progress: Callable[[int, int], None] | None,
    ) -> Iterator[bytes]:
        sent = 0
        if on_progress:
            on_progress(0, total)
        while True:
            try:
                chunk = stream.read(self.CHUNK_SIZE)
            except OSError as e:
                raise TransportError(f"reading upload source failed: {e}") from e
            if not chunk:
                break
            sent += len(chunk)
            if on_progress:
                on_progress(sent, total)
            yield chunk

    def put(
        self,
        remote_name: str,
        stream: BinaryIO,
        *,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> None:
        """
        将流上传为目录下的 remote_name，按块读取，不整体读入内存。

        :param stream: 二进制可读流；可 seek 时声明 Content-Length，否则用 chunked 传输
        :param on_progress: 可选，每块后调用 on_progress(已发送字节, 总字节)，总字节未知时为 -1
        """
        size = _stream_length(stream)
        headers = {"Content-Type": "application/binary"}
        if size >= 0:
            headers["Content-Length"] = str(size)
        with self._session(None) as client:
            request = self._build_request(
                client,
                "PUT",
                remote_name,
                headers=headers,
                content=self._iter_chunks(stream, size, on_progress),
            )
            self._send(client, request)
        logger.info("uploaded %s (%s bytes)", remote_name, size if size >= 0 else "unknown")

    def get(self, remote_name: str, stream: BinaryIO) -> None:
        """下载 remote_name，按块写入 stream。"""
        received = 0
        with self._session(None) as client:
            request = self._build_request(client, "GET", remote_name)
            response = self._send(client, request, stream=True)
            try:
                for chunk in response.iter_bytes(self.CHUNK_SIZE):
                    stream.write(chunk)
                    received += len(chunk)
            except httpx.HTTPError as e:
                raise TransportError(f"downloading {remote_name} failed: {e}", url=str(request.url)) from e
            except OSError as e:
                raise TransportError(f"writing {remote_name} to destination failed: {e}") from e
            finally:
                response.close()
        logger.info("downloaded %s (%d bytes)", remote_name, received)

    def put_file(
        self,
        remote_name: str,
        local_path: str | Path,
        *,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> None:
        """上传本地文件。"""
        with Path(local_path).open("rb") as f:
            self.put(remote_name, f, on_progress=on_progress)

    def get_file(self, remote_name: str, local_path: str | Path) -> None:
        """下载到本地文件（存在则覆盖）。"""
        with Path(local_path).open("wb") as f:
            self.get(remote_name, f)
