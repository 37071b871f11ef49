"""
Tahoe-LAFS 适配器的异常类型。

调用方只会看到这里定义的异常，底层 httpx / OSError 通过 ``__cause__`` 保留。
"""

from __future__ import annotations


class TahoeError(RuntimeError):
    """适配器所有异常的基类。"""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.url = url


class ConfigurationError(TahoeError):
    """地址格式错误或选项不兼容；构造时即抛出，不会发起网络请求。"""


class FolderMissingError(TahoeError):
    """远程目录不存在或无法作为目录访问（HTTP 404 / 409）。"""

    def __init__(self, url: str, message: str, *, status: int | None = None) -> None:
        super().__init__(
            f"the folder {url} does not exist: {message}",
            status=status,
            url=url,
        )
        self.remote_message = message


class TransportError(TahoeError):
    """其他非 2xx 状态，或请求/响应/流拷贝期间的 I/O 错误。"""


class ProtocolError(TahoeError):
    """列表响应不是合法的 dirnode 文档。"""
