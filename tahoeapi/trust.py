"""
HTTPS 证书校验策略。

策略在构造客户端时确定，通过 httpx 的 ``verify`` 参数随每次请求传入，
不修改任何进程级的证书校验设置。
"""

from __future__ import annotations

import hashlib
import re
import ssl
from dataclasses import dataclass
from typing import Any, Mapping

from tahoeapi.endpoint import (
    OPTION_ACCEPT_ANY_CERTIFICATE,
    OPTION_ACCEPT_CERTIFICATE_HASH,
    option_enabled,
)
from tahoeapi.errors import ConfigurationError

# 指纹长度（hex 位数） -> 摘要算法
_FINGERPRINT_ALGORITHMS = {40: "sha1", 64: "sha256"}
_NON_HEX_SEPARATORS = re.compile(r"[\s:]")


def normalize_fingerprint(value: str) -> str:
    """去掉冒号与空白并转为小写；非法时抛出 ConfigurationError。"""
    fp = _NON_HEX_SEPARATORS.sub("", value or "").lower()
    if len(fp) not in _FINGERPRINT_ALGORITHMS or not re.fullmatch(r"[0-9a-f]+", fp):
        raise ConfigurationError(f"invalid certificate hash: {value!r}")
    return fp


def fingerprint_matches(der_cert: bytes, fingerprint: str) -> bool:
    """DER 证书的摘要是否与已规范化的指纹一致（SHA-1 或 SHA-256，按长度区分）。"""
    algorithm = _FINGERPRINT_ALGORITHMS[len(fingerprint)]
    return hashlib.new(algorithm, der_cert).hexdigest() == fingerprint


class _PinnedSSLSocket(ssl.SSLSocket):
    """握手完成后比对对端证书指纹，不一致则中止连接。"""

    fingerprint = ""

    def do_handshake(self, block: bool = False) -> None:
        super().do_handshake(block)
        der = self.getpeercert(binary_form=True)
        if not der or not fingerprint_matches(der, self.fingerprint):
            raise ssl.SSLCertVerificationError(
                f"server certificate does not match the accepted hash {self.fingerprint}"
            )


def _pinned_context(fingerprint: str) -> ssl.SSLContext:
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    # 指纹已唯一确定证书，链与主机名都不再校验
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    ctx.sslsocket_class = type("PinnedSSLSocket", (_PinnedSSLSocket,), {"fingerprint": fingerprint})
    return ctx


@dataclass(frozen=True)
class TrustPolicy:
    """
    证书校验策略。

    - enabled: 仅 https 时为 True
    - accept_any_certificate: 不校验证书
    - accepted_fingerprint: 只接受指定指纹的证书（不论证书链是否有效）

    两者同时设置时 accept_any_certificate 优先。
    """

    enabled: bool = False
    accept_any_certificate: bool = False
    accepted_fingerprint: str | None = None

    @classmethod
    def from_options(cls, options: Mapping[str, str | None], scheme: str) -> TrustPolicy:
        enabled = scheme == "https"
        accept_any = option_enabled(options, OPTION_ACCEPT_ANY_CERTIFICATE)
        fingerprint = options.get(OPTION_ACCEPT_CERTIFICATE_HASH)
        # 指纹只在 https 且未设置 accept-any 时生效，其余情况不校验格式
        if not enabled or accept_any or not fingerprint:
            fingerprint = None
        return cls(
            enabled=enabled,
            accept_any_certificate=accept_any,
            accepted_fingerprint=normalize_fingerprint(fingerprint) if fingerprint else None,
        )

    def verify(self) -> Any:
        """返回传给 httpx.Client(verify=...) 的值：True、False 或 SSLContext。"""
        if not self.enabled:
            return True
        if self.accept_any_certificate:
            return False
        if self.accepted_fingerprint:
            return _pinned_context(self.accepted_fingerprint)
        return True
