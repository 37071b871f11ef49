"""Tahoe-LAFS 网关（HTTP/JSON）Python 存储后端客户端 - https://tahoe-lafs.org"""

from tahoeapi._version import __version__
from tahoeapi.client import TahoeClient
from tahoeapi.endpoint import Endpoint, parse_endpoint
from tahoeapi.errors import (
    ConfigurationError,
    FolderMissingError,
    ProtocolError,
    TahoeError,
    TransportError,
)
from tahoeapi.listing import Entry, decode_listing
from tahoeapi.trust import TrustPolicy

__all__ = [
    "__version__",
    "TahoeClient",
    "Endpoint",
    "parse_endpoint",
    "TrustPolicy",
    "Entry",
    "decode_listing",
    "TahoeError",
    "ConfigurationError",
    "FolderMissingError",
    "TransportError",
    "ProtocolError",
]
