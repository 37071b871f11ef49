"""
目录列表（``GET <dir>?t=json``）解析。

网关返回的文档形如::

    ["dirnode", {"children": {
        "a.bin": ["filenode", {"size": 10, "metadata": {"tahoe": {"linkmotime": 1700000000.5}}}],
        "sub":   ["dirnode", {...}]
    }}]

先解析为带类型的中间结构（DirectoryDocument / ChildNode），再生成 Entry 列表。
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from tahoeapi.errors import ProtocolError

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class NodeKind(str, enum.Enum):
    DIRNODE = "dirnode"
    FILENODE = "filenode"


@dataclass
class Entry:
    """列表中的一项。size 为 -1 表示未知；last_modified 为本地时区的 aware datetime。"""

    name: str
    is_folder: bool = False
    size: int = -1
    last_modified: datetime | None = None


@dataclass(frozen=True)
class ChildNode:
    kind: NodeKind
    body: dict[str, Any]


@dataclass(frozen=True)
class DirectoryDocument:
    children: dict[str, ChildNode] = field(default_factory=dict)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_child(raw: Any) -> ChildNode | None:
    """子节点必须是 [kind, body]，kind 为 dirnode/filenode；否则返回 None（跳过）。"""
    if not isinstance(raw, list) or len(raw) < 2:
        return None
    kind, body = raw[0], raw[1]
    if not isinstance(kind, str) or not isinstance(body, dict):
        return None
    try:
        return ChildNode(NodeKind(kind), body)
    except ValueError:
        return None


def parse_document(data: Any) -> DirectoryDocument:
    """
    校验已解码的 JSON 文档并转为 DirectoryDocument。

    :raises ProtocolError: 根不是 dirnode，或缺少 children 对象
    """
    if not isinstance(data, list) or len(data) < 2 or data[0] != NodeKind.DIRNODE.value:
        raise ProtocolError("unexpected root kind")
    body = data[1]
    if not isinstance(body, dict) or not isinstance(body.get("children"), dict):
        raise ProtocolError("missing children")
    children: dict[str, ChildNode] = {}
    for name, raw in body["children"].items():
        node = _parse_child(raw)
        if node is None:
            logger.debug("skipping malformed child %r", name)
            continue
        children[name] = node
    return DirectoryDocument(children)


def _last_modified(body: dict[str, Any]) -> datetime | None:
    metadata = body.get("metadata")
    if not isinstance(metadata, dict):
        return None
    tahoe = metadata.get("tahoe")
    if not isinstance(tahoe, dict):
        return None
    value = tahoe.get("linkmotime")
    if not _is_number(value):
        return None
    try:
        return (EPOCH + timedelta(seconds=value)).astimezone()
    except (OverflowError, ValueError, OSError):
        return None


def _size(body: dict[str, Any]) -> int:
    value = body.get("size")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return -1


def to_entry(name: str, node: ChildNode) -> Entry:
    return Entry(
        name=name,
        is_folder=node.kind is NodeKind.DIRNODE,
        size=_size(node.body),
        last_modified=_last_modified(node.body),
    )


def decode_listing(content: bytes | str) -> list[Entry]:
    """
    将列表响应体解析为 Entry 列表（不排序，顺序与文档一致）。

    使用 json 模块解析，浮点数按 JSON 语法解析，与进程 locale 无关。

    :raises ProtocolError: 响应不是合法 JSON，或不是 dirnode 文档
    """
    try:
        data = json.loads(content, parse_float=float)
    except ValueError as e:
        raise ProtocolError(f"invalid JSON in directory listing: {e}") from e
    document = parse_document(data)
    return [to_entry(name, node) for name, node in document.children.items()]
