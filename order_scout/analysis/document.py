# order_scout/analysis/document.py
"""
Traversal primitives for content documents.

A content document is plain decoded JSON. Every value is classified as an
object-, array- or scalar-node, and :func:`iter_nodes` walks the tree
depth-first (mapping keys in insertion order, array indices ascending),
yielding a :class:`NodeRef` for each node before its children.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

from order_scout.client.models import PathT


class NodeKind(enum.Enum):
    OBJECT = "object"
    ARRAY = "array"
    SCALAR = "scalar"


def kind_of(value: Any) -> NodeKind:
    if isinstance(value, dict):
        return NodeKind.OBJECT
    if isinstance(value, list):
        return NodeKind.ARRAY
    return NodeKind.SCALAR


@dataclass(slots=True, frozen=True)
class NodeRef:
    """A node together with its location in the document."""

    path: PathT
    value: Any
    kind: NodeKind


PrunePredicate = Callable[[Any], bool]


def iter_nodes(document: Any, prune: Optional[PrunePredicate] = None) -> Iterator[NodeRef]:
    """Pre-order walk over ``document``.

    ``prune`` is consulted for every value of a mapping before descending: a
    value it accepts is neither yielded nor entered. Array elements and the
    root are always visited.
    """
    yield from _walk(document, (), prune)


def _walk(value: Any, path: PathT, prune: Optional[PrunePredicate]) -> Iterator[NodeRef]:
    kind = kind_of(value)
    yield NodeRef(path, value, kind)

    if kind is NodeKind.ARRAY:
        for index, child in enumerate(value):
            yield from _walk(child, path + (index,), prune)
    elif kind is NodeKind.OBJECT:
        for key, child in value.items():
            if prune is not None and prune(child):
                continue
            yield from _walk(child, path + (key,), prune)


@dataclass(slots=True, frozen=True)
class PageNode:
    """View over a mapping that describes a page (carries ``pageUriSEO``)."""

    node: Dict[str, Any]

    @classmethod
    def from_value(cls, value: Any) -> Optional[PageNode]:
        if isinstance(value, dict) and isinstance(value.get("pageUriSEO"), str) and value["pageUriSEO"]:
            return cls(value)
        return None

    @property
    def page_uri_seo(self) -> str:
        return self.node["pageUriSEO"]

    @property
    def json_file_name(self) -> Optional[str]:
        return json_file_name_of(self.node)

    @property
    def hidden(self) -> bool:
        return self.node.get("hidden") is True


def json_file_name_of(value: Any) -> Optional[str]:
    """``jsonFileName`` of a mapping node, ``None`` when missing or empty."""
    if not isinstance(value, dict):
        return None
    name = value.get("jsonFileName")
    if name in (None, "", False):
        return None
    return str(name)


__all__ = ["NodeKind", "NodeRef", "PageNode", "iter_nodes", "json_file_name_of", "kind_of"]
