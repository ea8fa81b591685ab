"""Depth-first traversal over a design node tree.

Nodes are visited in pre-order (parent before children, children left to
right). Each node object is visited at most once: if the same object is
reachable twice (a back-reference in hand-built input), the repeat is
skipped instead of being descended into again.
"""

from __future__ import annotations

from typing import Callable, Iterator, List, Optional

from .models import DesignNode

COMPONENT_TYPES = ("COMPONENT", "COMPONENT_SET")

NodePredicate = Callable[[DesignNode], bool]


def walk(root: DesignNode) -> Iterator[DesignNode]:
    """Yield every node under ``root`` (inclusive) in pre-order."""
    seen = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        # Reversed so the leftmost child is popped first
        stack.extend(reversed(node.children))


def find(root: DesignNode, predicate: NodePredicate) -> Optional[DesignNode]:
    """Return the first node in pre-order for which ``predicate`` holds."""
    for node in walk(root):
        if predicate(node):
            return node
    return None


def collect(root: DesignNode, predicate: NodePredicate) -> List[DesignNode]:
    """Return every node for which ``predicate`` holds, in pre-order."""
    return [node for node in walk(root) if predicate(node)]


def find_by_id(root: DesignNode, node_id: str) -> Optional[DesignNode]:
    return find(root, lambda node: node.id == node_id)


def collect_components(root: DesignNode) -> List[DesignNode]:
    return collect(root, lambda node: node.type in COMPONENT_TYPES)
