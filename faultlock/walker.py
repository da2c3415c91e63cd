"""
Depth-first syntax tree walk with enter/exit callbacks keyed by node kind.

A :class:`TreeListener` subclass defines ``enter_<node type>`` and
``exit_<node type>`` methods (e.g. ``enter_if_statement``); :func:`walk`
visits every node of a tree-sitter tree in document order and dispatches to
them. Each callback receives the node and the field name it occupies in its
parent (``"condition"``, ``"body"``, ... or None).

Listeners can also classify nodes into traversal *frames* by overriding
:meth:`TreeListener.frame_for`. A frame is pushed when the node is entered and
popped when it is exited, so ``self.frames`` always describes the syntactic
context of the current cursor position, including re-entrant nesting such as
an ``if`` inside a ``for`` body or a ``||`` inside a ``&&``.

Typical usage:
    class IfCounter(TreeListener):
        def __init__(self):
            super().__init__()
            self.count = 0

        def enter_if_statement(self, node, field):
            self.count += 1

    counter = IfCounter()
    walk(counter, context.root_node)
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from tree_sitter import Node as TSNode
from tree_sitter import Tree

logger = logging.getLogger(__name__)


class FrameStack:
    """Stack of traversal frame names, innermost last."""

    def __init__(self) -> None:
        self._frames: list[str] = []

    def push(self, frame: str) -> None:
        self._frames.append(frame)

    def pop(self) -> str:
        return self._frames.pop()

    @property
    def innermost(self) -> Optional[str]:
        return self._frames[-1] if self._frames else None

    def nearest(self, kinds: Iterable[str]) -> Optional[str]:
        """Return the innermost frame that is one of kinds, or None."""
        wanted = set(kinds)
        for frame in reversed(self._frames):
            if frame in wanted:
                return frame
        return None

    def above(self, boundary: str) -> list[str]:
        """Frames pushed after the innermost ``boundary`` frame (empty if absent)."""
        for i in range(len(self._frames) - 1, -1, -1):
            if self._frames[i] == boundary:
                return self._frames[i + 1 :]
        return []

    def __contains__(self, frame: object) -> bool:
        return frame in self._frames

    def __len__(self) -> int:
        return len(self._frames)

    def __repr__(self) -> str:
        return f"FrameStack({self._frames!r})"


class TreeListener:
    """Base class for anything that wants enter/exit callbacks during :func:`walk`."""

    def __init__(self) -> None:
        self.frames = FrameStack()
        self._pushed: list[Optional[str]] = []

    def frame_for(self, node: TSNode, field: Optional[str]) -> Optional[str]:
        """Return the frame this node opens, or None. Override in subclasses."""
        return None

    def enter_node(self, node: TSNode, field: Optional[str]) -> None:
        handler = getattr(self, "enter_" + node.type, None)
        if handler is not None:
            handler(node, field)
        frame = self.frame_for(node, field)
        self._pushed.append(frame)
        if frame is not None:
            self.frames.push(frame)

    def exit_node(self, node: TSNode, field: Optional[str]) -> None:
        if self._pushed.pop() is not None:
            self.frames.pop()
        handler = getattr(self, "exit_" + node.type, None)
        if handler is not None:
            handler(node, field)


def walk(listener: TreeListener, root: Union[Tree, TSNode]) -> None:
    """
    Visit every node under root depth-first, calling enter/exit on listener.

    Uses a tree cursor instead of recursion, so deeply nested sources do not
    hit the interpreter's recursion limit.
    """
    node = root.root_node if isinstance(root, Tree) else root
    cursor = node.walk()
    descending = True
    while True:
        if descending:
            listener.enter_node(cursor.node, cursor.field_name)
            if cursor.goto_first_child():
                continue
            listener.exit_node(cursor.node, cursor.field_name)
        if cursor.goto_next_sibling():
            descending = True
            continue
        if not cursor.goto_parent():
            break
        listener.exit_node(cursor.node, cursor.field_name)
        descending = False
    logger.debug("Walked tree from %s with %s", node.type, type(listener).__name__)
