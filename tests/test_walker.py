"""Tests for the enter/exit tree walker and its frame stack."""

from faultlock.context import context_from_source, get_source_span
from faultlock.walker import FrameStack, TreeListener, walk


class RecordingListener(TreeListener):
    """Records every enter/exit event as (event, node type, field)."""

    def __init__(self):
        super().__init__()
        self.events = []

    def enter_node(self, node, field):
        self.events.append(("enter", node.type, field))
        super().enter_node(node, field)

    def exit_node(self, node, field):
        super().exit_node(node, field)
        self.events.append(("exit", node.type, field))


class ConditionListener(TreeListener):
    """Notes, for every identifier, whether it sits inside an if-condition."""

    def __init__(self, context):
        super().__init__()
        self.context = context
        self.seen = {}

    def frame_for(self, node, field):
        if field == "condition":
            return "condition"
        return None

    def enter_identifier(self, node, field):
        self.seen[get_source_span(self.context, node)] = "condition" in self.frames


class TestWalk:
    def test_event_order_and_fields(self):
        """Nodes are entered in document order and exited after their children."""
        ctx = context_from_source(b"int x;")
        listener = RecordingListener()
        walk(listener, ctx.tree)
        assert listener.events == [
            ("enter", "translation_unit", None),
            ("enter", "declaration", None),
            ("enter", "primitive_type", "type"),
            ("exit", "primitive_type", "type"),
            ("enter", "identifier", "declarator"),
            ("exit", "identifier", "declarator"),
            ("enter", ";", None),
            ("exit", ";", None),
            ("exit", "declaration", None),
            ("exit", "translation_unit", None),
        ]

    def test_walk_from_subtree(self):
        ctx = context_from_source(b"int x; int y;")
        listener = RecordingListener()
        walk(listener, ctx.root_node.named_children[1])
        assert listener.events[0] == ("enter", "declaration", None)
        assert listener.events[-1] == ("exit", "declaration", None)
        assert len(listener.events) == 8

    def test_frames_track_condition_clauses(self):
        ctx = context_from_source(b"void f(void) { if (a) { b; } while (c) { d; } }")
        listener = ConditionListener(ctx)
        walk(listener, ctx.root_node)
        assert listener.seen == {"f": False, "a": True, "b": False, "c": True, "d": False}
        assert len(listener.frames) == 0

    def test_deep_nesting_does_not_recurse(self):
        """A deeply nested expression walks without hitting the recursion limit."""
        depth = 1200
        source = ("int x = " + "(" * depth + "1" + ")" * depth + ";").encode()
        ctx = context_from_source(source)
        listener = RecordingListener()
        walk(listener, ctx.root_node)
        enters = sum(1 for event in listener.events if event[0] == "enter")
        exits = sum(1 for event in listener.events if event[0] == "exit")
        assert enters == exits
        assert enters > depth


class TestFrameStack:
    def test_push_pop_innermost(self):
        frames = FrameStack()
        assert frames.innermost is None
        frames.push("a")
        frames.push("b")
        assert frames.innermost == "b"
        assert len(frames) == 2
        assert frames.pop() == "b"
        assert frames.innermost == "a"

    def test_nearest(self):
        frames = FrameStack()
        for frame in ("if", "and", "assign", "or"):
            frames.push(frame)
        assert frames.nearest(["if", "assign"]) == "assign"
        assert frames.nearest(["and"]) == "and"
        assert frames.nearest(["loop"]) is None

    def test_above(self):
        frames = FrameStack()
        for frame in ("if", "or", "if", "and", "or"):
            frames.push(frame)
        assert frames.above("if") == ["and", "or"]
        assert frames.above("loop") == []
        assert "and" in frames
        assert "loop" not in frames
