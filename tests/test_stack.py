"""Tests for content stacks."""

from __future__ import annotations

from pagehooks.stack import ContentStack, StackItem, render_stack


def test_render_orders_by_priority_with_stable_ties() -> None:
    stack = ContentStack()
    stack.append(StackItem(source="a", string="A", priority=100))
    stack.append(StackItem(source="b", string="B", priority=90))
    stack.append(StackItem(source="c", string="C", priority=100))

    assert stack.render() == "BAC"


def test_render_is_idempotent() -> None:
    stack = ContentStack([{"source": "x", "string": "<x/>", "priority": 5}])
    assert stack.render() == stack.render() == "<x/>"

    stack.append({"source": "y", "string": "<y/>", "priority": 1})
    assert stack.render() == "<y/><x/>"


def test_append_keeps_insertion_order() -> None:
    stack = ContentStack()
    for priority in (3, 1, 2):
        stack.append(StackItem(source=str(priority), string=str(priority), priority=priority))

    assert [item.source for item in stack.items()] == ["3", "1", "2"]
    assert [item.source for item in stack.ordered()] == ["1", "2", "3"]
    assert len(stack) == 3


def test_mapping_items_are_coerced_with_defaults() -> None:
    item = StackItem.coerce({"source": "plugin", "string": "<meta>"})
    assert item == StackItem(source="plugin", string="<meta>", priority=50)


def test_render_stack_of_empty_list() -> None:
    assert render_stack([]) == ""
