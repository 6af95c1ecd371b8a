"""Priority ordered string fragments used to assemble head, css, js and footer markup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Mapping, Union

StackItemLike = Union["StackItem", Mapping[str, object]]


@dataclass(frozen=True)
class StackItem:
    """One fragment of a stack. Lower priorities render earlier."""

    source: str
    string: str
    priority: int = 50

    @classmethod
    def coerce(cls, item: StackItemLike) -> "StackItem":
        """Accept a ``StackItem`` or a plain mapping with the same keys."""

        if isinstance(item, StackItem):
            return item
        return cls(
            source=str(item.get("source", "")),
            string=str(item.get("string", "")),
            priority=int(item.get("priority", 50)),  # type: ignore[arg-type]
        )


class ContentStack:
    """Append-only collection of :class:`StackItem` rendered in priority order."""

    def __init__(self, items: Iterable[StackItemLike] = ()):
        self._items: List[StackItem] = []
        for item in items:
            self.append(item)

    @classmethod
    def from_items(cls, items: Iterable[StackItemLike]) -> "ContentStack":
        return cls(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[StackItem]:
        return iter(self._items)

    def append(self, item: StackItemLike) -> StackItem:
        """Add ``item`` after every existing item."""

        stack_item = StackItem.coerce(item)
        self._items.append(stack_item)
        return stack_item

    def items(self) -> List[StackItem]:
        """Return the items in insertion order."""
        return list(self._items)

    def ordered(self) -> List[StackItem]:
        # sorted() is stable, so insertion order breaks priority ties
        return sorted(self._items, key=lambda item: item.priority)

    def render(self) -> str:
        """Concatenate the item strings by ascending priority, without separators."""
        return "".join(item.string for item in self.ordered())


def render_stack(items: Iterable[StackItemLike]) -> str:
    """Render a context stack field (a list of items) to a string."""
    return ContentStack.from_items(items).render()
