"""Typed integer handles into the Document's entity arrays."""

from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


class Index(int, Generic[T]):
    """A non-owning reference into one of the Document's arrays.

    Validity is established once, by the validator; nothing re-checks it.
    """

    def get(self, items: Sequence[T]) -> T:
        return items[self]

    def __repr__(self) -> str:
        return f"Index({int(self)})"
