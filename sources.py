"""
Element sources that a stream pipeline pulls from.

A source never copies its input: it keeps a reference and hands out a fresh
pull iterator each time it is opened.
"""

from collections.abc import Iterator, Set
from typing import Any, Callable, Iterable, Optional

from errors import StreamConsumedError


class Source:
    """
    Wraps an in-memory iterable.

    ``ordered`` is False for set-backed sources, where encounter order carries
    no meaning. One-shot iterators (generators, file-like iterators, ...) can
    only be opened once.
    """

    def __init__(self, iterable: Iterable[Any], ordered: bool = True):
        self._iterable = iterable
        self.ordered = ordered
        self._one_shot = isinstance(iterable, Iterator)
        self._opened = False

    def open(self) -> Iterator:
        if self._one_shot:
            if self._opened:
                raise StreamConsumedError("source iterator has already been consumed")
            self._opened = True
        return iter(self._iterable)

    def __repr__(self):
        kind = "ordered" if self.ordered else "unordered"
        return f"{type(self).__name__}({type(self._iterable).__name__}, {kind})"


class ConcatSource(Source):
    """Yields everything from ``first`` and then everything from ``second``"""

    def __init__(self, first: Source, second: Source):
        self._first = first
        self._second = second
        self.ordered = first.ordered and second.ordered

    def open(self) -> Iterator:
        return self._chain()

    def _chain(self):
        yield from self._first.open()
        yield from self._second.open()

    def __repr__(self):
        return f"ConcatSource({self._first!r}, {self._second!r})"


class GeneratedSource(Source):
    """Calls ``factory`` on every open(); the factory returns a new iterator"""

    def __init__(self, factory: Callable[[], Iterator], ordered: bool = True):
        self._factory = factory
        self.ordered = ordered

    def open(self) -> Iterator:
        return self._factory()

    def __repr__(self):
        return f"GeneratedSource({getattr(self._factory, '__name__', self._factory)!r})"


# --------- constructors ----------
def from_collection(container: Iterable[Any]) -> Source:
    """Wrap a container; set-like containers give an unordered source"""
    if container is None:
        raise TypeError("from_collection() requires an iterable, got None")
    if not hasattr(container, "__iter__"):
        raise TypeError(f"'{type(container).__name__}' object is not iterable")
    return Source(container, ordered=not isinstance(container, Set))


def from_values(*values) -> Source:
    return Source(values)


def concat(first: Source, second: Source) -> Source:
    if not isinstance(first, Source) or not isinstance(second, Source):
        raise TypeError("concat() expects two Source instances")
    return ConcatSource(first, second)


def empty() -> Source:
    return Source(())


def range_of(start: int, stop: int) -> Source:
    """Half-open integer range [start, stop)"""
    return Source(range(start, stop))


def range_closed(start: int, stop: int) -> Source:
    """Inclusive integer range [start, stop]"""
    return Source(range(start, stop + 1))


def iterate(seed: Any, fn: Callable[[Any], Any],
            has_next: Optional[Callable[[Any], bool]] = None) -> Source:
    """
    seed, fn(seed), fn(fn(seed)), ...

    Unbounded unless ``has_next`` is given, in which case the sequence stops
    at the first value for which it returns False.
    """
    def _iterate():
        value = seed
        while has_next is None or has_next(value):
            yield value
            value = fn(value)

    return GeneratedSource(_iterate)


def generate(supplier: Callable[[], Any]) -> Source:
    """Unbounded, unordered sequence of supplier() results"""
    def _generate():
        while True:
            yield supplier()

    return GeneratedSource(_generate, ordered=False)
