"""
Pipeline stage descriptors and their pull logic.

A Stage only describes an intermediate operation. ``apply_stage`` wraps an
upstream iterator in a generator that pulls one element at a time; nothing
runs until the outermost iterator is advanced by a terminal evaluator.
"""

from dataclasses import dataclass
from functools import cmp_to_key
from itertools import dropwhile, takewhile
from typing import Any, Callable, Iterator, Optional

from models import StageKind


@dataclass(frozen=True)
class Stage:
    """One intermediate operation. Holds no elements."""
    kind: StageKind
    fn: Optional[Callable] = None      # predicate / transform / key / observer
    count: Optional[int] = None        # limit and skip
    reverse: bool = False              # sorted

    def __post_init__(self):
        if self.kind in (StageKind.LIMIT, StageKind.SKIP):
            if not isinstance(self.count, int) or isinstance(self.count, bool):
                raise TypeError(f"{self.kind.value}() count must be an int, got {self.count!r}")
            if self.count < 0:
                raise ValueError(f"{self.kind.value}() count must be >= 0, got {self.count}")
        elif self.kind not in (StageKind.DISTINCT, StageKind.SORTED):
            if not callable(self.fn):
                raise TypeError(f"{self.kind.value}() requires a callable, got {self.fn!r}")


def sort_key(comparator: Optional[Callable[[Any, Any], int]] = None,
             key: Optional[Callable[[Any], Any]] = None) -> Optional[Callable[[Any], Any]]:
    """Turn a two-argument comparator or a key function into a sort key"""
    if comparator is not None and key is not None:
        raise ValueError("Pass either a comparator or a key, not both")
    if comparator is not None:
        return cmp_to_key(comparator)
    return key


# --------- per-stage generators ----------
def _flat_map(upstream, fn):
    for x in upstream:
        sub = fn(x)
        try:
            yield from sub
        finally:
            # sub-streams run their on_close handlers once drained or abandoned
            close = getattr(sub, "close", None)
            if close is not None:
                close()


def _limit(upstream, n):
    if n == 0:
        return
    taken = 0
    for x in upstream:
        yield x
        taken += 1
        if taken >= n:
            return


def _skip(upstream, n):
    skipped = 0
    for x in upstream:
        if skipped < n:
            skipped += 1
            continue
        yield x


def _distinct(upstream):
    seen = set()
    seen_unhashable = []
    for x in upstream:
        try:
            if x in seen:
                continue
            seen.add(x)
        except TypeError:
            # unhashable: fall back to equality scan
            if x in seen_unhashable:
                continue
            seen_unhashable.append(x)
        yield x


def _sorted(upstream, key, reverse):
    buffer = list(upstream)
    buffer.sort(key=key, reverse=reverse)
    yield from buffer


def _peek(upstream, fn):
    for x in upstream:
        fn(x)
        yield x


def apply_stage(stage: Stage, upstream: Iterator) -> Iterator:
    """Wrap ``upstream`` with the pull logic of ``stage``"""
    kind = stage.kind
    if kind is StageKind.FILTER:
        pred = stage.fn
        return (x for x in upstream if pred(x))
    elif kind is StageKind.MAP:
        fn = stage.fn
        return (fn(x) for x in upstream)
    elif kind is StageKind.FLAT_MAP:
        return _flat_map(upstream, stage.fn)
    elif kind is StageKind.LIMIT:
        return _limit(upstream, stage.count)
    elif kind is StageKind.SKIP:
        return _skip(upstream, stage.count)
    elif kind is StageKind.DISTINCT:
        return _distinct(upstream)
    elif kind is StageKind.SORTED:
        return _sorted(upstream, stage.fn, stage.reverse)
    elif kind is StageKind.PEEK:
        return _peek(upstream, stage.fn)
    elif kind is StageKind.TAKE_WHILE:
        return takewhile(stage.fn, upstream)
    elif kind is StageKind.DROP_WHILE:
        return dropwhile(stage.fn, upstream)
    else:
        raise ValueError(f"Unknown stage kind: {kind}")


def build_pipeline(upstream: Iterator, stages) -> Iterator:
    """Chain every stage, in order, on top of ``upstream``"""
    it = upstream
    for stage in stages:
        it = apply_stage(stage, it)
    return it
