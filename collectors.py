"""
Collector framework for Stream.collect().

A Collector is three functions: ``supplier`` creates a fresh mutable
container, ``accumulator(container, element)`` folds one element into it in
place, and ``finisher(container)`` turns the container into the result.
Scalar reductions keep their running value in a one-slot list.

Every collector here can be used on its own or as the downstream of
grouping_by / partitioning_by, which treat the downstream as opaque.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from errors import DuplicateKeyError
from optionals import OptionalResult
from stages import sort_key

_EMPTY = object()


@dataclass(frozen=True)
class Collector:
    supplier: Callable[[], Any]
    accumulator: Callable[[Any, Any], None]
    finisher: Optional[Callable[[Any], Any]] = None

    @classmethod
    def of(cls, supplier, accumulator, finisher=None) -> "Collector":
        if not callable(supplier) or not callable(accumulator):
            raise TypeError("Collector.of() requires a callable supplier and accumulator")
        if finisher is not None and not callable(finisher):
            raise TypeError("Collector finisher must be callable")
        return cls(supplier, accumulator, finisher)

    def finish(self, container):
        if self.finisher is None:
            return container
        return self.finisher(container)

    def collect(self, elements: Iterable[Any]):
        """Run the full supplier / accumulate / finish cycle over ``elements``"""
        container = self.supplier()
        accumulate = self.accumulator
        for x in elements:
            accumulate(container, x)
        return self.finish(container)


def _unbox(box):
    return box[0]


def _add_to_collection(container, x):
    if hasattr(container, "append"):
        container.append(x)
    else:
        container.add(x)


# --------- containers ----------
def to_list() -> Collector:
    return Collector(list, list.append)


def to_set() -> Collector:
    return Collector(set, set.add)


def to_collection(factory: Callable[[], Any]) -> Collector:
    """Accumulate into ``factory()``; the container needs append() or add()"""
    if not callable(factory):
        raise TypeError("to_collection() requires a zero-argument factory")
    return Collector(factory, _add_to_collection)


def to_dict(key_mapper: Callable[[Any], Any], value_mapper: Callable[[Any], Any],
            merge: Optional[Callable[[Any, Any], Any]] = None,
            map_factory: Callable[[], Dict] = dict) -> Collector:
    """
    Build a mapping of key_mapper(x) -> value_mapper(x).

    Two elements with the same key raise DuplicateKeyError unless ``merge``
    is given, in which case the stored value becomes merge(old, new).
    """
    def accumulate(mapping, x):
        key = key_mapper(x)
        value = value_mapper(x)
        if key in mapping:
            if merge is None:
                raise DuplicateKeyError(key, mapping[key], value)
            mapping[key] = merge(mapping[key], value)
        else:
            mapping[key] = value

    return Collector(map_factory, accumulate)


def joining(delimiter: str = "", prefix: str = "", suffix: str = "") -> Collector:
    def finish(parts):
        return prefix + delimiter.join(parts) + suffix

    return Collector(list, list.append, finish)


# --------- arithmetic ----------
def summing_int(mapper: Callable[[Any], int]) -> Collector:
    def accumulate(box, x):
        box[0] += mapper(x)

    return Collector(lambda: [0], accumulate, _unbox)


summing_long = summing_int


def summing_double(mapper: Callable[[Any], float]) -> Collector:
    def accumulate(box, x):
        box[0] += float(mapper(x))

    return Collector(lambda: [0.0], accumulate, _unbox)


def averaging_int(mapper: Callable[[Any], int]) -> Collector:
    """Arithmetic mean as a float; 0.0 when nothing was collected"""
    def accumulate(box, x):
        box[0] += 1
        box[1] += mapper(x)

    def finish(box):
        count, total = box
        return total / count if count else 0.0

    return Collector(lambda: [0, 0], accumulate, finish)


averaging_long = averaging_int


def averaging_double(mapper: Callable[[Any], float]) -> Collector:
    def accumulate(box, x):
        box[0] += 1
        box[1] += float(mapper(x))

    def finish(box):
        count, total = box
        return total / count if count else 0.0

    return Collector(lambda: [0, 0.0], accumulate, finish)


def counting() -> Collector:
    def accumulate(box, x):
        box[0] += 1

    return Collector(lambda: [0], accumulate, _unbox)


class SummaryStatistics:
    """Running count, sum, min, max and average of numeric values"""

    def __init__(self):
        self.count = 0
        self.sum = 0
        self.min = None
        self.max = None

    def accept(self, value) -> None:
        self.count += 1
        self.sum += value
        if self.min is None or value < self.min:
            self.min = value
        if self.max is None or value > self.max:
            self.max = value

    @property
    def average(self) -> float:
        return self.sum / self.count if self.count else 0.0

    def __repr__(self):
        return (f"SummaryStatistics(count={self.count}, sum={self.sum}, min={self.min}, "
                f"average={self.average}, max={self.max})")


def summarizing_int(mapper: Callable[[Any], int]) -> Collector:
    def accumulate(stats, x):
        stats.accept(mapper(x))

    return Collector(SummaryStatistics, accumulate)


summarizing_long = summarizing_int


def summarizing_double(mapper: Callable[[Any], float]) -> Collector:
    def accumulate(stats, x):
        stats.accept(float(mapper(x)))

    def new_stats():
        stats = SummaryStatistics()
        stats.sum = 0.0
        return stats

    return Collector(new_stats, accumulate)


# --------- selection and folding ----------
def _select_by(comparator, key, prefer_greater) -> Collector:
    keyf = sort_key(comparator, key) or (lambda v: v)

    def accumulate(box, x):
        if box[0] is _EMPTY:
            box[0] = x
            return
        candidate = keyf(x)
        current = keyf(box[0])
        # ties keep the earlier element
        if (candidate > current) if prefer_greater else (candidate < current):
            box[0] = x

    def finish(box):
        return OptionalResult.empty() if box[0] is _EMPTY else OptionalResult.of(box[0])

    return Collector(lambda: [_EMPTY], accumulate, finish)


def max_by(comparator: Optional[Callable[[Any, Any], int]] = None, *,
           key: Optional[Callable[[Any], Any]] = None) -> Collector:
    return _select_by(comparator, key, prefer_greater=True)


def min_by(comparator: Optional[Callable[[Any, Any], int]] = None, *,
           key: Optional[Callable[[Any], Any]] = None) -> Collector:
    return _select_by(comparator, key, prefer_greater=False)


def reducing(identity_or_op, op: Optional[Callable[[Any, Any], Any]] = None, *,
             mapper: Optional[Callable[[Any], Any]] = None) -> Collector:
    """
    reducing(op)           -> OptionalResult of the left fold, empty on no input
    reducing(identity, op) -> left fold starting from identity

    ``mapper`` is applied to each element before folding.
    """
    if op is None:
        op = identity_or_op
        if not callable(op):
            raise TypeError("reducing() requires a callable operator")

        def accumulate_unseeded(box, x):
            value = mapper(x) if mapper is not None else x
            box[0] = value if box[0] is _EMPTY else op(box[0], value)

        def finish(box):
            return OptionalResult.empty() if box[0] is _EMPTY else OptionalResult.of(box[0])

        return Collector(lambda: [_EMPTY], accumulate_unseeded, finish)

    if not callable(op):
        raise TypeError("reducing() requires a callable operator")
    identity = identity_or_op

    def accumulate(box, x):
        value = mapper(x) if mapper is not None else x
        box[0] = op(box[0], value)

    return Collector(lambda: [identity], accumulate, _unbox)


# --------- downstream adapters ----------
def mapping(mapper: Callable[[Any], Any], downstream: Collector) -> Collector:
    downstream_accumulate = downstream.accumulator

    def accumulate(container, x):
        downstream_accumulate(container, mapper(x))

    return Collector(downstream.supplier, accumulate, downstream.finisher)


def filtering(predicate: Callable[[Any], bool], downstream: Collector) -> Collector:
    downstream_accumulate = downstream.accumulator

    def accumulate(container, x):
        if predicate(x):
            downstream_accumulate(container, x)

    return Collector(downstream.supplier, accumulate, downstream.finisher)


def flat_mapping(fn: Callable[[Any], Iterable[Any]], downstream: Collector) -> Collector:
    downstream_accumulate = downstream.accumulator

    def accumulate(container, x):
        for y in fn(x):
            downstream_accumulate(container, y)

    return Collector(downstream.supplier, accumulate, downstream.finisher)


def collecting_and_then(downstream: Collector, finisher: Callable[[Any], Any]) -> Collector:
    def finish(container):
        return finisher(downstream.finish(container))

    return Collector(downstream.supplier, downstream.accumulator, finish)


def teeing(first: Collector, second: Collector, merger: Callable[[Any, Any], Any]) -> Collector:
    """Feed every element to both collectors and merge their results"""
    def supply():
        return (first.supplier(), second.supplier())

    def accumulate(pair, x):
        first.accumulator(pair[0], x)
        second.accumulator(pair[1], x)

    def finish(pair):
        return merger(first.finish(pair[0]), second.finish(pair[1]))

    return Collector(supply, accumulate, finish)


# --------- grouping ----------
def partitioning_by(predicate: Callable[[Any], bool],
                    downstream: Optional[Collector] = None) -> Collector:
    """
    Split elements into ``{False: ..., True: ...}``.

    Both keys are always present. Each side is a list unless a downstream
    collector is given, in which case each side is that collector's result.
    """
    downstream = downstream or to_list()

    def supply():
        return {False: downstream.supplier(), True: downstream.supplier()}

    def accumulate(partitions, x):
        downstream.accumulator(partitions[bool(predicate(x))], x)

    def finish(partitions):
        return {side: downstream.finish(bucket) for side, bucket in partitions.items()}

    return Collector(supply, accumulate, finish)


def grouping_by(classifier: Callable[[Any], Any],
                downstream: Optional[Collector] = None,
                map_factory: Callable[[], Dict] = dict) -> Collector:
    """
    Group elements by ``classifier(x)``.

    Keys appear in first-encounter order for insertion-ordered map types.
    Each group is a list unless a downstream collector is given; the
    downstream gets its own container per key and is finished per key.
    """
    downstream = downstream or to_list()

    def accumulate(groups, x):
        key = classifier(x)
        if key not in groups:
            groups[key] = downstream.supplier()
        downstream.accumulator(groups[key], x)

    def finish(groups):
        if downstream.finisher is None:
            return groups
        for key, bucket in list(groups.items()):
            groups[key] = downstream.finisher(bucket)
        return groups

    return Collector(map_factory, accumulate, finish)
