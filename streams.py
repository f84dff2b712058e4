"""
Lazy, single-pass stream pipelines.

A Stream is a Source plus an immutable chain of Stage descriptors.
Intermediate methods return a new Stream and never pull anything; a terminal
method builds the pull chain, drives it once and retires the Stream.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional

import collectors
import sources
from collectors import Collector
from errors import StreamConsumedError
from models import StageKind
from optionals import OptionalResult
from sources import Source, GeneratedSource
from stages import Stage, build_pipeline, sort_key
from utils import get_settings

logger = logging.getLogger(__name__)


def _close_iterator(iterator) -> None:
    close = getattr(iterator, "close", None)
    if close is not None:
        close()


class _CloseHandlers:
    """
    on_close handlers shared by a stream and every stream derived from it.
    Whichever stream in the chain is closed first runs them; later closes are no-ops.
    """

    __slots__ = ("handlers", "closed")

    def __init__(self, handlers=()):
        self.handlers = list(handlers)
        self.closed = False

    def run(self) -> list:
        if self.closed:
            return []
        self.closed = True
        failures = []
        for handler in self.handlers:
            if isinstance(handler, _CloseHandlers):
                failures.extend(handler.run())
                continue
            try:
                handler()
            except Exception as e:
                logger.error(f"Close handler {handler!r} failed: {e}")
                failures.append(e)
        return failures


def _traced(iterator, stats):
    for x in iterator:
        stats[0] += 1
        yield x


class Stream:
    """
    A chainable, lazy pipeline over a Source.

    Each instance can be evaluated by exactly one terminal operation; any
    further terminal or intermediate call on it raises StreamConsumedError.
    """

    def __init__(self, source, stages=(), close_handlers=(), ordered: Optional[bool] = None):
        if not isinstance(source, Source):
            source = sources.from_collection(source)
        self._source = source
        self._stages = tuple(stages)
        if not isinstance(close_handlers, _CloseHandlers):
            close_handlers = _CloseHandlers(close_handlers)
        self._close_handlers = close_handlers
        self._ordered = source.ordered if ordered is None else ordered
        self._consumed = False

    # --------- constructors ----------
    @classmethod
    def of(cls, *values) -> "Stream":
        return cls(sources.from_values(*values))

    @classmethod
    def of_iterable(cls, iterable: Iterable[Any]) -> "Stream":
        return cls(sources.from_collection(iterable))

    @classmethod
    def empty(cls) -> "Stream":
        return cls(sources.empty())

    @classmethod
    def iterate(cls, seed, fn: Callable[[Any], Any],
                has_next: Optional[Callable[[Any], bool]] = None) -> "Stream":
        return cls(sources.iterate(seed, fn, has_next))

    @classmethod
    def generate(cls, supplier: Callable[[], Any]) -> "Stream":
        return cls(sources.generate(supplier))

    @classmethod
    def range(cls, start: int, stop: int) -> "Stream":
        return cls(sources.range_of(start, stop))

    @classmethod
    def range_closed(cls, start: int, stop: int) -> "Stream":
        return cls(sources.range_closed(start, stop))

    @classmethod
    def concat(cls, first: "Stream", second: "Stream") -> "Stream":
        """
        All elements of ``first`` followed by all elements of ``second``.
        Both input streams are retired; their pipelines run lazily.
        """
        first._claim("concat")
        second._claim("concat")

        def _chain():
            yield from first._pipeline()
            yield from second._pipeline()

        return cls(
            GeneratedSource(_chain, ordered=first.ordered and second.ordered),
            close_handlers=_CloseHandlers([first._close_handlers, second._close_handlers]),
        )

    # --------- introspection ----------
    @property
    def source(self) -> Source:
        return self._source

    @property
    def stages(self):
        return self._stages

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def ordered(self) -> bool:
        return self._ordered

    # --------- intermediate operations (lazy) ----------
    def filter(self, pred: Callable[[Any], bool]) -> "Stream":
        return self._with_stage(Stage(StageKind.FILTER, fn=pred))

    def map(self, fn: Callable[[Any], Any]) -> "Stream":
        return self._with_stage(Stage(StageKind.MAP, fn=fn))

    def flat_map(self, fn: Callable[[Any], Iterable[Any]]) -> "Stream":
        """``fn`` returns an iterable (a Stream works too) whose elements replace x"""
        return self._with_stage(Stage(StageKind.FLAT_MAP, fn=fn))

    def limit(self, n: int) -> "Stream":
        return self._with_stage(Stage(StageKind.LIMIT, count=n))

    def skip(self, n: int) -> "Stream":
        return self._with_stage(Stage(StageKind.SKIP, count=n))

    def distinct(self) -> "Stream":
        return self._with_stage(Stage(StageKind.DISTINCT))

    def sorted(self, comparator: Optional[Callable[[Any, Any], int]] = None, *,
               key: Optional[Callable[[Any], Any]] = None, reverse: bool = False) -> "Stream":
        """Stable sort by natural order, a key function, or a two-argument comparator"""
        stage = Stage(StageKind.SORTED, fn=sort_key(comparator, key), reverse=reverse)
        return self._with_stage(stage, ordered=True)

    def peek(self, observer: Callable[[Any], None]) -> "Stream":
        return self._with_stage(Stage(StageKind.PEEK, fn=observer))

    def take_while(self, pred: Callable[[Any], bool]) -> "Stream":
        return self._with_stage(Stage(StageKind.TAKE_WHILE, fn=pred))

    def drop_while(self, pred: Callable[[Any], bool]) -> "Stream":
        return self._with_stage(Stage(StageKind.DROP_WHILE, fn=pred))

    def unordered(self) -> "Stream":
        self._check_usable("unordered")
        return Stream(self._source, self._stages, self._close_handlers, ordered=False)

    def on_close(self, handler: Callable[[], None]) -> "Stream":
        if not callable(handler):
            raise TypeError("on_close() requires a callable")
        self._check_usable("on_close")
        self._close_handlers.handlers.append(handler)
        return Stream(self._source, self._stages, self._close_handlers, self._ordered)

    # --------- terminal operations ----------
    def count(self) -> int:
        with self._evaluate("count") as it:
            return sum(1 for _ in it)

    def max(self, comparator: Optional[Callable[[Any, Any], int]] = None, *,
            key: Optional[Callable[[Any], Any]] = None) -> OptionalResult:
        selector = collectors.max_by(comparator, key=key)
        with self._evaluate("max") as it:
            return selector.collect(it)

    def min(self, comparator: Optional[Callable[[Any, Any], int]] = None, *,
            key: Optional[Callable[[Any], Any]] = None) -> OptionalResult:
        selector = collectors.min_by(comparator, key=key)
        with self._evaluate("min") as it:
            return selector.collect(it)

    def reduce(self, identity_or_accumulator, accumulator: Optional[Callable[[Any, Any], Any]] = None):
        """
        reduce(accumulator)           -> OptionalResult, empty for no elements
        reduce(identity, accumulator) -> left fold starting from identity
        """
        folding = collectors.reducing(identity_or_accumulator, accumulator)
        with self._evaluate("reduce") as it:
            return folding.collect(it)

    def find_first(self) -> OptionalResult:
        with self._evaluate("find_first") as it:
            for x in it:
                return OptionalResult.of(x)
            return OptionalResult.empty()

    def find_any(self) -> OptionalResult:
        # sequential evaluation: the first element is as good as any
        with self._evaluate("find_any") as it:
            for x in it:
                return OptionalResult.of(x)
            return OptionalResult.empty()

    def any_match(self, pred: Callable[[Any], bool]) -> bool:
        with self._evaluate("any_match") as it:
            for x in it:
                if pred(x):
                    return True
            return False

    def all_match(self, pred: Callable[[Any], bool]) -> bool:
        with self._evaluate("all_match") as it:
            for x in it:
                if not pred(x):
                    return False
            return True

    def none_match(self, pred: Callable[[Any], bool]) -> bool:
        with self._evaluate("none_match") as it:
            for x in it:
                if pred(x):
                    return False
            return True

    def for_each(self, consumer: Callable[[Any], None]) -> None:
        with self._evaluate("for_each") as it:
            for x in it:
                consumer(x)

    def for_each_ordered(self, consumer: Callable[[Any], None]) -> None:
        """for_each in encounter order; evaluation is sequential, so the two match"""
        self.for_each(consumer)

    def collect(self, collector, accumulator: Optional[Callable[[Any, Any], None]] = None):
        """
        collect(collector)              -> collector's finished result
        collect(supplier, accumulator)  -> the container built by supplier()
        """
        if accumulator is not None:
            collector = Collector.of(collector, accumulator)
        elif not isinstance(collector, Collector):
            raise TypeError(f"collect() expects a Collector, got {type(collector).__name__}")
        with self._evaluate("collect") as it:
            return collector.collect(it)

    def to_array(self) -> tuple:
        with self._evaluate("to_array") as it:
            return tuple(it)

    def to_list(self) -> list:
        with self._evaluate("to_list") as it:
            return list(it)

    def iterator(self) -> Iterator:
        """Hand the lazy pull iterator to the caller; this retires the stream"""
        self._claim("iterator")
        return self._pipeline()

    def __iter__(self):
        return self.iterator()

    # --------- closing ----------
    def close(self) -> None:
        """
        Run on_close handlers once, in registration order, and retire the stream.
        Handlers are shared along a derived chain, so closing any stream of the
        chain runs them and closing another one afterwards does nothing.
        """
        self._consumed = True
        failures = self._close_handlers.run()
        if failures:
            raise failures[0]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        chain = ", ".join(stage.kind.value for stage in self._stages)
        return f"Stream({self._source!r}, stages=[{chain}], consumed={self._consumed})"

    # --------- helpers ----------
    def _with_stage(self, stage: Stage, ordered: Optional[bool] = None) -> "Stream":
        self._check_usable(stage.kind.value)
        return Stream(
            self._source,
            self._stages + (stage,),
            self._close_handlers,
            self._ordered if ordered is None else ordered,
        )

    def _check_usable(self, operation: str) -> None:
        if self._consumed:
            logger.warning(f"Rejected {operation}() on a stream that was already consumed")
            raise StreamConsumedError()

    def _claim(self, operation: str) -> None:
        self._check_usable(operation)
        self._consumed = True

    def _pipeline(self) -> Iterator:
        return build_pipeline(self._source.open(), self._stages)

    @contextmanager
    def _evaluate(self, operation: str):
        self._claim(operation)
        logger.debug(f"Evaluating {operation}() over {len(self._stages)} stage(s)")
        upstream = self._source.open()
        pipeline = build_pipeline(upstream, self._stages)
        if not get_settings().trace_terminals:
            try:
                yield pipeline
            finally:
                _close_iterator(pipeline)
                _close_iterator(upstream)
            return

        stats = [0]
        traced = _traced(pipeline, stats)
        start_time = time.perf_counter()
        try:
            yield traced
        finally:
            traced.close()
            _close_iterator(pipeline)
            _close_iterator(upstream)
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(f"{operation}() pulled {stats[0]} element(s) in {elapsed_ms:.2f} ms")
