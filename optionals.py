"""
Zero-or-one value container returned by terminal evaluators and collectors
whose input may be empty (max, min, find_first, unseeded reduce, ...).
"""

from typing import Any, Callable, Optional

from errors import NoSuchElementError

_EMPTY = object()


class OptionalResult:
    """
    Holds either exactly one value or nothing.

    ``None`` is an ordinary value here: ``OptionalResult.of(None)`` is present.
    Use ``of_nullable`` when ``None`` should mean "absent".
    """
    __slots__ = ("_value",)

    def __init__(self, value=_EMPTY):
        self._value = value

    # --------- constructors ----------
    @classmethod
    def empty(cls) -> "OptionalResult":
        return _EMPTY_RESULT

    @classmethod
    def of(cls, value) -> "OptionalResult":
        return cls(value)

    @classmethod
    def of_nullable(cls, value) -> "OptionalResult":
        return cls.empty() if value is None else cls(value)

    # --------- queries ----------
    def is_present(self) -> bool:
        return self._value is not _EMPTY

    def is_empty(self) -> bool:
        return self._value is _EMPTY

    def get(self):
        """Return the value, raising NoSuchElementError when empty"""
        if self._value is _EMPTY:
            raise NoSuchElementError()
        return self._value

    def or_else(self, other):
        return other if self._value is _EMPTY else self._value

    def or_else_get(self, supplier: Callable[[], Any]):
        return supplier() if self._value is _EMPTY else self._value

    def or_else_raise(self, exception_factory: Optional[Callable[[], BaseException]] = None):
        """Return the value, or raise the exception built by exception_factory"""
        if self._value is _EMPTY:
            if exception_factory is None:
                raise NoSuchElementError()
            raise exception_factory()
        return self._value

    # --------- side effects ----------
    def if_present(self, consumer: Callable[[Any], None]) -> None:
        if self._value is not _EMPTY:
            consumer(self._value)

    def if_present_or_else(self, consumer: Callable[[Any], None], empty_action: Callable[[], None]) -> None:
        if self._value is not _EMPTY:
            consumer(self._value)
        else:
            empty_action()

    # --------- transformations ----------
    def map(self, fn: Callable[[Any], Any]) -> "OptionalResult":
        if self._value is _EMPTY:
            return self
        return OptionalResult.of_nullable(fn(self._value))

    def flat_map(self, fn: Callable[[Any], "OptionalResult"]) -> "OptionalResult":
        if self._value is _EMPTY:
            return self
        result = fn(self._value)
        if not isinstance(result, OptionalResult):
            raise TypeError(f"flat_map function must return an OptionalResult, got {type(result).__name__}")
        return result

    def filter(self, pred: Callable[[Any], bool]) -> "OptionalResult":
        if self._value is _EMPTY or pred(self._value):
            return self
        return _EMPTY_RESULT

    # --------- protocol ----------
    def __iter__(self):
        if self._value is not _EMPTY:
            yield self._value

    def __eq__(self, other):
        if not isinstance(other, OptionalResult):
            return NotImplemented
        if self._value is _EMPTY or other._value is _EMPTY:
            return self._value is other._value
        return self._value == other._value

    def __hash__(self):
        return 0 if self._value is _EMPTY else hash(self._value)

    def __repr__(self):
        if self._value is _EMPTY:
            return "OptionalResult.empty"
        return f"OptionalResult[{self._value!r}]"


_EMPTY_RESULT = OptionalResult()
