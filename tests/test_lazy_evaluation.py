import pytest
from itertools import count

from streams import Stream
from utils import CountingIterable, validate_lazy_evaluation


class TestLazyEvaluation:
    """Test core lazy evaluation functionality"""

    def test_deferred_execution(self):
        """Test that operations are not executed during pipeline construction"""
        call_count = 0

        def track_calls(x):
            nonlocal call_count
            call_count += 1
            return x * 2

        stream = Stream.of_iterable(range(10)).map(track_calls).filter(lambda x: x > 2)
        assert call_count == 0, "Operations should not execute during definition"
        assert validate_lazy_evaluation(stream), "Stream should still be unevaluated"

        result = stream.limit(3).to_list()
        assert result == [4, 6, 8], f"Unexpected result: {result}"
        assert call_count == 5, f"Expected exactly 5 calls, got {call_count}"

    def test_intermediate_returns_new_stream(self):
        """Test that intermediate methods leave the receiver untouched"""
        base = Stream.of(1, 2, 3)
        filtered = base.filter(lambda x: x > 1)

        assert filtered is not base
        assert len(base.stages) == 0, "Receiver's stage chain should not change"
        assert len(filtered.stages) == 1
        assert base.to_list() == [1, 2, 3]
        assert filtered.to_list() == [2, 3]

    def test_limit_never_over_pulls_unbounded_source(self):
        """Test that limit(n) pulls exactly n elements from an infinite source"""
        source = CountingIterable(count())
        result = Stream.of_iterable(source).limit(5).to_list()

        assert result == [0, 1, 2, 3, 4], f"Unexpected result: {result}"
        assert source.pulled == 5, f"Expected 5 pulls, got {source.pulled}"

    def test_limit_zero_pulls_nothing(self):
        """Test that limit(0) does not touch upstream"""
        source = CountingIterable(count())
        assert Stream.of_iterable(source).limit(0).to_list() == []
        assert source.pulled == 0, f"Expected no pulls, got {source.pulled}"

    def test_limit_after_filter_on_unbounded_source(self):
        """Test limit short-circuiting through other stages"""
        source = CountingIterable(count(1))
        result = (
            Stream.of_iterable(source)
            .filter(lambda n: n % 3 == 0)
            .map(lambda n: n * 10)
            .limit(2)
            .to_list()
        )
        assert result == [30, 60], f"Unexpected result: {result}"
        assert source.pulled == 6, f"Expected 6 pulls, got {source.pulled}"

    def test_find_first_short_circuits(self):
        """Test that find_first pulls a single element"""
        source = CountingIterable(count(7))
        first = Stream.of_iterable(source).find_first()

        assert first.get() == 7
        assert source.pulled == 1, f"Expected 1 pull, got {source.pulled}"

    def test_match_operations_short_circuit(self):
        """Test any/all/none_match stop at the deciding element"""
        source = CountingIterable(count())
        assert Stream.of_iterable(source).any_match(lambda n: n == 3) is True
        assert source.pulled == 4, f"any_match pulled {source.pulled}"

        source = CountingIterable(count())
        assert Stream.of_iterable(source).all_match(lambda n: n < 2) is False
        assert source.pulled == 3, f"all_match pulled {source.pulled}"

        source = CountingIterable(count())
        assert Stream.of_iterable(source).none_match(lambda n: n > 4) is False
        assert source.pulled == 6, f"none_match pulled {source.pulled}"

    def test_short_circuit_finalizes_upstream_generators(self):
        """Test that stopping early closes suspended upstream generators"""
        events = []

        def numbers():
            try:
                n = 0
                while True:
                    yield n
                    n += 1
            finally:
                events.append("closed")

        result = Stream.of_iterable(numbers()).map(lambda n: n + 1).find_first()

        assert result.get() == 1
        assert events == ["closed"], "Upstream generator should be finalized after the terminal"

    def test_sorted_is_a_barrier(self):
        """Test that sorted drains upstream before yielding"""
        seen = []
        result = (
            Stream.of(3, 1, 2)
            .peek(lambda x: seen.append(("before", x)))
            .sorted()
            .peek(lambda x: seen.append(("after", x)))
            .to_list()
        )

        assert result == [1, 2, 3]
        assert seen == [
            ("before", 3), ("before", 1), ("before", 2),
            ("after", 1), ("after", 2), ("after", 3),
        ], f"Unexpected pull order: {seen}"

    def test_element_at_a_time_flow(self):
        """Test that non-barrier stages process one element at a time"""
        seen = []
        Stream.of(1, 2).peek(lambda x: seen.append(("a", x))).map(lambda x: x * 10) \
            .peek(lambda x: seen.append(("b", x))).for_each(lambda x: None)

        assert seen == [("a", 1), ("b", 10), ("a", 2), ("b", 20)], f"Unexpected order: {seen}"

    def test_iterator_is_lazy(self):
        """Test that iterator() hands back an unevaluated pull iterator"""
        calls = []
        it = Stream.of(1, 2, 3).peek(calls.append).iterator()
        assert calls == [], "Nothing should be pulled before next()"

        assert next(it) == 1
        assert calls == [1]

    def test_iterating_a_stream(self):
        """Test the for-loop protocol on a stream"""
        collected = [x for x in Stream.of(1, 2, 3).map(lambda x: -x)]
        assert collected == [-1, -2, -3]
