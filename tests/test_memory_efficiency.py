import pytest
import tracemalloc
from itertools import count

import collectors as c
from streams import Stream


class TestMemoryEfficiency:
    """Test that streaming stages do not materialize their input"""

    def test_memory_scales_with_output_not_input(self):
        """Test that memory usage scales with output size, not input size"""
        large_input_size = 100000
        small_output_size = 10

        tracemalloc.start()
        baseline = tracemalloc.get_traced_memory()[0]

        result = (
            Stream.range(0, large_input_size)
            .map(lambda x: x * x)
            .filter(lambda x: x % 1000 == 0)
            .limit(small_output_size)
            .to_list()
        )

        current, peak = tracemalloc.get_traced_memory()
        tracemalloc.stop()

        memory_used = peak - baseline
        assert len(result) == small_output_size, f"Expected {small_output_size} results"
        assert memory_used < 5000000, f"Used too much memory: {memory_used} bytes"

    def test_no_intermediate_collection_storage(self):
        """Test that intermediate results are not stored in memory"""
        def memory_intensive_operation(x):
            return [x] * 1000

        tracemalloc.start()
        baseline = tracemalloc.get_traced_memory()[0]

        total = (
            Stream.range(0, 2000)
            .map(memory_intensive_operation)
            .map(len)
            .reduce(0, lambda a, b: a + b)
        )

        current, peak = tracemalloc.get_traced_memory()
        tracemalloc.stop()

        memory_used = peak - baseline
        assert total == 2000 * 1000
        # 2000 lists of 1000 slots would need ~16MB if they were all kept
        assert memory_used < 4000000, f"Used too much memory: {memory_used} bytes"

    def test_counting_an_unbounded_prefix(self):
        """Test reductions over a generated source cut by limit"""
        result = Stream.of_iterable(count()).limit(50000).collect(c.counting())
        assert result == 50000

    def test_distinct_memory_is_proportional_to_distinct_count(self):
        """Test that distinct only remembers unique values"""
        tracemalloc.start()
        baseline = tracemalloc.get_traced_memory()[0]

        result = Stream.range(0, 200000).map(lambda n: n % 10).distinct().to_list()

        current, peak = tracemalloc.get_traced_memory()
        tracemalloc.stop()

        assert result == list(range(10))
        assert peak - baseline < 2000000, f"Used too much memory: {peak - baseline} bytes"
