import pytest

import collectors as c
from errors import StreamConsumedError
from models import StageKind
from stages import Stage
from streams import Stream


class TestErrorHandling:
    """Test argument validation and propagation of caller faults"""

    def test_negative_counts_rejected(self):
        """Test that limit/skip refuse negative counts at construction"""
        with pytest.raises(ValueError):
            Stream.of(1).limit(-1)
        with pytest.raises(ValueError):
            Stream.of(1).skip(-5)

    def test_non_integer_counts_rejected(self):
        """Test limit/skip count type validation"""
        with pytest.raises(TypeError):
            Stream.of(1).limit(2.5)
        with pytest.raises(TypeError):
            Stream.of(1).skip(True)

    def test_non_callables_rejected(self):
        """Test that stages need callables"""
        with pytest.raises(TypeError):
            Stream.of(1).map(None)
        with pytest.raises(TypeError):
            Stream.of(1).filter("x > 1")
        with pytest.raises(TypeError):
            Stage(StageKind.PEEK)

    def test_invalid_construction_does_not_retire_stream(self):
        """Test that a rejected intermediate call leaves the receiver usable"""
        stream = Stream.of(1, 2)
        with pytest.raises(ValueError):
            stream.limit(-1)
        assert stream.to_list() == [1, 2]

    @pytest.mark.parametrize("build", [
        lambda: Stream.of(1, 2, 3).filter(lambda x: x / (x - 2)).to_list(),
        lambda: Stream.of(1, 2, 3).map(lambda x: {}[x]).count(),
        lambda: Stream.of(3, 2).sorted(lambda a, b: a.missing).to_list(),
        lambda: Stream.of(1, 2).peek(lambda x: [][x]).for_each(print),
        lambda: Stream.of(1).flat_map(lambda x: x).to_list(),
        lambda: Stream.of(1, 2).collect(c.grouping_by(lambda x: x.nope)),
    ])
    def test_caller_faults_propagate_unmodified(self, build):
        """Test that exceptions from user functions surface as-is"""
        with pytest.raises((ZeroDivisionError, KeyError, AttributeError, IndexError, TypeError)):
            build()

    def test_fault_aborts_pull_loop(self):
        """Test that a fault stops evaluation without partial results"""
        seen = []

        def explode(x):
            if x == 3:
                raise RuntimeError("boom")
            return x

        with pytest.raises(RuntimeError, match="boom"):
            Stream.range(0, 10).map(explode).for_each(seen.append)

        assert seen == [0, 1, 2], f"Pull loop should stop at the fault, saw {seen}"

    def test_runtime_error_is_not_reuse_error(self):
        """Test that caller RuntimeErrors are not confused with reuse"""
        def explode(x):
            raise RuntimeError("caller")

        with pytest.raises(RuntimeError) as exc_info:
            Stream.of(1).map(explode).to_list()
        assert not isinstance(exc_info.value, StreamConsumedError)
