from itertools import count

import collectors as c
from models import Account, AccountStatus
from streams import Stream
from utils import setup_logging, measure_performance, get_performance_summary, CountingIterable

logger = setup_logging()

numbers = [1, 4, 7, 6, 2, 9, 7, 8]
accounts = [
    Account(balance=3333, status=AccountStatus.ACTIVE),
    Account(balance=15000, status=AccountStatus.BLOCKED),
    Account(balance=15000, status=AccountStatus.ACTIVE),
    Account(balance=8800, status=AccountStatus.ACTIVE),
    Account(balance=45000, status=AccountStatus.BLOCKED),
    Account(balance=0, status=AccountStatus.REMOVED),
]


def expensive_square(x):
    print(f"  computing square({x}) ...")
    return x * x


print("\n--- Demo: laziness (no work until a terminal runs) ---")
pipeline = (
    Stream.of_iterable(range(1, 10_000))
    .map(expensive_square)
    .filter(lambda v: v % 2 == 0)
    .skip(1)
    .limit(3)
)
print("Constructed pipeline. No output yet (nothing computed).")
print(f"Result: {pipeline.to_list()}\n")

print("--- Demo: filtering and counting ---")
print("numbers > 5:", Stream.of_iterable(numbers).filter(lambda n: n > 5).count())
print("skip(4) then > 5:", Stream.of_iterable(numbers).skip(4).filter(lambda n: n > 5).count())
print("distinct:", Stream.of_iterable(numbers).distinct().to_list())
print("sorted desc:", Stream.of_iterable(numbers).sorted(reverse=True).to_list())
print()

print("--- Demo: flat_map ---")
nested = [[], ["a"], ["b", "c"]]
print("flattened:", Stream.of_iterable(nested).flat_map(lambda xs: xs).to_list())
print()

print("--- Demo: optional results ---")
print("max:", Stream.of_iterable(numbers).max())
print("first > 100:", Stream.of_iterable(numbers).filter(lambda n: n > 100).find_first())
print("product:", Stream.of_iterable(numbers).reduce(1, lambda a, b: a * b))
print("unseeded reduce on empty:", Stream.empty().reduce(lambda a, b: a + b))
print()

print("--- Demo: collectors ---")
by_status = Stream.of_iterable(accounts).collect(
    c.grouping_by(lambda a: a.status, c.summing_long(lambda a: a.balance))
)
print("balance by status:", {status.name: total for status, total in by_status.items()})
rich = Stream.of_iterable(accounts).collect(c.partitioning_by(lambda a: a.balance > 10000, c.counting()))
print("accounts over 10000:", rich)
stats = Stream.of_iterable(accounts).collect(c.summarizing_int(lambda a: a.balance))
print("balance statistics:", stats)
print()

print("--- Demo: short-circuiting an unbounded source ---")
source = CountingIterable(count(1))
first_squares = Stream.of_iterable(source).map(lambda n: n * n).limit(5).to_list()
print(f"first squares: {first_squares} (pulled {source.pulled} elements)")
print()

print("--- Demo: reuse is rejected ---")
once = Stream.of("a", "b", "c").filter(lambda s: "b" in s)
print("find_any:", once.find_any())
try:
    once.find_first()
except RuntimeError as e:
    print("second terminal:", e)
print()

print("--- Demo: performance ---")
info = measure_performance(
    "grouping_large",
    lambda: Stream.range(0, 100_000).collect(c.grouping_by(lambda n: n % 10, c.counting())),
)
print(f"grouped 100000 numbers in {info['execution_time_ms']:.2f} ms, "
      f"peak memory {info['memory_usage_mb']:.2f} MB")
print("summary:", get_performance_summary())
logger.info("Walkthrough finished")
