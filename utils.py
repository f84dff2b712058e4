"""
Utility functions for the stream library: logging and settings setup,
performance measurement, and helpers for checking laziness.
"""

import os
import sys
import time
import gc
import logging
import tracemalloc
from typing import Dict, Any, Iterable, Optional

from models import StreamSettings

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s'

_TRUE_VALUES = {"1", "true", "yes", "on"}

_settings = StreamSettings()

# Global performance tracking
_performance_metrics = {
    "operations": [],
    "total_time_ms": 0.0,
    "total_memory_mb": 0.0,
    "operation_count": 0
}


# ---------- Settings and logging ----------

def load_settings(environ: Optional[Dict[str, str]] = None) -> StreamSettings:
    """Build settings from STREAMS_* environment variables"""
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    if env.get("STREAMS_LOG_LEVEL"):
        values["log_level"] = env["STREAMS_LOG_LEVEL"]
    if env.get("STREAMS_LOG_FILE"):
        values["log_file"] = env["STREAMS_LOG_FILE"]
    if "STREAMS_TRACE_TERMINALS" in env:
        values["trace_terminals"] = env["STREAMS_TRACE_TERMINALS"].strip().lower() in _TRUE_VALUES
    return StreamSettings(**values)


def configure(settings: StreamSettings) -> StreamSettings:
    """Install ``settings`` as the active process-wide settings"""
    global _settings
    _settings = settings
    return _settings


def get_settings() -> StreamSettings:
    return _settings


def setup_logging(settings: Optional[StreamSettings] = None) -> logging.Logger:
    """Setup structured logging for the stream library"""
    settings = configure(settings or load_settings())
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=settings.log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
    return logging.getLogger('streams')


# ---------- Performance measurement ----------

def measure_performance(operation_name: str, func, *args, **kwargs) -> Dict[str, Any]:
    """Measure performance of a function call with memory tracking"""

    # Nested calls share the outer trace; only the call that started it stops it
    started_tracing = not tracemalloc.is_tracing()
    if started_tracing:
        tracemalloc.start()
    gc.collect()
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _current, peak = tracemalloc.get_traced_memory()
    except Exception as e:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _current, peak = tracemalloc.get_traced_memory()
        _record({
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "success": False,
            "error": str(e),
            "timestamp": time.time()
        })
        logger.error(f"{operation_name} failed after {execution_time_ms:.2f} ms: {e}")
        raise
    finally:
        if started_tracing and tracemalloc.is_tracing():
            tracemalloc.stop()

    performance_info = {
        "operation": operation_name,
        "execution_time_ms": execution_time_ms,
        "memory_usage_mb": peak / 1024 / 1024,
        "success": True,
        "result_size": len(result) if hasattr(result, "__len__") else None,
        "timestamp": time.time()
    }
    _record(performance_info)
    logger.debug(f"{operation_name} completed in {execution_time_ms:.2f} ms")
    return performance_info


def _record(performance_info: Dict[str, Any]) -> None:
    _performance_metrics["operations"].append(performance_info)
    _performance_metrics["total_time_ms"] += performance_info["execution_time_ms"]
    _performance_metrics["total_memory_mb"] += performance_info["memory_usage_mb"]
    _performance_metrics["operation_count"] += 1


def get_performance_summary() -> Dict[str, Any]:
    """Get summary of all performance metrics"""
    if _performance_metrics["operation_count"] == 0:
        return {
            "total_operations": 0,
            "failed_operations": 0,
            "total_time_ms": 0.0,
            "total_memory_mb": 0.0,
            "avg_time_ms": 0.0,
            "avg_memory_mb": 0.0
        }

    count = _performance_metrics["operation_count"]
    return {
        "total_operations": count,
        "failed_operations": sum(1 for op in _performance_metrics["operations"] if not op["success"]),
        "total_time_ms": _performance_metrics["total_time_ms"],
        "total_memory_mb": _performance_metrics["total_memory_mb"],
        "avg_time_ms": _performance_metrics["total_time_ms"] / count,
        "avg_memory_mb": _performance_metrics["total_memory_mb"] / count
    }


def clear_performance_metrics():
    """Clear all performance metrics"""
    global _performance_metrics
    _performance_metrics = {
        "operations": [],
        "total_time_ms": 0.0,
        "total_memory_mb": 0.0,
        "operation_count": 0
    }


# ---------- Laziness helpers ----------

def validate_lazy_evaluation(stream) -> bool:
    """True if ``stream`` is a pipeline that has not been evaluated yet"""
    if not hasattr(stream, "stages") or not hasattr(stream, "source"):
        return False
    return not getattr(stream, "consumed", True)


class CountingIterable:
    """
    Wraps an iterable and counts how many elements were actually pulled
    from it, across every iterator it hands out.
    """

    def __init__(self, iterable: Iterable[Any]):
        self._iterable = iterable
        self.pulled = 0

    def __iter__(self):
        for x in self._iterable:
            self.pulled += 1
            yield x
