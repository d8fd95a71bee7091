"""
Canonical log lines for the Bee fleet proxy.

Each upstream call, geocoder lookup or aggregate builds one WideEvent, adds
to it as work proceeds and emits a single JSON line at the end. Failures and
slow calls are always written; routine successes are sampled.
"""

import random
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from bee_fleet_proxy.utils.error_codes import StructuredError

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

SERVICE_NAME = "bee-fleet-proxy"
SAMPLE_RATE = 0.05
SLOW_THRESHOLD_MS = 1000
# Business metrics whose presence forces emission
ALWAYS_LOGGED_METRICS = ("api_key_saved",)


class WideEvent:
    """
    One log line describing one operation.

    Usage:
        event = WideEvent("external_api_bee_maps", trace_id=device_id)
        event.add_context(path="/location")
        with event.timer("request"):
            response = requests.get(...)
        event.add_technical_metric("status_code", response.status_code)
        event.emit()
    """

    def __init__(self, operation: str, trace_id: Optional[str] = None):
        self.operation = operation
        self._started = time.time()
        self.context: Dict[str, Any] = {
            "operation": operation,
            "service": SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if trace_id:
            self.context["trace_id"] = trace_id
        self.logger = structlog.get_logger()

    def add_context(self, **fields) -> "WideEvent":
        self.context.update(fields)
        return self

    def add_business_metric(self, key: str, value: Any) -> "WideEvent":
        self.context.setdefault("business_metrics", {})[key] = value
        return self

    def add_technical_metric(self, key: str, value: Any) -> "WideEvent":
        self.context.setdefault("technical_metrics", {})[key] = value
        return self

    def add_error(self, error, **details) -> "WideEvent":
        """Record a StructuredError (with its code) or a plain exception."""
        if isinstance(error, StructuredError):
            record = error.to_dict()
        else:
            record = {"type": type(error).__name__, "message": str(error)}
        if details or not isinstance(error, StructuredError):
            record["details"] = details
        self.context["error"] = record
        self.context["success"] = False
        return self

    def mark_success(self) -> "WideEvent":
        self.context["success"] = True
        return self

    def mark_failure(self, reason: str) -> "WideEvent":
        self.context["success"] = False
        self.context["failure_reason"] = reason
        return self

    @contextmanager
    def timer(self, name: str):
        """Record the block's wall time as ``performance_breakdown[<name>_ms]``."""
        started = time.time()
        try:
            yield
        finally:
            elapsed = (time.time() - started) * 1000
            self.context.setdefault("performance_breakdown", {})[f"{name}_ms"] = round(elapsed, 2)

    def set_duration(self) -> "WideEvent":
        self.context["duration_ms"] = round((time.time() - self._started) * 1000, 2)
        return self

    def should_emit(self, sample_rate: float = SAMPLE_RATE,
                    slow_threshold_ms: float = SLOW_THRESHOLD_MS) -> bool:
        if self.context.get("success") is False:
            return True
        if self.context.get("duration_ms", 0) > slow_threshold_ms:
            return True
        metrics = self.context.get("business_metrics", {})
        if any(metrics.get(name) for name in ALWAYS_LOGGED_METRICS):
            return True
        return random.random() < sample_rate

    def emit(self, level: str = "info", force: bool = False) -> None:
        """Write the event at ``level`` unless sampling drops it."""
        self.set_duration()
        if force or self.should_emit():
            getattr(self.logger, level, self.logger.info)(f"{self.operation}_complete", **self.context)


@contextmanager
def track_operation(operation: str, **context):
    """Wrap a block in a WideEvent that is always emitted, at error level on failure."""
    event = WideEvent(operation).add_context(**context)
    try:
        yield event
        event.mark_success()
    except Exception as e:
        event.add_error(e)
        event.mark_failure(str(e))
        raise
    finally:
        event.emit(level="info" if event.context.get("success") else "error", force=True)
