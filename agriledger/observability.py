"""
Observability Module - Logging, Metrics, and Health

Provides:
- Structured JSON logging with operation IDs
- Per-operation context (caller, timing, outcome)
- Metrics collection (operation counts, failures, latency)
- Health check utilities

Configuration:
- AGRILEDGER_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- AGRILEDGER_LOG_FORMAT: json, text (default: json in production)
- AGRILEDGER_PRODUCTION: Enable production mode

Usage:
    from agriledger.observability import get_logger

    logger = get_logger(__name__)
    logger.info("Record created", record_index=7, producer="farmer-a")
"""

import json
import logging
import os
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional

# Context variables for operation tracking
operation_id_var: ContextVar[str] = ContextVar("operation_id", default="")
caller_var: ContextVar[str] = ContextVar("caller", default="")


# ============================================================
# CONFIGURATION
# ============================================================

def _is_production() -> bool:
    return os.environ.get("AGRILEDGER_PRODUCTION", "").lower() in ("1", "true", "yes")


def _get_log_level() -> int:
    level_str = os.environ.get("AGRILEDGER_LOG_LEVEL", "INFO").upper()
    levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return levels.get(level_str, logging.INFO)


def _use_json_logging() -> bool:
    format_str = os.environ.get("AGRILEDGER_LOG_FORMAT", "").lower()
    if format_str == "json":
        return True
    if format_str == "text":
        return False
    return _is_production()


# ============================================================
# STRUCTURED LOGGING
# ============================================================

_STANDARD_RECORD_FIELDS = frozenset((
    "name", "msg", "args", "created", "levelname", "levelno",
    "pathname", "filename", "module", "lineno", "funcName",
    "exc_info", "exc_text", "stack_info", "message",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "taskName",
))


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.000Z",
        "level": "INFO",
        "logger": "agriledger.core.ledger",
        "message": "Production record created",
        "operation_id": "abc12345",
        "caller": "farmer-a",
        ...extra fields...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        operation_id = operation_id_var.get()
        if operation_id:
            log_data["operation_id"] = operation_id

        caller = caller_var.get()
        if caller:
            log_data["caller"] = caller

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_FIELDS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = ""
        operation_id = operation_id_var.get()
        if operation_id:
            prefix = f"[{operation_id[:8]}] "

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        msg = f"{timestamp} {record.levelname:8} {prefix}{record.name}: {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that automatically includes context fields.

    Usage:
        logger = get_logger(__name__)
        logger.info("Ownership transferred", record_index=3, new_producer="b")
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})

        # Move non-standard kwargs to extra
        for key in list(kwargs.keys()):
            if key not in ("exc_info", "stack_info", "stacklevel", "extra"):
                extra[key] = kwargs.pop(key)

        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """
    Get a structured logger for the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        ContextLogger instance with structured output
    """
    logger = logging.getLogger(name)
    return ContextLogger(logger, {})


def setup_logging(
    stream=None,
    level: Optional[int] = None,
    json_logs: Optional[bool] = None,
) -> None:
    """
    Configure logging for the process.

    Call this once at startup (CLI, demo, host adapter).

    Args:
        stream: Where log lines go (default stdout)
        level: Log level; read from AGRILEDGER_LOG_LEVEL when None
        json_logs: JSON vs text lines; read from the environment when None
    """
    if level is None:
        level = _get_log_level()
    if json_logs is None:
        json_logs = _use_json_logging()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)

    if json_logs:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger.addHandler(handler)


# ============================================================
# METRICS
# ============================================================

@dataclass
class MetricsCollector:
    """
    Simple in-memory metrics collector.

    For production, replace with Prometheus, StatsD, or similar.
    """

    # Counters
    operations_total: int = 0
    operations_failed: int = 0
    failures_by_kind: Dict[str, int] = field(default_factory=dict)
    operations_by_name: Dict[str, int] = field(default_factory=dict)

    # Histograms (simplified as lists)
    operation_latencies_ms: list = field(default_factory=list)

    def record_operation(
        self,
        name: str,
        latency_ms: float,
        failure_kind: Optional[str] = None,
    ) -> None:
        """Record one ledger operation."""
        self.operations_total += 1
        self.operations_by_name[name] = self.operations_by_name.get(name, 0) + 1
        if failure_kind is not None:
            self.operations_failed += 1
            self.failures_by_kind[failure_kind] = (
                self.failures_by_kind.get(failure_kind, 0) + 1
            )
        self.operation_latencies_ms.append(latency_ms)
        # Keep only last 1000 samples
        if len(self.operation_latencies_ms) > 1000:
            self.operation_latencies_ms = self.operation_latencies_ms[-1000:]

    def reset(self) -> None:
        self.operations_total = 0
        self.operations_failed = 0
        self.failures_by_kind = {}
        self.operations_by_name = {}
        self.operation_latencies_ms = []

    def get_summary(self) -> Dict[str, Any]:
        """Get metrics summary."""
        def percentile(data: list, p: float) -> Optional[float]:
            if not data:
                return None
            sorted_data = sorted(data)
            idx = int(len(sorted_data) * p)
            return sorted_data[min(idx, len(sorted_data) - 1)]

        return {
            "operations_total": self.operations_total,
            "operations_failed": self.operations_failed,
            "failures_by_kind": dict(self.failures_by_kind),
            "operations_by_name": dict(self.operations_by_name),
            "operation_latency_p50_ms": percentile(self.operation_latencies_ms, 0.5),
            "operation_latency_p95_ms": percentile(self.operation_latencies_ms, 0.95),
            "operation_latency_p99_ms": percentile(self.operation_latencies_ms, 0.99),
        }


# Global metrics instance
_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return _metrics


# ============================================================
# OPERATION CONTEXT
# ============================================================

@contextmanager
def operation_scope(name: str, caller: str) -> Generator[str, None, None]:
    """
    Tag everything inside one ledger operation with an ID and the caller.

    Records timing and outcome in the metrics collector.
    Errors are re-raised untouched; the caller decides what to do with them.

    Yields:
        The operation ID
    """
    operation_id = str(uuid.uuid4())[:8]
    op_token = operation_id_var.set(operation_id)
    caller_token = caller_var.set(str(caller))

    logger = get_logger("agriledger.operation")
    start_time = time.perf_counter()
    failure_kind: Optional[str] = None

    try:
        yield operation_id
    except Exception as e:
        kind = getattr(e, "kind", None)
        failure_kind = kind.value if kind is not None else type(e).__name__
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        _metrics.record_operation(name, duration_ms, failure_kind)
        logger.debug(
            f"{name} -> {failure_kind or 'ok'}",
            operation=name,
            outcome=failure_kind or "ok",
            duration_ms=round(duration_ms, 3),
        )
        operation_id_var.reset(op_token)
        caller_var.reset(caller_token)


# ============================================================
# HEALTH CHECKS
# ============================================================

@dataclass
class HealthStatus:
    """Health check result."""
    healthy: bool
    checks: Dict[str, Dict[str, Any]]
    duration_ms: float


def check_health(ledger=None) -> HealthStatus:
    """
    Run all health checks.

    Args:
        ledger: LedgerService instance

    Returns:
        HealthStatus with all check results
    """
    start = time.perf_counter()
    checks = {}
    all_healthy = True

    # Check 1: Basic liveness
    checks["liveness"] = {"status": "healthy"}

    if ledger is not None:
        # Check 2: Stores reachable
        try:
            records = ledger.record_store.dump()
            grants = ledger.access_store.dump()
            checks["stores"] = {
                "status": "healthy",
                "record_count": len(records),
                "grant_count": len(grants),
            }
        except Exception as e:
            checks["stores"] = {
                "status": "unhealthy",
                "error": str(e),
            }
            all_healthy = False
            records = []

        # Check 3: Sequencer is ahead of every stored record
        last_index = ledger.sequencer.current
        highest = max((r.record_index for r in records), default=0)
        sequencer_ok = highest <= last_index
        checks["sequencer"] = {
            "status": "healthy" if sequencer_ok else "unhealthy",
            "last_record_index": last_index,
            "highest_stored_index": highest,
        }
        if not sequencer_ok:
            all_healthy = False

    duration_ms = (time.perf_counter() - start) * 1000

    return HealthStatus(
        healthy=all_healthy,
        checks=checks,
        duration_ms=round(duration_ms, 2),
    )
