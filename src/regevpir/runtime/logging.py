"""Logging and metrics utilities for regevpir.

Provides structured protocol-event logging and a small metrics
collector for the PIR roles. Nothing secret (keys, target indices,
plaintexts) is ever put into an event.
"""

import logging
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from enum import Enum
from datetime import datetime
from collections import defaultdict
import threading

import numpy as np


class ProtocolEventType(Enum):
    """Types of protocol events."""

    # Setup events
    PARAMS_GENERATED = "params_generated"
    KEY_GENERATED = "key_generated"
    DATABASE_LOADED = "database_loaded"

    # Retrieval events
    QUERY_GENERATED = "query_generated"
    ANSWER_COMPUTED = "answer_computed"
    RESULT_DECODED = "result_decoded"

    # Audit events
    CONFIG_CHANGED = "config_changed"


@dataclass
class ProtocolEvent:
    """A protocol event for logging.

    Attributes:
        event_type: Type of event
        timestamp: Event timestamp
        severity: Event severity (DEBUG, INFO, WARNING, ERROR)
        message: Human-readable message
        details: Additional event details
        query_id: Related query ID if applicable
        source: Emitting role (client/server/protocol)
    """

    event_type: ProtocolEventType
    timestamp: datetime = field(default_factory=datetime.now)
    severity: str = "INFO"
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
    query_id: Optional[str] = None
    source: str = "regevpir"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity,
            "message": self.message,
            "details": self.details,
            "query_id": self.query_id,
            "source": self.source,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())


class ProtocolLogger:
    """Structured protocol event logger.

    Wraps a stdlib logger, keeps a bounded in-memory history and fans
    events out to registered callbacks.
    """

    def __init__(
        self,
        name: str = "regevpir",
        level: str = "INFO",
        handlers: Optional[List[logging.Handler]] = None,
        max_history: int = 1000,
    ):
        """Initialize protocol logger.

        Args:
            name: Logger name
            level: Logging level
            handlers: Optional custom handlers
            max_history: Number of events kept in memory
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))

        if not handlers and not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(self._create_formatter())
            self.logger.addHandler(handler)
        elif handlers:
            for handler in handlers:
                self.logger.addHandler(handler)

        self._event_callbacks: List[Callable[[ProtocolEvent], None]] = []
        self._event_history: List[ProtocolEvent] = []
        self._max_history = max_history
        self._lock = threading.Lock()

    def _create_formatter(self) -> logging.Formatter:
        """Create a structured log formatter."""
        return logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    def log_event(self, event: ProtocolEvent) -> None:
        """Log a protocol event.

        Args:
            event: Event to log
        """
        log_func = getattr(self.logger, event.severity.lower(), self.logger.info)
        log_func(f"[{event.event_type.value}] {event.message}", extra={
            "event_data": event.to_dict()
        })

        with self._lock:
            self._event_history.append(event)
            if len(self._event_history) > self._max_history:
                self._event_history = self._event_history[-self._max_history:]

        for callback in self._event_callbacks:
            try:
                callback(event)
            except Exception:
                self.logger.exception("Event callback failed for %s", event.event_type.value)

    def params_generated(self, q: int, p: int, n: int, m: int) -> None:
        """Log generation of a public parameter set."""
        self.log_event(ProtocolEvent(
            event_type=ProtocolEventType.PARAMS_GENERATED,
            severity="DEBUG",
            message=f"Generated parameters q={q} p={p} n={n} m={m}",
            details={"q": q, "p": p, "n": n, "m": m},
            source="protocol",
        ))

    def key_generated(self, secret_length: int) -> None:
        """Log secret key generation (length only, never the key)."""
        self.log_event(ProtocolEvent(
            event_type=ProtocolEventType.KEY_GENERATED,
            severity="DEBUG",
            message=f"Generated secret of length {secret_length}",
            details={"secret_length": secret_length},
            source="client",
        ))

    def database_loaded(self, size: int) -> None:
        """Log a server database load."""
        self.log_event(ProtocolEvent(
            event_type=ProtocolEventType.DATABASE_LOADED,
            message=f"Loaded database with {size} records",
            details={"database_size": size},
            source="server",
        ))

    def query_generated(self, query_id: str, database_size: int) -> None:
        """Log query construction (the target index is not recorded)."""
        self.log_event(ProtocolEvent(
            event_type=ProtocolEventType.QUERY_GENERATED,
            message=f"Query {query_id} generated over {database_size} records",
            query_id=query_id,
            details={"database_size": database_size},
            source="client",
        ))

    def answer_computed(
        self,
        query_id: str,
        selected_records: int,
        latency_ms: float,
    ) -> None:
        """Log a server answer."""
        self.log_event(ProtocolEvent(
            event_type=ProtocolEventType.ANSWER_COMPUTED,
            message=(
                f"Answer for query {query_id} summed {selected_records} records "
                f"in {latency_ms:.1f}ms"
            ),
            query_id=query_id,
            details={"selected_records": selected_records, "latency_ms": latency_ms},
            source="server",
        ))

    def result_decoded(self, query_id: str, latency_ms: float) -> None:
        """Log client-side decoding (the recovered bit is not recorded)."""
        self.log_event(ProtocolEvent(
            event_type=ProtocolEventType.RESULT_DECODED,
            message=f"Query {query_id} decoded in {latency_ms:.1f}ms",
            query_id=query_id,
            details={"latency_ms": latency_ms},
            source="client",
        ))

    def config_changed(self, key: str, old_value: Any, new_value: Any) -> None:
        """Log a runtime configuration override."""
        self.log_event(ProtocolEvent(
            event_type=ProtocolEventType.CONFIG_CHANGED,
            message=f"Config {key} changed from {old_value!r} to {new_value!r}",
            details={"key": key, "old_value": old_value, "new_value": new_value},
            source="config",
        ))

    def add_callback(self, callback: Callable[[ProtocolEvent], None]) -> None:
        """Add an event callback.

        Args:
            callback: Function to call on each event
        """
        self._event_callbacks.append(callback)

    def get_recent_events(
        self,
        count: int = 100,
        event_type: Optional[ProtocolEventType] = None,
    ) -> List[ProtocolEvent]:
        """Get recent events.

        Args:
            count: Number of events to return
            event_type: Optional filter by event type

        Returns:
            List of recent events
        """
        with self._lock:
            events = self._event_history[-count:]
            if event_type:
                events = [e for e in events if e.event_type == event_type]
            return events


class MetricsCollector:
    """Collects counters, gauges and histograms."""

    def __init__(self, max_samples: int = 10000):
        """Initialize metrics collector.

        Args:
            max_samples: Histogram samples kept per metric
        """
        self._counters: Dict[str, float] = defaultdict(float)
        self._gauges: Dict[str, float] = {}
        self._histograms: Dict[str, List[float]] = defaultdict(list)
        self._max_samples = max_samples
        self._lock = threading.Lock()
        self._start_time = time.time()

    def increment(self, name: str, value: float = 1.0, labels: Optional[Dict] = None) -> None:
        """Increment a counter."""
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] += value

    def set_gauge(self, name: str, value: float, labels: Optional[Dict] = None) -> None:
        """Set a gauge value."""
        key = self._make_key(name, labels)
        with self._lock:
            self._gauges[key] = value

    def observe(self, name: str, value: float, labels: Optional[Dict] = None) -> None:
        """Observe a value for a histogram."""
        key = self._make_key(name, labels)
        with self._lock:
            self._histograms[key].append(value)
            if len(self._histograms[key]) > self._max_samples:
                self._histograms[key] = self._histograms[key][-self._max_samples:]

    def _make_key(self, name: str, labels: Optional[Dict] = None) -> str:
        """Create a unique key from name and labels."""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_counter(self, name: str, labels: Optional[Dict] = None) -> float:
        key = self._make_key(name, labels)
        return self._counters.get(key, 0.0)

    def get_gauge(self, name: str, labels: Optional[Dict] = None) -> Optional[float]:
        key = self._make_key(name, labels)
        return self._gauges.get(key)

    def get_histogram_stats(self, name: str, labels: Optional[Dict] = None) -> Dict[str, float]:
        """Get histogram statistics.

        Returns:
            Dictionary with count, sum, avg, min, max, p50, p95, p99
        """
        key = self._make_key(name, labels)
        values = self._histograms.get(key, [])

        if not values:
            return {}

        arr = np.asarray(values, dtype=float)
        return {
            "count": int(arr.size),
            "sum": float(arr.sum()),
            "avg": float(arr.mean()),
            "min": float(arr.min()),
            "max": float(arr.max()),
            "p50": float(np.percentile(arr, 50)),
            "p95": float(np.percentile(arr, 95)),
            "p99": float(np.percentile(arr, 99)),
        }

    def get_all_metrics(self) -> Dict[str, Any]:
        """Get all metrics."""
        with self._lock:
            counters = dict(self._counters)
            gauges = dict(self._gauges)
            histogram_keys = list(self._histograms.keys())
        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": counters,
            "gauges": gauges,
            "histograms": {k: self.get_histogram_stats(k) for k in histogram_keys},
        }

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._start_time = time.time()


class PIRMetrics:
    """Pre-defined metrics for the PIR roles."""

    def __init__(self, collector: Optional[MetricsCollector] = None):
        self.collector = collector or MetricsCollector()

    def record_query(self, database_size: int, latency_ms: float) -> None:
        """Record a generated query."""
        self.collector.increment("query_total")
        self.collector.observe("query_latency_ms", latency_ms)
        self.collector.set_gauge("database_size", database_size)

    def record_answer(self, selected_records: int, latency_ms: float) -> None:
        """Record a server answer.

        ``selected_records`` is the number of summed ciphertexts, which
        drives the noise growth of the answer.
        """
        self.collector.increment("answer_total")
        self.collector.observe("answer_latency_ms", latency_ms)
        self.collector.observe("answer_selected_records", selected_records)

    def record_decode(self, latency_ms: float) -> None:
        """Record a client decode."""
        self.collector.increment("decode_total")
        self.collector.observe("decode_latency_ms", latency_ms)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of PIR metrics."""
        metrics = self.collector.get_all_metrics()
        counters = metrics["counters"]
        histograms = metrics["histograms"]

        return {
            "uptime_seconds": metrics["uptime_seconds"],
            "queries": {
                "total": counters.get("query_total", 0),
                "latency": histograms.get("query_latency_ms", {}),
            },
            "answers": {
                "total": counters.get("answer_total", 0),
                "latency": histograms.get("answer_latency_ms", {}),
                "selected_records": histograms.get("answer_selected_records", {}),
            },
            "decodes": {
                "total": counters.get("decode_total", 0),
                "latency": histograms.get("decode_latency_ms", {}),
            },
            "database_size": metrics["gauges"].get("database_size", 0),
        }


# Global instances for convenience
_default_logger: Optional[ProtocolLogger] = None
_default_metrics: Optional[PIRMetrics] = None


def get_logger() -> ProtocolLogger:
    """Get the default protocol logger."""
    global _default_logger
    if _default_logger is None:
        _default_logger = ProtocolLogger()
    return _default_logger


def get_metrics() -> PIRMetrics:
    """Get the default PIR metrics."""
    global _default_metrics
    if _default_metrics is None:
        _default_metrics = PIRMetrics()
    return _default_metrics


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> ProtocolLogger:
    """Configure the default protocol logger.

    Args:
        level: Logging level
        json_output: Use JSON output format
        log_file: Optional log file path

    Returns:
        Configured ProtocolLogger
    """
    global _default_logger

    handlers = []

    console_handler = logging.StreamHandler()
    if json_output:
        console_handler.setFormatter(logging.Formatter('%(message)s'))
    else:
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    logger = logging.getLogger("regevpir")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    _default_logger = ProtocolLogger(level=level, handlers=handlers)
    return _default_logger
