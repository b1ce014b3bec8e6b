"""Error aggregation and reporting utilities."""

import logging
import threading
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from types import TracebackType
from typing import Dict, Optional, Set, Union

from gymledger.config.types import ErrorAggregationConfig

@dataclass
class ErrorGroup:
    """Group of similar errors."""
    message: str
    count: int = 0
    first_seen: datetime = field(default_factory=datetime.now)
    last_seen: datetime = field(default_factory=datetime.now)
    services: Set[str] = field(default_factory=set)
    stack_traces: Set[str] = field(default_factory=set)

    def update(self, service: str, stack_trace: Optional[str] = None) -> None:
        """Update error group with new occurrence."""
        self.count += 1
        self.last_seen = datetime.now()
        self.services.add(service)
        if stack_trace:
            self.stack_traces.add(stack_trace)

class ErrorAggregator:
    """Aggregates and reports errors across services.

    Primary store outages tend to fail every call in the same way, so
    identical messages are grouped and reported once per threshold or
    interval instead of once per call.
    """

    def __init__(self, config: ErrorAggregationConfig):
        """Initialize error aggregator.

        Args:
            config: Error aggregation configuration
        """
        self._errors: Dict[str, ErrorGroup] = {}
        self._lock = threading.Lock()
        self._config = config
        self._last_report = datetime.now()

        self.logger = logging.getLogger('error_aggregator')

        self._stop_flag = threading.Event()
        self._report_thread: Optional[threading.Thread] = None
        if config.enabled and config.report_interval > 0:
            self._report_thread = threading.Thread(target=self._periodic_report, daemon=True)
            self._report_thread.start()

    def add_error(
        self,
        message: str,
        service: str,
        stack_trace: Union[str, TracebackType, None] = None
    ) -> None:
        """Add error occurrence to aggregator.

        Args:
            message: Error message
            service: Service where error occurred
            stack_trace: Optional stack trace (string or traceback object)
        """
        if not self._config.enabled:
            return

        if isinstance(stack_trace, TracebackType):
            stack_trace = ''.join(traceback.format_tb(stack_trace))

        with self._lock:
            if message not in self._errors:
                self._errors[message] = ErrorGroup(message=message)
            error_group = self._errors[message]
            error_group.update(service, stack_trace)

            if (
                error_group.count >= self._config.error_threshold or
                (datetime.now() - error_group.first_seen).total_seconds() >= self._config.time_threshold
            ):
                self._report_error_group(message, error_group)
                del self._errors[message]

    def pending(self) -> Dict[str, int]:
        """Return counts of grouped errors not yet reported."""
        with self._lock:
            return {message: group.count for message, group in self._errors.items()}

    def _report_error_group(self, message: str, error_group: ErrorGroup) -> None:
        """Report a single error group."""
        self.logger.error(
            f"{message} (occurrences: {error_group.count}, services: {', '.join(sorted(error_group.services))})",
            extra={"error_count": error_group.count}
        )
        for trace in error_group.stack_traces:
            if trace.strip():
                self.logger.debug("Stack trace:\n%s", trace)

    def _periodic_report(self) -> None:
        """Periodically report all accumulated errors."""
        while not self._stop_flag.wait(1):
            now = datetime.now()
            if (now - self._last_report).total_seconds() >= self._config.report_interval:
                self.flush()
                self._last_report = now

    def flush(self) -> None:
        """Report and clear every accumulated group."""
        with self._lock:
            for message, group in self._errors.items():
                self._report_error_group(message, group)
            self._errors.clear()

    def shutdown(self) -> None:
        """Shutdown aggregator and report remaining errors."""
        if not self._config.enabled:
            return

        self._stop_flag.set()
        if self._report_thread is not None:
            self._report_thread.join()

        self.flush()

# Global error aggregator instance, installed by the composition root
_error_aggregator: Optional[ErrorAggregator] = None

def init_error_aggregator(config: ErrorAggregationConfig) -> ErrorAggregator:
    """Initialize global error aggregator with configuration.

    Args:
        config: Error aggregation configuration

    Returns:
        The installed aggregator
    """
    global _error_aggregator
    if _error_aggregator is not None:
        _error_aggregator.shutdown()
    _error_aggregator = ErrorAggregator(config)
    return _error_aggregator

def get_error_aggregator() -> ErrorAggregator:
    """Get global error aggregator instance.

    Raises:
        RuntimeError: If error aggregator not initialized
    """
    if _error_aggregator is None:
        raise RuntimeError("Error aggregator not initialized. Call init_error_aggregator first.")
    return _error_aggregator

def shutdown_error_aggregator() -> None:
    """Flush and remove the global aggregator."""
    global _error_aggregator
    if _error_aggregator is not None:
        _error_aggregator.shutdown()
        _error_aggregator = None

def aggregate_error(
    message: str,
    service: str,
    stack_trace: Union[str, TracebackType, None] = None
) -> None:
    """Add error to global aggregator; a no-op until one is initialized.

    Args:
        message: Error message
        service: Service where error occurred
        stack_trace: Optional stack trace
    """
    if _error_aggregator is None:
        return
    _error_aggregator.add_error(message, service, stack_trace)
