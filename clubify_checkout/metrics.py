"""Operation metrics collection.

Repositories report one :class:`OperationMetric` per wrapped call. The
collector only keeps them in memory; forwarding to a monitoring system is
left to callers who can subclass or replace the sink.
"""

import time
from collections import deque
from statistics import mean

import typing as t
from dataclasses import dataclass, field


@dataclass
class OperationMetric:
    """Timing and outcome of one repository operation."""

    name: str
    duration_ms: float
    success: bool
    error_type: str | None = None
    timestamp: float = field(default_factory=time.time)
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class MetricsSummary:
    """Statistical summary of operation metrics."""

    count: int = 0
    success_count: int = 0
    failure_count: int = 0
    avg_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
    p95_ms: float = 0.0

    @property
    def success_rate(self) -> float:
        return self.success_count / self.count if self.count else 0.0


@t.runtime_checkable
class MetricsSinkProtocol(t.Protocol):
    def record_operation(self, metric: OperationMetric) -> None: ...


class MetricsCollector:
    def __init__(self, max_metrics: int = 1000) -> None:
        self._metrics: deque[OperationMetric] = deque(maxlen=max_metrics)

    def record_operation(self, metric: OperationMetric) -> None:
        self._metrics.append(metric)

    def get_metrics(self, name: str | None = None) -> list[OperationMetric]:
        if name is None:
            return list(self._metrics)
        return [m for m in self._metrics if m.name == name]

    def get_summary(self, name: str | None = None) -> MetricsSummary:
        """Summarize recorded metrics, optionally for one operation name.

        Args:
            name: Operation name such as ``"create_user"``

        Returns:
            Counts, success rate and latency statistics in milliseconds
        """
        metrics = self.get_metrics(name)
        if not metrics:
            return MetricsSummary()

        durations = sorted(m.duration_ms for m in metrics)
        successes = sum(1 for m in metrics if m.success)
        p95_index = max(0, int(len(durations) * 0.95) - 1)
        return MetricsSummary(
            count=len(metrics),
            success_count=successes,
            failure_count=len(metrics) - successes,
            avg_ms=mean(durations),
            min_ms=durations[0],
            max_ms=durations[-1],
            p95_ms=durations[p95_index],
        )

    def operation_names(self) -> list[str]:
        return sorted({m.name for m in self._metrics})

    def reset(self) -> None:
        self._metrics.clear()
