"""
In-process request monitoring.

Records one event per headline request: success, response time, quality
score of the chosen title and which stage produced it. Recording is
best-effort; callers wrap it so a monitoring failure never affects the
returned title.
"""

import time
from collections import deque
from dataclasses import dataclass, field, asdict
from typing import Callable, Optional

from .logging_conf import get_logger

logger = get_logger(__name__)

RECENT_EVENTS = 50


def quality_bucket(score: float) -> str:
    if score >= 0.8:
        return "excellent"
    if score >= 0.6:
        return "good"
    if score >= 0.4:
        return "fair"
    return "poor"


@dataclass
class RequestEvent:
    timestamp: float
    success: bool
    response_time_ms: int
    quality_score: Optional[float]
    source: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SourceStats:
    count: int = 0
    total_score: float = 0.0

    @property
    def average_score(self) -> float:
        return self.total_score / self.count if self.count else 0.0


@dataclass
class MonitoringRecorder:
    """
    Aggregates request outcomes for /stats and the CLI.

    Args:
        history_size: Response times and quality scores kept for averages
        clock: Wall-clock source for event timestamps
    """
    history_size: int = 1000
    clock: Callable[[], float] = time.time

    total_requests: int = field(default=0, init=False)
    successful_requests: int = field(default=0, init=False)
    failed_requests: int = field(default=0, init=False)

    def __post_init__(self):
        self._started = self.clock()
        self._response_times: deque[int] = deque(maxlen=self.history_size)
        self._scores: deque[float] = deque(maxlen=self.history_size)
        self._distribution = {"excellent": 0, "good": 0, "fair": 0, "poor": 0}
        self._by_source: dict[str, SourceStats] = {}
        self._recent: deque[RequestEvent] = deque(maxlen=RECENT_EVENTS)

    def record(
        self,
        success: bool,
        response_time_ms: int,
        quality_score: Optional[float] = None,
        source: str = "unknown",
    ) -> None:
        self.total_requests += 1

        if success:
            self.successful_requests += 1
            self._response_times.append(response_time_ms)
            if quality_score is not None:
                self._record_quality(quality_score, source)
        else:
            self.failed_requests += 1

        self._recent.append(RequestEvent(
            timestamp=self.clock(),
            success=success,
            response_time_ms=response_time_ms,
            quality_score=quality_score,
            source=source,
        ))
        logger.debug(
            "request_recorded",
            success=success,
            response_time_ms=response_time_ms,
            quality_score=quality_score,
            source=source,
        )

    def _record_quality(self, score: float, source: str) -> None:
        self._scores.append(score)
        self._distribution[quality_bucket(score)] += 1
        stats = self._by_source.setdefault(source, SourceStats())
        stats.count += 1
        stats.total_score += score

    @property
    def success_rate(self) -> float:
        return self.successful_requests / self.total_requests if self.total_requests else 0.0

    @property
    def average_response_time_ms(self) -> int:
        if not self._response_times:
            return 0
        return round(sum(self._response_times) / len(self._response_times))

    @property
    def average_quality(self) -> float:
        return sum(self._scores) / len(self._scores) if self._scores else 0.0

    def snapshot(self) -> dict:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "success_rate": round(self.success_rate, 4),
            "average_response_time_ms": self.average_response_time_ms,
            "average_quality": round(self.average_quality, 4),
            "quality_distribution": dict(self._distribution),
            "by_source": {
                name: {"count": s.count, "average_score": round(s.average_score, 4)}
                for name, s in self._by_source.items()
            },
            "uptime_seconds": round(self.clock() - self._started, 1),
            "recent": [e.to_dict() for e in self._recent],
        }

    def reset(self) -> None:
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.__post_init__()
        logger.info("monitoring_reset")
